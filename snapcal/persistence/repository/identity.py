"""PostgreSQL implementation of ExternalIdentity repository."""

from typing import Optional

from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from snapcal.domain.error import ConcurrencyConflictError
from snapcal.domain.model import ExternalIdentityRecord
from snapcal.domain.repository import ExternalIdentityRepository
from snapcal.domain.value import ExternalId
from snapcal.persistence.mappers import (
    identity_record_to_dict,
    linked_account_to_dict,
    rows_to_identity_record,
)
from snapcal.persistence.tables import external_identities_table, linked_accounts_table


class PostgresExternalIdentityRepository(ExternalIdentityRepository):
    """PostgreSQL implementation of ExternalIdentityRepository.

    The identity row carries the version; its accounts are rewritten in full
    on every save, inside the same savepoint as the version bump.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_external_id(
        self, external_id: ExternalId
    ) -> Optional[ExternalIdentityRecord]:
        """Find an identity and its accounts in link order."""
        stmt = select(external_identities_table).where(
            external_identities_table.c.external_id == external_id
        )
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        if not row:
            return None

        accounts_stmt = (
            select(linked_accounts_table)
            .where(linked_accounts_table.c.external_id == external_id)
            .order_by(linked_accounts_table.c.ordinal)
        )
        accounts_result = await self.session.execute(accounts_stmt)
        account_rows = [dict(r) for r in accounts_result.mappings().all()]

        return rows_to_identity_record(dict(row), account_rows)

    async def save(
        self, record: ExternalIdentityRecord, expected_version: int
    ) -> ExternalIdentityRecord:
        """Compare-and-swap the identity and rewrite its accounts.

        Version 0 means "must not exist yet": a concurrent first insert
        trips the primary key instead of the version check.

        Raises:
            ConcurrencyConflictError: If another writer got there first
        """
        new_version = expected_version + 1
        values = identity_record_to_dict(record, new_version)

        try:
            async with self.session.begin_nested():
                if expected_version == 0:
                    await self.session.execute(
                        insert(external_identities_table).values(**values)
                    )
                else:
                    stmt = (
                        update(external_identities_table)
                        .where(
                            and_(
                                external_identities_table.c.external_id
                                == record.external_id,
                                external_identities_table.c.version
                                == expected_version,
                            )
                        )
                        .values(**values)
                    )
                    result = await self.session.execute(stmt)
                    if result.rowcount != 1:
                        raise ConcurrencyConflictError(
                            "ExternalIdentityRecord",
                            str(record.external_id),
                            expected_version,
                        )

                await self.session.execute(
                    delete(linked_accounts_table).where(
                        linked_accounts_table.c.external_id == record.external_id
                    )
                )
                if record.accounts:
                    await self.session.execute(
                        insert(linked_accounts_table),
                        [
                            linked_account_to_dict(account, record.external_id, ordinal)
                            for ordinal, account in enumerate(record.accounts)
                        ],
                    )
        except IntegrityError as e:
            raise ConcurrencyConflictError(
                "ExternalIdentityRecord", str(record.external_id), expected_version
            ) from e

        return record.model_copy(update={"version": new_version})
