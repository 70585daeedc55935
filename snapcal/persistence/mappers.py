"""Mappers for converting between database rows and domain models.

Since we're using Pydantic domain models (immutable), we use manual mapping
instead of SQLAlchemy's classical imperative mapping.
"""

from typing import Any, Dict, Iterable
from uuid import UUID

from snapcal.domain.model import ExternalIdentityRecord, HandshakeSession, LinkedAccount
from snapcal.domain.value import AccountId, ExternalId, HandshakeState


def _uuid(value: Any) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def row_to_handshake_session(row: Dict[str, Any]) -> HandshakeSession:
    """Convert database row to HandshakeSession domain model.

    Args:
        row: Database row as dict

    Returns:
        HandshakeSession domain model
    """
    return HandshakeSession(
        state=HandshakeState(row["state"]),
        external_id=ExternalId(row["external_id"]),
        external_display_name=row.get("external_display_name"),
        created_at=row["created_at"],
        expires_at=row["expires_at"],
    )


def handshake_session_to_dict(session: HandshakeSession) -> Dict[str, Any]:
    """Convert HandshakeSession domain model to database dict."""
    return session.model_dump()


def row_to_linked_account(row: Dict[str, Any]) -> LinkedAccount:
    """Convert database row to LinkedAccount domain model."""
    return LinkedAccount(
        account_id=AccountId(_uuid(row["account_id"])),
        provider_email=row["provider_email"],
        linked_at=row["linked_at"],
        refreshed_at=row["refreshed_at"],
    )


def linked_account_to_dict(
    account: LinkedAccount, external_id: ExternalId, ordinal: int
) -> Dict[str, Any]:
    """Convert LinkedAccount to a ``linked_accounts`` row.

    Args:
        account: Linked account
        external_id: Owning identity
        ordinal: 0-based position in link order

    Returns:
        Dict suitable for database insertion
    """
    return {
        "account_id": account.account_id,
        "external_id": external_id,
        "ordinal": ordinal,
        "provider_email": account.provider_email,
        "linked_at": account.linked_at,
        "refreshed_at": account.refreshed_at,
    }


def rows_to_identity_record(
    row: Dict[str, Any], account_rows: Iterable[Dict[str, Any]]
) -> ExternalIdentityRecord:
    """Convert an identity row and its account rows to the aggregate.

    Args:
        row: ``external_identities`` row
        account_rows: ``linked_accounts`` rows, ordered by ordinal

    Returns:
        ExternalIdentityRecord domain model
    """
    active = row.get("active_account_id")
    return ExternalIdentityRecord(
        external_id=ExternalId(row["external_id"]),
        display_name=row.get("display_name"),
        accounts=tuple(row_to_linked_account(r) for r in account_rows),
        active_account_id=AccountId(_uuid(active)) if active else None,
        version=row["version"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def identity_record_to_dict(record: ExternalIdentityRecord, version: int) -> Dict[str, Any]:
    """Convert the aggregate root to an ``external_identities`` row.

    Accounts are stored separately; see ``linked_account_to_dict``.
    """
    return {
        "external_id": record.external_id,
        "display_name": record.display_name,
        "active_account_id": record.active_account_id,
        "version": version,
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }
