"""In-memory external identity repository for testing."""

import asyncio
from typing import Optional

from snapcal.domain.error import ConcurrencyConflictError
from snapcal.domain.model.identity import ExternalIdentityRecord
from snapcal.domain.repository.identity import ExternalIdentityRepository
from snapcal.domain.value import ExternalId


class InMemoryExternalIdentityRepository(ExternalIdentityRepository):
    """In-memory implementation of ExternalIdentityRepository for testing.

    Reads yield to the event loop so that concurrent writers interleave the
    way they would against a real database.
    """

    def __init__(self) -> None:
        self._records: dict[str, ExternalIdentityRecord] = {}
        self._lock = asyncio.Lock()

    async def find_by_external_id(
        self, external_id: ExternalId
    ) -> Optional[ExternalIdentityRecord]:
        """Find the record for a chat identity."""
        await asyncio.sleep(0)
        return self._records.get(external_id)

    async def save(
        self, record: ExternalIdentityRecord, expected_version: int
    ) -> ExternalIdentityRecord:
        """Compare-and-swap on version."""
        async with self._lock:
            current = self._records.get(record.external_id)
            current_version = current.version if current else 0
            if current_version != expected_version:
                raise ConcurrencyConflictError(
                    "ExternalIdentityRecord", str(record.external_id), expected_version
                )
            saved = record.model_copy(update={"version": expected_version + 1})
            self._records[record.external_id] = saved
            return saved
