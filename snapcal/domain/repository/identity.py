"""External identity repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from snapcal.domain.model.identity import ExternalIdentityRecord
from snapcal.domain.value import ExternalId


class ExternalIdentityRepository(ABC):
    """Repository for the ExternalIdentityRecord aggregate.

    Writes are compare-and-swap on ``version`` so that concurrent merges for
    the same external id serialize instead of overwriting each other.
    """

    @abstractmethod
    async def find_by_external_id(
        self, external_id: ExternalId
    ) -> Optional[ExternalIdentityRecord]:
        """Find the record for a chat identity.

        Args:
            external_id: Chat platform user id

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def save(
        self, record: ExternalIdentityRecord, expected_version: int
    ) -> ExternalIdentityRecord:
        """Store the record if nobody else wrote it since it was read.

        ``expected_version`` is the version that was read (0 when no record
        existed). On success the stored record carries
        ``expected_version + 1``. Accounts and the active pointer are written
        as one unit; a failed save leaves nothing behind.

        Args:
            record: The new state of the aggregate
            expected_version: Version observed when the record was read

        Returns:
            The saved record with its new version

        Raises:
            ConcurrencyConflictError: If the stored version differs
        """
        pass
