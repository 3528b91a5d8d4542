"""
License repository port (interface).

This defines the contract for license persistence operations.
Implementations are in the infrastructure layer.
"""
import uuid
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from licenses.domain.license import License

T = TypeVar("T")


class LicenseRepository(ABC):
    """
    Abstract repository for License entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    Every write stores the full record in one statement.
    """

    @abstractmethod
    async def upsert_license(self, license: License) -> License:
        """
        Create or replace a license record by id.

        Args:
            license: License entity to store

        Returns:
            Stored license entity

        Raises:
            ExternalPaymentIdConflictError: If another record holds the same
                external_payment_id
        """
        pass

    @abstractmethod
    async def update_license(self, license_id: uuid.UUID, **fields: Any) -> Optional[License]:
        """
        Update selected fields of one record.

        Args:
            license_id: License UUID
            **fields: Field values to write

        Returns:
            Updated license entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_user(self, user_id: str) -> List[License]:
        """
        Find all license records of a user, newest first.

        Args:
            user_id: User identifier

        Returns:
            List of License entities
        """
        pass

    @abstractmethod
    async def find_active_license_by_user(self, user_id: str) -> Optional[License]:
        """
        Find the license currently granting access to a user.

        Active means status active and no expiration date or one in the
        future. Indefinite licenses come first, then the latest expiration,
        then the newest record.

        Args:
            user_id: User identifier

        Returns:
            License entity or None
        """
        pass

    @abstractmethod
    async def find_trial_license_by_user(self, user_id: str) -> Optional[License]:
        """
        Find the user's free trial record, whatever its status.

        Args:
            user_id: User identifier

        Returns:
            License entity or None
        """
        pass

    @abstractmethod
    async def find_subscription_license_by_user(self, user_id: str) -> Optional[License]:
        """
        Find the user's most recent subscription record, whatever its status.

        Args:
            user_id: User identifier

        Returns:
            License entity or None
        """
        pass

    @abstractmethod
    async def find_license_by_external_payment_id(
        self, external_payment_id: str
    ) -> Optional[License]:
        """
        Find the record last written by a provider object.

        Args:
            external_payment_id: Provider subscription or payment id

        Returns:
            License entity or None
        """
        pass

    @abstractmethod
    async def run_serialized(self, user_id: str, work: Callable[[], Awaitable[T]]) -> T:
        """
        Run a read-decide-write sequence exclusively for one user.

        No two sequences for the same user_id overlap. Sequences for
        different users run independently.

        Args:
            user_id: User whose records the work reads and writes
            work: Coroutine function performing the sequence

        Returns:
            Whatever work returns
        """
        pass
