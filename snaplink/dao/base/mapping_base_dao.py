"""Abstract base class for mapping data access objects (DAOs).

This class establishes the contract of the durable store that owns every
code -> long URL mapping. The store is the source of truth: caches are
populated from it, never the other way around.

Responsibilities:
    - Atomically insert mappings (insert-if-absent on the code).
    - Retrieve mappings and check code existence.
    - Discover and batch-delete expired mappings for the expiry sweep.

Example:
    >>> dao = MappingDynamoDBDAO(table_name='snaplink-dev-mappings')
    >>> dao.save(mapping)
    MappingModel(code='Gh71WPT', ...)
    >>> dao.exists('Gh71WPT')
    True
    >>> dao.find('missing') is None
    True
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from snaplink.models import MappingModel


class MappingBaseDAO(ABC):
    """Interface for durable mapping stores.

    Methods:
        find(code) -> MappingModel | None
        save(mapping) -> MappingModel
        exists(code) -> bool
        delete(code) -> bool
        find_all_expired(now) -> list[MappingModel]
        delete_batch(codes) -> int

    All methods raise DataStoreError when the store is unreachable or times out.

    NOTE:
        - find() does not filter on liveness. Expired but unswept mappings are
          returned as-is; callers decide what "live" means.
    """

    @abstractmethod
    def find(self, code: str, **kwargs) -> MappingModel | None:
        """Retrieve a mapping by code, or None if the code is unknown."""
        pass

    @abstractmethod
    def save(self, mapping: MappingModel, **kwargs) -> MappingModel:
        """Insert a mapping if and only if its code is not taken yet.

        The existence check and the write are a single atomic operation, so two
        concurrent saves for the same code cannot both succeed.

        Returns:
            MappingModel: the saved mapping.

        Raises:
            MappingAlreadyExistsError:
                If a mapping with the same code already exists.
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def exists(self, code: str, **kwargs) -> bool:
        """Return True if a mapping (live or not) is stored under `code`."""
        pass

    @abstractmethod
    def delete(self, code: str, **kwargs) -> bool:
        """Delete a single mapping. Returns True if something was deleted."""
        pass

    @abstractmethod
    def find_all_expired(self, now: datetime, **kwargs) -> list[MappingModel]:
        """Return every mapping whose expires_at is strictly before `now`."""
        pass

    @abstractmethod
    def delete_batch(self, codes: Iterable[str], **kwargs) -> int:
        """Delete the given codes in one batch operation and return the count."""
        pass
