"""Abstract base class for mapping cache DAOs.

The cache is a volatile, TTL-bearing projection of the durable store. It is a
pure performance optimization: losing an entry only costs a store round trip.
"""

from abc import ABC, abstractmethod
from datetime import timedelta

from snaplink.models import MappingModel


class MappingCacheBaseDAO(ABC):
    """Interface for mapping caches.

    Methods:
        get(code) -> MappingModel | None:
            Return the cached mapping, or None on a miss.

        put(code, mapping, ttl) -> None:
            Cache a mapping for `ttl`.

        refresh_ttl(code, ttl) -> bool:
            Reset the remaining lifetime of a cached entry (sliding expiration).
            Returns False if the entry vanished in the meantime.

    All methods raise DataStoreError when the cache is unreachable.
    """

    @abstractmethod
    def get(self, code: str, **kwargs) -> MappingModel | None:
        pass

    @abstractmethod
    def put(self, code: str, mapping: MappingModel, ttl: timedelta, **kwargs) -> None:
        pass

    @abstractmethod
    def refresh_ttl(self, code: str, ttl: timedelta, **kwargs) -> bool:
        pass
