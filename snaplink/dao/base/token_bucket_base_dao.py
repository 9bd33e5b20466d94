"""Abstract base class for the rate limiter's shared bucket store.

The store keeps token bucket state for every client key so that all service
instances enforce the same limits. A consume call is atomic across all the
buckets it touches: either one token is taken from every bucket, or none is.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from snaplink.models import BandwidthLimit, BucketProbeModel


class TokenBucketBaseDAO(ABC):
    """Interface for token bucket stores.

    Methods:
        consume(client_key, limits, now) -> BucketProbeModel:
            Take one token from each bucket of `client_key` if every bucket has
            one. Otherwise take nothing and report how long to wait.
            Bucket state must expire from the store once a client goes idle.
            Raises DataStoreError when the store is unreachable.
    """

    @abstractmethod
    def consume(self, client_key: str, limits: Sequence[BandwidthLimit], now: datetime, **kwargs) -> BucketProbeModel:
        pass
