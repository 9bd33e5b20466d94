"""Shared fixtures for unit tests

Provides a mocked Redis client plus small in-memory DAO implementations that
honor the DAO contracts (atomic insert-if-absent, TTL-less cache, interval
refilled token buckets) so that service-level behavior can be tested without
Redis or DynamoDB.
"""

import threading
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
import redis
from prometheus_client import CollectorRegistry

from snaplink.models import BandwidthLimit, BucketProbeModel, MappingModel
from snaplink.dao.base import MappingBaseDAO, MappingCacheBaseDAO, TokenBucketBaseDAO
from snaplink.dao.exceptions import MappingAlreadyExistsError
from snaplink.utils.metrics import ShortenerMetrics


# -------------------------------
# In-memory DAOs
# -------------------------------


class InMemoryMappingDAO(MappingBaseDAO):
    """Thread-safe dict-backed store that counts calls per method."""

    def __init__(self):
        self.items: dict[str, MappingModel] = {}
        self.calls: dict[str, int] = {}
        self._lock = threading.Lock()

    def _count(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1

    def find(self, code: str, **kwargs) -> MappingModel | None:
        self._count('find')
        return self.items.get(code)

    def save(self, mapping: MappingModel, **kwargs) -> MappingModel:
        self._count('save')
        with self._lock:
            if mapping.code in self.items:
                raise MappingAlreadyExistsError(f"Mapping with code '{mapping.code}' already exists.")
            self.items[mapping.code] = mapping
        return mapping

    def exists(self, code: str, **kwargs) -> bool:
        self._count('exists')
        return code in self.items

    def delete(self, code: str, **kwargs) -> bool:
        self._count('delete')
        return self.items.pop(code, None) is not None

    def find_all_expired(self, now: datetime, **kwargs) -> list[MappingModel]:
        self._count('find_all_expired')
        return [m for m in self.items.values() if m.expires_at is not None and m.expires_at < now]

    def delete_batch(self, codes: Iterable[str], **kwargs) -> int:
        self._count('delete_batch')
        return sum(1 for code in set(codes) if self.items.pop(code, None) is not None)


class InMemoryMappingCacheDAO(MappingCacheBaseDAO):
    """Dict-backed cache recording the TTL of every put/refresh."""

    def __init__(self):
        self.items: dict[str, MappingModel] = {}
        self.ttls: dict[str, timedelta] = {}

    def get(self, code: str, **kwargs) -> MappingModel | None:
        return self.items.get(code)

    def put(self, code: str, mapping: MappingModel, ttl: timedelta, **kwargs) -> None:
        self.items[code] = mapping
        self.ttls[code] = ttl

    def refresh_ttl(self, code: str, ttl: timedelta, **kwargs) -> bool:
        if code not in self.items:
            return False
        self.ttls[code] = ttl
        return True


class InMemoryTokenBucketDAO(TokenBucketBaseDAO):
    """Interval-refilled token buckets, same semantics as the Redis script."""

    def __init__(self):
        self.buckets: dict[tuple[str, str], tuple[int, datetime]] = {}

    def consume(self, client_key: str, limits: Sequence[BandwidthLimit], now: datetime, **kwargs) -> BucketProbeModel:
        state = {}
        allowed = True
        wait = timedelta(0)
        for limit in limits:
            tokens, anchor = self.buckets.get((client_key, limit.name), (limit.capacity, now))
            if now >= anchor + limit.refill_period:
                periods = (now - anchor) // limit.refill_period
                anchor = anchor + periods * limit.refill_period
                tokens = limit.capacity
            if tokens < 1:
                allowed = False
                wait = max(wait, anchor + limit.refill_period - now)
            state[limit.name] = (tokens, anchor)

        for name, (tokens, anchor) in state.items():
            self.buckets[(client_key, name)] = (tokens - 1 if allowed else tokens, anchor)

        remaining = min(tokens for tokens, _ in (self.buckets[(client_key, name)] for name in state))
        return BucketProbeModel(consumed=allowed, remaining=remaining, wait_ms=int(wait.total_seconds() * 1000))


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture
def app_prefix() -> str:
    return 'testapp:test'


@pytest.fixture
def redis_client() -> redis.Redis:
    """Mock a Redis pipeline-compatible client."""
    client = MagicMock(spec=redis.client.Pipeline)
    client.connection_pool = MagicMock(
        spec=redis.ConnectionPool,
        connection_kwargs={'host': 'redis.test', 'port': 6379, 'db': 0},
    )
    client.pipeline.return_value = client
    client.__enter__.return_value = client
    client.__exit__.return_value = None
    return client


@pytest.fixture
def store() -> InMemoryMappingDAO:
    return InMemoryMappingDAO()


@pytest.fixture
def cache() -> InMemoryMappingCacheDAO:
    return InMemoryMappingCacheDAO()


@pytest.fixture
def bucket_dao() -> InMemoryTokenBucketDAO:
    return InMemoryTokenBucketDAO()


@pytest.fixture
def metrics() -> ShortenerMetrics:
    """Metrics on a private registry, so counts start at zero in every test."""
    return ShortenerMetrics(registry=CollectorRegistry())
