"""Redis-backed cache for code -> mapping lookups

This module provides the volatile layer of the cache-aside pattern. Entries
are JSON documents stored under `<prefix>:links:<code>:mapping` with a TTL;
every cache hit slides the TTL forward.

Classes:
    MappingCacheRedisDAO:
        Cache DAO storing MappingModel instances in Redis.

Example:
    >>> from datetime import timedelta
    >>> dao = MappingCacheRedisDAO(prefix='snaplink:dev')
    >>> dao.put('Gh71WPT', mapping, ttl=timedelta(minutes=60))
    >>> dao.get('Gh71WPT').long_url
    'https://example.com/page'
    >>> dao.refresh_ttl('Gh71WPT', ttl=timedelta(minutes=60))
    True
"""

import json
import logging
from datetime import datetime, timedelta

from beartype import beartype

from snaplink.models import MappingModel
from snaplink.dao.base import MappingCacheBaseDAO
from snaplink.dao.redis.mixins import RedisClientMixin
from snaplink.dao.redis.helpers import handle_redis_connection_error


logger = logging.getLogger(__name__)


def _dump(mapping: MappingModel) -> str:
    return json.dumps(
        {
            'code': mapping.code,
            'long_url': mapping.long_url,
            'created_at': mapping.created_at.isoformat(),
            'expires_at': mapping.expires_at.isoformat() if mapping.expires_at else None,
            'hit_count': mapping.hit_count,
        }
    )


def _load(raw: str | bytes) -> MappingModel:
    document = json.loads(raw)
    expires_at = document.get('expires_at')
    return MappingModel(
        code=document['code'],
        long_url=document['long_url'],
        created_at=datetime.fromisoformat(document['created_at']),
        expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        hit_count=int(document.get('hit_count', 0)),
    )


def _ttl_ms(ttl: timedelta) -> int:
    milliseconds = int(ttl.total_seconds() * 1000)
    if milliseconds <= 0:
        raise ValueError(f'Cache TTL must be positive (given value: {ttl}).')
    return milliseconds


class MappingCacheRedisDAO(RedisClientMixin, MappingCacheBaseDAO):
    """Redis-based cache DAO for mappings

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.

    Methods:
        get(code) -> MappingModel | None:
            Return the cached mapping. Unreadable entries count as a miss.

        put(code, mapping, ttl) -> None:
            SET the mapping document with a PX expiry.

        refresh_ttl(code, ttl) -> bool:
            PEXPIRE the entry. False if it no longer exists.

    All methods raise DataStoreError on connectivity issues with Redis.
    """

    @handle_redis_connection_error
    @beartype
    def get(self, code: str, **kwargs) -> MappingModel | None:
        raw = self.redis.get(self.keys.mapping_key(code))
        if raw is None:
            return None

        try:
            return _load(raw)
        except (ValueError, KeyError, TypeError):
            # Written by an incompatible release, treat as a miss
            logger.warning('Discarding unreadable cache entry.', extra={'code': code})
            return None

    @handle_redis_connection_error
    @beartype
    def put(self, code: str, mapping: MappingModel, ttl: timedelta, **kwargs) -> None:
        self.redis.set(self.keys.mapping_key(code), _dump(mapping), px=_ttl_ms(ttl))

    @handle_redis_connection_error
    @beartype
    def refresh_ttl(self, code: str, ttl: timedelta, **kwargs) -> bool:
        return bool(self.redis.pexpire(self.keys.mapping_key(code), _ttl_ms(ttl)))
