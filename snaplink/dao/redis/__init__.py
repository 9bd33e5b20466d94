from snaplink.dao.redis.redis_key_schema import RedisKeySchema
from snaplink.dao.redis.mixins import RedisClientMixin
from snaplink.dao.redis.mapping_cache_redis_dao import MappingCacheRedisDAO
from snaplink.dao.redis.token_bucket_redis_dao import TokenBucketRedisDAO


__all__ = [
    'RedisKeySchema',
    'RedisClientMixin',
    'MappingCacheRedisDAO',
    'TokenBucketRedisDAO',
]
