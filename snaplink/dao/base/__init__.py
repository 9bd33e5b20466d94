from snaplink.dao.base.mapping_base_dao import MappingBaseDAO
from snaplink.dao.base.mapping_cache_base_dao import MappingCacheBaseDAO
from snaplink.dao.base.token_bucket_base_dao import TokenBucketBaseDAO


__all__ = [
    'MappingBaseDAO',
    'MappingCacheBaseDAO',
    'TokenBucketBaseDAO',
]
