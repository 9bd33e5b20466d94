import functools
from collections.abc import Callable


__all__ = ['RedisKeySchema']  # hide internal decorator prefix_key from imports


def prefix_key(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> str:
        key = func(self, *args, **kwargs)
        return f'{self.prefix}:{key}' if self.prefix is not None else key

    return wrapper


class RedisKeySchema:
    """Provide standardized Redis keys for cached mappings and rate limit buckets.

    An optional prefix can be provided to namespace all generated keys.
    It is highly encouraged to set a custom prefix for each app and environment,
    e.g. "snaplink:prod" or "snaplink:dev".
    """

    def __init__(self, prefix: str | None = None):
        if prefix is not None and not isinstance(prefix, str):
            raise TypeError(f'Prefix must be of type string (given type: {type(prefix)}).')

        self.prefix = prefix

    @prefix_key
    def mapping_key(self, code: str) -> str:
        return f'links:{code}:mapping'

    @prefix_key
    def bucket_key(self, client_key: str, bucket: str) -> str:
        # {client_key} is a Redis Cluster hash tag: all buckets of one client
        # land in the same slot so a single script can update them together.
        return f'ratelimit:{{{client_key}}}:{bucket}'
