"""Redis-backed token buckets for distributed rate limiting

Every client key owns one Redis hash per bandwidth limit:

    <prefix>:ratelimit:{<client key>}:<bucket name> -> {tokens, refilled_at}

Buckets refill "intervally": once a full refill period has elapsed since the
last refill, the bucket is topped up to its capacity in one step. Consumption
runs inside a single Lua script, so checking and decrementing all the buckets
of a client is atomic with respect to every other service instance.

Classes:
    TokenBucketRedisDAO:
        Shared bucket store implementing TokenBucketBaseDAO.

Example:
    >>> from datetime import datetime, timedelta, UTC
    >>> dao = TokenBucketRedisDAO(prefix='snaplink:dev')
    >>> limits = [
    ...     BandwidthLimit('sustained', capacity=30, refill_period=timedelta(minutes=1)),
    ...     BandwidthLimit('burst', capacity=5, refill_period=timedelta(seconds=1)),
    ... ]
    >>> dao.consume('203.0.113.7', limits, datetime.now(UTC))
    BucketProbeModel(consumed=True, remaining=4, wait_ms=0)
"""

from collections.abc import Sequence
from datetime import datetime, timedelta

from beartype import beartype

from snaplink.models import BandwidthLimit, BucketProbeModel
from snaplink.dao.base import TokenBucketBaseDAO
from snaplink.dao.redis.mixins import RedisClientMixin
from snaplink.dao.redis.helpers import handle_redis_connection_error
from snaplink.utils.constants import BUCKET_EXPIRY_GRACE_SECONDS


# KEYS[i]            bucket hash of the i-th limit
# ARGV[1]            current time (ms since epoch)
# ARGV[2]            grace period added to bucket expiry (ms)
# ARGV[1 + 2i]       capacity of the i-th limit
# ARGV[2 + 2i]       refill period of the i-th limit (ms)
#
# Returns {consumed (0|1), remaining tokens (min across buckets), wait (ms)}
CONSUME_SCRIPT = """
local now = tonumber(ARGV[1])
local grace = tonumber(ARGV[2])
local tokens = {}
local anchors = {}
local allowed = true
local wait = 0

for i = 1, #KEYS do
    local capacity = tonumber(ARGV[1 + 2 * i])
    local period = tonumber(ARGV[2 + 2 * i])
    local state = redis.call('HMGET', KEYS[i], 'tokens', 'refilled_at')
    local available = tonumber(state[1])
    local anchor = tonumber(state[2])

    if available == nil or anchor == nil then
        available = capacity
        anchor = now
    elseif now >= anchor + period then
        anchor = anchor + math.floor((now - anchor) / period) * period
        available = capacity
    end

    if available < 1 then
        allowed = false
        wait = math.max(wait, anchor + period - now)
    end

    tokens[i] = available
    anchors[i] = anchor
end

local remaining = nil
for i = 1, #KEYS do
    local period = tonumber(ARGV[2 + 2 * i])
    if allowed then
        tokens[i] = tokens[i] - 1
    end
    if remaining == nil or tokens[i] < remaining then
        remaining = tokens[i]
    end
    redis.call('HSET', KEYS[i], 'tokens', tokens[i], 'refilled_at', anchors[i])
    redis.call('PEXPIRE', KEYS[i], math.max(anchors[i] + period - now, 0) + grace)
end

return {allowed and 1 or 0, remaining or 0, wait}
"""


class TokenBucketRedisDAO(RedisClientMixin, TokenBucketBaseDAO):
    """Redis-based token bucket store

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.

    Methods:
        consume(client_key, limits, now) -> BucketProbeModel:
            Atomically take one token from every bucket of the client, or none.
            Raises DataStoreError on connectivity issues with Redis.

    NOTE:
        - The caller's clock (`now`) drives refills. Service instances are
          expected to run NTP-synchronized clocks; skew between instances only
          shifts refill boundaries, it never lets a bucket exceed its capacity.
        - Idle buckets expire BUCKET_EXPIRY_GRACE_SECONDS after the moment
          they would have been full again. A recreated bucket starts full,
          which is exactly the state the expired one would have reached.
    """

    def __init__(self, *args, expiry_grace: timedelta = timedelta(seconds=BUCKET_EXPIRY_GRACE_SECONDS), **kwargs):
        super().__init__(*args, **kwargs)
        self.expiry_grace = expiry_grace
        self._consume = self.redis.register_script(CONSUME_SCRIPT)

    @handle_redis_connection_error
    @beartype
    def consume(self, client_key: str, limits: Sequence[BandwidthLimit], now: datetime, **kwargs) -> BucketProbeModel:
        if not limits:
            raise ValueError('At least one bandwidth limit is required.')

        keys = [self.keys.bucket_key(client_key, limit.name) for limit in limits]
        args = [int(now.timestamp() * 1000), int(self.expiry_grace.total_seconds() * 1000)]
        for limit in limits:
            args.extend([limit.capacity, limit.refill_period_ms])

        consumed, remaining, wait_ms = self._consume(keys=keys, args=args)
        return BucketProbeModel(consumed=bool(int(consumed)), remaining=int(remaining), wait_ms=int(wait_ms))
