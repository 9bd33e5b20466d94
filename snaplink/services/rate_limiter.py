"""Distributed token bucket admission control

Each client key (usually the caller's IP address) is subject to two limits
enforced together:

    sustained: `sustained_capacity` requests per `sustained_refill_minutes`
    burst:     `burst_capacity` requests per `burst_refill_seconds`

Bucket state lives in a shared store (Redis) so every service instance
enforces the same limits. A request is admitted only if both buckets have a
token; the store takes tokens from both or from neither.

Failure policy:
    If the shared store is unreachable the limiter follows
    `rate_limit_failure_policy`:
        - FailurePolicy.CLOSED (default): raise DependencyUnavailableError,
          the wrapped operation is not invoked.
        - FailurePolicy.OPEN: admit the request and log a warning.

Example:
    >>> limiter = RateLimiter.from_settings(dao=TokenBucketRedisDAO(...), settings=ShortenerSettings())
    >>> limiter.admit('203.0.113.7')
    AdmissionModel(allowed=True, retry_after=0.0, remaining=4)
    >>> limiter.guard('203.0.113.7')  # raises RateLimitedError when denied
"""

import logging
from collections.abc import Sequence
from datetime import datetime, UTC

from snaplink.models import AdmissionModel, BandwidthLimit
from snaplink.dao.base import TokenBucketBaseDAO
from snaplink.dao.exceptions import DataStoreError
from snaplink.services.exceptions import DependencyUnavailableError, RateLimitedError
from snaplink.utils.config import ShortenerSettings
from snaplink.utils.constants import FailurePolicy
from snaplink.utils.metrics import METRICS, ShortenerMetrics


logger = logging.getLogger(__name__)


class RateLimiter:
    """Admit or deny requests per client key

    Args:
        dao (TokenBucketBaseDAO):
            Shared bucket store.
        limits (Sequence[BandwidthLimit]):
            Limits enforced together for every key.
        failure_policy (FailurePolicy):
            Behavior when the shared store is unreachable.
        metrics (ShortenerMetrics | None):
            Metrics sink. Defaults to the process-wide METRICS.
    """

    def __init__(
        self,
        dao: TokenBucketBaseDAO,
        limits: Sequence[BandwidthLimit],
        failure_policy: FailurePolicy = FailurePolicy.CLOSED,
        metrics: ShortenerMetrics | None = None,
    ):
        if not limits:
            raise ValueError('At least one bandwidth limit is required.')
        names = [limit.name for limit in limits]
        if len(set(names)) != len(names):
            raise ValueError(f'Bandwidth limit names must be unique (given names: {names}).')

        self.dao = dao
        self.limits = tuple(limits)
        self.failure_policy = FailurePolicy(failure_policy)
        self.metrics = metrics or METRICS

    @classmethod
    def from_settings(cls, dao: TokenBucketBaseDAO, settings: ShortenerSettings, metrics: ShortenerMetrics | None = None) -> 'RateLimiter':
        return cls(
            dao=dao,
            limits=[
                BandwidthLimit('sustained', settings.sustained_capacity, settings.sustained_refill),
                BandwidthLimit('burst', settings.burst_capacity, settings.burst_refill),
            ],
            failure_policy=settings.rate_limit_failure_policy,
            metrics=metrics,
        )

    def admit(self, client_key: str) -> AdmissionModel:
        """Consume one token for `client_key` if every bucket has one

        Returns:
            AdmissionModel: allowed=True, or allowed=False with `retry_after`
            seconds until the earliest refill that would admit the request.

        Raises:
            DependencyUnavailableError:
                The shared store is unreachable and the policy is CLOSED.
        """
        try:
            with self.metrics.rate_limit_duration.time():
                probe = self.dao.consume(client_key, self.limits, datetime.now(UTC))
        except DataStoreError as e:
            self.metrics.rate_limit_decisions.labels(decision='error').inc()
            if self.failure_policy is FailurePolicy.OPEN:
                logger.warning(
                    'Rate limiter store unavailable, admitting request (fail-open).',
                    extra={'client_key': client_key, 'reason': str(e)},
                )
                return AdmissionModel(allowed=True)

            logger.error(
                'Rate limiter store unavailable, rejecting request (fail-closed).',
                extra={'client_key': client_key, 'reason': str(e)},
            )
            raise DependencyUnavailableError('Rate limiter is unavailable. Try again later.') from e

        if not probe.consumed:
            self.metrics.rate_limit_decisions.labels(decision='exceeded').inc()
            retry_after = probe.wait_ms / 1000
            logger.warning(
                'Rate limit exceeded.',
                extra={'client_key': client_key, 'retry_after': retry_after},
            )
            return AdmissionModel(allowed=False, retry_after=retry_after, remaining=0)

        self.metrics.rate_limit_decisions.labels(decision='allowed').inc()
        logger.debug('Rate limit allowed.', extra={'client_key': client_key, 'remaining': probe.remaining})
        return AdmissionModel(allowed=True, remaining=probe.remaining)

    def guard(self, client_key: str) -> AdmissionModel:
        """admit() that raises RateLimitedError instead of returning a denial"""
        admission = self.admit(client_key)
        if not admission.allowed:
            raise RateLimitedError(retry_after=admission.retry_after)
        return admission
