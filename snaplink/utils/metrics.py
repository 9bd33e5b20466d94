"""Prometheus metrics for the shortener services

Services take a ShortenerMetrics collaborator. By default they share METRICS,
registered on prometheus_client's global registry. Tests build their own
instance on a private CollectorRegistry.

Lambda processes are never scraped, so handlers decorated with push_metrics()
push the registry to a Prometheus Pushgateway after every invocation when
METRICS_PUSHGATEWAY_URL is set.

Metrics:
    snaplink_shorten_total{status}              success | rejected | error
    snaplink_shorten_duration_seconds
    snaplink_lookup_duration_seconds
    snaplink_cache_hits_total
    snaplink_cache_misses_total
    snaplink_rate_limit_total{decision}         allowed | exceeded | error
    snaplink_rate_limit_check_duration_seconds
    snaplink_cleanup_expired                    expired mappings found by the last sweep
    snaplink_cleanup_deleted_total
    snaplink_cleanup_errors_total

Example:
    >>> metrics = ShortenerMetrics(registry=CollectorRegistry())
    >>> metrics.cache_hits.inc()
    >>> metrics.registry.get_sample_value('snaplink_cache_hits_total')
    1.0
"""

import os
import logging
import functools
from collections.abc import Callable

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, pushadd_to_gateway

from snaplink.utils.constants import METRICS_NAMESPACE, METRICS_PUSHGATEWAY_ENV, METRICS_PUSH_TIMEOUT_SECONDS


logger = logging.getLogger(__name__)


class ShortenerMetrics:
    """Counters, gauges and histograms emitted by the services

    Args:
        registry (CollectorRegistry):
            Registry the collectors are registered on. Defaults to the global one.
        namespace (str):
            Metric name prefix. Defaults to METRICS_NAMESPACE.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY, namespace: str = METRICS_NAMESPACE):
        self.registry = registry

        # fmt: off
        self.shorten_requests = Counter('shorten', 'URL shortening requests by outcome', ['status'],
                                        namespace=namespace, registry=registry)
        self.shorten_duration = Histogram('shorten_duration_seconds', 'Time taken to shorten a URL',
                                          namespace=namespace, registry=registry)
        self.lookup_duration = Histogram('lookup_duration_seconds', 'Time taken to look up a shortcode',
                                         namespace=namespace, registry=registry)
        self.cache_hits = Counter('cache_hits', 'Lookups served by the cache',
                                  namespace=namespace, registry=registry)
        self.cache_misses = Counter('cache_misses', 'Lookups that fell through to the store',
                                    namespace=namespace, registry=registry)
        self.rate_limit_decisions = Counter('rate_limit', 'Rate limiter decisions', ['decision'],
                                            namespace=namespace, registry=registry)
        self.rate_limit_duration = Histogram('rate_limit_check_duration_seconds', 'Time taken by a rate limit check',
                                             namespace=namespace, registry=registry)
        self.cleanup_expired = Gauge('cleanup_expired', 'Expired mappings found by the last sweep',
                                     namespace=namespace, registry=registry)
        self.cleanup_deleted = Counter('cleanup_deleted', 'Expired mappings deleted by the sweeper',
                                       namespace=namespace, registry=registry)
        self.cleanup_errors = Counter('cleanup_errors', 'Failed expiry sweeps',
                                      namespace=namespace, registry=registry)
        # fmt: on


METRICS = ShortenerMetrics()


def push_metrics(job: str, metrics: ShortenerMetrics | None = None) -> Callable:
    """Decorator pushing the metrics registry to a Pushgateway after each call

    Does nothing unless METRICS_PUSHGATEWAY_URL is set. A failed push is logged
    and never affects the wrapped call's result.

    Args:
        job (str):
            Pushgateway job label, usually the lambda name.
        metrics (ShortenerMetrics | None):
            Metrics to push. Defaults to METRICS.

    Example:
        >>> @guarantee_500_response
        ... @push_metrics('redirect_url')
        ... def lambda_handler(event, context):
        ...     ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            finally:
                _push(job, metrics or METRICS)

        return wrapper

    return decorator


def _push(job: str, metrics: ShortenerMetrics) -> None:
    gateway = os.getenv(METRICS_PUSHGATEWAY_ENV)
    if not gateway:
        return

    try:
        pushadd_to_gateway(gateway, job=job, registry=metrics.registry, timeout=METRICS_PUSH_TIMEOUT_SECONDS)
    except OSError as e:
        logger.warning('Failed to push metrics.', extra={'gateway': gateway, 'job': job, 'reason': str(e)})
