"""Exceptions raised by the shortener services.

Classes:
    ServiceError:
        Generic base class for service-level exceptions.

    InvalidInputError:
        Bad long URL, custom alias or expiry. Never retried internally.

    AliasTakenError:
        The requested custom alias is already in use.

    RateLimitedError:
        Admission denied by the rate limiter; carries `retry_after` seconds.

    DependencyUnavailableError:
        Store, cache or rate limiter store unreachable or timed out. Retryable.

    ShortcodeExhaustedError:
        No free code was found within the generator's retry budget.
"""

from snaplink.exceptions import SnapLinkError


class ServiceError(SnapLinkError):
    """Generic base class for service-level exceptions."""

    error_code = 'service:service_error'


class InvalidInputError(ServiceError):
    """Raised when create() receives an invalid URL, alias or expiry."""

    error_code = 'service:invalid_input_error'


class AliasTakenError(ServiceError):
    """Raised when a custom alias is already in use."""

    error_code = 'service:alias_taken_error'


class RateLimitedError(ServiceError):
    """Raised when the rate limiter denies admission."""

    error_code = 'service:rate_limited_error'

    def __init__(self, retry_after: float, message: str | None = None):
        self.retry_after = retry_after
        super().__init__(message or f'Too many requests. Retry after {retry_after:.3f}s.')


class DependencyUnavailableError(ServiceError):
    """Raised when a backing store is unreachable. Callers may retry."""

    error_code = 'service:dependency_unavailable_error'
    retryable = True


class ShortcodeExhaustedError(ServiceError):
    """Raised when the shortcode generator runs out of attempts."""

    error_code = 'service:shortcode_exhausted_error'
