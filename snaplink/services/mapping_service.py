"""Mapping service: code assignment and cache-aside resolution

This module orchestrates the write path (validate, assign a code, persist,
warm the cache) and the read path (cache first, store on a miss).

Write path:
    1. Validate long URL, custom alias and expiry       -> InvalidInputError
    2. Custom alias: atomic insert-if-absent             -> AliasTakenError
       Generated code: walk the candidate codes, skip taken ones, insert-if-absent
    3. Store write confirmed, then populate the cache (failures only logged)

Read path:
    1. Cache hit: slide the cache TTL, return
    2. Cache miss: read the store, populate the cache on a hit
    3. resolve() drops mappings that are no longer live, whether or not the
       expiry sweep has already deleted them

Store failures surface as DependencyUnavailableError. Cache failures never
fail a request: the cache is an optimization, the store is the source of truth.

Timestamps are truncated to milliseconds before they are persisted, so a
mapping reads back identically from the cache and from the store.

Metrics (see snaplink.utils.metrics):
    create()  -> shorten_total{status}, shorten_duration_seconds
    lookup()  -> cache_hits_total / cache_misses_total, lookup_duration_seconds

Example:
    >>> service = MappingService(store=MappingDynamoDBDAO(...), cache=MappingCacheRedisDAO(...))
    >>> mapping = service.create('https://example.com/some/long/path')
    >>> service.resolve(mapping.code).long_url
    'https://example.com/some/long/path'
"""

import re
import logging
import urllib.parse
from datetime import datetime, UTC

from snaplink.models import MappingModel
from snaplink.dao.base import MappingBaseDAO, MappingCacheBaseDAO
from snaplink.dao.exceptions import DataStoreError, MappingAlreadyExistsError
from snaplink.services.exceptions import AliasTakenError, DependencyUnavailableError, InvalidInputError
from snaplink.services.shortcode_generator import ShortcodeGenerator
from snaplink.utils.config import ShortenerSettings
from snaplink.utils.metrics import METRICS, ShortenerMetrics


logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = frozenset({'http', 'https'})
ALIAS_PATTERN = re.compile(r'[A-Za-z0-9_-]{1,64}')


def truncate_to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=value.microsecond - value.microsecond % 1000)


def validate_long_url(long_url: str) -> str:
    """Return `long_url` if it is an absolute http(s) URL with a host

    Raises:
        InvalidInputError: on any other input.
    """
    if not isinstance(long_url, str) or not long_url.strip():
        raise InvalidInputError('Invalid URL - must be a non-empty string')
    if any(character.isspace() for character in long_url):
        raise InvalidInputError('Invalid URL format - whitespace is not allowed')

    try:
        parts = urllib.parse.urlsplit(long_url)
        hostname = parts.hostname
        parts.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise InvalidInputError('Invalid URL format') from e

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidInputError('Invalid URL scheme - must be http or https')
    if not hostname:
        raise InvalidInputError('Invalid URL - missing host')
    return long_url


def validate_alias(custom_alias: str | None) -> str | None:
    """Return the alias, None for a blank alias, or raise InvalidInputError"""
    if custom_alias is None:
        return None
    if not isinstance(custom_alias, str):
        raise InvalidInputError('Invalid alias - must be a string')
    if not custom_alias.strip():
        return None
    if not ALIAS_PATTERN.fullmatch(custom_alias):
        raise InvalidInputError('Invalid alias - use 1 to 64 letters, digits, "-" or "_"')
    return custom_alias


def validate_expiry(expires_at: datetime, now: datetime, settings: ShortenerSettings) -> datetime:
    """Return `expires_at` as an aware UTC datetime within (now, now + max horizon]

    Naive datetimes are interpreted as UTC. The result has millisecond precision.
    """
    if not isinstance(expires_at, datetime):
        raise InvalidInputError('Invalid expiration date - must be a datetime')
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    expires_at = truncate_to_millis(expires_at.astimezone(UTC))

    if expires_at <= now:
        raise InvalidInputError('URL expiration date must be in the future')
    if expires_at > now + settings.max_expiry_horizon:
        raise InvalidInputError(
            f'URL expiration date cannot be more than {settings.max_expiry_horizon_minutes} minutes in the future'
        )
    return expires_at


class MappingService:
    """Create and resolve mappings on top of a durable store and a cache

    Args:
        store (MappingBaseDAO):
            Durable source of truth.
        cache (MappingCacheBaseDAO):
            Volatile TTL cache in front of the store.
        settings (ShortenerSettings | None):
            Tunables. Defaults to ShortenerSettings().
        generator (ShortcodeGenerator | None):
            Code generator. Defaults to one built from `store` and `settings`.
        metrics (ShortenerMetrics | None):
            Metrics sink. Defaults to the process-wide METRICS.

    Methods:
        create(long_url, custom_alias=None, expires_at=None) -> MappingModel
        lookup(code) -> MappingModel | None
        resolve(code) -> MappingModel | None
    """

    def __init__(
        self,
        store: MappingBaseDAO,
        cache: MappingCacheBaseDAO,
        settings: ShortenerSettings | None = None,
        generator: ShortcodeGenerator | None = None,
        metrics: ShortenerMetrics | None = None,
    ):
        self.store = store
        self.cache = cache
        self.settings = settings or ShortenerSettings()
        self.metrics = metrics or METRICS
        self.generator = generator or ShortcodeGenerator(
            dao=store,
            length=self.settings.shortcode_length,
            max_attempts=self.settings.max_shortcode_attempts,
        )

    def create(self, long_url: str, custom_alias: str | None = None, expires_at: datetime | None = None) -> MappingModel:
        """Shorten `long_url` and persist the mapping

        Args:
            long_url (str):
                Absolute http(s) URL.
            custom_alias (str | None):
                Caller-chosen code. Blank or None means "generate one".
            expires_at (datetime | None):
                Expiry in (now, now + max horizon]. Defaults to now + default expiry.

        Returns:
            MappingModel: the persisted mapping.

        Raises:
            InvalidInputError: invalid URL, alias or expiry.
            AliasTakenError: the custom alias is already in use.
            ShortcodeExhaustedError: no free generated code within the retry budget.
            DependencyUnavailableError: the store is unreachable.
        """
        with self.metrics.shorten_duration.time():
            try:
                mapping = self._create(long_url, custom_alias, expires_at)
            except (InvalidInputError, AliasTakenError):
                self.metrics.shorten_requests.labels(status='rejected').inc()
                raise
            except Exception:
                self.metrics.shorten_requests.labels(status='error').inc()
                raise

        self.metrics.shorten_requests.labels(status='success').inc()
        return mapping

    def _create(self, long_url: str, custom_alias: str | None, expires_at: datetime | None) -> MappingModel:
        now = truncate_to_millis(datetime.now(UTC))
        validate_long_url(long_url)
        alias = validate_alias(custom_alias)
        if expires_at is not None:
            expires_at = validate_expiry(expires_at, now, self.settings)
        else:
            expires_at = now + self.settings.default_expiry

        try:
            if alias is not None:
                mapping = self._insert_alias(alias, long_url, now, expires_at)
            else:
                mapping = self._insert_generated(long_url, now, expires_at)
        except DataStoreError as e:
            logger.error('Failed to persist mapping.', extra={'long_url': long_url, 'reason': str(e)})
            raise DependencyUnavailableError('Mapping store is unavailable. Try again later.') from e

        logger.debug('Shortened URL.', extra={'code': mapping.code, 'long_url': long_url})
        self._populate_cache(mapping)
        return mapping

    def lookup(self, code: str) -> MappingModel | None:
        """Cache-aside retrieval without a liveness check

        Returns:
            MappingModel | None: the stored mapping (possibly expired), or None.

        Raises:
            DependencyUnavailableError: the store is unreachable on a cache miss.
        """
        with self.metrics.lookup_duration.time():
            return self._lookup(code)

    def _lookup(self, code: str) -> MappingModel | None:
        try:
            cached = self.cache.get(code)
        except DataStoreError as e:
            logger.warning('Cache read failed, falling back to store.', extra={'code': code, 'reason': str(e)})
            cached = None

        if cached is not None:
            self.metrics.cache_hits.inc()
            logger.debug('Cache hit.', extra={'code': code})
            try:
                self.cache.refresh_ttl(code, self.settings.cache_ttl)
            except DataStoreError as e:
                logger.warning('Cache TTL refresh failed.', extra={'code': code, 'reason': str(e)})
            return cached

        self.metrics.cache_misses.inc()
        logger.debug('Cache miss.', extra={'code': code})
        try:
            mapping = self.store.find(code)
        except DataStoreError as e:
            raise DependencyUnavailableError('Mapping store is unavailable. Try again later.') from e

        if mapping is None:
            logger.debug('Mapping not found.', extra={'code': code})
            return None

        self._populate_cache(mapping)
        return mapping

    def resolve(self, code: str) -> MappingModel | None:
        """Return the live mapping for `code`, or None if unknown or expired"""
        mapping = self.lookup(code)
        if mapping is None:
            return None
        if not mapping.is_live():
            logger.debug('Mapping expired.', extra={'code': code, 'expires_at': mapping.expires_at})
            return None
        return mapping

    def _insert_alias(self, alias: str, long_url: str, now: datetime, expires_at: datetime) -> MappingModel:
        mapping = MappingModel(code=alias, long_url=long_url, created_at=now, expires_at=expires_at)
        try:
            return self.store.save(mapping)
        except MappingAlreadyExistsError as e:
            logger.info('Custom alias already taken.', extra={'code': alias})
            raise AliasTakenError(f"Alias '{alias}' already exists") from e

    def _insert_generated(self, long_url: str, now: datetime, expires_at: datetime) -> MappingModel:
        for code in self.generator.available(long_url):
            mapping = MappingModel(code=code, long_url=long_url, created_at=now, expires_at=expires_at)
            try:
                return self.store.save(mapping)
            except MappingAlreadyExistsError:
                # Lost a race with a concurrent create for the same candidate
                logger.debug('Shortcode taken concurrently, retrying.', extra={'code': code})

        raise self.generator.exhausted(long_url)

    def _populate_cache(self, mapping: MappingModel) -> None:
        try:
            self.cache.put(mapping.code, mapping, self.settings.cache_ttl)
        except DataStoreError as e:
            logger.warning('Cache population failed.', extra={'code': mapping.code, 'reason': str(e)})
