"""Collision-aware shortcode assignment

Wraps generate_shortcode() with the store lookups needed to hand out codes
that are not taken yet.

Example:
    >>> generator = ShortcodeGenerator(dao=MappingDynamoDBDAO(table_name='links'))
    >>> generator.generate('https://example.com/some/long/path')
    'Gh71WPT'
"""

import logging
from collections.abc import Iterator

from snaplink.dao.base import MappingBaseDAO
from snaplink.services.exceptions import ShortcodeExhaustedError
from snaplink.utils.shortener import generate_shortcode, mutate_candidate
from snaplink.utils.constants import SHORTCODE_LENGTH, MAX_SHORTCODE_ATTEMPTS


logger = logging.getLogger(__name__)


class ShortcodeGenerator:
    """Derive unused shortcodes from long URLs

    The first candidate is the plain hash of the long URL. Each collision
    extends the hash input via mutate_candidate(), so the candidate sequence
    for a given URL is deterministic and never repeats a hash input.

    Args:
        dao (MappingBaseDAO):
            Store consulted for existing codes.
        length (int):
            Code length. Defaults to SHORTCODE_LENGTH.
        max_attempts (int):
            Retry cap. Defaults to MAX_SHORTCODE_ATTEMPTS.
    """

    def __init__(self, dao: MappingBaseDAO, length: int = SHORTCODE_LENGTH, max_attempts: int = MAX_SHORTCODE_ATTEMPTS):
        if max_attempts < 1:
            raise ValueError(f'max_attempts must be a positive integer (given value: {max_attempts}).')
        self.dao = dao
        self.length = length
        self.max_attempts = max_attempts

    def candidates(self, long_url: str) -> Iterator[str]:
        """Yield up to `max_attempts` candidate codes for `long_url`, without store lookups."""
        value = long_url
        for _ in range(self.max_attempts):
            yield generate_shortcode(value, length=self.length)
            value = mutate_candidate(value)

    def available(self, long_url: str) -> Iterator[str]:
        """Yield the candidate codes that are not in the store when checked

        A yielded code can still be taken by a concurrent writer before the
        caller inserts it; callers rely on insert-if-absent for that race.

        Raises:
            DataStoreError:
                If the store can't be queried.
        """
        for attempt, code in enumerate(self.candidates(long_url), start=1):
            if self.dao.exists(code):
                logger.debug('Shortcode collision, retrying.', extra={'code': code, 'attempt': attempt})
                continue
            yield code

    def generate(self, long_url: str) -> str:
        """Return the first candidate code that is not in the store yet

        Raises:
            ShortcodeExhaustedError:
                If every candidate within the retry budget is taken.
            DataStoreError:
                If the store can't be queried.
        """
        for code in self.available(long_url):
            return code

        raise self.exhausted(long_url)

    def exhausted(self, long_url: str) -> ShortcodeExhaustedError:
        logger.error('Shortcode retry budget exhausted.', extra={'long_url': long_url, 'max_attempts': self.max_attempts})
        return ShortcodeExhaustedError(f'No free shortcode found for {long_url} after {self.max_attempts} attempts.')
