"""Periodic cleanup of expired mappings

The sweeper finds mappings whose expiry has passed and deletes them from the
store in one batch. It is advisory cleanup only: reads already treat expired
mappings as not found, and cached copies simply lapse with their TTL.

A failed cycle is logged and skipped. The next tick is the retry.

Example:
    >>> sweeper = ExpirySweeper(dao=MappingDynamoDBDAO(...), interval=timedelta(seconds=60))
    >>> sweeper.sweep()
    3
    >>> sweeper.start()   # background thread, one sweep per interval
    >>> sweeper.stop()
"""

import logging
import threading
from datetime import datetime, timedelta, UTC

from snaplink.dao.base import MappingBaseDAO
from snaplink.dao.exceptions import DAOError
from snaplink.utils.constants import SWEEP_INTERVAL_SECONDS
from snaplink.utils.metrics import METRICS, ShortenerMetrics


logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Delete expired mappings on a fixed interval

    Args:
        dao (MappingBaseDAO):
            Store to sweep.
        interval (timedelta):
            Delay between the end of one scheduled sweep and the start of the next.
        metrics (ShortenerMetrics | None):
            Metrics sink. Defaults to the process-wide METRICS.

    Methods:
        sweep(now=None) -> int | None:
            Run one cycle. Returns the deleted count, or None if the cycle
            failed or another sweep was already running.
        start() -> None:
            Start the background thread.
        stop(timeout=None) -> None:
            Ask the background thread to finish and wait for it.
    """

    def __init__(
        self,
        dao: MappingBaseDAO,
        interval: timedelta = timedelta(seconds=SWEEP_INTERVAL_SECONDS),
        metrics: ShortenerMetrics | None = None,
    ):
        if interval <= timedelta(0):
            raise ValueError(f'Sweep interval must be positive (given value: {interval}).')

        self.dao = dao
        self.interval = interval
        self.metrics = metrics or METRICS
        self._in_flight = threading.Lock()
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    def sweep(self, now: datetime | None = None) -> int | None:
        # Never re-entrant: an overlapping call is skipped, not queued
        if not self._in_flight.acquire(blocking=False):
            logger.info('Expiry sweep already in progress, skipping.')
            return None

        try:
            now = now or datetime.now(UTC)
            expired = self.dao.find_all_expired(now)
            self.metrics.cleanup_expired.set(len(expired))
            if not expired:
                logger.debug('No expired mappings found to clean up.')
                return 0

            logger.debug('Found expired mappings to clean up.', extra={'expired': len(expired)})
            deleted = self.dao.delete_batch([mapping.code for mapping in expired])
            self.metrics.cleanup_deleted.inc(deleted)
            logger.info('Successfully cleaned up %s expired mappings.', deleted, extra={'deleted': deleted})
            return deleted
        except DAOError as e:
            self.metrics.cleanup_errors.inc()
            logger.exception('Failed to clean up expired mappings.', extra={'reason': str(e)})
            return None
        finally:
            self._in_flight.release()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError('Expiry sweeper is already running.')

        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, name='expiry-sweeper', daemon=True)
        self._thread.start()
        logger.info('Expiry sweeper started.', extra={'interval_seconds': self.interval.total_seconds()})

    def stop(self, timeout: float | None = None) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info('Expiry sweeper stopped.')

    def _run(self) -> None:
        # Event.wait doubles as an interruptible sleep
        while not self._stopped.wait(self.interval.total_seconds()):
            try:
                self.sweep()
            except Exception:
                # Keep the schedule alive whatever a single cycle throws
                logger.exception('Unexpected error during expiry sweep.')
