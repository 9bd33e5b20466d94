"""Unit tests for handle_redis_connection_error decorator.

Test coverage includes:
    1. Normal function execution
    2. Connection and timeout errors are converted into DataStoreError
    3. Function metadata preservation
"""

from unittest.mock import MagicMock

import pytest
import redis

from snaplink.dao.redis.helpers import handle_redis_connection_error
from snaplink.dao.exceptions import DataStoreError


class DummyDAO:
    def __init__(self, error: Exception | None = None):
        self.redis = MagicMock()
        self.redis.connection_pool.connection_kwargs = {'host': 'localhost', 'port': 6379, 'db': 0}
        self.error = error

    @handle_redis_connection_error
    def ping(self):
        """Ping Redis."""
        if self.error is not None:
            raise self.error
        return 'OK'


def test_decorator_allows_normal_execution():
    assert DummyDAO().ping() == 'OK'


@pytest.mark.parametrize(
    'error',
    [redis.exceptions.ConnectionError('refused'), redis.exceptions.TimeoutError('timed out')],
)
def test_decorator_transforms_redis_errors(error):
    with pytest.raises(DataStoreError, match="Can't connect to Redis at localhost:6379/0") as exc_info:
        DummyDAO(error).ping()

    assert exc_info.value.__cause__ is error


def test_decorator_does_not_swallow_other_errors():
    with pytest.raises(ValueError):
        DummyDAO(ValueError('bad')).ping()


def test_decorator_preserves_metadata():
    assert DummyDAO.ping.__name__ == 'ping'
    assert DummyDAO.ping.__doc__ == 'Ping Redis.'
