from unittest.mock import MagicMock

import pytest
import redis

from snaplink.dao.exceptions import DataStoreError
from snaplink.dao.redis import RedisClientMixin, RedisKeySchema


def test_mixin_uses_given_client(redis_client, app_prefix):
    mixin = RedisClientMixin(redis_client=redis_client, prefix=app_prefix)

    assert mixin.redis is redis_client
    assert isinstance(mixin.keys, RedisKeySchema)
    assert mixin.keys.prefix == app_prefix
    redis_client.ping.assert_called_once()


def test_mixin_skips_healthcheck(redis_client):
    RedisClientMixin(redis_client=redis_client, healthcheck=False)
    redis_client.ping.assert_not_called()


def test_mixin_creates_client_with_timeouts(monkeypatch):
    client = MagicMock()
    factory = MagicMock(return_value=client)
    monkeypatch.setattr(redis, 'Redis', factory)

    mixin = RedisClientMixin(redis_host='redis.test', redis_port='6380', redis_db='1', redis_socket_timeout=0.5, healthcheck=False)

    assert mixin.redis is client
    kwargs = factory.call_args.kwargs
    assert kwargs['host'] == 'redis.test'
    assert kwargs['port'] == 6380
    assert kwargs['db'] == 1
    assert kwargs['socket_timeout'] == 0.5
    assert kwargs['socket_connect_timeout'] == 0.5


def test_healthcheck_failure_raises_data_store_error(redis_client):
    redis_client.ping.side_effect = redis.exceptions.ConnectionError('refused')

    with pytest.raises(DataStoreError, match='redis.test:6379/0'):
        RedisClientMixin(redis_client=redis_client)


def test_healthcheck_failure_without_raising(redis_client):
    mixin = RedisClientMixin(redis_client=redis_client, healthcheck=False)
    redis_client.ping.side_effect = redis.exceptions.TimeoutError('slow')

    assert mixin._healthcheck(raise_error=False) is False
