import json
from datetime import datetime, timedelta, UTC
from typing import cast
from unittest.mock import MagicMock

import pytest
from pytest import MonkeyPatch

from snaplink.types import LambdaEvent, LambdaContext, LambdaConfiguration
from snaplink.lambdas.redirect_url import app
from snaplink.models import MappingModel
from snaplink.dao.exceptions import DataStoreError


@pytest.fixture
def successful_event_302() -> LambdaEvent:
    return cast(LambdaEvent, {
        'resource': '/{shortcode}',
        'pathParameters': {'shortcode': 'abc123'},
        'httpMethod': 'GET',
        'path': '/abc123',
        'requestContext': {'domainName': 'testhost:1000', 'stage': 'test'},
    })


@pytest.fixture
def bad_request_400() -> LambdaEvent:
    return cast(LambdaEvent, {
        'resource': '/{shortcode}',
        'pathParameters': {'invalid': 'path'},
        'httpMethod': 'GET',
        'path': '/abc123',
        'requestContext': {'domainName': 'testhost:1000', 'stage': 'test'},
    })


class TestRedirectUrlHandler:

    @pytest.fixture
    def context(self) -> LambdaContext:
        return cast(LambdaContext, {'function_name': 'redirect_url'})

    @pytest.fixture
    def config(self) -> LambdaConfiguration:
        return cast(LambdaConfiguration, {
            'redis': {'host': 'redis.test', 'port': 6379, 'db': 0},
            'dynamodb': {'table_name': 'snaplink-test-mappings'},
        })

    @pytest.fixture(autouse=True)
    def setup(self, monkeypatch: MonkeyPatch, context, config, store, cache) -> None:
        monkeypatch.setenv('APP_ENV', 'test')
        monkeypatch.delenv('METRICS_PUSHGATEWAY_URL', raising=False)
        monkeypatch.delenv('AWS_SAM_LOCAL', raising=False)

        # Patch Lambda dependencies
        monkeypatch.setattr(app, 'load_config', lambda *a, **kw: config)
        monkeypatch.setattr(app, 'MappingDynamoDBDAO', lambda *a, **kw: store)
        monkeypatch.setattr(app, 'MappingCacheRedisDAO', lambda *a, **kw: cache)

        store.save(
            MappingModel(
                code='abc123',
                long_url='https://example.com/blog/chuck-norris-is-awesome',
                created_at=datetime.now(UTC),
                expires_at=datetime.now(UTC) + timedelta(days=1),
            )
        )

        self.context = context
        self.store = store
        self.cache = cache

    def test_lambda_handler(self, successful_event_302: LambdaEvent) -> None:
        response = app.lambda_handler(successful_event_302, self.context)

        assert response['statusCode'] == 302
        assert json.loads(response['body']) == {}
        assert response['headers']['Location'] == 'https://example.com/blog/chuck-norris-is-awesome'
        assert 'abc123' in self.cache.items

    def test_lambda_handler_served_from_cache(self, successful_event_302: LambdaEvent) -> None:
        app.lambda_handler(successful_event_302, self.context)
        app.lambda_handler(successful_event_302, self.context)

        assert self.store.calls['find'] == 1

    def test_lambda_handler_with_invalid_path_parameters(self, bad_request_400: LambdaEvent) -> None:
        response = app.lambda_handler(bad_request_400, self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 400
        assert body['message'] == "Bad Request (missing 'shortcode' in path)"
        assert body['errorCode'] == 'MISSING_SHORTCODE'

    def test_lambda_handler_with_unknown_shortcode(self, successful_event_302: LambdaEvent) -> None:
        successful_event_302['pathParameters']['shortcode'] = 'zzz999'

        response = app.lambda_handler(successful_event_302, self.context)
        body = json.loads(response['body'])

        assert response['statusCode'] == 404
        assert body['message'] == "Not Found (short url https://testhost:1000/zzz999 doesn't exist)"
        assert body['errorCode'] == 'SHORT_URL_NOT_FOUND'

    def test_lambda_handler_with_expired_shortcode(self, successful_event_302: LambdaEvent) -> None:
        self.store.items['abc123'] = MappingModel(
            code='abc123',
            long_url='https://example.com',
            created_at=datetime.now(UTC) - timedelta(days=2),
            expires_at=datetime.now(UTC) - timedelta(seconds=1),
        )

        response = app.lambda_handler(successful_event_302, self.context)

        assert response['statusCode'] == 404

    def test_lambda_handler_with_unavailable_store(self, monkeypatch: MonkeyPatch, successful_event_302: LambdaEvent) -> None:
        monkeypatch.setattr(self.store, 'find', MagicMock(side_effect=DataStoreError('dynamodb down')))

        response = app.lambda_handler(successful_event_302, self.context)

        assert response['statusCode'] == 503
        assert json.loads(response['body'])['errorCode'] == 'DEPENDENCY_UNAVAILABLE'
