"""Unit tests for Lambda helper utilities in helpers.py

Test coverage includes:

1. URL helpers
   - base_url() for custom domains, execute-api domains and local invocations.
   - get_short_url() joins base URL and code.

2. client_ip()
   - Extracts requestContext.identity.sourceIp, None when absent.

3. require_environment()
   - Passes through when variables are set, raises KeyError listing missing ones.

4. guarantee_500_response()
   - Turns unexpected exceptions into a 500 response, re-raises locally.
"""

import json

import pytest

from snaplink.utils import helpers
from snaplink.utils.constants import UNKNOWN_INTERNAL_SERVER_ERROR


# -------------------------------
# 1. URL helpers
# -------------------------------


@pytest.mark.parametrize(
    'event, expected',
    [
        ({'requestContext': {'domainName': 'snap.link', 'stage': 'Prod'}}, 'https://snap.link'),
        (
            {'requestContext': {'domainName': 'abc123.execute-api.us-east-1.amazonaws.com', 'stage': 'Prod'}},
            'https://abc123.execute-api.us-east-1.amazonaws.com/Prod',
        ),
        ({}, 'http://localhost:3000'),
    ],
)
def test_base_url(event, expected):
    assert helpers.base_url(event) == expected


def test_get_short_url():
    event = {'requestContext': {'domainName': 'snap.link'}}
    assert helpers.get_short_url('Gh71WPT', event) == 'https://snap.link/Gh71WPT'


# -------------------------------
# 2. client_ip()
# -------------------------------


def test_client_ip():
    event = {'requestContext': {'identity': {'sourceIp': '203.0.113.7'}}}
    assert helpers.client_ip(event) == '203.0.113.7'


@pytest.mark.parametrize('event', [{}, {'requestContext': {}}, {'requestContext': {'identity': {'sourceIp': ''}}}])
def test_client_ip_missing(event):
    assert helpers.client_ip(event) is None


# -------------------------------
# 3. require_environment()
# -------------------------------


def test_require_environment_passes_through(monkeypatch):
    monkeypatch.setenv('SNAPLINK_TEST_A', 'a')

    @helpers.require_environment('SNAPLINK_TEST_A')
    def func(x):
        return x * 2

    assert func(21) == 42


def test_require_environment_lists_missing_variables(monkeypatch):
    monkeypatch.setenv('SNAPLINK_TEST_A', 'a')
    monkeypatch.delenv('SNAPLINK_TEST_B', raising=False)
    monkeypatch.setenv('SNAPLINK_TEST_C', '')

    @helpers.require_environment('SNAPLINK_TEST_A', 'SNAPLINK_TEST_B', 'SNAPLINK_TEST_C')
    def func():
        return 'unreachable'

    with pytest.raises(KeyError) as exc_info:
        func()

    message = str(exc_info.value)
    assert "'SNAPLINK_TEST_B'" in message
    assert "'SNAPLINK_TEST_C'" in message
    assert "'SNAPLINK_TEST_A'" not in message


# -------------------------------
# 4. guarantee_500_response()
# -------------------------------


@helpers.guarantee_500_response
def _failing_handler(event, context):
    raise RuntimeError('boom')


@helpers.guarantee_500_response
def _succeeding_handler(event, context):
    return {'statusCode': 200, 'body': '{}'}


def test_guarantee_500_response_passes_through():
    assert _succeeding_handler({}, None) == {'statusCode': 200, 'body': '{}'}


def test_guarantee_500_response_on_unexpected_error(monkeypatch):
    monkeypatch.setattr(helpers, 'running_locally', lambda: False)

    response = _failing_handler({}, None)

    assert response['statusCode'] == 500
    assert json.loads(response['body']) == {
        'message': 'Internal Server Error',
        'error_code': UNKNOWN_INTERNAL_SERVER_ERROR,
    }


def test_guarantee_500_response_reraises_locally(monkeypatch):
    monkeypatch.setattr(helpers, 'running_locally', lambda: True)

    with pytest.raises(RuntimeError, match='boom'):
        _failing_handler({}, None)
