"""Unit tests for configuration utilities in config.py

Test coverage includes:

1. Environment variable resolution
   - Ensures app_env(), app_name(), app_prefix() read environment variables.

2. Shortener settings
   - Ensures defaults match the documented values.
   - Ensures invalid values raise BadConfigurationError.
   - Ensures from_mapping() ignores unknown keys and coerces the failure policy.

3. Configuration loading behavior
   - Ensures load_config() returns the shared "shortener" section merged with
     the Lambda's own section.
   - Ensures missing sections and malformed documents raise AppConfigError.
   - Ensures missing environment variables raise KeyError.
"""

import json
from datetime import timedelta
from io import BytesIO
from unittest.mock import MagicMock

import pytest

from snaplink.exceptions import AppConfigError, BadConfigurationError
from snaplink.utils import config
from snaplink.utils.config import ShortenerSettings
from snaplink.utils.constants import FailurePolicy


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture(autouse=True)
def _env(monkeypatch):
    """Set up environment variables for testing."""
    monkeypatch.setenv('APPCONFIG_APP_ID', 'app123')
    monkeypatch.setenv('APPCONFIG_ENV_ID', 'env123')
    monkeypatch.setenv('APPCONFIG_PROFILE_ID', 'prof123')
    monkeypatch.delenv('AWS_SAM_LOCAL', raising=False)
    monkeypatch.delenv('APPCONFIG_AGENT_URL', raising=False)


@pytest.fixture
def appconfig_payload():
    """Provide a default AppConfig payload used by multiple tests."""
    # fmt: off
    return {
        'build': 42,
        'shortener': {
            'cache_ttl_minutes': 30,
            'rate_limit_failure_policy': 'open',
        },
        'configs': {
            'test_lambda': {
                'redis': {'host': 'redis.test', 'port': 6379, 'db': 0},
                'dynamodb': {'table_name': 'snaplink-test-mappings'},
            },
        },
    }
    # fmt: on


@pytest.fixture
def appconfig_client(monkeypatch, appconfig_payload):
    """Patch boto3.client('appconfigdata') with a mock serving `appconfig_payload`."""
    client = MagicMock()
    client.start_configuration_session.return_value = {'InitialConfigurationToken': 'token-1'}
    client.get_latest_configuration.return_value = {
        'Configuration': BytesIO(json.dumps(appconfig_payload).encode('utf-8')),
    }
    monkeypatch.setattr(config.boto3, 'client', lambda *a, **kw: client)
    return client


# -------------------------------
# 1. Environment variable resolution
# -------------------------------


def test_app_env_defaults_to_local(monkeypatch):
    monkeypatch.delenv('APP_ENV', raising=False)
    assert config.app_env() == 'local'


def test_app_env_is_lowercased(monkeypatch):
    monkeypatch.setenv('APP_ENV', 'PROD')
    assert config.app_env() == 'prod'


def test_app_prefix(monkeypatch):
    monkeypatch.setenv('APP_NAME', 'snaplink')
    monkeypatch.setenv('APP_ENV', 'dev')
    assert config.app_name() == 'snaplink'
    assert config.app_prefix() == 'snaplink:dev'


def test_app_prefix_without_app_name(monkeypatch):
    monkeypatch.delenv('APP_NAME', raising=False)
    assert config.app_prefix() is None


# -------------------------------
# 2. Shortener settings
# -------------------------------


def test_settings_defaults():
    settings = ShortenerSettings()

    assert settings.default_expiry == timedelta(minutes=1440)
    assert settings.max_expiry_horizon == timedelta(minutes=10080)
    assert settings.cache_ttl == timedelta(minutes=60)
    assert settings.sustained_capacity == 30
    assert settings.sustained_refill == timedelta(minutes=1)
    assert settings.burst_capacity == 5
    assert settings.burst_refill == timedelta(seconds=1)
    assert settings.sweep_interval == timedelta(seconds=60)
    assert settings.shortcode_length == 7
    assert settings.max_shortcode_attempts == 10
    assert settings.rate_limit_failure_policy is FailurePolicy.CLOSED


@pytest.mark.parametrize(
    'overrides',
    [
        {'cache_ttl_minutes': 0},
        {'burst_capacity': -1},
        {'sustained_capacity': '30'},
        {'shortcode_length': True},
        {'default_expiry_minutes': 20_000},
        {'rate_limit_failure_policy': 'sometimes'},
    ],
)
def test_settings_reject_invalid_values(overrides):
    with pytest.raises(BadConfigurationError):
        ShortenerSettings(**overrides)


def test_settings_from_mapping_ignores_unknown_keys():
    settings = ShortenerSettings.from_mapping({'burst_capacity': 2, 'no_such_setting': 1})

    assert settings.burst_capacity == 2
    assert not hasattr(settings, 'no_such_setting')


def test_settings_from_mapping_coerces_failure_policy():
    settings = ShortenerSettings.from_mapping({'rate_limit_failure_policy': 'open'})
    assert settings.rate_limit_failure_policy is FailurePolicy.OPEN


def test_settings_from_empty_mapping():
    assert ShortenerSettings.from_mapping(None) == ShortenerSettings()
    assert ShortenerSettings.from_mapping({}) == ShortenerSettings()


# -------------------------------
# 3. Configuration loading behavior
# -------------------------------


def test_load_config(appconfig_client, appconfig_payload):
    data = config.load_config('test_lambda')

    assert data['shortener'] == appconfig_payload['shortener']
    assert data['redis'] == {'host': 'redis.test', 'port': 6379, 'db': 0}
    assert data['dynamodb'] == {'table_name': 'snaplink-test-mappings'}
    appconfig_client.start_configuration_session.assert_called_once_with(
        ApplicationIdentifier='app123',
        EnvironmentIdentifier='env123',
        ConfigurationProfileIdentifier='prof123',
    )
    appconfig_client.get_latest_configuration.assert_called_once_with(ConfigurationToken='token-1')


def test_load_config_without_shortener_section(appconfig_client, appconfig_payload):
    del appconfig_payload['shortener']
    appconfig_client.get_latest_configuration.return_value = {
        'Configuration': BytesIO(json.dumps(appconfig_payload).encode('utf-8')),
    }

    assert config.load_config('test_lambda')['shortener'] == {}


def test_load_config_with_unknown_lambda(appconfig_client):
    with pytest.raises(AppConfigError):
        config.load_config('no_such_lambda')


def test_load_config_with_malformed_document(appconfig_client):
    appconfig_client.get_latest_configuration.return_value = {'Configuration': BytesIO(b'{not json')}

    with pytest.raises(AppConfigError):
        config.load_config('test_lambda')


def test_load_config_with_missing_environment(monkeypatch, appconfig_client):
    monkeypatch.delenv('APPCONFIG_PROFILE_ID')

    with pytest.raises(KeyError, match='APPCONFIG_PROFILE_ID'):
        config.load_config('test_lambda')

    appconfig_client.start_configuration_session.assert_not_called()
