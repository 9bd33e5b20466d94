"""Utility functions for application configuration management.

Configuration is stored in **AWS AppConfig**. Each environment (`APP_ENV`)
has a dedicated AppConfig *Environment* within the AppConfig *Application*
identified by `APP_NAME`. The deployed JSON document looks like this:

    {
        "build": "2026.10.19-1",
        "shortener": {
            "default_expiry_minutes": 1440,
            "max_expiry_horizon_minutes": 10080,
            "cache_ttl_minutes": 60,
            "sustained_capacity": 30,
            "sustained_refill_minutes": 1,
            "burst_capacity": 5,
            "burst_refill_seconds": 1,
            "sweep_interval_seconds": 60,
            "rate_limit_failure_policy": "closed"
        },
        "configs": {
            "shorten_url": {
                "redis": { "host": "...", "port": 6379, "db": 0 },
                "dynamodb": { "table_name": "snaplink-dev-mappings" }
            },
            "redirect_url": { ... },
            "sweep_expired": { ... }
        }
    }

Each Lambda loads the shared "shortener" section plus its own section from
"configs".

Functions:
    app_env() -> str
        Current application environment (`APP_ENV`), defaulting to `'local'`.

    app_name() -> str | None
        Application name (`APP_NAME`), or None if not set.

    app_prefix() -> str | None
        Key namespace for DAOs, or None if `APP_NAME` is not set.

    load_config(lambda_name: str) -> dict
        Load configuration for a given Lambda from AWS AppConfig (or from a
        local AppConfig agent when running under SAM).

Classes:
    ShortenerSettings:
        Typed view over the "shortener" section with defaults and validation.

Example:
    >>> from snaplink.utils.config import load_config, ShortenerSettings
    >>> config = load_config('shorten_url')
    >>> settings = ShortenerSettings.from_mapping(config['shortener'])
    >>> settings.cache_ttl
    datetime.timedelta(seconds=3600)
"""

import os
import json
import functools
import logging
import urllib.parse
import urllib.request
from dataclasses import dataclass, fields
from datetime import timedelta
from typing import Any
from collections.abc import Callable, Mapping

import boto3

from snaplink.exceptions import AppConfigError, BadConfigurationError
from snaplink.utils.helpers import require_environment
from snaplink.utils.runtime import running_locally
from snaplink.utils.constants import (
    APP_ENV_ENV,
    APP_NAME_ENV,
    APPCONFIG_APP_ID_ENV,
    APPCONFIG_ENV_ID_ENV,
    APPCONFIG_PROFILE_ID_ENV,
    APPCONFIG_AGENT_URL_ENV,
    APPCONFIG_PROFILE_NAME_ENV,
    DEFAULT_EXPIRY_MINUTES,
    MAX_EXPIRY_HORIZON_MINUTES,
    CACHE_TTL_MINUTES,
    SUSTAINED_CAPACITY,
    SUSTAINED_REFILL_MINUTES,
    BURST_CAPACITY,
    BURST_REFILL_SECONDS,
    SWEEP_INTERVAL_SECONDS,
    SHORTCODE_LENGTH,
    MAX_SHORTCODE_ATTEMPTS,
    FailurePolicy,
)


logger = logging.getLogger(__name__)


def app_env() -> str:
    """Return the current application environment by reading 'APP_ENV'

    Example:
        >>> os.environ['APP_ENV'] = 'dev'
        >>> app_env()
        'dev'
    """
    return os.environ.get(APP_ENV_ENV, 'local').lower()


def app_name() -> str | None:
    """Return the current application name by reading 'APP_NAME'"""
    return os.environ.get(APP_NAME_ENV)


def app_prefix() -> str | None:
    """Return application prefix for DAOs

    Returns:
        str: app prefix as <app name>:<app env>.
             None if APP_NAME is not set.

    Example:
        >>> os.environ['APP_NAME'] = 'snaplink'
        >>> os.environ['APP_ENV'] = 'local'
        >>> app_prefix()
        'snaplink:local'
    """
    return None if app_name() is None else f'{app_name()}:{app_env()}'


@dataclass(frozen=True)
class ShortenerSettings:
    """Tunables consumed by the shortener core.

    All durations are stored in the unit their name states and exposed as
    `timedelta` properties for the services.
    """

    default_expiry_minutes: int = DEFAULT_EXPIRY_MINUTES
    max_expiry_horizon_minutes: int = MAX_EXPIRY_HORIZON_MINUTES
    cache_ttl_minutes: int = CACHE_TTL_MINUTES
    sustained_capacity: int = SUSTAINED_CAPACITY
    sustained_refill_minutes: int = SUSTAINED_REFILL_MINUTES
    burst_capacity: int = BURST_CAPACITY
    burst_refill_seconds: int = BURST_REFILL_SECONDS
    sweep_interval_seconds: int = SWEEP_INTERVAL_SECONDS
    shortcode_length: int = SHORTCODE_LENGTH
    max_shortcode_attempts: int = MAX_SHORTCODE_ATTEMPTS
    rate_limit_failure_policy: FailurePolicy = FailurePolicy.CLOSED

    def __post_init__(self) -> None:
        for field in fields(self):
            value = getattr(self, field.name)
            if field.name == 'rate_limit_failure_policy':
                continue
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise BadConfigurationError(f"'{field.name}' must be a positive integer (given value: {value!r}).")

        if self.default_expiry_minutes > self.max_expiry_horizon_minutes:
            raise BadConfigurationError(
                f'Default expiry ({self.default_expiry_minutes} min) exceeds the maximum expiry horizon '
                f'({self.max_expiry_horizon_minutes} min).'
            )

        try:
            object.__setattr__(self, 'rate_limit_failure_policy', FailurePolicy(self.rate_limit_failure_policy))
        except ValueError as e:
            raise BadConfigurationError(f'Unknown rate limit failure policy: {self.rate_limit_failure_policy!r}.') from e

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> 'ShortenerSettings':
        """Build settings from the AppConfig "shortener" section

        Unknown keys are ignored (and logged) so that newer documents can be
        deployed ahead of the code that reads them.
        """
        data = dict(data or {})
        known = {field.name for field in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning('Ignoring unknown shortener settings.', extra={'unknown': unknown})
        return cls(**{key: value for key, value in data.items() if key in known})

    @property
    def default_expiry(self) -> timedelta:
        return timedelta(minutes=self.default_expiry_minutes)

    @property
    def max_expiry_horizon(self) -> timedelta:
        return timedelta(minutes=self.max_expiry_horizon_minutes)

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(minutes=self.cache_ttl_minutes)

    @property
    def sustained_refill(self) -> timedelta:
        return timedelta(minutes=self.sustained_refill_minutes)

    @property
    def burst_refill(self) -> timedelta:
        return timedelta(seconds=self.burst_refill_seconds)

    @property
    def sweep_interval(self) -> timedelta:
        return timedelta(seconds=self.sweep_interval_seconds)


def _lambda_section(document: dict, lambda_name: str) -> dict:
    """Extract the shared shortener settings and the Lambda's own section"""
    try:
        section = document['configs'][lambda_name]
    except (KeyError, TypeError) as e:
        raise AppConfigError(f"AppConfig document has no configuration for '{lambda_name}'.") from e
    return {'shortener': document.get('shortener', {}), **section}


def _sam_load_local_appconfig(func: Callable[[str], dict]) -> Callable[[str], dict]:  # pragma: no cover
    """Decorator: load AppConfig from a local AppConfig Agent when running under SAM

    Behavior:
        - If running locally and `APPCONFIG_AGENT_URL` points to a local agent,
          fetch the configuration document from it.
        - Else, call the wrapped function (which pulls from AWS AppConfig via boto3).
    """

    def __validate_appconfig_url(url: str | None) -> str:
        if not url:
            return ''
        components = urllib.parse.urlparse(url)
        if components.scheme not in {'http', 'https'}:
            raise ValueError(f'Bad scheme {url}')
        if components.hostname not in {'localhost', '127.0.0.1', 'host.docker.internal'}:
            raise ValueError(f'Bad host {url}')
        return url

    @functools.wraps(func)
    def wrapper(lambda_name: str, *args, **kwargs) -> dict:
        agent_url = __validate_appconfig_url(os.getenv(APPCONFIG_AGENT_URL_ENV))
        if not running_locally() or not agent_url:
            return func(lambda_name, *args, **kwargs)

        profile_name = os.getenv(APPCONFIG_PROFILE_NAME_ENV, 'backend-config')
        url = f'{agent_url}/applications/{app_name()}/environments/{app_env()}/configurations/{profile_name}'

        logger.debug('Trying to load AppConfig from local agent.', extra={'agentUrl': url, 'lambdaName': lambda_name})
        with urllib.request.urlopen(url, timeout=5) as r:  # noqa: S310
            document = json.load(r)

        logger.debug('Loaded AppConfig from local agent.', extra={'lambdaName': lambda_name, 'build': document.get('build')})
        return _lambda_section(document, lambda_name)

    return wrapper


@_sam_load_local_appconfig
@require_environment(APPCONFIG_APP_ID_ENV, APPCONFIG_ENV_ID_ENV, APPCONFIG_PROFILE_ID_ENV)
def load_config(lambda_name: str) -> dict:
    """Load configuration for a given Lambda from AWS AppConfig

    Environment variables required:
        APPCONFIG_APP_ID: AppConfig Application ID
        APPCONFIG_ENV_ID: AppConfig Environment ID
        APPCONFIG_PROFILE_ID: AppConfig Configuration Profile ID

    Args:
        lambda_name (str):
            Name of the Lambda (e.g., "shorten_url", "redirect_url", "sweep_expired").

    Returns:
        dict: {'shortener': {...}, 'redis': {...}, 'dynamodb': {...}}

    Raises:
        KeyError: If required environment variables are missing.
        AppConfigError: If the document is not valid JSON or lacks the Lambda's section.
    """
    logger.debug('Trying to load AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name})

    appconfig = boto3.client('appconfigdata')

    session_token = appconfig.start_configuration_session(
        ApplicationIdentifier=os.environ[APPCONFIG_APP_ID_ENV],
        EnvironmentIdentifier=os.environ[APPCONFIG_ENV_ID_ENV],
        ConfigurationProfileIdentifier=os.environ[APPCONFIG_PROFILE_ID_ENV],
    )['InitialConfigurationToken']

    response = appconfig.get_latest_configuration(ConfigurationToken=session_token)
    content = response['Configuration'].read()
    try:
        document = json.loads(content.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise AppConfigError('AppConfig returned a malformed configuration document.') from e

    data = _lambda_section(document, lambda_name)
    logger.debug('Loaded AppConfig from AWS AppConfig.', extra={'lambdaName': lambda_name, 'build': document.get('build')})
    return data
