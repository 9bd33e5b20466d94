import json
import math
import logging
from datetime import datetime
from typing import Any

from snaplink.types import LambdaEvent, LambdaContext, LambdaResponse
from snaplink.models import MappingModel
from snaplink.dao.dynamodb import MappingDynamoDBDAO
from snaplink.dao.redis import MappingCacheRedisDAO, TokenBucketRedisDAO
from snaplink.services import MappingService, RateLimiter
from snaplink.services.exceptions import (
    AliasTakenError,
    DependencyUnavailableError,
    InvalidInputError,
    ShortcodeExhaustedError,
)
from snaplink.utils import load_config, get_short_url, client_ip, app_prefix, guarantee_500_response, push_metrics, ShortenerSettings
from snaplink.lambdas.shorten_url.constants import (
    INVALID_JSON_BODY,
    MISSING_LONG_URL,
    INVALID_EXPIRATION_DATE,
    INVALID_INPUT,
    ALIAS_TAKEN,
    RATE_LIMITED,
    DEPENDENCY_UNAVAILABLE,
    SHORTCODE_EXHAUSTED,
    SHORTEN_SUCCESS,
)


logger = logging.getLogger(__name__)


def _body(base: str, message: str | None, error_code: str | None) -> str:
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    return json.dumps(body)


def response_500(message: str | None = None, error_code: str | None = None) -> dict:
    return {'statusCode': 500, 'body': _body('Internal Server Error', message, error_code)}


def response_503(message: str | None = None, error_code: str | None = None) -> dict:
    return {'statusCode': 503, 'body': _body('Service Unavailable', message, error_code)}


def response_400(message: str | None = None, error_code: str | None = None) -> dict:
    return {'statusCode': 400, 'body': _body('Bad Request', message, error_code)}


def response_409(message: str | None = None, error_code: str | None = None) -> dict:
    return {'statusCode': 409, 'body': _body('Conflict', message, error_code)}


def response_429(*, retry_after: int, error_code: str | None = None) -> dict:
    return {
        'statusCode': 429,
        'headers': {
            'Content-Type': 'application/json',
            'Retry-After': str(retry_after),
        },
        'body': _body('Too Many Requests', None, error_code),
    }


def response_201(*, mapping: MappingModel, short_url: str) -> dict:
    return {
        'statusCode': 201,
        'headers': {
            'Content-Type': 'application/json',
            'Location': short_url,
        },
        'body': json.dumps(
            {
                'message': f'Successfully shortened {mapping.long_url} to {short_url}',
                'short_url': short_url,
                'long_url': mapping.long_url,
                'code': mapping.code,
                'expires_at': mapping.expires_at.isoformat() if mapping.expires_at else None,
            }
        ),
    }


def parse_expiration_date(value: Any) -> datetime | None:
    """Parse the optional ISO 8601 `expiration_date` field

    Raises:
        ValueError: if the value is present but not an ISO 8601 string.
    """
    if value is None or value == '':
        return None
    if not isinstance(value, str):
        raise ValueError(f'expected an ISO 8601 string, got {type(value).__name__}')
    return datetime.fromisoformat(value)


@guarantee_500_response
@push_metrics('shorten_url')
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to shorten URLs

    This Lambda handler follows this procedure to shorten URLs:
    - Step 1: Admit the caller through the rate limiter (keyed by source IP)
    - Step 2: Extract long URL, custom alias and expiration date from request body
    - Step 3: Create the mapping (store first, then cache)
    - Step 4: Respond to user with 201 success

    HTTP responses:
        201: Successful URL shortening
            headers:
                Location: newly generated short URL
            short_url, long_url, code, expires_at
        400: Bad client request
            message: invalid JSON, missing/invalid long_url, alias or expiration date
        409: Conflict
            message: custom alias already taken
        429: Too many requests
            headers:
                Retry-After: seconds until the rate limiter admits the client again
        503: Service unavailable
            message: mapping store or rate limiter unreachable
        500: Internal server error

    Example:
        >>> event = {'body': '{"long_url": "https://example.com"}'}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        201
        >>> json.loads(response['body'])['short_url']
        'https://abc123.execute-api.us-east-1.amazonaws.com/Prod/Gh71WPT'
    """
    # 0- Get application's config and wire the services
    app_config = load_config('shorten_url')
    settings = ShortenerSettings.from_mapping(app_config.get('shortener'))
    redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    cache_dao = MappingCacheRedisDAO(**redis_config, prefix=app_prefix(), healthcheck=False)
    bucket_dao = TokenBucketRedisDAO(**redis_config, prefix=app_prefix(), healthcheck=False)
    store_dao = MappingDynamoDBDAO(**app_config['dynamodb'], healthcheck=False)

    limiter = RateLimiter.from_settings(dao=bucket_dao, settings=settings)
    service = MappingService(store=store_dao, cache=cache_dao, settings=settings)

    # 1- Admit the caller through the rate limiter
    client_key = client_ip(event) or 'anonymous'
    try:
        admission = limiter.admit(client_key)
    except DependencyUnavailableError as e:
        logger.warning(
            'Rate limiter unavailable. Responding with 503.',
            extra={'client_key': client_key, 'event': DEPENDENCY_UNAVAILABLE},
        )
        return response_503(message=str(e), error_code=DEPENDENCY_UNAVAILABLE)

    if not admission.allowed:
        logger.info(
            'Rate limit exceeded. Responding with 429.',
            extra={'client_key': client_key, 'event': RATE_LIMITED, 'retry_after': admission.retry_after},
        )
        return response_429(retry_after=max(1, math.ceil(admission.retry_after)), error_code=RATE_LIMITED)

    # 2- Extract request fields from request body
    try:
        request_body = json.loads(event.get('body') or '{}')
    except json.JSONDecodeError:
        logger.info('Invalid JSON body. Responding with 400.', extra={'event': INVALID_JSON_BODY})
        return response_400(message='invalid JSON body', error_code=INVALID_JSON_BODY)

    if not isinstance(request_body, dict):
        logger.info('JSON body is not an object. Responding with 400.', extra={'event': INVALID_JSON_BODY})
        return response_400(message='JSON body must be an object', error_code=INVALID_JSON_BODY)

    long_url = request_body.get('long_url')
    if not long_url:
        logger.info('Missing "long_url" in body. Responding with 400.', extra={'event': MISSING_LONG_URL})
        return response_400(message="missing 'long_url' in JSON body", error_code=MISSING_LONG_URL)

    try:
        expires_at = parse_expiration_date(request_body.get('expiration_date'))
    except ValueError as e:
        logger.info('Invalid "expiration_date" in body. Responding with 400.', extra={'event': INVALID_EXPIRATION_DATE})
        return response_400(message=f"invalid 'expiration_date': {e}", error_code=INVALID_EXPIRATION_DATE)

    # 3- Create the mapping
    try:
        mapping = service.create(long_url, custom_alias=request_body.get('custom_alias'), expires_at=expires_at)
    except InvalidInputError as e:
        logger.info('Invalid shorten request. Responding with 400.', extra={'event': INVALID_INPUT, 'reason': str(e)})
        return response_400(message=str(e), error_code=INVALID_INPUT)
    except AliasTakenError as e:
        logger.info('Custom alias already taken. Responding with 409.', extra={'event': ALIAS_TAKEN, 'reason': str(e)})
        return response_409(message=str(e), error_code=ALIAS_TAKEN)
    except DependencyUnavailableError as e:
        logger.warning('Mapping store unavailable. Responding with 503.', extra={'event': DEPENDENCY_UNAVAILABLE})
        return response_503(message=str(e), error_code=DEPENDENCY_UNAVAILABLE)
    except ShortcodeExhaustedError:
        logger.error('Shortcode candidates exhausted. Responding with 500.', extra={'event': SHORTCODE_EXHAUSTED})
        return response_500(error_code=SHORTCODE_EXHAUSTED)

    # 4- Respond with the short URL
    short_url = get_short_url(mapping.code, event)
    logger.info(
        'Shortened URL. Responding with 201.',
        extra={'code': mapping.code, 'event': SHORTEN_SUCCESS},
    )
    return response_201(mapping=mapping, short_url=short_url)
