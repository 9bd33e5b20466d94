import json
import logging

from snaplink.types import LambdaEvent, LambdaContext, LambdaResponse
from snaplink.dao.dynamodb import MappingDynamoDBDAO
from snaplink.dao.redis import MappingCacheRedisDAO
from snaplink.services import MappingService
from snaplink.services.exceptions import DependencyUnavailableError
from snaplink.utils import load_config, get_short_url, app_prefix, guarantee_500_response, push_metrics, ShortenerSettings
from snaplink.lambdas.redirect_url.constants import (
    MISSING_SHORTCODE,
    SHORT_URL_NOT_FOUND,
    DEPENDENCY_UNAVAILABLE,
    REDIRECT_SUCCESS,
)


logger = logging.getLogger(__name__)


def response_400(message: str | None = None, error_code: str | None = None) -> dict:
    base = 'Bad Request'
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    return {
        'statusCode': 400,
        'body': json.dumps(body),
    }


def response_404(message: str | None = None, error_code: str | None = None) -> dict:
    base = 'Not Found'
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    return {
        'statusCode': 404,
        'body': json.dumps(body),
    }


def response_503(message: str | None = None, error_code: str | None = None) -> dict:
    base = 'Service Unavailable'
    body = {'message': base if not message else f'{base} ({message})'}
    if error_code:
        body['errorCode'] = error_code
    return {
        'statusCode': 503,
        'body': json.dumps(body),
    }


def response_302(*, location: str) -> dict:
    return {
        'statusCode': 302,
        'headers': {'Location': location},
        'body': json.dumps({}),  # no body needed for redirects
    }


@guarantee_500_response
@push_metrics('redirect_url')
def lambda_handler(event: LambdaEvent, context: LambdaContext) -> LambdaResponse:
    """Handle incoming API Gateway requests to redirect URLs

    This Lambda handler follows this procedure to redirect URLs:
    - Step 1: Extract shortcode from request path
    - Step 2: Resolve the live mapping (cache first, store on a miss)
    - Step 3: Redirect client to the long URL

    HTTP responses:
        302: Successful redirect
            headers:
                Location: long URL destination
        400: Bad client request
            message: missing shortcode in path parameters
        404: Not found
            message: unknown or expired shortcode
        503: Service unavailable
            message: mapping store unreachable
        500: Internal server error

    Example:
        >>> event = {'pathParameters': {'shortcode': 'Gh71WPT'}}
        >>> response = lambda_handler(event, None)
        >>> response['statusCode']
        302
        >>> response['headers']['Location']
        'https://example.com/my-page'
    """
    # 0- Get application's config
    app_config = load_config('redirect_url')
    settings = ShortenerSettings.from_mapping(app_config.get('shortener'))
    redis_config = {f'redis_{k}': v for k, v in app_config['redis'].items()}

    # 1- Extract shortcode from request's path
    shortcode = (event.get('pathParameters') or {}).get('shortcode')
    if not shortcode:
        logger.info(
            'Missing "shortcode" in path. Responding with 400.',
            extra={'event': MISSING_SHORTCODE},
        )
        return response_400(message="missing 'shortcode' in path", error_code=MISSING_SHORTCODE)
    logger.debug('Client requested short URL %s.', get_short_url(shortcode, event))

    service = MappingService(
        store=MappingDynamoDBDAO(**app_config['dynamodb'], healthcheck=False),
        cache=MappingCacheRedisDAO(**redis_config, prefix=app_prefix(), healthcheck=False),
        settings=settings,
    )

    # 2- Resolve the live mapping
    try:
        mapping = service.resolve(shortcode)
    except DependencyUnavailableError as e:
        logger.warning(
            'Mapping store unavailable. Responding with 503.',
            extra={'shortcode': shortcode, 'event': DEPENDENCY_UNAVAILABLE},
        )
        return response_503(message=str(e), error_code=DEPENDENCY_UNAVAILABLE)

    if mapping is None:
        logger.info(
            'Mapping not found or expired. Responding with 404.',
            extra={'shortcode': shortcode, 'event': SHORT_URL_NOT_FOUND},
        )
        return response_404(message=f"short url {get_short_url(shortcode, event)} doesn't exist", error_code=SHORT_URL_NOT_FOUND)

    # 3- Redirect client to long URL
    logger.info(
        'Redirecting client to long URL. Responding with 302.',
        extra={'shortcode': shortcode, 'event': REDIRECT_SUCCESS},
    )
    return response_302(location=mapping.long_url)
