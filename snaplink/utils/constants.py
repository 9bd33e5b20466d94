from enum import StrEnum


# Mapping lifetime defaults (minutes)
DEFAULT_EXPIRY_MINUTES = 1_440  # 1 day
MAX_EXPIRY_HORIZON_MINUTES = 10_080  # 7 days

# Cache-aside defaults
CACHE_TTL_MINUTES = 60

# Token bucket defaults for the shorten path
SUSTAINED_CAPACITY = 30
SUSTAINED_REFILL_MINUTES = 1
BURST_CAPACITY = 5
BURST_REFILL_SECONDS = 1

# Idle buckets are kept this long after they would be full again
BUCKET_EXPIRY_GRACE_SECONDS = 10

# Expiry sweep schedule
SWEEP_INTERVAL_SECONDS = 60

# Shortcode generation
SHORTCODE_LENGTH = 7
MAX_SHORTCODE_ATTEMPTS = 10

# I/O timeouts for Redis and DynamoDB round trips (seconds)
REDIS_SOCKET_TIMEOUT_SECONDS = 2.0
DYNAMODB_CONNECT_TIMEOUT_SECONDS = 2.0
DYNAMODB_READ_TIMEOUT_SECONDS = 3.0
DYNAMODB_MAX_RETRY_ATTEMPTS = 2

# Metrics
METRICS_NAMESPACE = 'snaplink'
METRICS_PUSH_TIMEOUT_SECONDS = 2.0

# Application: environment variable names
APP_ENV_ENV = 'APP_ENV'
APP_NAME_ENV = 'APP_NAME'
LOG_LEVEL_ENV = 'LOG_LEVEL'
METRICS_PUSHGATEWAY_ENV = 'METRICS_PUSHGATEWAY_URL'
AWS_SAM_LOCAL_ENV = 'AWS_SAM_LOCAL'
AWS_LAMBDA_FUNCTION_NAME_ENV = 'AWS_LAMBDA_FUNCTION_NAME'

# AppConfig: environment variable names
APPCONFIG_APP_ID_ENV = 'APPCONFIG_APP_ID'
APPCONFIG_ENV_ID_ENV = 'APPCONFIG_ENV_ID'
APPCONFIG_PROFILE_ID_ENV = 'APPCONFIG_PROFILE_ID'
APPCONFIG_AGENT_URL_ENV = 'APPCONFIG_AGENT_URL'
APPCONFIG_PROFILE_NAME_ENV = 'APPCONFIG_PROFILE_NAME'

# LocalStack: endpoint URL environment variable for local development
LOCALSTACK_ENDPOINT_ENV = 'LOCALSTACK_ENDPOINT'

# Error codes
UNKNOWN_INTERNAL_SERVER_ERROR = 'UNKNOWN_INTERNAL_SERVER_ERROR'


class FailurePolicy(StrEnum):
    """What the rate limiter does when its shared store is unreachable."""

    OPEN = 'open'  # admit the request and log a warning
    CLOSED = 'closed'  # reject the request with DependencyUnavailableError
