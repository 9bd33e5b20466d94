from snaplink.utils.config import app_env, app_name, app_prefix, load_config, ShortenerSettings
from snaplink.utils.helpers import base_url, get_short_url, client_ip, require_environment, guarantee_500_response
from snaplink.utils.shortener import generate_shortcode, mutate_candidate
from snaplink.utils.logging import initialize_logging
from snaplink.utils.metrics import METRICS, ShortenerMetrics, push_metrics


__all__ = [
    'generate_shortcode',
    'mutate_candidate',
    'app_env',
    'app_name',
    'app_prefix',
    'load_config',
    'ShortenerSettings',
    'base_url',
    'get_short_url',
    'client_ip',
    'require_environment',
    'guarantee_500_response',
    'initialize_logging',
    'METRICS',
    'ShortenerMetrics',
    'push_metrics',
]
