from snaplink.services.shortcode_generator import ShortcodeGenerator
from snaplink.services.mapping_service import MappingService
from snaplink.services.rate_limiter import RateLimiter
from snaplink.services.expiry_sweeper import ExpirySweeper


__all__ = [
    'ShortcodeGenerator',
    'MappingService',
    'RateLimiter',
    'ExpirySweeper',
]
