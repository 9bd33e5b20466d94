# Diagnostic event / error codes for the shorten_url lambda
INVALID_JSON_BODY = 'INVALID_JSON_BODY'
MISSING_LONG_URL = 'MISSING_LONG_URL'
INVALID_EXPIRATION_DATE = 'INVALID_EXPIRATION_DATE'
INVALID_INPUT = 'INVALID_INPUT'
ALIAS_TAKEN = 'ALIAS_TAKEN'
RATE_LIMITED = 'RATE_LIMITED'
DEPENDENCY_UNAVAILABLE = 'DEPENDENCY_UNAVAILABLE'
SHORTCODE_EXHAUSTED = 'SHORTCODE_EXHAUSTED'
SHORTEN_SUCCESS = 'SHORTEN_SUCCESS'
