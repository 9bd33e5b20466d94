# Diagnostic event / error codes for the redirect_url lambda
MISSING_SHORTCODE = 'MISSING_SHORTCODE'
SHORT_URL_NOT_FOUND = 'SHORT_URL_NOT_FOUND'
DEPENDENCY_UNAVAILABLE = 'DEPENDENCY_UNAVAILABLE'
REDIRECT_SUCCESS = 'REDIRECT_SUCCESS'
