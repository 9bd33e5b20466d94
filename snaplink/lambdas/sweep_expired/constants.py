# Diagnostic statuses for the sweep_expired lambda
SUCCESS = 'success'
ERROR = 'error'
