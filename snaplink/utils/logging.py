"""Application-wide logging initialization

IMPORTANT: Call `initialize_logging(<function name>)` in the lambda package's
`__init__.py` (or at process start for long-running workers) before any other
logging is done. Every record is stamped with the function name and the
application environment, so one log group can be filtered per lambda.

Logging format:
{
    "timestamp": "2026-10-19T12:00:00.000Z",
    "level": "INFO",
    "logger": "snaplink.services.expiry_sweeper",
    "message": "Successfully cleaned up 3 expired mappings.",
    "function": "sweep_expired",
    "env": "prod",
    "deleted": 3
}
"""

import os
import json
import logging
import logging.config
from datetime import datetime, UTC

from snaplink.utils.constants import APP_ENV_ENV, LOG_LEVEL_ENV, AWS_LAMBDA_FUNCTION_NAME_ENV


class JsonFormatter(logging.Formatter):
    """JSON formatter that includes LogRecord extras"""

    STANDARD_ATTRS = frozenset(
        {
            'args',
            'asctime',
            'created',
            'exc_info',
            'exc_text',
            'filename',
            'funcName',
            'levelname',
            'levelno',
            'lineno',
            'module',
            'msecs',
            'msg',
            'name',
            'pathname',
            'process',
            'processName',
            'relativeCreated',
            'stack_info',
            'thread',
            'threadName',
            'taskName',
        }
    )

    def format(self, record: logging.LogRecord) -> str:
        # fmt: off
        timestamp = datetime.fromtimestamp(record.created, tz=UTC) \
                            .isoformat(timespec='milliseconds') \
                            .replace('+00:00', 'Z')
        # fmt: on

        log = {
            'timestamp': timestamp,
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        # Attach `extra` fields
        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS:
                log[key] = value

        if record.exc_info:
            log['exception'] = self.formatException(record.exc_info)

        # Extras may carry datetimes and exceptions
        return json.dumps(log, default=str)


class ContextFilter(logging.Filter):
    """Stamp records with the function name and application environment

    Explicit `extra` fields with the same names take precedence.
    """

    def __init__(self, function_name: str | None = None):
        super().__init__()
        self.context = {
            'function': function_name or os.getenv(AWS_LAMBDA_FUNCTION_NAME_ENV, 'unknown'),
            'env': os.getenv(APP_ENV_ENV, 'local').lower(),
        }

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.context.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def initialize_logging(function_name: str | None = None) -> None:
    log_level = os.getenv(LOG_LEVEL_ENV, 'INFO').upper()
    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'json': {
                    '()': JsonFormatter,
                }
            },
            'filters': {
                'context': {
                    '()': ContextFilter,
                    'function_name': function_name,
                }
            },
            'handlers': {
                'stdout': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'json',
                    'filters': ['context'],
                    'stream': 'ext://sys.stdout',
                }
            },
            'root': {
                'level': log_level,
                'handlers': ['stdout'],
            },
        }
    )
