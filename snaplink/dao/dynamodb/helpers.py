import functools
from typing import TypeVar, Any
from collections.abc import Callable

from botocore.exceptions import BotoCoreError, ClientError

from snaplink.dao.exceptions import DataStoreError


__all__ = ['handle_dynamodb_error', 'is_conditional_check_failure']

F = TypeVar('F', bound=Callable[..., Any])


def is_conditional_check_failure(error: ClientError) -> bool:
    return error.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException'


def handle_dynamodb_error[F](method: F) -> F:
    """Wrap DynamoDB-interacting DAO methods to handle client errors and timeouts

    botocore raises BotoCoreError subclasses for transport problems (endpoint
    unreachable, connect/read timeouts) and ClientError for service-side
    failures (throttling, missing table, access denied). Both surface as
    DataStoreError.

    Example:
        >>> @handle_dynamodb_error
        ... def find(self, code):
        ...     return self.table.get_item(Key={'code': code})
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', 'Unknown')
            raise DataStoreError(f"DynamoDB request to table '{self.table_name}' failed ({code}).") from e
        except BotoCoreError as e:
            raise DataStoreError(f"Can't reach DynamoDB table '{self.table_name}' ({e.__class__.__name__}).") from e

    return wrapper
