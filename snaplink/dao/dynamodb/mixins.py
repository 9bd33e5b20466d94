"""DynamoDB mixin providing shared table initialization and connectivity checks.

Responsibilities:
    - Initialize a boto3 DynamoDB Table with bounded timeouts and retries
    - Point at LocalStack when running locally
    - Healthcheck the table

Classes:
    - DynamoDBClientMixin: Base mixin to inject table setup & healthcheck.

Example:
        >>> class MappingDynamoDBDAO(DynamoDBClientMixin, MappingBaseDAO):
        ...     pass
        ...
        >>> dao = MappingDynamoDBDAO(table_name='snaplink-dev-mappings')
        >>> dao._healthcheck()
        True
"""

import os
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from snaplink.dao.exceptions import DataStoreError
from snaplink.utils.runtime import running_locally
from snaplink.utils.constants import (
    LOCALSTACK_ENDPOINT_ENV,
    DYNAMODB_CONNECT_TIMEOUT_SECONDS,
    DYNAMODB_READ_TIMEOUT_SECONDS,
    DYNAMODB_MAX_RETRY_ATTEMPTS,
)


class DynamoDBClientMixin:
    """Mixin DynamoDB table setup and health check for DynamoDB-backed DAOs.

    Attributes:
        table (boto3 DynamoDB Table resource):
            Table used by subclasses.

        table_name (str):
            Name of the table, used in error messages.
    """

    def __init__(
        self,
        table_name: str,
        dynamodb_resource: Optional[Any] = None,
        connect_timeout: float = DYNAMODB_CONNECT_TIMEOUT_SECONDS,
        read_timeout: float = DYNAMODB_READ_TIMEOUT_SECONDS,
        max_retry_attempts: int = DYNAMODB_MAX_RETRY_ATTEMPTS,
        healthcheck: bool = True,
    ):
        """Initialize a DynamoDB-based DAO

        Args:
            table_name (str):
                Name of the DynamoDB table holding the mappings.

            dynamodb_resource (Optional[Any]):
                Pre-initialized boto3 DynamoDB resource (useful in tests).
                If None, a new resource is created (points to LocalStack in local mode).

            connect_timeout, read_timeout (float):
                botocore socket timeouts in seconds.

            max_retry_attempts (int):
                botocore retry budget for throttling and transient errors.

            healthcheck (bool):
                Describe the table right away. Defaults to True.

        Raises:
            DataStoreError:
                If the table can't be reached.
        """
        if dynamodb_resource is None:
            config = Config(
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
                retries={'max_attempts': max_retry_attempts, 'mode': 'standard'},
            )
            # fmt: off
            resource_kwargs = {
                'endpoint_url': os.environ.get(LOCALSTACK_ENDPOINT_ENV, 'http://localhost:4566'),
            } if running_locally() else {}
            # fmt: on
            dynamodb_resource = boto3.resource('dynamodb', config=config, **resource_kwargs)

        self.table_name = table_name
        self.table = dynamodb_resource.Table(table_name)

        if healthcheck:
            self._healthcheck()

    def _healthcheck(self, raise_error: bool = True) -> bool:
        """DescribeTable to healthcheck connectivity

        Returns:
            bool:
                True if the table is reachable, False otherwise (only if raise_error=False).

        Raises:
            DataStoreError:
                If the table can't be described and raise_error=True.
        """
        try:
            self.table.load()
        except (BotoCoreError, ClientError) as e:
            if raise_error:
                raise DataStoreError(
                    f"Can't reach DynamoDB table '{self.table_name}'. Check the provided configuration parameters."
                ) from e
            return False
        else:
            return True
