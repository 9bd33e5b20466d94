"""Data Access Object (DAO) implementation for durable mappings in DynamoDB

This module provides the source of truth for every code -> long URL mapping.

Item layout (partition key: `code`):

    {
        "code":       "Gh71WPT",                        (S)
        "long_url":   "https://example.com/page",       (S)
        "created_at": 1792396800.123,                   (N, epoch seconds)
        "expires_at": 1792483200.123,                   (N, epoch seconds, optional)
        "hit_count":  0                                 (N)
    }

Responsibilities:
    - Insert mappings with a conditional write so a code is never overwritten;
    - Retrieve mappings with strongly consistent reads;
    - Scan for expired mappings and delete them in batches for the sweeper;
    - Translate botocore failures into DataStoreError.

Classes:
    MappingDynamoDBDAO:
        DAO for storing and retrieving MappingModel in a DynamoDB table.

Example:
    >>> dao = MappingDynamoDBDAO(table_name='snaplink-dev-mappings')
    >>> dao.save(mapping)
    MappingModel(code='Gh71WPT', long_url='https://example.com/page', ...)
    >>> dao.find('Gh71WPT').long_url
    'https://example.com/page'
    >>> dao.delete_batch(['Gh71WPT'])
    1

NOTE:
    `expires_at` may also be registered as the table's DynamoDB TTL attribute.
    DynamoDB TTL deletion is lazy (up to days late), so the sweeper and the
    read-time liveness check remain the mechanisms this code relies on.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, UTC
from decimal import Decimal
from typing import Any

from beartype import beartype
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from snaplink.models import MappingModel
from snaplink.dao.base import MappingBaseDAO
from snaplink.dao.dynamodb.mixins import DynamoDBClientMixin
from snaplink.dao.dynamodb.helpers import handle_dynamodb_error, is_conditional_check_failure
from snaplink.dao.exceptions import MappingAlreadyExistsError


logger = logging.getLogger(__name__)


def _to_epoch(value: datetime) -> Decimal:
    # DynamoDB numbers must be Decimal; millisecond precision is plenty
    return Decimal(str(round(value.timestamp(), 3)))


def _from_epoch(value: Any) -> datetime:
    return datetime.fromtimestamp(float(value), UTC)


def _to_item(mapping: MappingModel) -> dict[str, Any]:
    item = {
        'code': mapping.code,
        'long_url': mapping.long_url,
        'created_at': _to_epoch(mapping.created_at),
        'hit_count': mapping.hit_count,
    }
    if mapping.expires_at is not None:
        item['expires_at'] = _to_epoch(mapping.expires_at)
    return item


def _from_item(item: dict[str, Any]) -> MappingModel:
    expires_at = item.get('expires_at')
    return MappingModel(
        code=item['code'],
        long_url=item['long_url'],
        created_at=_from_epoch(item['created_at']),
        expires_at=_from_epoch(expires_at) if expires_at is not None else None,
        hit_count=int(item.get('hit_count', 0)),
    )


class MappingDynamoDBDAO(DynamoDBClientMixin, MappingBaseDAO):
    """DynamoDB-based Data Access Object (DAO) for durable mappings

    Attributes (see DynamoDBClientMixin):
        table (boto3 Table resource):
            Table holding one item per code.
        table_name (str):
            Name of the table.

    Methods:
        find(code) -> MappingModel | None
        save(mapping) -> MappingModel
        exists(code) -> bool
        delete(code) -> bool
        find_all_expired(now) -> list[MappingModel]
        delete_batch(codes) -> int

    All methods raise DataStoreError on DynamoDB failures.
    """

    @handle_dynamodb_error
    @beartype
    def find(self, code: str, **kwargs) -> MappingModel | None:
        response = self.table.get_item(Key={'code': code}, ConsistentRead=True)
        item = response.get('Item')
        return _from_item(item) if item else None

    @handle_dynamodb_error
    @beartype
    def save(self, mapping: MappingModel, **kwargs) -> MappingModel:
        """Insert a mapping unless its code is already taken

        The `attribute_not_exists(code)` condition turns the put into an atomic
        insert-if-absent: of two concurrent saves for the same code, DynamoDB
        rejects the second one.

        Raises:
            MappingAlreadyExistsError:
                If a mapping with the same code already exists.
            DataStoreError:
                On any other DynamoDB failure.
        """
        try:
            self.table.put_item(Item=_to_item(mapping), ConditionExpression=Attr('code').not_exists())
        except ClientError as e:
            if is_conditional_check_failure(e):
                raise MappingAlreadyExistsError(f"Mapping with code '{mapping.code}' already exists.") from e
            raise
        return mapping

    @handle_dynamodb_error
    @beartype
    def exists(self, code: str, **kwargs) -> bool:
        response = self.table.get_item(
            Key={'code': code},
            ConsistentRead=True,
            ProjectionExpression='#code',
            ExpressionAttributeNames={'#code': 'code'},
        )
        return 'Item' in response

    @handle_dynamodb_error
    @beartype
    def delete(self, code: str, **kwargs) -> bool:
        response = self.table.delete_item(Key={'code': code}, ReturnValues='ALL_OLD')
        return 'Attributes' in response

    @handle_dynamodb_error
    @beartype
    def find_all_expired(self, now: datetime, **kwargs) -> list[MappingModel]:
        """Scan the table for mappings that expired strictly before `now`

        Follows LastEvaluatedKey until the scan is exhausted. Mappings without
        `expires_at` never match.
        """
        scan_kwargs = {'FilterExpression': Attr('expires_at').lt(_to_epoch(now))}
        expired = []
        while True:
            response = self.table.scan(**scan_kwargs)
            expired.extend(_from_item(item) for item in response.get('Items', []))

            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                break
            scan_kwargs['ExclusiveStartKey'] = last_key

        logger.debug('Scanned table for expired mappings.', extra={'table': self.table_name, 'expired': len(expired)})
        return expired

    @handle_dynamodb_error
    @beartype
    def delete_batch(self, codes: Iterable[str], **kwargs) -> int:
        """Delete the given codes via BatchWriteItem

        The boto3 batch writer chunks requests into groups of 25 and resends
        unprocessed items. Duplicate codes are deleted once.
        """
        unique_codes = list(dict.fromkeys(codes))
        if not unique_codes:
            return 0

        with self.table.batch_writer() as batch:
            for code in unique_codes:
                batch.delete_item(Key={'code': code})
        return len(unique_codes)
