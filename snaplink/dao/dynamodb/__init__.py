from snaplink.dao.dynamodb.mixins import DynamoDBClientMixin
from snaplink.dao.dynamodb.mapping_dynamodb_dao import MappingDynamoDBDAO


__all__ = [
    'DynamoDBClientMixin',
    'MappingDynamoDBDAO',
]
