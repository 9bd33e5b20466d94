from unittest.mock import MagicMock

import pytest


@pytest.fixture
def table() -> MagicMock:
    """Mock a boto3 DynamoDB Table resource."""
    _table = MagicMock()
    _table.get_item.return_value = {}
    _table.delete_item.return_value = {}
    _table.scan.return_value = {'Items': []}
    return _table


@pytest.fixture
def dynamodb_resource(table) -> MagicMock:
    resource = MagicMock()
    resource.Table.return_value = table
    return resource
