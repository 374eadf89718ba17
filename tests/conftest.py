"""
Test configuration and fixtures for logical_db.

Provides configs, a mocked gateway, and a LogicalDb backed by a moto-mocked
DynamoDB with the music table created.
"""

import sys
from pathlib import Path
from unittest.mock import Mock

# Add parent directory to path so tests.helpers resolves
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from moto import mock_aws

from logical_db import DynamoDBConfig, DynamoDBGateway, LogicalDb
from tests.helpers import MUSIC_ITEM_TYPES


@pytest.fixture
def dynamodb_config():
    """DynamoDB configuration for unit tests; never contacts AWS."""
    return DynamoDBConfig(
        aws_access_key_id="test_key",
        aws_secret_access_key="test_secret",
        region_name="us-west-2",
        endpoint_url=None,
        environment="test",
        table_prefix="",
    )


@pytest.fixture
def mock_gateway():
    """Mock DynamoDBGateway for request-shape tests."""
    gateway = Mock(spec=DynamoDBGateway)
    gateway.transact_write_items.return_value = None
    gateway.transact_get_items.return_value = []
    return gateway


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so botocore never picks up a real profile."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-west-2")


@pytest.fixture
def mocked_aws(aws_credentials):
    """Mock all AWS calls made inside the test."""
    with mock_aws():
        yield


@pytest.fixture
def logical_db(mocked_aws, dynamodb_config):
    """LogicalDb with the music table created in mocked DynamoDB."""
    db = LogicalDb(dynamodb_config)
    db.create_table(*MUSIC_ITEM_TYPES)
    return db
