"""Shared fixtures: fake AWS credentials and mocked DynamoDB tables."""
import logging
import os
from unittest.mock import patch

import boto3
import pytest
from moto import mock_aws

EVENTS_TABLE = 'test-planner-events'
USERS_TABLE = 'test-planner-users'


@pytest.fixture(autouse=True)
def aws_credentials():
    """Keep boto3 away from real AWS accounts."""
    env_vars = {
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SECURITY_TOKEN': 'testing',
        'AWS_SESSION_TOKEN': 'testing',
        'AWS_DEFAULT_REGION': 'us-east-1'
    }
    with patch.dict(os.environ, env_vars):
        yield


@pytest.fixture
def aws():
    with mock_aws():
        yield


@pytest.fixture
def events_table(aws):
    """Create a mock events table."""
    dynamodb = boto3.resource('dynamodb', region_name='us-east-1')
    table = dynamodb.create_table(
        TableName=EVENTS_TABLE,
        KeySchema=[
            {'AttributeName': 'event_id', 'KeyType': 'HASH'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'event_id', 'AttributeType': 'S'}
        ],
        BillingMode='PAY_PER_REQUEST'
    )
    yield table


@pytest.fixture
def users_table(aws):
    """Create a mock users table."""
    dynamodb = boto3.resource('dynamodb', region_name='us-east-1')
    table = dynamodb.create_table(
        TableName=USERS_TABLE,
        KeySchema=[
            {'AttributeName': 'user_id', 'KeyType': 'HASH'}
        ],
        AttributeDefinitions=[
            {'AttributeName': 'user_id', 'AttributeType': 'S'}
        ],
        BillingMode='PAY_PER_REQUEST'
    )
    yield table


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo setup_logging so JSON handlers do not leak between tests."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
