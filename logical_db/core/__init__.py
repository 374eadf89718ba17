"""
Core infrastructure components for DynamoDB operations.

- DynamoDBGateway: Thin wrapper over the boto3 low-level client
- map_dynamodb_error: botocore error to domain exception mapping
"""

from .gateway import DynamoDBGateway, create_gateway, map_dynamodb_error

__all__ = [
    "DynamoDBGateway",
    "create_gateway",
    "map_dynamodb_error",
]
