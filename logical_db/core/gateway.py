"""
Thin DynamoDB Gateway

This module provides a lightweight wrapper around the boto3 low-level DynamoDB
client. It is the only place that talks to DynamoDB:

1. Creates the boto3 client lazily from DynamoDBConfig
2. Passes physical (typed attribute value) items through unchanged
3. Maps botocore errors to logical_db domain exceptions

Table names passed to the gateway are already resolved physical names.
Transactional calls are a single request each; the gateway never splits,
batches or retries them (botocore's own retry config aside).
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import DynamoDBConfig
from ..exceptions import (
    ConflictError,
    ConnectionError,
    NotFoundError,
    RetryableError,
    TransactionCanceled,
    ValidationError,
)

logger = logging.getLogger(__name__)

_REASONS_IN_MESSAGE = re.compile(r'\[([^\]]*)\]\s*$')


def cancellation_reasons(error: ClientError) -> Tuple[List[Optional[str]], List[Optional[str]]]:
    """Extract per-operation cancellation codes and messages from a TransactionCanceledException.

    botocore puts the modeled ``CancellationReasons`` at the top level of the
    response; some emulators nest them under ``Error``. When neither is present
    the codes are read from the trailing ``[Code, Code, ...]`` of the message.
    Code ``None`` becomes Python ``None``.
    """
    response = error.response or {}
    raw = response.get('CancellationReasons') or response.get('Error', {}).get('CancellationReasons')
    if raw:
        codes = [_reason_code(reason.get('Code')) for reason in raw]
        messages = [reason.get('Message') for reason in raw]
        return codes, messages

    match = _REASONS_IN_MESSAGE.search(response.get('Error', {}).get('Message', ''))
    if not match:
        return [], []
    codes = [_reason_code(code.strip()) for code in match.group(1).split(',')]
    return codes, [None] * len(codes)


def _reason_code(code: Optional[str]) -> Optional[str]:
    if code in (None, '', 'None'):
        return None
    return code


def map_dynamodb_error(
    error: ClientError,
    operation: str,
    table_name: str,
    resource_id: Optional[str] = None
) -> Exception:
    """Map DynamoDB ClientError to domain-specific exceptions.

    Args:
        error: The boto3 ClientError
        operation: The operation that failed (e.g., "GetItem", "TransactWriteItems")
        table_name: The DynamoDB table name(s)
        resource_id: Optional resource identifier for context

    Returns:
        Appropriate domain exception
    """
    error_code = error.response['Error']['Code']
    error_message = error.response['Error'].get('Message', '')

    context = f"{operation} on {table_name}"
    if resource_id:
        context += f" (resource: {resource_id})"

    full_message = f"{context}: {error_message}"

    if error_code == 'TransactionCanceledException':
        reasons, messages = cancellation_reasons(error)
        return TransactionCanceled(
            f"Transaction canceled - {full_message}",
            reasons=reasons,
            messages=messages,
            original_error=error,
        )

    elif error_code == 'ConditionalCheckFailedException':
        return ConflictError(f"Conditional check failed - {full_message}", resource_id, original_error=error)

    elif error_code in ['TransactionConflictException', 'DuplicateTransactionException']:
        return ConflictError(f"Transaction conflict - {full_message}", resource_id, original_error=error)

    elif error_code in ['ResourceInUseException', 'TableAlreadyExistsException']:
        return ConflictError(f"Resource in use - {full_message}", resource_id, original_error=error)

    elif error_code in ['ResourceNotFoundException', 'TableNotFoundException']:
        return NotFoundError(f"Table not found - {full_message}", 'table', table_name, original_error=error)

    elif error_code == 'ValidationException':
        return ValidationError(f"Validation failed - {full_message}", original_error=error)

    elif error_code in ['IdempotentParameterMismatchException', 'ItemCollectionSizeLimitExceededException', 'LimitExceededException']:
        return ValidationError(f"Request rejected - {full_message}", original_error=error)

    elif error_code in [
        'ProvisionedThroughputExceededException', 'RequestLimitExceeded', 'ThrottlingException',
        'TransactionInProgressException'
    ]:
        return RetryableError(f"Throttling - {full_message}", original_error=error)

    elif error_code in ['InternalServerError', 'ServiceUnavailable', 'ServiceUnavailableException']:
        return RetryableError(f"Service unavailable - {full_message}", original_error=error)

    elif error_code in [
        'UnrecognizedClientException', 'AccessDeniedException', 'InvalidSignatureException',
        'IncompleteSignatureException', 'ExpiredTokenException'
    ]:
        return ConnectionError(f"Authentication/authorization failed - {full_message}", original_error=error)

    logger.warning(f"Unknown DynamoDB error code '{error_code}' mapped to ConnectionError")
    return ConnectionError(f"DynamoDB operation failed - {full_message}", original_error=error)


class DynamoDBGateway:
    """
    Thin gateway over the boto3 low-level DynamoDB client.

    Items and keys are physical: attribute name -> typed attribute value
    (``{"playlist_size": {"N": "1"}}``).
    """

    def __init__(self, config: DynamoDBConfig):
        self.config = config
        self._client = None

    @property
    def client(self):
        """Lazy initialization of the DynamoDB client."""
        if self._client is None:
            try:
                session = boto3.Session(
                    aws_access_key_id=self.config.aws_access_key_id,
                    aws_secret_access_key=self.config.aws_secret_access_key,
                    region_name=self.config.region_name
                )

                client_kwargs = {
                    'region_name': self.config.region_name,
                    'config': Config(
                        retries={'max_attempts': self.config.retries},
                        max_pool_connections=self.config.max_pool_connections,
                        read_timeout=self.config.timeout_seconds,
                        connect_timeout=self.config.timeout_seconds
                    )
                }
                if self.config.endpoint_url:
                    client_kwargs['endpoint_url'] = self.config.endpoint_url

                self._client = session.client('dynamodb', **client_kwargs)
            except Exception as e:
                logger.error(f"Failed to create DynamoDB client: {e}")
                raise ConnectionError(f"Failed to connect to DynamoDB: {e}", e) from e
        return self._client

    def _call(self, operation: str, table_name: str, method: str, resource_id: Optional[str] = None, **kwargs) -> Dict[str, Any]:
        try:
            return getattr(self.client, method)(**kwargs)
        except ClientError as e:
            raise map_dynamodb_error(e, operation, table_name, resource_id) from e
        except BotoCoreError as e:
            logger.error(f"{operation} on {table_name} failed before a response: {e}")
            raise ConnectionError(f"{operation} on {table_name} failed: {e}", e) from e

    def get_item(self, table_name: str, key: Dict[str, Any], consistent_read: bool = False) -> Optional[Dict[str, Any]]:
        """
        Read one item by key.

        Returns:
            The physical item, or None if it does not exist
        """
        response = self._call(
            "GetItem", table_name, 'get_item',
            TableName=table_name, Key=key, ConsistentRead=consistent_read
        )
        return response.get('Item')

    def put_item(self, table_name: str, item: Dict[str, Any], condition: Optional[Dict[str, Any]] = None) -> None:
        """
        Put one item.

        Args:
            table_name: Physical table name
            item: Physical item
            condition: Optional ConditionExpression/ExpressionAttribute* parameters
        """
        self._call(
            "PutItem", table_name, 'put_item', _resource_id(item),
            TableName=table_name, Item=item, **(condition or {})
        )
        logger.debug(f"Put item in {table_name}: {item}")

    def delete_item(self, table_name: str, key: Dict[str, Any], condition: Optional[Dict[str, Any]] = None) -> None:
        """Delete one item by key."""
        self._call(
            "DeleteItem", table_name, 'delete_item', _resource_id(key),
            TableName=table_name, Key=key, **(condition or {})
        )
        logger.debug(f"Deleted item from {table_name}: {key}")

    def transact_write_items(
        self,
        transact_items: List[Dict[str, Any]],
        client_request_token: Optional[str] = None
    ) -> None:
        """
        Execute one TransactWriteItems request.

        Example:
            gateway.transact_write_items([
                {
                    'Put': {
                        'TableName': 'dev_music_items',
                        'Item': {...},
                        'ConditionExpression': 'playlist_size = :size',
                        'ExpressionAttributeValues': {':size': {'N': '0'}}
                    }
                },
                {
                    'ConditionCheck': {
                        'TableName': 'dev_music_items',
                        'Key': {...},
                        'ConditionExpression': 'attribute_exists(track_title)'
                    }
                }
            ])

        Raises:
            TransactionCanceled: DynamoDB canceled the transaction; carries per-item reasons
        """
        kwargs: Dict[str, Any] = {'TransactItems': transact_items}
        if client_request_token:
            kwargs['ClientRequestToken'] = client_request_token
        tables = _table_names(transact_items)
        self._call("TransactWriteItems", tables, 'transact_write_items', **kwargs)
        logger.info(f"Transaction of {len(transact_items)} writes completed on {tables}")

    def transact_get_items(self, transact_items: List[Dict[str, Any]]) -> List[Optional[Dict[str, Any]]]:
        """
        Execute one TransactGetItems request.

        Returns:
            One entry per requested key, in request order: the physical item,
            or None where the item does not exist
        """
        tables = _table_names(transact_items)
        response = self._call("TransactGetItems", tables, 'transact_get_items', TransactItems=transact_items)
        responses = response.get('Responses') or []
        items = [entry.get('Item') or None for entry in responses]
        # Pad in case the response omits trailing entries for missing items
        items.extend([None] * (len(transact_items) - len(items)))
        logger.debug(f"Transactional read of {len(transact_items)} keys on {tables}")
        return items

    def create_table(
        self,
        table_name: str,
        key_schema: List[Dict[str, str]],
        attribute_definitions: List[Dict[str, str]],
        read_capacity: int = 1,
        write_capacity: int = 1
    ) -> None:
        """
        Create a provisioned table and wait until it exists.

        Intended for tests and local bootstrap; DynamoDB Local ignores the
        provisioned throughput values.
        """
        self._call(
            "CreateTable", table_name, 'create_table',
            TableName=table_name,
            KeySchema=key_schema,
            AttributeDefinitions=attribute_definitions,
            ProvisionedThroughput={'ReadCapacityUnits': read_capacity, 'WriteCapacityUnits': write_capacity}
        )
        self.client.get_waiter('table_exists').wait(TableName=table_name)
        logger.info(f"Created table {table_name}")


def _table_names(transact_items: List[Dict[str, Any]]) -> str:
    names = []
    for transact_item in transact_items:
        for request in transact_item.values():
            name = request.get('TableName')
            if name and name not in names:
                names.append(name)
    return ", ".join(names)


def _resource_id(key: Dict[str, Any]) -> Optional[str]:
    for attribute_value in key.values():
        for payload in attribute_value.values():
            if isinstance(payload, str):
                return payload
    return None


def create_gateway(config: DynamoDBConfig) -> DynamoDBGateway:
    """Factory function to create a DynamoDBGateway instance."""
    return DynamoDBGateway(config)
