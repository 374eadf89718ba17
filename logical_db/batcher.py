"""
Transaction Batcher

Turns a TransactionWriteSet or TransactionLoadSet into exactly one physical
TransactWriteItems / TransactGetItems request and decodes what comes back.

- One logical transaction is always one physical call. Sets above the
  configured item limit fail with TransactionTooLarge before anything is sent;
  they are never split, since a split would lose atomicity.
- Cancellation reasons from DynamoDB are passed through untouched, one per
  submitted operation in submission order.
- No retries happen here. The caller knows whether a failed condition is an
  expected optimistic-lock race or a real error.
"""

import logging
from typing import Any, Dict, List

from .codec import ItemCodec, load_type_of
from .config import DynamoDBConfig
from .core import DynamoDBGateway
from .exceptions import TransactionCanceled, TransactionTooLarge
from .transaction import (
    CheckCondition,
    Delete,
    Save,
    TransactionLoadSet,
    TransactionResult,
    TransactionWriteSet,
    WriteOperation,
)

logger = logging.getLogger(__name__)


class TransactionBatcher:
    """Assembles, dispatches and decodes transactional reads and writes."""

    def __init__(self, gateway: DynamoDBGateway, config: DynamoDBConfig, codec: ItemCodec = None):
        self.gateway = gateway
        self.config = config
        self.codec = codec or ItemCodec()

    def table_name(self, key_or_item: Any) -> str:
        """Physical table name for a key or item."""
        return self.config.get_table_name(self.codec.table_name_of(key_or_item))

    # =========================================================================
    # Write path
    # =========================================================================

    def write(self, write_set: TransactionWriteSet) -> None:
        """
        Apply every operation of the set atomically.

        An empty set is a no-op; DynamoDB rejects empty transactions.

        Raises:
            TransactionTooLarge: More operations than max_transact_write_items
            TransactionCanceled: DynamoDB canceled the transaction; ``reasons``
                line up with ``write_set.operations`` and ``operations`` is set
        """
        if not write_set.operations:
            logger.debug("Skipping empty write transaction")
            return
        limit = self.config.max_transact_write_items
        if len(write_set) > limit:
            raise TransactionTooLarge("TransactWriteItems", len(write_set), limit)

        transact_items = [self.to_transact_write_item(op) for op in write_set.operations]
        try:
            self.gateway.transact_write_items(transact_items, client_request_token=write_set.client_request_token)
        except TransactionCanceled as e:
            e.operations = write_set.operations
            logger.info(f"Write transaction of {len(write_set)} operations canceled: {e.reasons}")
            raise

    def to_transact_write_item(self, operation: WriteOperation) -> Dict[str, Any]:
        """Encode one write operation as a TransactItems entry."""
        table_name = self.table_name(operation.target)
        if isinstance(operation, Save):
            request = {'TableName': table_name, 'Item': self.codec.encode(operation.item)}
            name = 'Put'
        elif isinstance(operation, Delete):
            request = {'TableName': table_name, 'Key': self.codec.key_of(operation.key)}
            name = 'Delete'
        elif isinstance(operation, CheckCondition):
            request = {'TableName': table_name, 'Key': self.codec.key_of(operation.key)}
            name = 'ConditionCheck'
        else:
            raise TypeError(f"Unsupported write operation: {operation!r}")

        if operation.condition is not None:
            request.update(operation.condition.to_request())
        return {name: request}

    # =========================================================================
    # Read path
    # =========================================================================

    def load(self, load_set: TransactionLoadSet) -> TransactionResult:
        """
        Read every key of the set at one point in time.

        Keys whose item does not exist are left out of the result.

        Raises:
            TransactionTooLarge: More keys than max_transact_get_items
            TransactionCanceled: DynamoDB canceled the read, e.g. on a conflicting write
        """
        if not load_set.operations:
            return TransactionResult()
        limit = self.config.max_transact_get_items
        if len(load_set) > limit:
            raise TransactionTooLarge("TransactGetItems", len(load_set), limit)

        transact_items = [
            {'Get': {'TableName': self.table_name(op.key), 'Key': self.codec.key_of(op.key)}}
            for op in load_set.operations
        ]
        physical_items = self.gateway.transact_get_items(transact_items)

        items: List[Any] = []
        for operation, physical in zip(load_set.operations, physical_items):
            if physical is None:
                continue
            items.append(self.codec.decode(physical, load_type_of(operation.key)))

        logger.debug(f"Loaded {len(items)} of {len(load_set)} requested items")
        return TransactionResult(items)
