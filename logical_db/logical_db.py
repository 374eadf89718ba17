"""
LogicalDb Facade

Entry point tying config, gateway, codec and batcher together:

```python
db = LogicalDb(DynamoDBConfig.from_env())
db.table(PlaylistInfo).save(PlaylistInfo(playlist_token="L_1", playlist_name="WFH Music", playlist_size=0))

db.transaction_write(
    TransactionWriteSet.builder()
    .save(info.model_copy(update={"playlist_size": 1}), Condition("playlist_size = :s", attribute_values={":s": 0}))
    .save(PlaylistEntry(playlist_token="L_1", album_track_token="M_1:T_1"))
    .build()
)

loaded = db.transaction_load(PlaylistInfoKey(playlist_token="L_1"), PlaylistEntryKey(...))
loaded.get_items(PlaylistInfo)
```
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar, Union

from .batcher import TransactionBatcher
from .codec import ItemCodec, item_schema_of, optional_decode
from .config import DynamoDBConfig
from .core import DynamoDBGateway, create_gateway
from .exceptions import ValidationError
from .models import ItemSchema, KeyOrItem, LogicalItem
from .transaction import Condition, TransactionLoadSet, TransactionResult, TransactionWriteSet

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=LogicalItem)


class LogicalTable(Generic[T]):
    """Single-item operations for one logical item type."""

    def __init__(self, db: 'LogicalDb', item_type: Type[T]):
        self.db = db
        self.item_type = item_type
        self.schema: ItemSchema = item_schema_of(item_type)
        self.table_name = db.config.get_table_name(self.schema.table_name)

    def _check_key(self, key: KeyOrItem) -> None:
        if item_schema_of(key) is not self.schema:
            raise ValidationError(f"{type(key).__name__} does not address {self.item_type.__name__} items")

    def save(self, item: T, condition: Any = None) -> None:
        """
        Put the item, replacing any item with the same key.

        Raises:
            ConflictError: The condition did not hold
        """
        if not isinstance(item, self.item_type):
            raise ValidationError(f"Expected {self.item_type.__name__}, got {type(item).__name__}")
        condition = Condition.of(condition)
        self.db.gateway.put_item(
            self.table_name,
            self.db.codec.encode(item),
            condition.to_request() if condition else None,
        )

    def load(self, key: KeyOrItem, consistent_read: bool = False) -> Optional[T]:
        """Read one item; None if it does not exist."""
        self._check_key(key)
        physical = self.db.gateway.get_item(self.table_name, self.db.codec.key_of(key), consistent_read)
        return optional_decode(self.db.codec, physical, self.item_type)

    def delete_key(self, key: KeyOrItem, condition: Any = None) -> None:
        """
        Delete the item addressed by key. Deleting a missing item is not an error.

        Raises:
            ConflictError: The condition did not hold
        """
        self._check_key(key)
        condition = Condition.of(condition)
        self.db.gateway.delete_item(
            self.table_name,
            self.db.codec.key_of(key),
            condition.to_request() if condition else None,
        )


class LogicalDb:
    """Typed access to a set of DynamoDB tables, including transactions."""

    def __init__(
        self,
        config: Optional[DynamoDBConfig] = None,
        gateway: Optional[DynamoDBGateway] = None,
        codec: Optional[ItemCodec] = None
    ):
        self.config = config or DynamoDBConfig.from_env()
        self.gateway = gateway or create_gateway(self.config)
        self.codec = codec or ItemCodec()
        self.batcher = TransactionBatcher(self.gateway, self.config, self.codec)

        if self.config.enable_debug_logging:
            logging.getLogger(__package__).setLevel(logging.DEBUG)

    def table(self, item_type: Type[T]) -> LogicalTable[T]:
        return LogicalTable(self, item_type)

    def transaction_write(self, write_set: TransactionWriteSet) -> None:
        """Apply a write set atomically. See TransactionBatcher.write."""
        self.batcher.write(write_set)

    def transaction_load(self, *keys: Union[KeyOrItem, TransactionLoadSet]) -> TransactionResult:
        """
        Read keys at one point in time.

        Accepts either keys or a single prebuilt TransactionLoadSet.
        """
        if len(keys) == 1 and isinstance(keys[0], TransactionLoadSet):
            load_set = keys[0]
        else:
            load_set = TransactionLoadSet.of(*keys)
        return self.batcher.load(load_set)

    def create_table(self, *item_types: Type[LogicalItem], read_capacity: int = 1, write_capacity: int = 1) -> str:
        """
        Create the physical table shared by item_types.

        All item types must name the same table and agree on the key attribute
        names and types.

        Returns:
            The physical table name
        """
        if not item_types:
            raise ValidationError("create_table() needs at least one item type")

        schemas = [item_schema_of(item_type) for item_type in item_types]
        first = schemas[0]
        key_layout = _key_layout(first)
        for schema in schemas[1:]:
            if schema.table_name != first.table_name:
                raise ValidationError(
                    f"{schema.name} lives in '{schema.table_name}', not '{first.table_name}'"
                )
            if _key_layout(schema) != key_layout:
                raise ValidationError(f"{schema.name} key attributes differ from {first.name}")

        key_schema = [{'AttributeName': key_layout[0][0], 'KeyType': 'HASH'}]
        if len(key_layout) > 1:
            key_schema.append({'AttributeName': key_layout[1][0], 'KeyType': 'RANGE'})
        attribute_definitions = [
            {'AttributeName': name, 'AttributeType': attribute_type}
            for name, attribute_type in key_layout
        ]

        table_name = self.config.get_table_name(first.table_name)
        self.gateway.create_table(table_name, key_schema, attribute_definitions, read_capacity, write_capacity)
        return table_name


def _key_layout(schema: ItemSchema):
    return tuple((m.attribute_name, m.attribute_type.value) for m in schema.key_mappings)
