"""
Transaction Sets

Typed operations, the write/load sets that group them, and the typed result
of a transactional load.

Sets are built with single-use builders:

```python
write_set = (
    TransactionWriteSet.builder()
    .save(playlist_info, Condition("playlist_size = :size", attribute_values={":size": 0}))
    .save(playlist_entry)
    .check_condition(album_track_key, Condition("attribute_exists(track_title)"))
    .build()
)
```

``build()`` validates that no two operations address the same physical row
(DynamoDB rejects such transactions) and freezes the set. A builder cannot be
used after ``build()``.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from .codec import ItemCodec, load_type_of
from .exceptions import DuplicateKeyInTransaction, IllegalState, ValidationError
from .models import KeyOrItem, LogicalItem, LogicalKey, schema_of
from .utils import build_condition_kwargs

T = TypeVar('T', bound=LogicalItem)

_codec = ItemCodec()


@dataclass(frozen=True)
class Condition:
    """A condition expression evaluated by DynamoDB against the current item.

    ``expression`` is either a string using ``#name``/``:value`` placeholders or
    a ``boto3.dynamodb.conditions`` object such as ``Attr('playlist_size').eq(0)``.
    """
    expression: Any
    attribute_names: Optional[Dict[str, str]] = None
    attribute_values: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        try:
            self.to_request()
        except (TypeError, ValueError) as e:
            raise ValidationError(
                f"Invalid condition {self.expression!r}: {e}",
                errors={"condition": str(e)},
                original_error=e,
            ) from e

    @classmethod
    def of(cls, condition: Any) -> Optional['Condition']:
        if condition is None or isinstance(condition, Condition):
            return condition
        return cls(condition)

    def to_request(self) -> Dict[str, Any]:
        """Render as low-level client request parameters."""
        return build_condition_kwargs(self.expression, self.attribute_names, self.attribute_values)


# =============================================================================
# Operations
# =============================================================================

@dataclass(frozen=True)
class Save:
    """Put the whole item, optionally only if the condition holds."""
    item: LogicalItem
    condition: Optional[Condition] = None

    @property
    def target(self) -> KeyOrItem:
        return self.item


@dataclass(frozen=True)
class Delete:
    """Delete the item addressed by key, optionally only if the condition holds."""
    key: KeyOrItem
    condition: Optional[Condition] = None

    @property
    def target(self) -> KeyOrItem:
        return self.key


@dataclass(frozen=True)
class CheckCondition:
    """Abort the transaction unless the condition holds for the addressed item."""
    key: KeyOrItem
    condition: Condition

    @property
    def target(self) -> KeyOrItem:
        return self.key


@dataclass(frozen=True)
class Load:
    """Read the item addressed by key."""
    key: KeyOrItem

    @property
    def target(self) -> KeyOrItem:
        return self.key

    @property
    def item_type(self) -> type:
        return load_type_of(self.key)


WriteOperation = Union[Save, Delete, CheckCondition]
Operation = Union[Save, Delete, CheckCondition, Load]


def _check_unique_keys(operations: Sequence[Operation]) -> None:
    seen: Dict[Any, int] = {}
    for index, operation in enumerate(operations):
        identity = _codec.key_identity(operation.target)
        if identity in seen:
            table_name, attributes = identity
            key = {name: payload for name, _, payload in attributes}
            raise DuplicateKeyInTransaction(table_name, key, seen[identity], index)
        seen[identity] = index


# =============================================================================
# Write Sets
# =============================================================================

@dataclass(frozen=True)
class TransactionWriteSet:
    """Ordered, immutable group of write operations applied all-or-nothing."""
    operations: Tuple[WriteOperation, ...]
    client_request_token: Optional[str] = None

    def __post_init__(self):
        _check_unique_keys(self.operations)

    @staticmethod
    def builder(client_request_token: Optional[str] = None) -> 'TransactionWriteSetBuilder':
        return TransactionWriteSetBuilder(client_request_token)

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self) -> Iterator[WriteOperation]:
        return iter(self.operations)


class _SingleUseBuilder:
    def __init__(self):
        self._operations: List[Operation] = []
        self._built = False

    @property
    def is_built(self) -> bool:
        return self._built

    def _add(self, operation: Operation):
        if self._built:
            raise IllegalState(f"{type(self).__name__} was already built; start a new builder")
        self._operations.append(operation)
        return self

    def _finish(self) -> Tuple[Operation, ...]:
        if self._built:
            raise IllegalState(f"{type(self).__name__} was already built; start a new builder")
        self._built = True
        return tuple(self._operations)


class TransactionWriteSetBuilder(_SingleUseBuilder):
    """Accumulates write operations; single use."""

    def __init__(self, client_request_token: Optional[str] = None):
        super().__init__()
        self.client_request_token = client_request_token

    def save(self, item: LogicalItem, condition: Any = None) -> 'TransactionWriteSetBuilder':
        if not isinstance(item, LogicalItem):
            raise ValidationError(f"save() takes a LogicalItem, got {type(item).__name__}")
        schema_of(item)
        return self._add(Save(item, Condition.of(condition)))

    def delete(self, key: KeyOrItem, condition: Any = None) -> 'TransactionWriteSetBuilder':
        schema_of(key)
        return self._add(Delete(key, Condition.of(condition)))

    def check_condition(self, key: KeyOrItem, condition: Any) -> 'TransactionWriteSetBuilder':
        if condition is None:
            raise ValidationError("check_condition() requires a condition")
        schema_of(key)
        return self._add(CheckCondition(key, Condition.of(condition)))

    def build(self) -> TransactionWriteSet:
        """Freeze the set.

        Raises:
            DuplicateKeyInTransaction: Two operations address the same item
            IllegalState: The builder was already built
        """
        return TransactionWriteSet(self._finish(), self.client_request_token)


# =============================================================================
# Load Sets
# =============================================================================

@dataclass(frozen=True)
class TransactionLoadSet:
    """Ordered, immutable group of keys read at one point in time."""
    operations: Tuple[Load, ...]

    def __post_init__(self):
        _check_unique_keys(self.operations)

    @staticmethod
    def builder() -> 'TransactionLoadSetBuilder':
        return TransactionLoadSetBuilder()

    @classmethod
    def of(cls, *keys: KeyOrItem) -> 'TransactionLoadSet':
        builder = cls.builder()
        for key in keys:
            builder.load(key)
        return builder.build()

    @property
    def keys(self) -> Tuple[KeyOrItem, ...]:
        return tuple(operation.key for operation in self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self) -> Iterator[Load]:
        return iter(self.operations)


class TransactionLoadSetBuilder(_SingleUseBuilder):
    """Accumulates keys to load; single use."""

    def load(self, key: KeyOrItem) -> 'TransactionLoadSetBuilder':
        if not isinstance(key, (LogicalKey, LogicalItem)):
            raise ValidationError(f"load() takes a LogicalKey, got {type(key).__name__}")
        schema_of(key)
        return self._add(Load(key))

    def build(self) -> TransactionLoadSet:
        return TransactionLoadSet(self._finish())


# =============================================================================
# Results
# =============================================================================

class TransactionResult:
    """Items read by one transactional load, grouped by item type.

    Within a group, items keep the order their keys were submitted in.
    Keys whose item does not exist contribute nothing.
    """

    def __init__(self, items: Sequence[LogicalItem] = ()):
        groups: Dict[type, List[LogicalItem]] = OrderedDict()
        for item in items:
            groups.setdefault(type(item), []).append(item)
        self._items = tuple(items)
        self._groups = {item_type: tuple(group) for item_type, group in groups.items()}

    def get_items(self, item_type: Type[T]) -> Tuple[T, ...]:
        """All loaded items of item_type; empty when none were loaded or requested."""
        return self._groups.get(item_type, ())

    def get_item(self, item_type: Type[T]) -> Optional[T]:
        """The single loaded item of item_type, or None.

        Raises:
            ValidationError: More than one item of that type was loaded
        """
        group = self.get_items(item_type)
        if len(group) > 1:
            raise ValidationError(f"Expected at most one {item_type.__name__}, loaded {len(group)}")
        return group[0] if group else None

    @property
    def item_types(self) -> Tuple[type, ...]:
        return tuple(self._groups)

    @property
    def items(self) -> Tuple[LogicalItem, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        counts = ", ".join(f"{t.__name__}={len(g)}" for t, g in self._groups.items())
        return f"TransactionResult({counts})"
