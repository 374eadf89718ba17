from .base import (
    KeyMeta,
    KeyOrItem,
    LogicalItem,
    LogicalKey,
    TableMeta,
)
from .schema import (
    AttributeType,
    FieldMapping,
    ItemSchema,
    KeySchema,
    schema_of,
)

__all__ = [
    # Base classes
    "LogicalItem",
    "LogicalKey",
    "KeyOrItem",
    "TableMeta",
    "KeyMeta",

    # Schema descriptors
    "AttributeType",
    "FieldMapping",
    "ItemSchema",
    "KeySchema",
    "schema_of",
]
