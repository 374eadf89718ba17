from .config import DynamoDBConfig
from .exceptions import (
    ConflictError,
    ConnectionError,
    DuplicateKeyInTransaction,
    IllegalState,
    LogicalDbError,
    NotFoundError,
    RetryableError,
    SchemaMismatch,
    TransactionCanceled,
    TransactionTooLarge,
    TypeMismatch,
    ValidationError,
)
from .models import (
    # Model base classes
    KeyMeta,
    LogicalItem,
    LogicalKey,
    TableMeta,
    # Schema descriptors
    AttributeType,
    ItemSchema,
    KeySchema,
)
from .codec import ItemCodec
from .transaction import (
    # Operations
    CheckCondition,
    Condition,
    Delete,
    Load,
    Save,
    # Sets and results
    TransactionLoadSet,
    TransactionLoadSetBuilder,
    TransactionResult,
    TransactionWriteSet,
    TransactionWriteSetBuilder,
)
from .core import (
    DynamoDBGateway,
    create_gateway,
)
from .batcher import TransactionBatcher
from .logical_db import LogicalDb, LogicalTable

__version__ = "0.1.0"
__all__ = [
    # Entry point
    "LogicalDb",
    "LogicalTable",

    # Configuration
    "DynamoDBConfig",

    # Exceptions
    "ConflictError",
    "ConnectionError",
    "DuplicateKeyInTransaction",
    "IllegalState",
    "LogicalDbError",
    "NotFoundError",
    "RetryableError",
    "SchemaMismatch",
    "TransactionCanceled",
    "TransactionTooLarge",
    "TypeMismatch",
    "ValidationError",

    # Models
    "KeyMeta",
    "LogicalItem",
    "LogicalKey",
    "TableMeta",
    "AttributeType",
    "ItemSchema",
    "KeySchema",

    # Codec
    "ItemCodec",

    # Transactions
    "CheckCondition",
    "Condition",
    "Delete",
    "Load",
    "Save",
    "TransactionLoadSet",
    "TransactionLoadSetBuilder",
    "TransactionResult",
    "TransactionWriteSet",
    "TransactionWriteSetBuilder",
    "TransactionBatcher",

    # Gateway
    "DynamoDBGateway",
    "create_gateway",
]
