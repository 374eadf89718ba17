# Base exception class
from .base import LogicalDbError

from .domain_exceptions import (
    ConflictError,
    ConnectionError,
    DuplicateKeyInTransaction,
    IllegalState,
    NotFoundError,
    RetryableError,
    SchemaMismatch,
    TransactionCanceled,
    TransactionTooLarge,
    TypeMismatch,
    ValidationError,
)

__all__ = [
    "LogicalDbError",

    # Domain exceptions (alphabetically ordered)
    "ConflictError",
    "ConnectionError",
    "DuplicateKeyInTransaction",
    "IllegalState",
    "NotFoundError",
    "RetryableError",
    "SchemaMismatch",
    "TransactionCanceled",
    "TransactionTooLarge",
    "TypeMismatch",
    "ValidationError",
]
