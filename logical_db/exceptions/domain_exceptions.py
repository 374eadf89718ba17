"""
Domain-Specific Exceptions for logical_db

All exceptions extend LogicalDbError and carry a message, the original
botocore/pydantic error when there is one, and a context dictionary.

Organized by category:
1. Validation and Schema Errors
2. Transaction Errors
3. Store Errors (mapped from botocore)
"""

from typing import Any, Dict, List, Optional, Sequence

from .base import LogicalDbError


# =============================================================================
# Validation and Schema Errors
# =============================================================================

class ValidationError(LogicalDbError):
    """Raised when data or a schema declaration is invalid.

    Used for:
    - Model classes with an incomplete Meta declaration
    - Field types the codec cannot map to an attribute type
    - Values that cannot be encoded
    """

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        self.errors = errors or {}
        super().__init__(message, original_error, {"validation_errors": self.errors})


class TransactionTooLarge(ValidationError):
    """Raised before dispatch when a transaction exceeds the per-call item limit."""

    def __init__(self, operation: str, size: int, limit: int):
        self.operation = operation
        self.size = size
        self.limit = limit
        super().__init__(
            f"{operation} holds {size} operations, limit is {limit}",
            errors={'size': size, 'limit': limit},
        )


class SchemaMismatch(LogicalDbError):
    """Raised when a physical item does not match the declared schema of its type.

    Used for:
    - Missing key attributes
    - Missing required attributes
    - Missing attribute prefixes
    """

    def __init__(
        self,
        message: str,
        item_type: Optional[str] = None,
        attribute: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.item_type = item_type
        self.attribute = attribute
        super().__init__(message, original_error, {"item_type": item_type, "attribute": attribute})


class TypeMismatch(SchemaMismatch):
    """Raised when a stored attribute's type is incompatible with the declared field type."""

    def __init__(
        self,
        message: str,
        item_type: Optional[str] = None,
        attribute: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.expected = expected
        self.actual = actual
        super().__init__(message, item_type, attribute, original_error)
        self.add_context(expected=expected, actual=actual)


# =============================================================================
# Transaction Errors
# =============================================================================

class IllegalState(LogicalDbError):
    """Raised when a single-use builder is used after build()."""

    def __init__(self, message: str):
        super().__init__(message)


class DuplicateKeyInTransaction(LogicalDbError):
    """Raised at build time when two operations target the same physical key."""

    def __init__(self, table_name: str, key: Dict[str, Any], first_index: int, second_index: int):
        self.table_name = table_name
        self.key = key
        self.indexes = (first_index, second_index)
        message = (
            f"Operations {first_index} and {second_index} both target key {key} "
            f"in table '{table_name}'"
        )
        context = {
            'table_name': table_name,
            'key': key
        }
        super().__init__(message, None, context)


class TransactionCanceled(LogicalDbError):
    """Raised when DynamoDB cancels a transaction.

    ``reasons`` has one entry per submitted operation, in submission order.
    An entry is the cancellation code (e.g. ``ConditionalCheckFailed``,
    ``TransactionConflict``) or ``None`` when that operation did not cause
    the cancellation. The list is empty when DynamoDB did not report reasons.
    """

    def __init__(
        self,
        message: str,
        reasons: Sequence[Optional[str]] = (),
        messages: Sequence[Optional[str]] = (),
        original_error: Optional[Exception] = None
    ):
        self.reasons: List[Optional[str]] = list(reasons)
        self.messages: List[Optional[str]] = list(messages)
        self.operations: tuple = ()
        super().__init__(message, original_error, {"reasons": self.reasons})

    @property
    def failed_operations(self) -> List[Any]:
        """Operations paired with a non-None reason, if operations are attached."""
        return [
            operation
            for operation, reason in zip(self.operations, self.reasons)
            if reason is not None
        ]


# =============================================================================
# Store Errors
# =============================================================================

class ConflictError(LogicalDbError):
    """Raised when a single-item conditional write fails.

    Used for:
    - ConditionalCheckFailedException from DynamoDB
    - TransactionConflictException
    - Resource already exists / in use
    """

    def __init__(self, message: str, resource_id: Optional[str] = None, original_error: Optional[Exception] = None):
        self.resource_id = resource_id
        super().__init__(message, original_error, {"resource_id": resource_id})


class NotFoundError(LogicalDbError):
    """Raised when a DynamoDB resource (table, index) is not found."""

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_name: Optional[str] = None, original_error: Optional[Exception] = None):
        self.resource_type = resource_type
        self.resource_name = resource_name
        super().__init__(
            message, original_error, {"resource_type": resource_type, "resource_name": resource_name}
        )


class ConnectionError(LogicalDbError):
    """Raised when DynamoDB cannot be reached or rejects the credentials."""

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, original_error, context)


class RetryableError(LogicalDbError):
    """Raised for throttling and transient service failures.

    The core never retries on its own; callers decide.
    """

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None, original_error: Optional[Exception] = None):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(message, original_error, {"retry_after_seconds": retry_after_seconds})
