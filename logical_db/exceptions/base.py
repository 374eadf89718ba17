from typing import Any, Dict, Optional


def _present(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None and v != [] and v != {}}


class LogicalDbError(Exception):
    """Root of every error raised by logical_db.

    ``context`` holds the identifiers that locate the failure (table, item
    type, attribute, cancellation reasons). Entries whose value is None or
    empty are dropped, so subclasses pass their fields straight through.
    ``original_error`` is the botocore, pydantic or converter error the
    failure was mapped from.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.original_error = original_error
        self.context = _present(context or {})
        super().__init__(message)

    def add_context(self, **values: Any) -> 'LogicalDbError':
        """Merge more locating details into the context; returns self."""
        self.context.update(_present(values))
        return self

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{name}={value}" for name, value in self.context.items())
        return f"{self.message} (Context: {details})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, context={self.context!r})"
