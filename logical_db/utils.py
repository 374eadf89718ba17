"""
logical_db Utilities

- ISO-8601 datetime and duration text forms used by the codec
- Conversion of Python values to the types boto3's TypeSerializer accepts
- Condition expression building for transactional and conditional writes
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from boto3.dynamodb.conditions import ConditionBase, ConditionExpressionBuilder
from boto3.dynamodb.types import TypeSerializer

logger = logging.getLogger(__name__)

_serializer = TypeSerializer()


# =============================================================================
# Datetime and Duration Text Forms
# =============================================================================

_MICROS_PER_SECOND = 1_000_000
_MICROS_PER_MINUTE = 60 * _MICROS_PER_SECOND
_MICROS_PER_HOUR = 60 * _MICROS_PER_MINUTE
_MICROS_PER_DAY = 24 * _MICROS_PER_HOUR

_DURATION_PATTERN = re.compile(
    r'^(?P<sign>-)?P'
    r'(?:(?P<days>\d+)D)?'
    r'(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?'
    r'(?:(?P<seconds>\d+)(?:\.(?P<fraction>\d{1,6}))?S)?)?$'
)


def format_duration(value: timedelta) -> str:
    """Format a timedelta as an ISO-8601 duration.

    Only day, hour, minute and second designators are used, so the result
    parses back to the identical timedelta.

    Examples:
        >>> format_duration(timedelta(minutes=3, seconds=28))
        'PT3M28S'
        >>> format_duration(timedelta(days=2, microseconds=500))
        'P2DT0.0005S'
    """
    micros = value // timedelta(microseconds=1)
    sign = '-' if micros < 0 else ''
    micros = abs(micros)

    days, micros = divmod(micros, _MICROS_PER_DAY)
    hours, micros = divmod(micros, _MICROS_PER_HOUR)
    minutes, micros = divmod(micros, _MICROS_PER_MINUTE)
    seconds, micros = divmod(micros, _MICROS_PER_SECOND)

    date_part = f"{days}D" if days else ''
    time_part = ''
    if hours:
        time_part += f"{hours}H"
    if minutes:
        time_part += f"{minutes}M"
    if micros:
        time_part += f"{seconds}.{micros:06d}".rstrip('0') + 'S'
    elif seconds:
        time_part += f"{seconds}S"

    if not date_part and not time_part:
        return 'PT0S'
    return f"{sign}P{date_part}" + (f"T{time_part}" if time_part else '')


def parse_duration(text: str) -> timedelta:
    """Parse an ISO-8601 duration written with D, H, M and S designators.

    Raises:
        ValueError: If the text is not such a duration
    """
    match = _DURATION_PATTERN.match(text) if isinstance(text, str) else None
    if match is None or text.rstrip('-').endswith(('P', 'T')):
        raise ValueError(f"Invalid ISO-8601 duration: {text!r}")

    parts = match.groupdict()
    micros = (
        int(parts['days'] or 0) * _MICROS_PER_DAY
        + int(parts['hours'] or 0) * _MICROS_PER_HOUR
        + int(parts['minutes'] or 0) * _MICROS_PER_MINUTE
        + int(parts['seconds'] or 0) * _MICROS_PER_SECOND
        + int((parts['fraction'] or '').ljust(6, '0') or 0)
    )
    if parts['sign']:
        micros = -micros
    return timedelta(microseconds=micros)


def parse_datetime(text: str) -> datetime:
    """Parse an ISO datetime string, accepting a trailing 'Z' for UTC."""
    if not isinstance(text, str):
        raise TypeError(f"expected ISO datetime string, got {type(text).__name__}")
    return datetime.fromisoformat(text.replace('Z', '+00:00'))


def to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert datetime to UTC. Naive datetimes are assumed to already be UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# =============================================================================
# Native Value Conversion
# =============================================================================

def to_dynamodb_native(value: Any) -> Any:
    """Recursively convert Python values into types TypeSerializer accepts.

    - float -> Decimal (via repr, exact)
    - datetime/date -> ISO string
    - timedelta -> ISO-8601 duration
    - Enum -> its value
    - tuple -> list
    """
    if isinstance(value, dict):
        return {k: to_dynamodb_native(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [to_dynamodb_native(v) for v in value]
    elif isinstance(value, bool):
        return value
    elif isinstance(value, float):
        return Decimal(repr(value))
    elif isinstance(value, datetime):
        return value.isoformat()
    elif isinstance(value, timedelta):
        return format_duration(value)
    elif hasattr(value, 'isoformat'):
        return value.isoformat()
    elif isinstance(value, Enum):
        return to_dynamodb_native(value.value)
    return value


def serialize_value(value: Any) -> Dict[str, Any]:
    """Serialize one Python value to a typed DynamoDB attribute value."""
    return _serializer.serialize(to_dynamodb_native(value))


# =============================================================================
# Condition Expressions
# =============================================================================

def build_condition_kwargs(
    expression: Any,
    attribute_names: Optional[Dict[str, str]] = None,
    attribute_values: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Build ConditionExpression request parameters for the low-level client.

    Accepts either a raw expression string with its placeholders, or a
    ``boto3.dynamodb.conditions`` object (``Attr('size').eq(0)``), which is
    rendered with generated ``#n``/``:v`` placeholders. Values are serialized
    to typed attribute values.

    Example:
        >>> build_condition_kwargs("playlist_size = :size", attribute_values={":size": 0})
        {'ConditionExpression': 'playlist_size = :size',
         'ExpressionAttributeValues': {':size': {'N': '0'}}}
    """
    names = dict(attribute_names or {})
    values = dict(attribute_values or {})

    if isinstance(expression, ConditionBase):
        built = ConditionExpressionBuilder().build_expression(expression)
        condition_expression = built.condition_expression
        overlap = (set(built.attribute_name_placeholders) & set(names)) | (
            set(built.attribute_value_placeholders) & set(values)
        )
        if overlap:
            raise ValueError(f"Placeholders {sorted(overlap)} clash with generated placeholders")
        names.update(built.attribute_name_placeholders)
        values.update(built.attribute_value_placeholders)
    elif isinstance(expression, str) and expression:
        condition_expression = expression
    else:
        raise ValueError(f"Unsupported condition expression: {expression!r}")

    kwargs: Dict[str, Any] = {'ConditionExpression': condition_expression}
    if names:
        kwargs['ExpressionAttributeNames'] = names
    if values:
        kwargs['ExpressionAttributeValues'] = {k: serialize_value(v) for k, v in values.items()}
    return kwargs
