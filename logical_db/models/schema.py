"""
Schema Descriptors for Logical Items

Every mapped model class gets an ItemSchema (items) or KeySchema (keys) when
the class is defined. The descriptor is the static mapping table the codec
consults:

    logical field name -> physical attribute name
    field type         -> DynamoDB attribute type (S, N, B, BOOL, SS, NS, L, M)

Converters translate between Python values and the payload of a typed
attribute value (the ``"1"`` in ``{"N": "1"}``). They are resolved from the
field annotations once, at class definition; encoding and decoding never
inspect annotations again.
"""

import math
import sys
import types
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type, Union, get_args, get_origin

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from ..exceptions import SchemaMismatch, TypeMismatch, ValidationError
from ..utils import format_duration, parse_datetime, parse_duration, to_dynamodb_native

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


class AttributeType(str, Enum):
    """DynamoDB attribute value type descriptors."""
    STRING = "S"
    NUMBER = "N"
    BINARY = "B"
    BOOLEAN = "BOOL"
    STRING_SET = "SS"
    NUMBER_SET = "NS"
    LIST = "L"
    MAP = "M"


KEY_ATTRIBUTE_TYPES = (AttributeType.STRING, AttributeType.NUMBER, AttributeType.BINARY)


# =============================================================================
# Converters
# =============================================================================

class FieldConverter:
    """Converts one Python field type to and from an attribute value payload."""

    attribute_type: AttributeType
    # Empty collections are omitted from the item; DynamoDB rejects empty sets
    omit_empty = False

    def encode(self, value: Any) -> Any:
        raise NotImplementedError

    def decode(self, payload: Any) -> Any:
        raise NotImplementedError

    def empty(self) -> Any:
        return None


class StringConverter(FieldConverter):
    attribute_type = AttributeType.STRING

    def encode(self, value: str) -> str:
        return value

    def decode(self, payload: Any) -> str:
        if not isinstance(payload, str):
            raise TypeError(f"expected string payload, got {type(payload).__name__}")
        return payload


class EnumConverter(FieldConverter):
    attribute_type = AttributeType.STRING

    def __init__(self, enum_type: Type[Enum]):
        self.enum_type = enum_type

    def encode(self, value: Enum) -> str:
        return str(self.enum_type(value).value)

    def decode(self, payload: Any) -> Enum:
        # Values are stored as text whatever their Python type (IntEnum etc.)
        for member in self.enum_type:
            if str(member.value) == payload:
                return member
        raise ValueError(f"{payload!r} is not a valid {self.enum_type.__name__}")


class BooleanConverter(FieldConverter):
    attribute_type = AttributeType.BOOLEAN

    def encode(self, value: bool) -> bool:
        return bool(value)

    def decode(self, payload: Any) -> bool:
        if not isinstance(payload, bool):
            raise TypeError(f"expected boolean payload, got {type(payload).__name__}")
        return payload


def _parse_number(payload: Any) -> Decimal:
    if not isinstance(payload, str):
        raise TypeError(f"expected numeric string payload, got {type(payload).__name__}")
    try:
        number = Decimal(payload)
    except InvalidOperation as e:
        raise ValueError(f"'{payload}' is not a number") from e
    if not number.is_finite():
        raise ValueError(f"'{payload}' is not a finite number")
    return number


class IntegerConverter(FieldConverter):
    attribute_type = AttributeType.NUMBER

    def encode(self, value: int) -> str:
        return str(int(value))

    def decode(self, payload: Any) -> int:
        number = _parse_number(payload)
        if number != number.to_integral_value():
            raise ValueError(f"'{payload}' is not an integer")
        return int(number)


class DecimalConverter(FieldConverter):
    attribute_type = AttributeType.NUMBER

    def encode(self, value: Decimal) -> str:
        if not Decimal(value).is_finite():
            raise ValueError(f"{value} cannot be stored as a DynamoDB number")
        return str(value)

    def decode(self, payload: Any) -> Decimal:
        return _parse_number(payload)


class FloatConverter(FieldConverter):
    attribute_type = AttributeType.NUMBER

    def encode(self, value: float) -> str:
        if not math.isfinite(value):
            raise ValueError(f"{value} cannot be stored as a DynamoDB number")
        # repr() is the shortest string that parses back to the same float
        return repr(float(value))

    def decode(self, payload: Any) -> float:
        _parse_number(payload)
        return float(payload)


class DateTimeConverter(FieldConverter):
    attribute_type = AttributeType.STRING

    def encode(self, value: datetime) -> str:
        return value.isoformat()

    def decode(self, payload: Any) -> datetime:
        return parse_datetime(payload)


class DateConverter(FieldConverter):
    attribute_type = AttributeType.STRING

    def encode(self, value: date) -> str:
        return value.isoformat()

    def decode(self, payload: Any) -> date:
        return date.fromisoformat(payload)


class DurationConverter(FieldConverter):
    attribute_type = AttributeType.STRING

    def encode(self, value: timedelta) -> str:
        return format_duration(value)

    def decode(self, payload: Any) -> timedelta:
        return parse_duration(payload)


class BinaryConverter(FieldConverter):
    attribute_type = AttributeType.BINARY

    def encode(self, value: bytes) -> bytes:
        return bytes(value)

    def decode(self, payload: Any) -> bytes:
        if not isinstance(payload, (bytes, bytearray)):
            raise TypeError(f"expected binary payload, got {type(payload).__name__}")
        return bytes(payload)


class SetConverter(FieldConverter):
    omit_empty = True

    def __init__(self, element: FieldConverter):
        self.element = element
        if element.attribute_type == AttributeType.STRING:
            self.attribute_type = AttributeType.STRING_SET
        else:
            self.attribute_type = AttributeType.NUMBER_SET

    def encode(self, value: set) -> List[str]:
        return sorted(self.element.encode(v) for v in value)

    def decode(self, payload: Any) -> set:
        if not isinstance(payload, list):
            raise TypeError(f"expected set payload, got {type(payload).__name__}")
        return {self.element.decode(v) for v in payload}

    def empty(self) -> set:
        return set()


class ListConverter(FieldConverter):
    attribute_type = AttributeType.LIST

    def __init__(self, element: FieldConverter):
        self.element = element

    def encode(self, value: list) -> List[Dict[str, Any]]:
        return [{self.element.attribute_type.value: self.element.encode(v)} for v in value]

    def decode(self, payload: Any) -> list:
        if not isinstance(payload, list):
            raise TypeError(f"expected list payload, got {type(payload).__name__}")
        return [self.element.decode(_expect_tag(v, self.element.attribute_type)) for v in payload]


class MapConverter(FieldConverter):
    attribute_type = AttributeType.MAP

    def __init__(self, value_converter: FieldConverter):
        self.value_converter = value_converter

    def encode(self, value: dict) -> Dict[str, Dict[str, Any]]:
        tag = self.value_converter.attribute_type.value
        return {str(k): {tag: self.value_converter.encode(v)} for k, v in value.items()}

    def decode(self, payload: Any) -> dict:
        if not isinstance(payload, dict):
            raise TypeError(f"expected map payload, got {type(payload).__name__}")
        return {
            k: self.value_converter.decode(_expect_tag(v, self.value_converter.attribute_type))
            for k, v in payload.items()
        }


class DocumentConverter(FieldConverter):
    """Untyped lists and maps, serialized with boto3's TypeSerializer.

    Numbers come back as Decimal.
    """

    def __init__(self, attribute_type: AttributeType):
        self.attribute_type = attribute_type

    def encode(self, value: Any) -> Any:
        serialized = _serializer.serialize(to_dynamodb_native(value))
        return serialized[self.attribute_type.value]

    def decode(self, payload: Any) -> Any:
        return _deserializer.deserialize({self.attribute_type.value: payload})


def _expect_tag(attribute_value: Dict[str, Any], attribute_type: AttributeType) -> Any:
    if not isinstance(attribute_value, dict) or attribute_type.value not in attribute_value:
        actual = next(iter(attribute_value), None) if isinstance(attribute_value, dict) else type(attribute_value).__name__
        raise TypeError(f"expected {attribute_type.value} element, got {actual}")
    return attribute_value[attribute_type.value]


_SCALAR_CONVERTERS = {
    str: StringConverter,
    bool: BooleanConverter,
    int: IntegerConverter,
    Decimal: DecimalConverter,
    float: FloatConverter,
    datetime: DateTimeConverter,
    date: DateConverter,
    timedelta: DurationConverter,
    bytes: BinaryConverter,
}

if sys.version_info >= (3, 10):
    _UNION_TYPES = (Union, types.UnionType)
else:
    _UNION_TYPES = (Union,)


def unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    """Return (inner type, is_optional) for Optional[X] / X | None annotations."""
    if get_origin(annotation) in _UNION_TYPES:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0], len(args) != len(get_args(annotation))
    return annotation, False


def resolve_converter(annotation: Any) -> FieldConverter:
    """Pick the converter for a field annotation.

    Raises:
        TypeError: If the annotation has no attribute mapping
    """
    annotation, _ = unwrap_optional(annotation)

    if annotation in _SCALAR_CONVERTERS:
        return _SCALAR_CONVERTERS[annotation]()
    if isinstance(annotation, type) and issubclass(annotation, Enum):
        return EnumConverter(annotation)

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin in (set, frozenset):
        element = resolve_converter(args[0]) if args else None
        if element is None or element.attribute_type not in (AttributeType.STRING, AttributeType.NUMBER):
            raise TypeError(f"sets must hold strings or numbers, got {annotation}")
        return SetConverter(element)
    if origin is list or annotation is list:
        if not args or args[0] is Any:
            return DocumentConverter(AttributeType.LIST)
        return ListConverter(resolve_converter(args[0]))
    if origin is dict or annotation is dict:
        if not args or args[1] is Any:
            return DocumentConverter(AttributeType.MAP)
        if args[0] is not str:
            raise TypeError(f"map keys must be strings, got {annotation}")
        return MapConverter(resolve_converter(args[1]))

    raise TypeError(f"no DynamoDB attribute mapping for {annotation!r}")


# =============================================================================
# Descriptors
# =============================================================================

class FieldMapping:
    """Maps one logical field to one physical attribute."""

    def __init__(
        self,
        field_name: str,
        attribute_name: str,
        converter: FieldConverter,
        required: bool,
        prefix: Optional[str] = None,
        nullable: bool = False,
        omit_none: bool = True
    ):
        self.field_name = field_name
        self.attribute_name = attribute_name
        self.converter = converter
        self.required = required
        self.prefix = prefix
        # Optional field; a stored NULL decodes to None
        self.nullable = nullable
        # None is written as an absent attribute only when absence decodes back to None
        self.omit_none = omit_none

    @property
    def attribute_type(self) -> AttributeType:
        return self.converter.attribute_type

    def encode(self, value: Any) -> Optional[Dict[str, Any]]:
        """Encode a field value as a typed attribute value, or None to omit it."""
        if value is None:
            return None if self.omit_none else {"NULL": True}
        if self.converter.omit_empty and not value:
            return None
        payload = self.converter.encode(value)
        if self.prefix is not None:
            payload = self.prefix + payload
        return {self.attribute_type.value: payload}

    def decode(self, attribute_value: Dict[str, Any], item_type: str) -> Any:
        """Decode a typed attribute value back to the field's Python type.

        Raises:
            TypeMismatch: The stored type tag or content does not fit the field
            SchemaMismatch: A declared prefix is missing
        """
        tag = next(iter(attribute_value), None) if isinstance(attribute_value, dict) else None
        if tag != self.attribute_type.value:
            raise TypeMismatch(
                f"Attribute '{self.attribute_name}' of {item_type} is stored as {tag}, "
                f"field '{self.field_name}' expects {self.attribute_type.value}",
                item_type=item_type,
                attribute=self.attribute_name,
                expected=self.attribute_type.value,
                actual=tag,
            )
        payload = attribute_value[tag]
        if self.prefix is not None:
            if not payload.startswith(self.prefix):
                raise SchemaMismatch(
                    f"Attribute '{self.attribute_name}' of {item_type} lacks prefix '{self.prefix}': {payload!r}",
                    item_type=item_type,
                    attribute=self.attribute_name,
                )
            payload = payload[len(self.prefix):]
        try:
            return self.converter.decode(payload)
        except (TypeError, ValueError) as e:
            raise TypeMismatch(
                f"Attribute '{self.attribute_name}' of {item_type} cannot be read as "
                f"field '{self.field_name}': {e}",
                item_type=item_type,
                attribute=self.attribute_name,
                expected=self.attribute_type.value,
                actual=tag,
                original_error=e,
            ) from e

    def __repr__(self) -> str:
        return f"FieldMapping({self.field_name!r} -> {self.attribute_name!r}: {self.attribute_type.value})"


class ItemSchema:
    """Registration-time descriptor of one logical item type."""

    def __init__(
        self,
        item_type: type,
        table_name: str,
        partition_key: str,
        sort_key: Optional[str],
        fields: Dict[str, FieldMapping]
    ):
        self.item_type = item_type
        self.table_name = table_name
        self.partition_key = partition_key
        self.sort_key = sort_key
        self.fields = fields

    @property
    def name(self) -> str:
        return self.item_type.__name__

    @property
    def key_fields(self) -> List[str]:
        fields = [self.partition_key]
        if self.sort_key:
            fields.append(self.sort_key)
        return fields

    @property
    def key_mappings(self) -> List[FieldMapping]:
        return [self.fields[name] for name in self.key_fields]

    @classmethod
    def from_model(cls, model_class: type, meta: type) -> 'ItemSchema':
        """Build the descriptor from a pydantic model class and its Meta.

        Raises:
            ValidationError: If Meta is incomplete or a field type has no mapping
        """
        name = model_class.__name__
        table_name = getattr(meta, 'table_name', None)
        partition_key = getattr(meta, 'partition_key', None)
        sort_key = getattr(meta, 'sort_key', None)
        attribute_names = dict(getattr(meta, 'attribute_names', None) or {})
        attribute_prefixes = dict(getattr(meta, 'attribute_prefixes', None) or {})
        model_fields = model_class.model_fields

        errors = {}
        if not table_name:
            errors['table_name'] = "Meta must define table_name"
        if not partition_key:
            errors['partition_key'] = "Meta must define partition_key"
        for label, field in (('partition_key', partition_key), ('sort_key', sort_key)):
            if field and field not in model_fields:
                errors[label] = f"'{field}' is not a field of {name}"
        for field in list(attribute_names) + list(attribute_prefixes):
            if field not in model_fields:
                errors[field] = f"Meta refers to unknown field '{field}'"
        if errors:
            raise ValidationError(f"Invalid schema for {name}", errors=errors)

        fields = {}
        for field_name, field_info in model_fields.items():
            try:
                converter = resolve_converter(field_info.annotation)
            except TypeError as e:
                errors[field_name] = str(e)
                continue
            prefix = attribute_prefixes.get(field_name)
            if prefix is not None and converter.attribute_type != AttributeType.STRING:
                errors[field_name] = "attribute prefixes only apply to string fields"
            required = field_info.is_required() and not converter.omit_empty
            nullable = unwrap_optional(field_info.annotation)[1]
            fields[field_name] = FieldMapping(
                field_name=field_name,
                attribute_name=attribute_names.get(field_name, field_name),
                converter=converter,
                required=required,
                prefix=prefix,
                nullable=nullable,
                omit_none=not nullable or (
                    not required and not converter.omit_empty and field_info.default is None
                ),
            )

        for key_field in filter(None, (partition_key, sort_key)):
            mapping = fields.get(key_field)
            if mapping is None:
                continue
            if mapping.attribute_type not in KEY_ATTRIBUTE_TYPES:
                errors[key_field] = "key attributes must be strings, numbers or binary"
            if unwrap_optional(model_fields[key_field].annotation)[1]:
                errors[key_field] = "key fields cannot be optional"

        attribute_list = [m.attribute_name for m in fields.values()]
        if len(set(attribute_list)) != len(attribute_list):
            errors['attribute_names'] = "two fields map to the same attribute"
        if errors:
            raise ValidationError(f"Invalid schema for {name}", errors=errors)

        return cls(model_class, table_name, partition_key, sort_key, fields)

    def __repr__(self) -> str:
        return f"ItemSchema({self.name}, table={self.table_name!r}, key={self.key_fields})"


class KeySchema:
    """Registration-time descriptor of one logical key type."""

    def __init__(self, key_type: type, item_schema: ItemSchema):
        self.key_type = key_type
        self.item_schema = item_schema

    @property
    def item_type(self) -> type:
        return self.item_schema.item_type

    @property
    def table_name(self) -> str:
        return self.item_schema.table_name

    @property
    def key_mappings(self) -> List[FieldMapping]:
        return self.item_schema.key_mappings

    @classmethod
    def from_model(cls, key_class: type, meta: type) -> 'KeySchema':
        """Build the key descriptor, checking its fields against the item's key fields.

        Raises:
            ValidationError: If the item type is unmapped or the key fields do not line up
        """
        name = key_class.__name__
        item_type = getattr(meta, 'item_type', None)
        item_schema = item_type.__dict__.get(SCHEMA_ATTRIBUTE) if isinstance(item_type, type) else None
        if not isinstance(item_schema, ItemSchema):
            raise ValidationError(
                f"Invalid key schema for {name}",
                errors={'item_type': "Meta.item_type must be a mapped LogicalItem class"},
            )

        errors = {}
        key_fields = key_class.model_fields
        for field_name in item_schema.key_fields:
            if field_name not in key_fields:
                errors[field_name] = f"missing key field of {item_schema.name}"
        for field_name, field_info in key_fields.items():
            if field_name not in item_schema.key_fields:
                errors[field_name] = f"not a key field of {item_schema.name}"
                continue
            try:
                converter = resolve_converter(field_info.annotation)
            except TypeError as e:
                errors[field_name] = str(e)
                continue
            if converter.attribute_type != item_schema.fields[field_name].attribute_type:
                errors[field_name] = "type differs from the item field"
        if errors:
            raise ValidationError(f"Invalid key schema for {name}", errors=errors)

        return cls(key_class, item_schema)

    def __repr__(self) -> str:
        return f"KeySchema({self.key_type.__name__} -> {self.item_schema.name})"


SCHEMA_ATTRIBUTE = '__logical_schema__'


def schema_of(obj: Any) -> Union[ItemSchema, KeySchema]:
    """Return the descriptor registered for a model class or instance.

    Raises:
        ValidationError: If the class was never mapped
    """
    model_class = obj if isinstance(obj, type) else type(obj)
    schema = model_class.__dict__.get(SCHEMA_ATTRIBUTE)
    if schema is None:
        raise ValidationError(f"{model_class.__name__} is not a mapped item or key type")
    return schema
