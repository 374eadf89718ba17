"""
Item Codec

Converts between logical items/keys and physical DynamoDB items in the
low-level client's typed wire format:

    PlaylistInfo(playlist_token="L_1", playlist_name="WFH Music", playlist_size=0)
    <->
    {"partition_key": {"S": "L_1"}, "sort_key": {"S": "INFO_"},
     "playlist_name": {"S": "WFH Music"}, "playlist_size": {"N": "0"}}

All methods are pure functions of their inputs and the registered schema
descriptors.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from .exceptions import SchemaMismatch, ValidationError
from .models import AttributeType, ItemSchema, KeyOrItem, LogicalItem, schema_of

logger = logging.getLogger(__name__)

PhysicalItem = Dict[str, Dict[str, Any]]
KeyIdentity = Tuple[str, Tuple[Tuple[str, str, Any], ...]]

T = TypeVar('T', bound=LogicalItem)


def item_schema_of(obj: Any) -> ItemSchema:
    """Return the ItemSchema behind an item, a key, or either class."""
    schema = schema_of(obj)
    return schema if isinstance(schema, ItemSchema) else schema.item_schema


class ItemCodec:
    """Stateless encoder/decoder between logical and physical items."""

    def encode(self, item: LogicalItem) -> PhysicalItem:
        """Encode a logical item into a full physical item.

        Raises:
            ValidationError: If the item is not a mapped type or a value cannot be encoded
        """
        schema = schema_of(item)
        if not isinstance(schema, ItemSchema):
            raise ValidationError(f"{type(item).__name__} is a key type, not an item type")

        physical: PhysicalItem = {}
        for field_name, mapping in schema.fields.items():
            value = getattr(item, field_name)
            try:
                attribute_value = mapping.encode(value)
            except (TypeError, ValueError) as e:
                raise ValidationError(
                    f"Cannot encode {schema.name}.{field_name}: {e}",
                    errors={field_name: str(e)},
                    original_error=e,
                ) from e
            if attribute_value is not None:
                physical[mapping.attribute_name] = attribute_value
        return physical

    def decode(self, physical: PhysicalItem, item_type: Type[T]) -> T:
        """Decode a physical item into an instance of item_type.

        Attributes the schema does not declare are ignored.

        Raises:
            SchemaMismatch: A key or required attribute is absent
            TypeMismatch: An attribute's stored type does not fit its field
        """
        schema = item_schema_of(item_type)
        if schema.item_type is not item_type:
            raise ValidationError(f"{item_type.__name__} is a key type, not an item type")

        for mapping in schema.key_mappings:
            if mapping.attribute_name not in physical:
                raise SchemaMismatch(
                    f"Key attribute '{mapping.attribute_name}' missing from {schema.name} item",
                    item_type=schema.name,
                    attribute=mapping.attribute_name,
                )

        values = {}
        for field_name, mapping in schema.fields.items():
            attribute_value = physical.get(mapping.attribute_name)
            if mapping.nullable and attribute_value is not None and 'NULL' in attribute_value:
                values[field_name] = None
                continue
            if attribute_value is None or 'NULL' in attribute_value:
                if mapping.required:
                    raise SchemaMismatch(
                        f"Required attribute '{mapping.attribute_name}' missing from {schema.name} item",
                        item_type=schema.name,
                        attribute=mapping.attribute_name,
                    )
                if mapping.converter.omit_empty:
                    values[field_name] = mapping.converter.empty()
                continue
            values[field_name] = mapping.decode(attribute_value, schema.name)

        try:
            return item_type.model_validate(values)
        except PydanticValidationError as e:
            raise SchemaMismatch(
                f"Decoded attributes do not form a valid {schema.name}: {e}",
                item_type=schema.name,
                original_error=e,
            ) from e

    def key_of(self, key: KeyOrItem) -> PhysicalItem:
        """Project a key (or an item) onto its key attributes only."""
        schema = item_schema_of(key)
        physical: PhysicalItem = {}
        for mapping in schema.key_mappings:
            value = getattr(key, mapping.field_name)
            attribute_value = mapping.encode(value) if value is not None else None
            if attribute_value is None:
                raise ValidationError(
                    f"Key field '{mapping.field_name}' of {type(key).__name__} has no value",
                    errors={mapping.field_name: "required"},
                )
            physical[mapping.attribute_name] = attribute_value
        return physical

    def key_identity(self, key: KeyOrItem) -> KeyIdentity:
        """Hashable identity of the physical row a key or item addresses.

        Two keys or items share an identity exactly when DynamoDB would treat
        them as the same item: same logical table and same key attributes.
        """
        schema = item_schema_of(key)
        physical = self.key_of(key)
        # Number keys compare by value; "1" and "1.0" address the same row
        attributes = tuple(
            (name, tag, Decimal(payload) if tag == AttributeType.NUMBER.value else payload)
            for name, attribute_value in sorted(physical.items())
            for tag, payload in attribute_value.items()
        )
        return schema.table_name, attributes

    def table_name_of(self, key: KeyOrItem) -> str:
        """Logical (unprefixed) table name of a key or item."""
        return item_schema_of(key).table_name


def load_type_of(key: KeyOrItem) -> type:
    """The item type a key (or item) decodes to."""
    return item_schema_of(key).item_type


def optional_decode(codec: ItemCodec, physical: Optional[PhysicalItem], item_type: Type[T]) -> Optional[T]:
    """Decode a physical item that may be absent."""
    if not physical:
        return None
    return codec.decode(physical, item_type)
