"""
Base Model Classes for Logical Items and Keys

Domain types subclass LogicalItem (one physical row each) or LogicalKey (the
identifier of one row) and declare their mapping in a nested Meta class, the
same way table metadata is declared on the wrapper's domain models:

```python
class PlaylistInfo(LogicalItem):
    playlist_token: str
    playlist_name: str
    playlist_size: int
    sort_key: str = ""

    class Meta(TableMeta):
        table_name = "music_items"
        partition_key = "playlist_token"
        sort_key = "sort_key"
        attribute_names = {"playlist_token": "partition_key"}
        attribute_prefixes = {"sort_key": "INFO_"}


class PlaylistInfoKey(LogicalKey):
    playlist_token: str
    sort_key: str = ""

    class Meta(KeyMeta):
        item_type = PlaylistInfo
```

The schema descriptor is built by ``__pydantic_init_subclass__`` once pydantic
has finished the class, so a broken Meta fails at import time rather than on
the first request. Classes without their own Meta are treated as abstract
bases and get no descriptor.
"""

import logging
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict

from .schema import SCHEMA_ATTRIBUTE, ItemSchema, KeySchema

logger = logging.getLogger(__name__)


class TableMeta:
    """Base class for item mapping declarations."""
    table_name: str
    partition_key: str
    sort_key: Optional[str] = None
    attribute_names: Dict[str, str] = {}
    attribute_prefixes: Dict[str, str] = {}


class KeyMeta:
    """Base class for key mapping declarations."""
    item_type: type


class LogicalItem(BaseModel):
    """Immutable typed domain object stored as exactly one physical item."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        meta = cls.__dict__.get('Meta')
        if meta is None:
            return
        schema = ItemSchema.from_model(cls, meta)
        setattr(cls, SCHEMA_ATTRIBUTE, schema)
        logger.debug(f"Registered {schema!r}")


class LogicalKey(BaseModel):
    """Immutable identifier of one logical item: partition key plus optional sort key."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        meta = cls.__dict__.get('Meta')
        if meta is None:
            return
        schema = KeySchema.from_model(cls, meta)
        setattr(cls, SCHEMA_ATTRIBUTE, schema)
        logger.debug(f"Registered {schema!r}")


KeyOrItem = Union[LogicalKey, LogicalItem]
