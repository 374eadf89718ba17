"""
Tests for schema descriptors built from model Meta classes.

A broken mapping must fail when the class is defined, not on first use.
"""

from typing import List, Optional, Set, Tuple

import pytest

from logical_db import (
    AttributeType,
    ItemSchema,
    KeyMeta,
    KeySchema,
    LogicalItem,
    LogicalKey,
    TableMeta,
    ValidationError,
)
from logical_db.models import schema_of
from tests.helpers import AlbumTrack, PlaylistInfo, PlaylistInfoKey


class TestItemSchema:

    def test_registered_descriptor(self):
        schema = schema_of(PlaylistInfo)

        assert isinstance(schema, ItemSchema)
        assert schema.table_name == "music_items"
        assert schema.key_fields == ["playlist_token", "sort_key"]
        assert [m.attribute_name for m in schema.key_mappings] == ["partition_key", "sort_key"]
        assert schema.fields["playlist_size"].attribute_type == AttributeType.NUMBER
        assert schema.fields["sort_key"].prefix == "INFO_"

    def test_instance_and_class_share_descriptor(self):
        info = PlaylistInfo(playlist_token="L_1", playlist_name="x", playlist_size=0)

        assert schema_of(info) is schema_of(PlaylistInfo)

    def test_partition_key_only(self):
        class Album(LogicalItem):
            album_token: str
            album_title: str

            class Meta(TableMeta):
                table_name = "albums"
                partition_key = "album_token"

        assert schema_of(Album).key_fields == ["album_token"]

    def test_none_storage_per_field(self):
        class Album(LogicalItem):
            album_token: str
            liner_notes: Optional[str] = None
            label: Optional[str] = "independent"
            genres: Optional[Set[str]] = None

            class Meta(TableMeta):
                table_name = "albums"
                partition_key = "album_token"

        fields = schema_of(Album).fields
        assert not fields["album_token"].nullable
        assert fields["liner_notes"].nullable and fields["liner_notes"].omit_none
        assert fields["label"].nullable and not fields["label"].omit_none
        assert fields["genres"].nullable and not fields["genres"].omit_none

    def test_missing_table_name(self):
        with pytest.raises(ValidationError) as exc_info:
            class NoTable(LogicalItem):
                token: str

                class Meta(TableMeta):
                    partition_key = "token"

        assert 'table_name' in exc_info.value.errors

    def test_unknown_key_field(self):
        with pytest.raises(ValidationError) as exc_info:
            class BadKey(LogicalItem):
                token: str

                class Meta(TableMeta):
                    table_name = "things"
                    partition_key = "token"
                    sort_key = "missing"

        assert 'sort_key' in exc_info.value.errors

    def test_unsupported_key_type(self):
        with pytest.raises(ValidationError) as exc_info:
            class BoolKey(LogicalItem):
                flag: bool

                class Meta(TableMeta):
                    table_name = "things"
                    partition_key = "flag"

        assert 'flag' in exc_info.value.errors

    def test_optional_key_field(self):
        with pytest.raises(ValidationError) as exc_info:
            class OptionalKey(LogicalItem):
                token: Optional[str] = None

                class Meta(TableMeta):
                    table_name = "things"
                    partition_key = "token"

        assert 'token' in exc_info.value.errors

    def test_unmapped_field_type(self):
        with pytest.raises(ValidationError) as exc_info:
            class TupleField(LogicalItem):
                token: str
                position: Tuple[int, int]

                class Meta(TableMeta):
                    table_name = "things"
                    partition_key = "token"

        assert 'position' in exc_info.value.errors

    def test_set_of_booleans_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            class BoolSet(LogicalItem):
                token: str
                history: List[bool] = []
                flags: Set[bool] = set()

                class Meta(TableMeta):
                    table_name = "things"
                    partition_key = "token"

        assert list(exc_info.value.errors) == ['flags']

    def test_prefix_on_number_field(self):
        with pytest.raises(ValidationError) as exc_info:
            class PrefixedNumber(LogicalItem):
                token: str
                rank: int

                class Meta(TableMeta):
                    table_name = "things"
                    partition_key = "token"
                    attribute_prefixes = {"rank": "R_"}

        assert 'rank' in exc_info.value.errors

    def test_two_fields_one_attribute(self):
        with pytest.raises(ValidationError) as exc_info:
            class Clash(LogicalItem):
                token: str
                name: str

                class Meta(TableMeta):
                    table_name = "things"
                    partition_key = "token"
                    attribute_names = {"name": "token"}

        assert 'attribute_names' in exc_info.value.errors

    def test_meta_names_unknown_field(self):
        with pytest.raises(ValidationError) as exc_info:
            class UnknownRename(LogicalItem):
                token: str

                class Meta(TableMeta):
                    table_name = "things"
                    partition_key = "token"
                    attribute_names = {"nope": "x"}

        assert 'nope' in exc_info.value.errors

    def test_base_without_meta_is_unmapped(self):
        class Abstract(LogicalItem):
            token: str

        with pytest.raises(ValidationError, match="not a mapped"):
            schema_of(Abstract)


class TestKeySchema:

    def test_registered_descriptor(self):
        schema = schema_of(PlaylistInfoKey)

        assert isinstance(schema, KeySchema)
        assert schema.item_type is PlaylistInfo
        assert schema.table_name == "music_items"

    def test_item_type_must_be_mapped(self):
        with pytest.raises(ValidationError) as exc_info:
            class OrphanKey(LogicalKey):
                token: str

                class Meta(KeyMeta):
                    item_type = str

        assert 'item_type' in exc_info.value.errors

    def test_missing_key_field(self):
        with pytest.raises(ValidationError) as exc_info:
            class HalfKey(LogicalKey):
                album_token: str

                class Meta(KeyMeta):
                    item_type = AlbumTrack

        assert 'track_token' in exc_info.value.errors

    def test_extra_field(self):
        with pytest.raises(ValidationError) as exc_info:
            class WideKey(LogicalKey):
                album_token: str
                track_token: str
                track_title: str

                class Meta(KeyMeta):
                    item_type = AlbumTrack

        assert 'track_title' in exc_info.value.errors

    def test_type_differs_from_item(self):
        with pytest.raises(ValidationError) as exc_info:
            class NumericKey(LogicalKey):
                album_token: str
                track_token: int

                class Meta(KeyMeta):
                    item_type = AlbumTrack

        assert 'track_token' in exc_info.value.errors
