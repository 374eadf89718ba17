"""
Tests for the logical_db exception hierarchy and its context details.
"""

from logical_db.exceptions import (
    ConflictError,
    LogicalDbError,
    SchemaMismatch,
    TransactionCanceled,
    TypeMismatch,
    ValidationError,
)


class TestLogicalDbError:

    def test_message_only(self):
        error = LogicalDbError("boom")

        assert str(error) == "boom"
        assert error.context == {}
        assert error.original_error is None

    def test_missing_context_values_are_dropped(self):
        error = LogicalDbError("boom", context={"table": "music_items", "attribute": None, "reasons": []})

        assert error.context == {"table": "music_items"}
        assert str(error) == "boom (Context: table=music_items)"

    def test_add_context_merges(self):
        cause = KeyError("x")
        error = LogicalDbError("boom", cause, {"table": "music_items"})

        assert error.add_context(item_type="AlbumTrack", attribute=None) is error
        assert error.context == {"table": "music_items", "item_type": "AlbumTrack"}
        assert error.original_error is cause

    def test_repr_names_subclass(self):
        assert repr(ConflictError("taken", resource_id="L_1")) == (
            "ConflictError('taken', context={'resource_id': 'L_1'})"
        )


class TestDomainErrors:

    def test_schema_mismatch_context(self):
        error = SchemaMismatch("missing", item_type="PlaylistInfo")

        assert error.context == {"item_type": "PlaylistInfo"}
        assert error.attribute is None

    def test_type_mismatch_context(self):
        error = TypeMismatch("wrong", item_type="PlaylistInfo", attribute="playlist_size", expected="N", actual="S")

        assert isinstance(error, SchemaMismatch)
        assert error.context == {
            "item_type": "PlaylistInfo",
            "attribute": "playlist_size",
            "expected": "N",
            "actual": "S",
        }

    def test_validation_error_without_errors(self):
        error = ValidationError("bad")

        assert error.errors == {}
        assert str(error) == "bad"

    def test_transaction_canceled_keeps_reasons(self):
        error = TransactionCanceled("canceled", reasons=["ConditionalCheckFailed", None])

        assert error.context == {"reasons": ["ConditionalCheckFailed", None]}
