"""Tests for DynamicMessage and its reflection interface."""

import math
import struct

import pytest
from reflect_json import DynamicMessage


def _field(message, name):
    return message.descriptor.find_field_by_name(name)


class TestDefaults:
    def test_unset_scalars_read_as_zero(self, record):
        assert record["d"] == 0.0
        assert record["count"] == 0
        assert record["flag"] is False
        assert record["text"] == ""
        assert record["tags"] == []

    def test_unset_enum_reads_first_value(self, record):
        assert record["status"].name == "UNKNOWN"

    def test_schema_default(self, addressbook):
        phone = addressbook.new_message("addressbook.Person.PhoneNumber")
        assert phone["type"].name == "HOME"
        assert "type" not in phone

    def test_unset_message_is_not_stored(self, record):
        nested = record["address"]
        assert isinstance(nested, DynamicMessage)
        assert "address" not in record


class TestReflection:
    def test_has_field_tracks_presence(self, record):
        reflection = record.reflection
        field = _field(record, "count")

        assert not reflection.has_field(record, field)
        reflection.set(record, field, 0)
        assert reflection.has_field(record, field)

    def test_float_is_single_precision(self, record):
        record["f"] = 0.1
        expected = struct.unpack("<f", struct.pack("<f", 0.1))[0]
        assert record["f"] == expected
        assert record["f"] != 0.1

    def test_float_overflow_saturates(self, record):
        record["f"] = -1e300
        assert record["f"] == -math.inf

    def test_repeated_accessors(self, record):
        reflection = record.reflection
        field = _field(record, "counts")

        reflection.add(record, field, 5)
        reflection.add(record, field, 6)

        assert reflection.field_size(record, field) == 2
        assert reflection.get_repeated(record, field, 1) == 6
        assert reflection.get(record, field) == [5, 6]

    def test_get_returns_copy_of_repeated(self, record):
        record["tags"] = ["a"]
        record["tags"].append("b")
        assert record["tags"] == ["a"]

    def test_mutable_message_creates_once(self, record):
        reflection = record.reflection
        field = _field(record, "address")

        first = reflection.mutable_message(record, field)
        first["street"] = "Main"
        second = reflection.mutable_message(record, field)

        assert first is second
        assert reflection.has_field(record, field)
        assert record["address"]["street"] == "Main"

    def test_add_message(self, record):
        field = _field(record, "addresses")
        nested = record.reflection.add_message(record, field)
        nested["number"] = 3

        assert record.reflection.field_size(record, field) == 1
        assert record["addresses"][0]["number"] == 3

    def test_set_on_repeated_field_fails(self, record):
        with pytest.raises(TypeError):
            record.reflection.set(record, _field(record, "tags"), "a")

    def test_add_on_singular_field_fails(self, record):
        with pytest.raises(TypeError):
            record.reflection.add(record, _field(record, "text"), "a")

    def test_enum_requires_value_descriptor(self, record):
        with pytest.raises(TypeError):
            record["status"] = 1

    def test_message_requires_matching_type(self, record, contact):
        with pytest.raises(TypeError):
            record["address"] = contact

    def test_foreign_field_is_rejected(self, record, contact):
        with pytest.raises(KeyError):
            record.reflection.get(record, _field(contact, "name"))

    def test_unknown_field_name(self, record):
        with pytest.raises(KeyError):
            record["bogus"]


class TestEquality:
    def test_equal_values(self, pool):
        a = pool.new_message("test.Record")
        b = pool.new_message("test.Record")
        for msg in (a, b):
            msg["text"] = "x"
            msg["counts"] = [1, 2]
            msg.reflection.mutable_message(msg, _field(msg, "address"))["street"] = "s"
        assert a == b

    def test_presence_matters(self, pool):
        a = pool.new_message("test.Record")
        b = pool.new_message("test.Record")
        a["count"] = 0
        assert a != b

    def test_repeated_order_matters(self, pool):
        a = pool.new_message("test.Record")
        b = pool.new_message("test.Record")
        a["counts"] = [1, 2]
        b["counts"] = [2, 1]
        assert a != b

    def test_different_types_are_not_equal(self, record, contact):
        assert record != contact

    def test_clear(self, record, pool):
        record["text"] = "x"
        record.clear()
        assert record == pool.new_message("test.Record")
