"""Tests for descriptor data structures."""

import pytest
from reflect_json import (
    Descriptor,
    EnumDescriptor,
    EnumValueDescriptor,
    FieldDescriptor,
    FieldKind,
    Label,
)


def test_fields_keep_declaration_order():
    descriptor = Descriptor(
        "pkg.Point",
        [
            FieldDescriptor("y", 2, FieldKind.DOUBLE),
            FieldDescriptor("x", 1, FieldKind.DOUBLE),
        ],
    )
    assert [f.name for f in descriptor.fields] == ["y", "x"]
    assert descriptor.name == "Point"


def test_find_field_by_name():
    x = FieldDescriptor("x", 1, FieldKind.INT32, Label.REQUIRED)
    descriptor = Descriptor("pkg.Point", [x])

    assert descriptor.find_field_by_name("x") is x
    assert descriptor.find_field_by_name("z") is None
    assert x.containing_type is descriptor
    assert x.full_name == "pkg.Point.x"
    assert x.is_required
    assert not x.is_repeated


def test_duplicate_field_name():
    with pytest.raises(ValueError, match="Duplicate field 'x'"):
        Descriptor(
            "pkg.Point",
            [
                FieldDescriptor("x", 1, FieldKind.INT32),
                FieldDescriptor("x", 2, FieldKind.INT32),
            ],
        )


def test_field_belongs_to_one_descriptor():
    x = FieldDescriptor("x", 1, FieldKind.INT32)
    Descriptor("pkg.A", [x])
    with pytest.raises(ValueError, match="already belongs to message pkg.A"):
        Descriptor("pkg.B", [x])


class TestEnumDescriptor:
    def test_lookup(self):
        enum = EnumDescriptor(
            "pkg.Color",
            [EnumValueDescriptor("RED", 0), EnumValueDescriptor("GREEN", 1)],
        )
        assert enum.name == "Color"
        assert enum.find_value_by_name("GREEN") == EnumValueDescriptor("GREEN", 1)
        assert enum.find_value_by_number(0).name == "RED"
        assert enum.find_value_by_name("BLUE") is None
        assert enum.find_value_by_number(5) is None
        assert enum.default_value.name == "RED"

    def test_alias_resolves_to_first_value(self):
        enum = EnumDescriptor(
            "pkg.State",
            [
                EnumValueDescriptor("STARTED", 1),
                EnumValueDescriptor("RUNNING", 1),
            ],
        )
        assert enum.find_value_by_number(1).name == "STARTED"
        assert enum.find_value_by_name("RUNNING").number == 1
