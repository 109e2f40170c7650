"""Tests for the text format rendering."""

from reflect_json import decode, decode_json, to_text


def test_person(person, data_dir):
    decode_json((data_dir / "person.json").read_bytes(), person)

    assert to_text(person) == (
        'name: "John Doe"\n'
        "id: 1234\n"
        'email: "jdoe@example.com"\n'
        "phone {\n"
        '  number: "555-4321"\n'
        "  type: HOME\n"
        "}\n"
        "phone {\n"
        '  number: "555-1234"\n'
        "  type: MOBILE\n"
        "}\n"
    )


def test_empty_message(record):
    assert to_text(record) == ""


def test_only_set_fields_are_rendered(contact):
    contact["email"] = "a@b.c"
    assert to_text(contact) == 'email: "a@b.c"\n'


def test_scalar_formatting(record):
    decode(
        {
            "d": 1,
            "flag": False,
            "text": 'tab\tquote"',
            "status": 2,
            "counts": [1, 2],
            "address": {},
        },
        record,
    )
    record["blob"] = b"\x00ab"

    assert to_text(record).splitlines() == [
        "d: 1.0",
        "flag: false",
        'text: "tab\\tquote\\""',
        "address {",
        "}",
        "status: SUSPENDED",
        "counts: 1",
        "counts: 2",
        'blob: "\\000ab"',
    ]
