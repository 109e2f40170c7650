"""E2E tests for the CLI commands."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from reflect_json.cmd.check_cmd import check
from reflect_json.cmd.describe_cmd import describe
from reflect_json.cmd.roundtrip_cmd import roundtrip


def call_expect_failure(func: Callable, *args, **kwargs) -> int:
    """Call a command expecting failure, return exit code."""
    try:
        func(*args, **kwargs)
    except SystemExit as exc:
        return exc.code
    else:
        return 0  # No exception = success


@pytest.fixture
def schema_file(data_dir: Path) -> str:
    return str(data_dir / "addressbook.proto")


@pytest.fixture
def person_file(data_dir: Path) -> str:
    return str(data_dir / "person.json")


@pytest.mark.e2e
class TestCheck:
    def test_valid_file(self, schema_file, person_file, capsys):
        check(schema_file, person_file)

        captured = capsys.readouterr()
        assert "OK" in captured.out
        assert "addressbook.Person" in captured.out

    def test_invalid_file_reports_path(self, schema_file, data_dir, capsys):
        code = call_expect_failure(check, schema_file, str(data_dir / "person_invalid.json"))

        assert code == 1
        captured = capsys.readouterr()
        assert "/phone[1]/number: Expected string" in captured.err

    def test_wrong_message_type(self, schema_file, person_file, capsys):
        code = call_expect_failure(
            check, schema_file, person_file, message_type="addressbook.AddressBook"
        )

        assert code == 1
        assert 'No field "name" in message addressbook.AddressBook' in capsys.readouterr().err

    def test_unknown_message_type(self, schema_file, person_file, capsys):
        code = call_expect_failure(check, schema_file, person_file, message_type="nope.Nope")

        assert code == 1
        assert "nope.Nope not found" in capsys.readouterr().err

    def test_invalid_json(self, schema_file, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("{")

        assert call_expect_failure(check, schema_file, str(bad)) == 1
        assert "Parse error" in capsys.readouterr().err

    def test_missing_schema(self, tmp_path, person_file, capsys):
        code = call_expect_failure(check, str(tmp_path / "missing.proto"), person_file)

        assert code == 1
        assert "Cannot read schema" in capsys.readouterr().err

    def test_invalid_schema(self, tmp_path, person_file, capsys):
        schema = tmp_path / "bad.proto"
        schema.write_text("message M { oneof x { int32 a = 1; } }")

        assert call_expect_failure(check, str(schema), person_file) == 1
        assert "Invalid schema" in capsys.readouterr().err


@pytest.mark.e2e
class TestRoundtrip:
    def test_text_and_json_output(self, schema_file, person_file, capsys):
        roundtrip(schema_file, person_file)

        out = capsys.readouterr().out
        assert 'name: "John Doe"' in out
        assert "type: HOME" in out
        assert '"email": "jdoe@example.com"' in out

    def test_json_only(self, schema_file, person_file, capsys):
        roundtrip(schema_file, person_file, json_only=True)

        data = json.loads(capsys.readouterr().out)
        assert data == {
            "name": "John Doe",
            "id": 1234,
            "email": "jdoe@example.com",
            "phone": [
                {"number": "555-4321", "type": 1},
                {"number": "555-1234", "type": 0},
            ],
        }


@pytest.mark.e2e
class TestDescribe:
    def test_all_types(self, schema_file, capsys):
        describe(schema_file)

        out = capsys.readouterr().out
        assert "addressbook.Person" in out
        assert "addressbook.Person.PhoneNumber" in out
        assert "addressbook.AddressBook" in out

    def test_single_type(self, schema_file, capsys):
        describe(schema_file, message_type="addressbook.Person.PhoneNumber")

        out = capsys.readouterr().out
        assert "number" in out
        assert "'HOME'" in out
        assert "addressbook.AddressBook" not in out

    def test_unknown_type(self, schema_file, capsys):
        assert call_expect_failure(describe, schema_file, message_type="x.Y") == 1


@pytest.mark.e2e
class TestUntrustedText:
    """Record values and schema defaults are printed verbatim, never as markup."""

    @pytest.mark.parametrize("name", ["[/bold] x", "[red]Alice"])
    def test_roundtrip_prints_brackets(self, schema_file, tmp_path, capsys, name):
        json_file = tmp_path / "person.json"
        json_file.write_text(json.dumps({"name": name, "id": 1}))

        roundtrip(schema_file, str(json_file))

        out = capsys.readouterr().out
        assert f'name: "{name}"' in out

    def test_describe_prints_brackets_in_defaults(self, tmp_path, capsys):
        schema = tmp_path / "markup.proto"
        schema.write_text('message M { optional string s = 1 [default = "[/bold]"]; }')

        describe(str(schema))

        assert "'[/bold]'" in capsys.readouterr().out

    def test_roundtrip_non_finite_value(self, tmp_path, capsys):
        schema = tmp_path / "inf.proto"
        schema.write_text("message M { required double d = 1 [default = inf]; }")
        json_file = tmp_path / "empty.json"
        json_file.write_text("{}")

        code = call_expect_failure(roundtrip, str(schema), str(json_file), json_only=True)

        assert code == 1
        assert "Cannot encode" in capsys.readouterr().err
