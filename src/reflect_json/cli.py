"""Main CLI entry point for reflect-json using Cyclopts."""

from cyclopts import App

from reflect_json.cmd import check_cmd, describe_cmd, roundtrip_cmd

app = App(
    name="reflect-json",
    help="Convert between schema-described records and JSON.",
    help_format="rich",
)


# Register all commands
app.command(name="check")(check_cmd.check)
app.command(name="roundtrip")(roundtrip_cmd.roundtrip)
app.command(name="describe")(describe_cmd.describe)


if __name__ == "__main__":
    app()
