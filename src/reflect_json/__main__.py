from reflect_json.cli import app

app()
