from mnhost.apps.cli.app import app

app()
