from autojoin.apps.cli.app import app

app()
