# src/mnhost/apps/cli/commands/user.py
from __future__ import annotations

import typer

from mnhost.apps.cli.runtime import run

app = typer.Typer(help="Dashboard accounts")


@app.command("add")
def add(
    username: str = typer.Argument(...),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Create an account that owns nodes."""

    user = run(lambda ctx: ctx.auth.register(username, password))
    typer.secho(f"user {user.username} created (id={user.id})", fg=typer.colors.GREEN)
