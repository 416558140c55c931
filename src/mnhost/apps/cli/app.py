# src/mnhost/apps/cli/app.py
from __future__ import annotations

import logging
import os
from typing import Optional

import typer

from mnhost import __version__
from mnhost.apps.cli.commands import api, chain, node, user
from mnhost.services.agent_context import init_ctx
from mnhost.services.errors import SettingsError
from mnhost.services.logging import setup_logging
from mnhost.services.settings import Settings

app = typer.Typer(help="mnhost: masternode hosting daemon manager", no_args_is_help=True)
app.add_typer(api.app, name="api")
app.add_typer(chain.app, name="chain")
app.add_typer(node.app, name="node")
app.add_typer(user.app, name="user")


def _version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    base_dir: Optional[str] = typer.Option(None, "--base-dir", envvar="MNHOST_BASE_DIR", help="Data root"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    version: bool = typer.Option(False, "--version", callback=_version, is_eager=True),
):
    env = dict(os.environ)
    if base_dir:
        env["MNHOST_BASE_DIR"] = base_dir
    try:
        settings = Settings.from_sources(env)
    except SettingsError as exc:
        typer.secho(f"error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc
    if verbose:
        settings = settings.with_overrides(log_level="DEBUG")
    ctx = init_ctx(settings)
    setup_logging(ctx.settings, ctx.paths)
    logging.getLogger("mnhost.cli").debug("base dir %s", ctx.paths.base_dir())


if __name__ == "__main__":
    app()
