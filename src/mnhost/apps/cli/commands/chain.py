# src/mnhost/apps/cli/commands/chain.py
from __future__ import annotations

import typer

from mnhost.apps.cli.runtime import echo_json
from mnhost.services.agent_context import get_ctx
from mnhost.services.errors import MnHostError

app = typer.Typer(help="Supported chains and core releases")


@app.command("list")
def list_chains(as_json: bool = typer.Option(False, "--json")):
    chains = get_ctx().chains
    if as_json:
        echo_json([chain.as_dict() for chain in chains])
        return
    for chain in chains:
        versions = ", ".join(chain.versions()) or "-"
        typer.echo(f"{chain.id:<10} {chain.name:<12} p2p={chain.default_ports.p2p} rpc={chain.default_ports.rpc} versions: {versions}")


@app.command("latest")
def latest(chain_id: str = typer.Argument(..., help="Chain id, e.g. pivx")):
    try:
        typer.echo(get_ctx().chains.latest_version(chain_id))
    except MnHostError as exc:
        typer.secho(f"error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc
