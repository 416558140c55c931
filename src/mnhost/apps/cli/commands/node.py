# src/mnhost/apps/cli/commands/node.py
from __future__ import annotations

from typing import Optional

import typer

from mnhost.apps.cli.runtime import echo_json, resolve_user, run
from mnhost.domain import NodeCreateInput

app = typer.Typer(help="Masternode lifecycle")

_USER = typer.Option(..., "--user", "-u", help="Owner username")


@app.command("list")
def list_nodes(user: str = _USER, as_json: bool = typer.Option(False, "--json")):
    async def _op(ctx):
        owner = await resolve_user(ctx, user)
        return await ctx.manager.list_nodes(owner.id)

    nodes = run(_op)
    if as_json:
        echo_json([node.public_view() for node in nodes])
        return
    if not nodes:
        typer.echo("no nodes")
        return
    for node in nodes:
        typer.echo(f"{node.id:<20} {node.chain:<10} core={node.core_version or '-':<8} p2p={node.p2p_port} rpc={node.rpc_port}")


@app.command("create")
def create(
    node_id: str = typer.Argument(..., help="Node id, unique on this host"),
    chain: str = typer.Option(..., "--chain", "-c"),
    external_ip: str = typer.Option(..., "--external-ip"),
    masternode_key: str = typer.Option(..., "--masternode-key", prompt=True, hide_input=True),
    p2p_port: Optional[int] = typer.Option(None, "--p2p-port"),
    rpc_port: Optional[int] = typer.Option(None, "--rpc-port"),
    snapshot_url: Optional[str] = typer.Option(None, "--snapshot-url"),
    core_version: Optional[str] = typer.Option(None, "--core-version"),
    user: str = _USER,
):
    """Install the core if needed, configure, start and wait for RPC."""

    data = NodeCreateInput(
        id=node_id,
        chain=chain,
        external_ip=external_ip,
        masternode_key=masternode_key,
        p2p_port=p2p_port,
        rpc_port=rpc_port,
        snapshot_url=snapshot_url,
        core_version=core_version,
    )

    async def _op(ctx):
        owner = await resolve_user(ctx, user)
        return await ctx.manager.create_node(owner.id, data)

    node = run(_op)
    typer.secho(
        f"node {node.id} created: {node.chain} core {node.core_version}, p2p {node.p2p_port}, rpc {node.rpc_port}",
        fg=typer.colors.GREEN,
    )


def _lifecycle(action: str, node_id: str, user: str) -> None:
    async def _op(ctx):
        owner = await resolve_user(ctx, user)
        await getattr(ctx.manager, action)(owner.id, node_id)

    run(_op)
    typer.echo(f"{action}: {node_id} ok")


@app.command("start")
def start(node_id: str, user: str = _USER):
    _lifecycle("start", node_id, user)


@app.command("stop")
def stop(node_id: str, user: str = _USER):
    _lifecycle("stop", node_id, user)


@app.command("restart")
def restart(node_id: str, user: str = _USER):
    _lifecycle("restart", node_id, user)


@app.command("resync")
def resync(node_id: str, user: str = _USER, yes: bool = typer.Option(False, "--yes", "-y")):
    """Wipe blocks and chain state, then sync from the network."""
    if not yes:
        typer.confirm(f"Delete chain data of {node_id}?", abort=True)
    _lifecycle("resync", node_id, user)


@app.command("delete")
def delete(node_id: str, user: str = _USER, yes: bool = typer.Option(False, "--yes", "-y")):
    if not yes:
        typer.confirm(f"Delete node {node_id} and its data directory?", abort=True)
    _lifecycle("delete_node", node_id, user)


@app.command("status")
def status(node_id: str, user: str = _USER):
    async def _op(ctx):
        owner = await resolve_user(ctx, user)
        return await ctx.wallet.node_status(owner.id, node_id)

    echo_json(run(_op))


@app.command("check-update")
def check_update(node_id: str, user: str = _USER):
    async def _op(ctx):
        owner = await resolve_user(ctx, user)
        return await ctx.manager.check_for_update(owner.id, node_id)

    echo_json(run(_op))


@app.command("update")
def update(node_id: str, user: str = _USER):
    """Install the latest core release and restart the node on it."""

    async def _op(ctx):
        owner = await resolve_user(ctx, user)
        return await ctx.manager.update_node_core(owner.id, node_id)

    version = run(_op)
    typer.secho(f"{node_id} now runs core {version}", fg=typer.colors.GREEN)
