# src/mnhost/apps/api/nodes.py
"""Owner-scoped node routes.

Lifecycle routes let errors reach the app-level handler; query routes report an
unreachable daemon as ``online: false`` / ``ok: false`` with HTTP 200.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from mnhost.apps.api.auth import require_user
from mnhost.domain import NodeCreateInput, UserRecord
from mnhost.services.agent_context import AppContext, get_ctx
from mnhost.services.errors import RpcError

_log = logging.getLogger("mnhost.api.nodes")

router = APIRouter(tags=["nodes"])


class NodeCreateReq(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    chain: str
    external_ip: str = Field(..., min_length=1)
    masternode_key: str = Field(..., min_length=1)
    p2p_port: Optional[int] = Field(default=None, ge=1, le=65535)
    rpc_port: Optional[int] = Field(default=None, ge=1, le=65535)
    snapshot_url: Optional[str] = None
    core_version: Optional[str] = None


class SendReq(BaseModel):
    address: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)


class ImportKeyReq(BaseModel):
    priv_key: str = Field(..., min_length=1)
    label: str = ""
    rescan: bool = False


class ExportKeyReq(BaseModel):
    address: str = Field(..., min_length=1)


class ExportAllReq(BaseModel):
    include_zero: bool = True


def _offline(exc: RpcError, **extra):
    return {"online": False, **extra, "error": str(exc)}


def _failed(exc: RpcError, **extra):
    return {"ok": False, **extra, "error": str(exc)}


# --- chains / aggregate ---

@router.get("/chains")
async def list_chains(user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    return [chain.as_dict() for chain in ctx.manager.list_chains()]


@router.get("/transactions")
async def list_all_transactions(
    search: str = "",
    user: UserRecord = Depends(require_user),
    ctx: AppContext = Depends(get_ctx),
):
    return {"items": await ctx.explorer.list_all_transactions(user.id, search)}


# --- node records ---

@router.get("/nodes")
async def list_nodes(user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    return [node.public_view() for node in await ctx.manager.list_nodes(user.id)]


@router.post("/nodes")
async def create_node(body: NodeCreateReq, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    node = await ctx.manager.create_node(user.id, NodeCreateInput(**body.model_dump()))
    try:
        status = await ctx.wallet.get_blockchain_info(user.id, node.id)
    except RpcError:
        status = None
    return {"ok": True, "node": node.public_view(), "status": status}


@router.get("/nodes/{node_id}")
async def get_node(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    node = await ctx.manager.get_node(user.id, node_id)
    return node.public_view()


@router.get("/nodes/{node_id}/secrets")
async def get_node_secrets(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    node = await ctx.manager.get_node(user.id, node_id)
    _log.info("secrets revealed for node %s to user %s", node.id, user.username)
    return node.reveal_secrets()


@router.delete("/nodes/{node_id}")
async def delete_node(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    await ctx.manager.delete_node(user.id, node_id)
    return {"ok": True}


# --- lifecycle ---

@router.post("/nodes/{node_id}/start")
async def start_node(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    await ctx.manager.start(user.id, node_id)
    return {"ok": True}


@router.post("/nodes/{node_id}/stop")
async def stop_node(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    await ctx.manager.stop(user.id, node_id)
    return {"ok": True}


@router.post("/nodes/{node_id}/restart")
async def restart_node(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    await ctx.manager.restart(user.id, node_id)
    return {"ok": True}


@router.post("/nodes/{node_id}/resync")
async def resync_node(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    await ctx.manager.resync(user.id, node_id)
    return {"ok": True}


@router.get("/nodes/{node_id}/update-check")
async def update_check(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    return await ctx.manager.check_for_update(user.id, node_id)


@router.post("/nodes/{node_id}/update")
async def update_node(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    version = await ctx.manager.update_node_core(user.id, node_id)
    return {"ok": True, "core_version": version}


# --- queries ---

@router.get("/nodes/{node_id}/status")
async def node_status(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    return await ctx.wallet.node_status(user.id, node_id)


@router.get("/nodes/{node_id}/balance")
async def node_balance(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    try:
        return {"online": True, "balance": await ctx.wallet.get_balance(user.id, node_id)}
    except RpcError as exc:
        return _offline(exc, balance=0)


@router.get("/nodes/{node_id}/transactions")
async def node_transactions(
    node_id: str,
    count: int = Query(25, ge=1, le=1000),
    skip: int = Query(0, ge=0),
    user: UserRecord = Depends(require_user),
    ctx: AppContext = Depends(get_ctx),
):
    try:
        transactions = await ctx.wallet.list_transactions(user.id, node_id, count, skip)
    except RpcError as exc:
        return _offline(exc, transactions=[], count=count, skip=skip)
    return {"online": True, "transactions": transactions, "count": count, "skip": skip}


@router.get("/nodes/{node_id}/peers")
async def node_peers(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    try:
        return {"online": True, "peers": await ctx.wallet.get_peer_info(user.id, node_id)}
    except RpcError as exc:
        return _offline(exc, peers=[])


@router.get("/nodes/{node_id}/deposit")
async def node_deposit(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    try:
        return {"ok": True, "address": await ctx.wallet.get_new_address(user.id, node_id)}
    except RpcError as exc:
        return _failed(exc)


@router.post("/nodes/{node_id}/send")
async def node_send(node_id: str, body: SendReq, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    try:
        return {"ok": True, "txid": await ctx.wallet.send_to_address(user.id, node_id, body.address, body.amount)}
    except RpcError as exc:
        return _failed(exc)


@router.post("/nodes/{node_id}/import-key")
async def node_import_key(
    node_id: str, body: ImportKeyReq, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)
):
    try:
        await ctx.wallet.import_priv_key(user.id, node_id, body.priv_key, body.label, body.rescan)
    except RpcError as exc:
        return _failed(exc)
    return {"ok": True}


@router.post("/nodes/{node_id}/export-key")
async def node_export_key(
    node_id: str, body: ExportKeyReq, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)
):
    try:
        return {"ok": True, "priv_key": await ctx.wallet.dump_priv_key(user.id, node_id, body.address)}
    except RpcError as exc:
        return _failed(exc)


@router.post("/nodes/{node_id}/export-all-keys")
async def node_export_all_keys(
    node_id: str,
    body: Optional[ExportAllReq] = None,
    user: UserRecord = Depends(require_user),
    ctx: AppContext = Depends(get_ctx),
):
    include_zero = True if body is None else body.include_zero
    try:
        return {"ok": True, "keys": await ctx.wallet.export_all_keys(user.id, node_id, include_zero)}
    except RpcError as exc:
        return _failed(exc, keys=[])


@router.get("/nodes/{node_id}/masternode")
async def node_masternode_status(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    try:
        return {"online": True, "status": await ctx.wallet.get_masternode_status(user.id, node_id)}
    except RpcError as exc:
        return _offline(exc, status=None)


@router.post("/nodes/{node_id}/masternode/start")
async def node_masternode_start(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    try:
        return {"ok": True, "result": await ctx.wallet.start_masternode(user.id, node_id)}
    except RpcError as exc:
        return _failed(exc)


@router.get("/nodes/{node_id}/staking")
async def node_staking(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    try:
        return {
            "online": True,
            "status": await ctx.wallet.get_staking_status(user.id, node_id),
            "cold_balance": await ctx.wallet.get_cold_staking_balance(user.id, node_id),
            "cold_utxos": await ctx.wallet.list_cold_utxos(user.id, node_id),
        }
    except RpcError as exc:
        return _offline(exc)


@router.post("/nodes/{node_id}/staking/address")
async def node_staking_address(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    try:
        return {"ok": True, "address": await ctx.wallet.get_new_staking_address(user.id, node_id)}
    except RpcError as exc:
        return _failed(exc)


@router.post("/nodes/{node_id}/staking/whitelist")
async def node_staking_whitelist(node_id: str, user: UserRecord = Depends(require_user), ctx: AppContext = Depends(get_ctx)):
    try:
        return {"ok": True, "added": await ctx.wallet.whitelist_cold_staking_delegators(user.id, node_id)}
    except RpcError as exc:
        return _failed(exc, added=0)
