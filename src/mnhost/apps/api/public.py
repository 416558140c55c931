# src/mnhost/apps/api/public.py
"""Unauthenticated explorer routes served from the best node of a chain."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from mnhost.services.agent_context import AppContext, get_ctx
from mnhost.services.errors import NoNodesForChainError, RpcError, UnknownChainError

router = APIRouter(tags=["public"])

# Explorer lookups report failures in-band rather than as HTTP errors.
_SOFT_ERRORS = (RpcError, NoNodesForChainError, UnknownChainError)


def _failed(exc: Exception):
    return {"ok": False, "error": str(exc) or "RPC unavailable"}


@router.get("/chains")
async def public_chains(ctx: AppContext = Depends(get_ctx)):
    return {"ok": True, "chains": [chain.as_dict() for chain in ctx.manager.list_chains()]}


@router.get("/{chain}/blockcount")
async def blockcount(chain: str, ctx: AppContext = Depends(get_ctx)):
    try:
        return {"ok": True, "block_count": await ctx.explorer.block_count(chain)}
    except _SOFT_ERRORS as exc:
        return _failed(exc)


@router.get("/{chain}/bestblockhash")
async def bestblockhash(chain: str, ctx: AppContext = Depends(get_ctx)):
    try:
        return {"ok": True, "best_block_hash": await ctx.explorer.best_block_hash(chain)}
    except _SOFT_ERRORS as exc:
        return _failed(exc)


@router.get("/{chain}/mempool")
async def mempool(chain: str, ctx: AppContext = Depends(get_ctx)):
    try:
        txids = await ctx.explorer.mempool(chain)
    except _SOFT_ERRORS as exc:
        return _failed(exc)
    return {"ok": True, "txids": txids, "count": len(txids)}


@router.get("/{chain}/block/{block_id}")
async def block(chain: str, block_id: str, ctx: AppContext = Depends(get_ctx)):
    try:
        return {"ok": True, "block": await ctx.explorer.block(chain, block_id)}
    except _SOFT_ERRORS as exc:
        return _failed(exc)


@router.get("/{chain}/tx/{txid}")
async def tx(chain: str, txid: str, ctx: AppContext = Depends(get_ctx)):
    try:
        return {"ok": True, "tx": await ctx.explorer.tx(chain, txid)}
    except _SOFT_ERRORS as exc:
        return _failed(exc)


@router.get("/{chain}/address/{address}")
async def address(chain: str, address: str, ctx: AppContext = Depends(get_ctx)):
    try:
        return {"ok": True, "address": await ctx.explorer.address(chain, address)}
    except _SOFT_ERRORS as exc:
        return _failed(exc)


@router.post("/{chain}/payments/new-address")
async def new_payment_address(chain: str, ctx: AppContext = Depends(get_ctx)):
    try:
        data = await ctx.explorer.create_payment_address(chain)
    except _SOFT_ERRORS as exc:
        return _failed(exc)
    return {"ok": True, **data}
