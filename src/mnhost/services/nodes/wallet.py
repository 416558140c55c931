# src/mnhost/services/nodes/wallet.py
"""Per-node RPC pass-through: wallet, masternode and cold-staking helpers."""
from __future__ import annotations

import logging
from typing import Any

from mnhost.domain import NodeConfig
from mnhost.services.errors import RpcError

from .manager import NodeManager

_log = logging.getLogger("mnhost.nodes.wallet")


def _is_true(value: Any) -> bool:
    return value is True or (isinstance(value, str) and value.strip().lower() == "true")


class WalletService:
    """Thin RPC helpers resolved per ``(owner, node)``. Errors propagate as :class:`RpcError`."""

    def __init__(self, manager: NodeManager) -> None:
        self.manager = manager

    async def _node(self, owner_id: int, node_id: str) -> NodeConfig:
        return await self.manager.get_node(owner_id, node_id)

    async def _call(self, owner_id: int, node_id: str, method: str, params: list[Any] | None = None) -> Any:
        node = await self._node(owner_id, node_id)
        return await self.manager.call(node, method, params)

    # ------------------------------------------------------------------ status
    async def get_block_count(self, owner_id: int, node_id: str) -> int:
        return await self.manager.get_block_count(await self._node(owner_id, node_id))

    async def get_blockchain_info(self, owner_id: int, node_id: str) -> dict[str, Any]:
        return await self._call(owner_id, node_id, "getblockchaininfo")

    async def node_status(self, owner_id: int, node_id: str) -> dict[str, Any]:
        """Structured status; an unreachable daemon is reported as ``online: False``, not raised."""

        node = await self._node(owner_id, node_id)
        try:
            block_count = await self.manager.get_block_count(node)
            info = await self.manager.call(node, "getblockchaininfo") or {}
        except RpcError as exc:
            return {"online": False, "error": str(exc)}
        return {
            "online": True,
            "block_count": block_count,
            "verification_progress": info.get("verificationprogress"),
            "headers": info.get("headers"),
            "blocks": info.get("blocks"),
            "chain": info.get("chain"),
        }

    async def get_peer_info(self, owner_id: int, node_id: str) -> list[dict[str, Any]]:
        return await self._call(owner_id, node_id, "getpeerinfo") or []

    # ------------------------------------------------------------------ wallet
    async def get_balance(self, owner_id: int, node_id: str) -> float:
        return float(await self._call(owner_id, node_id, "getbalance") or 0)

    async def list_transactions(self, owner_id: int, node_id: str, count: int = 25, skip: int = 0) -> list[dict[str, Any]]:
        return await self._call(owner_id, node_id, "listtransactions", ["*", int(count), int(skip)]) or []

    async def send_to_address(self, owner_id: int, node_id: str, address: str, amount: float) -> str:
        _log.info("node %s sending %s to %s", node_id, amount, address)
        return await self._call(owner_id, node_id, "sendtoaddress", [address, amount])

    async def get_new_address(self, owner_id: int, node_id: str) -> str:
        return await self._call(owner_id, node_id, "getnewaddress")

    async def import_priv_key(
        self, owner_id: int, node_id: str, priv_key: str, label: str = "", rescan: bool = False
    ) -> None:
        await self._call(owner_id, node_id, "importprivkey", [priv_key, label, bool(rescan)])

    async def dump_priv_key(self, owner_id: int, node_id: str, address: str) -> str:
        return await self._call(owner_id, node_id, "dumpprivkey", [address])

    async def export_all_keys(self, owner_id: int, node_id: str, include_zero: bool = True) -> list[dict[str, Any]]:
        node = await self._node(owner_id, node_id)
        rows = await self.manager.call(node, "listreceivedbyaddress", [0, True]) or []
        results: list[dict[str, Any]] = []
        for row in rows:
            try:
                balance = float(row.get("amount") or 0)
            except (TypeError, ValueError):
                balance = 0.0
            if not include_zero and balance <= 0:
                continue
            address = row.get("address")
            priv_key = await self.manager.call(node, "dumpprivkey", [address])
            results.append({"address": address, "balance": balance, "priv_key": priv_key, "has_balance": balance > 0})
        return results

    # ------------------------------------------------------------------ masternode
    async def get_masternode_status(self, owner_id: int, node_id: str) -> Any:
        node = await self._node(owner_id, node_id)
        alias = self.manager.get_chain(node.chain).rpc.masternode_status
        if alias:
            return await self.manager.rpc.call_alias(node, alias)
        return await self.manager.call(node, "getmasternodestatus")

    async def start_masternode(self, owner_id: int, node_id: str) -> Any:
        return await self._call(owner_id, node_id, "startmasternode", ["local", False])

    # ------------------------------------------------------------------ cold staking
    async def get_cold_staking_balance(self, owner_id: int, node_id: str) -> Any:
        return await self._call(owner_id, node_id, "getcoldstakingbalance")

    async def get_new_staking_address(self, owner_id: int, node_id: str) -> str:
        return await self._call(owner_id, node_id, "getnewstakingaddress")

    async def get_staking_status(self, owner_id: int, node_id: str) -> Any:
        return await self._call(owner_id, node_id, "getstakingstatus")

    async def list_cold_utxos(self, owner_id: int, node_id: str) -> list[dict[str, Any]]:
        return await self._call(owner_id, node_id, "listcoldutxos") or []

    async def whitelist_cold_staking_delegators(self, owner_id: int, node_id: str) -> int:
        node = await self._node(owner_id, node_id)
        return await self.whitelist_delegators_for_node(node)

    async def whitelist_delegators_for_node(self, node: NodeConfig) -> int:
        """Approve every delegator of a not-yet-whitelisted cold UTXO; returns how many were added."""

        added = 0
        for stake in await self.manager.call(node, "listcoldutxos") or []:
            if _is_true(stake.get("whitelisted")):
                continue
            owner = stake.get("coin-owner")
            if owner:
                await self.manager.call(node, "delegatoradd", [owner])
                added += 1
        if added:
            _log.info("node %s whitelisted %d cold-staking delegators", node.id, added)
        return added
