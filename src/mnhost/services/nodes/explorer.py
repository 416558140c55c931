# src/mnhost/services/nodes/explorer.py
"""Cross-node queries: best-node selection, explorer lookups, aggregated transactions.

Each node is queried on its own; one unreachable daemon never aborts the aggregate.
"""
from __future__ import annotations

import logging
from typing import Any

from mnhost.domain import NodeConfig
from mnhost.services.errors import NoNodesForChainError, RpcError

from .manager import NodeManager

_log = logging.getLogger("mnhost.nodes.explorer")


class ExplorerService:
    def __init__(self, manager: NodeManager) -> None:
        self.manager = manager

    async def best_node(self, chain_id: str) -> NodeConfig:
        """Node with the highest block count across all owners; first node if none answers."""

        nodes = await self.manager.store.list_nodes_for_chain(chain_id)
        if not nodes:
            raise NoNodesForChainError(chain_id)

        best, best_height = nodes[0], -1
        for node in nodes:
            try:
                height = int(await self.manager.call(node, "getblockcount"))
            except (RpcError, TypeError, ValueError) as exc:
                _log.debug("skipping node %s for %s best-node poll: %s", node.id, chain_id, exc)
                continue
            if height > best_height:
                best, best_height = node, height
        return best

    async def block_count(self, chain_id: str) -> int:
        node = await self.best_node(chain_id)
        return int(await self.manager.call(node, "getblockcount"))

    async def best_block_hash(self, chain_id: str) -> str:
        node = await self.best_node(chain_id)
        return await self.manager.call(node, "getbestblockhash")

    async def mempool(self, chain_id: str) -> list[str]:
        node = await self.best_node(chain_id)
        return await self.manager.call(node, "getrawmempool") or []

    async def block(self, chain_id: str, block_id: str) -> dict[str, Any]:
        """``block_id`` is a height or a block hash."""

        node = await self.best_node(chain_id)
        block_hash = block_id
        if block_id.isdigit():
            block_hash = await self.manager.call(node, "getblockhash", [int(block_id)])
        return await self.manager.call(node, "getblock", [block_hash, 2])

    async def tx(self, chain_id: str, txid: str) -> dict[str, Any]:
        node = await self.best_node(chain_id)
        return await self.manager.call(node, "getrawtransaction", [txid, True])

    async def address(self, chain_id: str, address: str) -> dict[str, Any]:
        node = await self.best_node(chain_id)
        received = await self.manager.call(node, "listreceivedbyaddress", [0, True, True]) or []
        entry = next((row for row in received if row.get("address") == address), {})
        return {
            "address": address,
            "amount": entry.get("amount", 0),
            "confirmations": entry.get("confirmations", 0),
            "txids": entry.get("txids", []),
        }

    async def create_payment_address(self, chain_id: str) -> dict[str, str]:
        node = await self.best_node(chain_id)
        address = await self.manager.call(node, "getnewaddress")
        priv_key = await self.manager.call(node, "dumpprivkey", [address])
        return {"address": address, "priv_key": priv_key}

    async def list_all_transactions(
        self, owner_id: int, search: str = "", per_node_limit: int = 200
    ) -> list[dict[str, Any]]:
        term = search.strip().lower()
        heights: dict[str, int] = {}
        results: list[dict[str, Any]] = []

        for node in await self.manager.list_nodes(owner_id):
            try:
                transactions = await self.manager.call(node, "listtransactions", ["*", int(per_node_limit), 0]) or []
            except RpcError as exc:
                _log.debug("node %s skipped in transaction listing: %s", node.id, exc)
                continue

            label = f"{node.chain}-{node.id}"
            for tx in transactions:
                block_hash = tx.get("blockhash")
                height = await self._block_height(node, block_hash, heights) if block_hash else None
                try:
                    amount = float(tx.get("amount") or 0)
                except (TypeError, ValueError):
                    amount = 0.0
                entry = {
                    "node_id": node.id,
                    "chain": node.chain,
                    "label": label,
                    "txid": tx.get("txid"),
                    "category": tx.get("category"),
                    "amount": amount,
                    "confirmations": tx.get("confirmations"),
                    "blockhash": block_hash,
                    "blockheight": height,
                    "time": tx.get("time"),
                    "address": tx.get("address"),
                }
                if term and term not in _haystack(entry):
                    continue
                results.append(entry)

        results.sort(key=lambda item: item.get("time") or 0, reverse=True)
        return results

    async def _block_height(self, node: NodeConfig, block_hash: str, cache: dict[str, int]) -> int | None:
        if block_hash in cache:
            return cache[block_hash]
        try:
            header = await self.manager.call(node, "getblockheader", [block_hash])
        except RpcError:
            return None
        height = header.get("height") if isinstance(header, dict) else None
        if height is not None:
            cache[block_hash] = int(height)
            return int(height)
        return None


def _haystack(entry: dict[str, Any]) -> str:
    parts = [
        entry.get("txid"),
        entry.get("address"),
        entry.get("category"),
        str(entry.get("amount")),
        "" if entry.get("blockheight") is None else str(entry["blockheight"]),
        entry.get("label"),
        entry.get("node_id"),
        entry.get("chain"),
    ]
    return " ".join(str(p) for p in parts if p).lower()
