# src/mnhost/services/nodes/manager.py
"""Node lifecycle orchestration.

The manager owns the one-node-per-chain rule, host-wide port allocation and the
create -> install -> configure -> snapshot -> persist -> start -> await-ready
pipeline. Node state is never stored: a node is "ready" when its daemon answers RPC.
"""
from __future__ import annotations

import asyncio
import logging
import os
import re
import secrets
import shutil
import stat
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Sequence

from mnhost.adapters.db import SqliteNodeStore
from mnhost.adapters.fs.path_provider import PathProvider
from mnhost.config import const
from mnhost.domain import ChainPlugin, NodeConfig, NodeCreateInput
from mnhost.services.chains import ChainRegistry
from mnhost.services.core.config_writer import write_config
from mnhost.services.core.installer import ArtifactInstaller
from mnhost.services.core.process import start_daemon
from mnhost.services.core.rpc import RpcClient
from mnhost.services.core.snapshot import SnapshotApplier
from mnhost.services.errors import (
    ChainConflictError,
    DaemonNotFoundError,
    MnHostError,
    NodeIdConflictError,
    RpcError,
    RpcTransportError,
)
from mnhost.services.settings import Settings

from .locks import KeyedLocks
from .ports import allocate_ports

_log = logging.getLogger("mnhost.nodes.manager")

_node_id_re = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]{0,63}$")

Launcher = Callable[[Path, str, Path], Any]


def _random_token(nbytes: int) -> str:
    return secrets.token_hex(nbytes)


def find_binary(root: Path, file_name: str) -> Path | None:
    """Depth-first, case-insensitive search for ``file_name`` under ``root``."""

    if not root.is_dir():
        return None
    wanted = file_name.lower()
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            if name.lower() == wanted:
                candidate = Path(dirpath) / name
                if candidate.is_file():
                    return candidate
    return None


def _ensure_executable(path: Path) -> None:
    if os.name == "nt" or os.access(path, os.X_OK):
        return
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


class NodeManager:
    def __init__(
        self,
        *,
        settings: Settings,
        paths: PathProvider,
        store: SqliteNodeStore,
        chains: ChainRegistry,
        installer: ArtifactInstaller | None = None,
        rpc: RpcClient | None = None,
        snapshots: SnapshotApplier | None = None,
        launcher: Launcher = start_daemon,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.paths = paths
        self.store = store
        self.chains = chains
        self.installer = installer or ArtifactInstaller(paths, chains, skip_verify=settings.skip_verify)
        self.rpc = rpc or RpcClient(timeout=settings.rpc_timeout)
        self.snapshots = snapshots or SnapshotApplier(downloader=self.installer.downloader)
        self.launcher = launcher
        self._sleep = sleep
        self._clock = clock
        self._locks = KeyedLocks()
        self._create_lock = asyncio.Lock()

    # ------------------------------------------------------------------ lookups
    def list_chains(self) -> list[ChainPlugin]:
        return self.chains.list()

    def get_chain(self, chain_id: str) -> ChainPlugin:
        return self.chains.get(chain_id)

    async def list_nodes(self, owner_id: int) -> list[NodeConfig]:
        return await self.store.list_nodes(owner_id)

    async def get_node(self, owner_id: int, node_id: str) -> NodeConfig:
        return await self.store.get_node(owner_id, node_id)

    async def call(self, node: NodeConfig, method: str, params: Sequence[Any] | None = None) -> Any:
        return await self.rpc.call(node, method, params)

    async def get_block_count(self, node: NodeConfig) -> int:
        chain = self.chains.get(node.chain)
        return int(await self.rpc.call_alias(node, chain.rpc.block_count))

    # ------------------------------------------------------------------ create
    async def create_node(self, owner_id: int, data: NodeCreateInput) -> NodeConfig:
        chain = self.chains.get(data.chain)
        if not _node_id_re.match(data.id or ""):
            raise ValueError("invalid node id: use letters, digits, '.', '_' or '-' (max 64)")
        if not data.masternode_key or not data.external_ip:
            raise ValueError("masternode_key and external_ip are required")

        async with self._create_lock:
            for existing in await self.store.list_nodes(owner_id):
                if existing.chain == chain.id:
                    raise ChainConflictError(chain.id, existing.id)
            if await self.store.node_id_in_use(data.id):
                raise NodeIdConflictError(data.id)

            version = data.core_version or self.chains.latest_version(chain)
            p2p_port, rpc_port = allocate_ports(
                await self.store.ports_in_use(),
                chain.default_ports,
                p2p_port=data.p2p_port,
                rpc_port=data.rpc_port,
            )
            node = NodeConfig(
                id=data.id,
                owner_id=owner_id,
                chain=chain.id,
                datadir=str(self.paths.node_datadir(owner_id, data.id)),
                p2p_port=p2p_port,
                rpc_port=rpc_port,
                rpc_user=_random_token(const.RPC_USER_BYTES),
                rpc_password=_random_token(const.RPC_PASSWORD_BYTES),
                masternode_key=data.masternode_key,
                external_ip=data.external_ip,
                snapshot_url=data.snapshot_url or None,
                core_version=version,
            )
            _log.info(
                "creating node %s chain=%s core=%s ports=%s/%s owner=%s",
                node.id, chain.id, version, p2p_port, rpc_port, owner_id,
            )

            # Nothing is persisted until install, config and snapshot succeed.
            try:
                await self.ensure_core(chain, version)
                write_config(chain, node)
                if node.snapshot_url:
                    await self.snapshots.apply(node, node.snapshot_url)
                await self.store.add_node(owner_id, node)
            except BaseException:
                shutil.rmtree(node.datadir, ignore_errors=True)
                raise

        # From here on the record stays even if the daemon fails to come up.
        async with self._locks.hold(node.id):
            await self._start_unlocked(owner_id, node)
        if await self.wait_for_rpc(node):
            _log.info("node %s is answering RPC", node.id)
        else:
            _log.warning("node %s did not answer RPC within %.0fs", node.id, self.settings.readiness_timeout)
        return node

    # ------------------------------------------------------------------ lifecycle
    async def start(self, owner_id: int, node_id: str) -> None:
        async with self._locks.hold(node_id):
            node = await self.store.get_node(owner_id, node_id)
            await self._start_unlocked(owner_id, node)

    async def stop(self, owner_id: int, node_id: str) -> None:
        async with self._locks.hold(node_id):
            node = await self.store.get_node(owner_id, node_id)
            await self._stop_unlocked(node)

    async def restart(self, owner_id: int, node_id: str) -> None:
        async with self._locks.hold(node_id):
            node = await self.store.get_node(owner_id, node_id)
            await self._stop_unlocked(node)
            await self._wait_for_shutdown(node)
            await self._start_unlocked(owner_id, node)

    async def resync(self, owner_id: int, node_id: str) -> None:
        """Stop, drop block and chain-state data, start again to sync from the network."""

        async with self._locks.hold(node_id):
            node = await self.store.get_node(owner_id, node_id)
            await self._stop_unlocked(node)
            await self._wait_for_shutdown(node)
            for name in (const.BLOCKS_DIRNAME, const.CHAINSTATE_DIRNAME):
                await asyncio.to_thread(shutil.rmtree, Path(node.datadir) / name, True)
            _log.info("node %s chain data wiped for resync", node.id)
            await self._start_unlocked(owner_id, node)

    async def delete_node(self, owner_id: int, node_id: str) -> None:
        async with self._locks.hold(node_id):
            node = await self.store.get_node(owner_id, node_id)
            try:
                await self._stop_unlocked(node)
            except MnHostError as exc:
                _log.info("stop before delete failed for node %s (%s); continuing", node.id, exc)
            await asyncio.to_thread(shutil.rmtree, node.datadir, True)
            await self.store.remove_node(owner_id, node_id)
            _log.info("node %s deleted", node.id)

    async def _start_unlocked(self, owner_id: int, node: NodeConfig) -> None:
        chain = self.chains.get(node.chain)
        daemon_path = await self.resolve_daemon_path(owner_id, chain, node)
        conf_path = node.conf_path()
        if not conf_path.exists():
            conf_path = write_config(chain, node)
        self.launcher(daemon_path, node.datadir, conf_path)
        _log.info("node %s started (%s)", node.id, daemon_path.name)

    async def _stop_unlocked(self, node: NodeConfig) -> None:
        chain = self.chains.get(node.chain)
        await self.rpc.call_alias(node, chain.rpc.stop)
        _log.info("node %s stop requested", node.id)

    async def _poll_block_count(self, node: NodeConfig, deadline: float) -> Any:
        """One block-count call, cut off at whatever is left of the readiness window."""

        chain = self.chains.get(node.chain)
        remaining = max(deadline - self._clock(), const.READINESS_MIN_ATTEMPT_S)
        return await asyncio.wait_for(self.rpc.call_alias(node, chain.rpc.block_count), timeout=remaining)

    async def _wait_for_shutdown(self, node: NodeConfig) -> bool:
        """Poll until the RPC port stops accepting connections or the readiness window closes.

        This only observes the RPC server going away; the process itself may still be
        flushing its datadir for a moment after that.
        """

        deadline = self._clock() + self.settings.readiness_timeout
        while True:
            try:
                await self._poll_block_count(node, deadline)
            except RpcTransportError as exc:
                # an HTTP status means the daemon answered, e.g. a 500 while shutting down
                if exc.http_status is None:
                    return True
            except (RpcError, asyncio.TimeoutError):
                pass
            if self._clock() >= deadline:
                _log.warning("node %s still answering RPC after stop", node.id)
                return False
            await self._sleep(self.settings.readiness_interval)

    async def wait_for_rpc(self, node: NodeConfig) -> bool:
        """Poll block count until it answers or the readiness window closes. Never raises on timeout."""

        deadline = self._clock() + self.settings.readiness_timeout
        while True:
            try:
                await self._poll_block_count(node, deadline)
                return True
            except (RpcError, asyncio.TimeoutError):
                pass
            if self._clock() >= deadline:
                return False
            await self._sleep(self.settings.readiness_interval)

    # ------------------------------------------------------------------ cores
    async def install_core(self, chain_id: str, version: str) -> Path:
        return await self.installer.install(chain_id, version)

    async def ensure_core(self, chain: ChainPlugin, version: str) -> Path:
        """Return the daemon binary for ``chain`` ``version``, installing it when absent."""

        platform_key = self.installer.platform_key()
        daemon_name = chain.daemon_name(platform_key)
        bin_dir = self.installer.bin_dir(chain.id, version)
        if not daemon_name:
            raise DaemonNotFoundError(f"<no daemon for {platform_key}>", str(bin_dir))

        found = await asyncio.to_thread(find_binary, bin_dir, daemon_name)
        if found is None:
            await self.installer.install(chain.id, version)
            found = await asyncio.to_thread(find_binary, bin_dir, daemon_name)
        if found is None:
            raise DaemonNotFoundError(daemon_name, str(bin_dir))
        _ensure_executable(found)
        return found

    def _cached_daemon_path(self, chain: ChainPlugin, node: NodeConfig) -> Path | None:
        if not node.daemon_path or not node.core_version:
            return None
        path = Path(node.daemon_path)
        core_dir = self.paths.core_dir(chain.id, node.core_version)
        if not path.is_file() or core_dir not in path.resolve().parents:
            return None
        if os.name != "nt" and not os.access(path, os.X_OK):
            return None
        return path

    async def resolve_daemon_path(self, owner_id: int, chain: ChainPlugin, node: NodeConfig) -> Path:
        cached = self._cached_daemon_path(chain, node)
        if cached is not None:
            return cached

        changes: dict[str, Any] = {}
        if not node.core_version:
            node.core_version = self.chains.latest_version(chain)
            changes["core_version"] = node.core_version
        found = await self.ensure_core(chain, node.core_version)
        node.daemon_path = str(found)
        changes["daemon_path"] = node.daemon_path
        await self.store.update_node(owner_id, node.id, **changes)
        return found

    async def check_for_update(self, owner_id: int, node_id: str) -> dict[str, Any]:
        node = await self.store.get_node(owner_id, node_id)
        latest = self.chains.latest_version(node.chain)
        current = node.core_version
        return {"latest": latest, "current": current, "update_available": bool(current) and latest != current}

    async def update_node_core(self, owner_id: int, node_id: str) -> str:
        async with self._locks.hold(node_id):
            node = await self.store.get_node(owner_id, node_id)
            chain = self.chains.get(node.chain)
            latest = self.chains.latest_version(chain)
            try:
                await self._stop_unlocked(node)
                await self._wait_for_shutdown(node)
            except RpcTransportError as exc:
                _log.warning("node %s unreachable before core update (%s); treating as stopped", node.id, exc)
            await self.installer.install(chain.id, latest)
            await self.store.update_node(owner_id, node_id, core_version=latest, daemon_path=None)
            node.core_version = latest
            node.daemon_path = None
            _log.info("node %s core updated to %s", node.id, latest)
            await self._start_unlocked(owner_id, node)
        return latest
