from __future__ import annotations

import hashlib
import io
import tarfile
import zipfile
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from mnhost.adapters.db import SqliteNodeStore
from mnhost.adapters.fs.path_provider import PathProvider
from mnhost.domain import (
    ArchiveKind,
    ChainPlugin,
    DaemonNames,
    DefaultPorts,
    NodeConfig,
    PlatformKey,
    ReleaseAsset,
    RpcAliases,
)
from mnhost.services.agent_context import set_ctx
from mnhost.services.chains import ChainRegistry
from mnhost.services.chains.templates import masternode_conf
from mnhost.services.core.installer import ArtifactInstaller
from mnhost.services.core.rpc import RpcClient
from mnhost.services.errors import RpcProtocolError, RpcTransportError
from mnhost.services.nodes import ExplorerService, NodeManager, WalletService
from mnhost.services.settings import Settings


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_ctx():
    yield
    set_ctx(None)


# --- archives -----------------------------------------------------------------


def make_tar_gz(files: dict[str, bytes], *, mode: int = 0o755) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = mode
            tf.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def make_zip(files: dict[str, bytes], *, mode: int = 0o755) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in files.items():
            info = zipfile.ZipInfo(name)
            info.external_attr = (0o100000 | mode) << 16
            zf.writestr(info, data)
    return buf.getvalue()


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


# --- chains -------------------------------------------------------------------


def make_chain(
    chain_id: str = "testcoin",
    *,
    versions: dict[str, ReleaseAsset] | None = None,
    ports: tuple[int, int] = (40000, 40001),
) -> ChainPlugin:
    """A chain with one linux-x64 asset per version."""

    if versions is None:
        versions = {
            "1.0.0": ReleaseAsset(
                url=f"https://releases.test/{chain_id}-1.0.0.tar.gz", sha256="0" * 64, archive=ArchiveKind.TAR_GZ
            )
        }
    return ChainPlugin(
        id=chain_id,
        name=chain_id.title(),
        symbol=chain_id[:4].upper(),
        daemon=DaemonNames(win32=f"{chain_id}d.exe", linux=f"{chain_id}d"),
        default_ports=DefaultPorts(p2p=ports[0], rpc=ports[1]),
        releases={version: {PlatformKey.LINUX_X64: asset} for version, asset in versions.items()},
        render_config=masternode_conf,
        rpc=RpcAliases(),
    )


# --- fakes --------------------------------------------------------------------


class FakeRpc(RpcClient):
    """In-memory daemon stand-in keyed by node id.

    ``handlers`` map an RPC method to a value, an exception, or ``fn(node, params)``.
    Nodes in ``offline`` raise :class:`RpcTransportError` for every call.
    """

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[str, str, list[Any]]] = []
        self.offline: set[str] = set()
        self.handlers: dict[str, Any] = {
            "getblockcount": 100,
            "getblockchaininfo": {"chain": "main", "blocks": 100, "headers": 100, "verificationprogress": 1.0},
            "stop": self._stop,
        }

    def _stop(self, node, params):
        self.offline.add(node.id)
        return "stopping"

    async def call(self, node, method, params=None):
        params = list(params or [])
        self.calls.append((node.id, method, params))
        if node.id in self.offline:
            raise RpcTransportError(f"connect to 127.0.0.1:{node.rpc_port} refused", method=method)
        if method not in self.handlers:
            raise RpcProtocolError(f"Method not found: {method}", method=method, rpc_code=-32601)
        handler = self.handlers[method]
        result = handler(node, params) if callable(handler) else handler
        if isinstance(result, Exception):
            raise result
        return result

    def methods(self, node_id: str | None = None) -> list[str]:
        return [method for nid, method, _ in self.calls if node_id is None or nid == node_id]


class FakeInstaller(ArtifactInstaller):
    """Lays out a nested daemon binary instead of downloading."""

    def __init__(self, paths: PathProvider, chains: ChainRegistry, *, fail: Exception | None = None) -> None:
        super().__init__(paths, chains, platform_key=lambda: PlatformKey.LINUX_X64)
        self.installs: list[tuple[str, str]] = []
        self.fail = fail

    async def install(self, chain_id: str, version: str) -> Path:
        self.installs.append((chain_id, version))
        if self.fail is not None:
            raise self.fail
        chain = self.chains.get(chain_id)
        bin_dir = self.bin_dir(chain_id, version)
        nested = bin_dir / f"{chain_id}-{version}" / "bin"
        nested.mkdir(parents=True, exist_ok=True)
        daemon = nested / chain.daemon_name(self.platform_key())
        daemon.write_text("#!/bin/sh\n", encoding="utf-8")
        daemon.chmod(0o755)
        return bin_dir


class FakeLauncher:
    """Records launches and brings the node back online in :class:`FakeRpc`."""

    def __init__(self, rpc: FakeRpc) -> None:
        self.rpc = rpc
        self.launches: list[tuple[Path, str, Path]] = []

    def __call__(self, daemon_path: Path, datadir: str, conf_path: Path) -> int:
        self.launches.append((Path(daemon_path), str(datadir), Path(conf_path)))
        self.rpc.offline.discard(Path(datadir).name)
        return 4242


# --- wiring -------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(base_dir=tmp_path / "mnhost").with_overrides(readiness_timeout=0.2, readiness_interval=0.01)


@pytest.fixture
def paths(settings: Settings) -> PathProvider:
    provider = PathProvider.from_settings(settings)
    provider.ensure_tree()
    return provider


@pytest.fixture
def host(settings: Settings, paths: PathProvider) -> SimpleNamespace:
    chains = ChainRegistry.with_builtins([make_chain()])
    store = SqliteNodeStore(paths.db_path())
    rpc = FakeRpc()
    installer = FakeInstaller(paths, chains)
    launcher = FakeLauncher(rpc)
    manager = NodeManager(
        settings=settings,
        paths=paths,
        store=store,
        chains=chains,
        installer=installer,
        rpc=rpc,
        launcher=launcher,
    )
    return SimpleNamespace(
        settings=settings,
        paths=paths,
        chains=chains,
        store=store,
        rpc=rpc,
        installer=installer,
        launcher=launcher,
        manager=manager,
        wallet=WalletService(manager),
        explorer=ExplorerService(manager),
    )


def node_record(node_id: str, chain: str = "pivx", *, rpc_port: int = 51473, datadir: Path | None = None) -> NodeConfig:
    return NodeConfig(
        id=node_id,
        chain=chain,
        datadir=str(datadir or Path("/tmp") / node_id),
        p2p_port=rpc_port - 1,
        rpc_port=rpc_port,
        rpc_user="user",
        rpc_password="secret",
        masternode_key="mnkey",
        external_ip="203.0.113.10",
        core_version="5.6.1",
    )