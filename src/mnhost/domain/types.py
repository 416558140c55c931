"""Chain plugin model: static per-chain metadata shared by every node of that chain."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Mapping

if TYPE_CHECKING:
    from .node import NodeConfig

__all__ = [
    "PlatformKey",
    "BasePlatform",
    "ArchiveKind",
    "ReleaseAsset",
    "DaemonNames",
    "DefaultPorts",
    "RpcAliases",
    "ChainPlugin",
]


class _StrEnum(str, Enum):
    """``str``-backed enum compatible with Python 3.10."""

    def __str__(self) -> str:  # pragma: no cover - convenience for logging only
        return str(self.value)


class PlatformKey(_StrEnum):
    WIN32_X64 = "win32-x64"
    LINUX_X64 = "linux-x64"
    LINUX_ARM = "linux-arm"
    LINUX_ARM64 = "linux-arm64"
    DARWIN_X64 = "darwin-x64"
    DARWIN_ARM64 = "darwin-arm64"

    @property
    def base(self) -> "BasePlatform":
        if self.value.startswith("win32"):
            return BasePlatform.WIN32
        if self.value.startswith("linux"):
            return BasePlatform.LINUX
        return BasePlatform.DARWIN


class BasePlatform(_StrEnum):
    WIN32 = "win32"
    LINUX = "linux"
    DARWIN = "darwin"


class ArchiveKind(_StrEnum):
    ZIP = "zip"
    TAR_GZ = "tar.gz"

    @classmethod
    def from_url(cls, url: str) -> "ArchiveKind":
        lower = url.split("?", 1)[0].lower()
        if lower.endswith(".tar.gz") or lower.endswith(".tgz"):
            return cls.TAR_GZ
        return cls.ZIP


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    url: str
    sha256: str
    archive: ArchiveKind


@dataclass(frozen=True, slots=True)
class DaemonNames:
    win32: str
    linux: str
    darwin: str | None = None

    def for_platform(self, base: BasePlatform) -> str | None:
        return getattr(self, base.value)


@dataclass(frozen=True, slots=True)
class DefaultPorts:
    p2p: int
    rpc: int


@dataclass(frozen=True, slots=True)
class RpcAliases:
    stop: str = "stop"
    block_count: str = "getblockcount"
    masternode_status: str | None = None


@dataclass(frozen=True, slots=True)
class ChainPlugin:
    """Everything the orchestrator needs to know about one coin daemon.

    ``releases`` maps a core version to the prebuilt archive for each platform key.
    ``render_config`` turns a node record into the daemon's ``<chain>.conf`` text.
    """

    id: str
    name: str
    symbol: str
    daemon: DaemonNames
    default_ports: DefaultPorts
    releases: Mapping[str, Mapping[PlatformKey, ReleaseAsset]]
    render_config: Callable[["NodeConfig"], str] = field(repr=False, compare=False)
    rpc: RpcAliases = field(default_factory=RpcAliases)

    def versions(self) -> list[str]:
        return list(self.releases.keys())

    def release(self, version: str, platform_key: PlatformKey) -> ReleaseAsset | None:
        assets = self.releases.get(version) or {}
        return assets.get(platform_key)

    def daemon_name(self, platform_key: PlatformKey) -> str | None:
        return self.daemon.for_platform(platform_key.base)

    def as_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "symbol": self.symbol,
            "daemon": {"win32": self.daemon.win32, "linux": self.daemon.linux, "darwin": self.daemon.darwin},
            "default_ports": {"p2p": self.default_ports.p2p, "rpc": self.default_ports.rpc},
            "versions": self.versions(),
            "platforms": {
                version: sorted(str(key) for key in assets.keys()) for version, assets in self.releases.items()
            },
        }
