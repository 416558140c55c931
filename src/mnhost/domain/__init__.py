from .node import NodeConfig, NodeCreateInput, UserRecord, utcnow_iso
from .types import (
    ArchiveKind,
    BasePlatform,
    ChainPlugin,
    DaemonNames,
    DefaultPorts,
    PlatformKey,
    ReleaseAsset,
    RpcAliases,
)

__all__ = [
    "ArchiveKind",
    "BasePlatform",
    "ChainPlugin",
    "DaemonNames",
    "DefaultPorts",
    "NodeConfig",
    "NodeCreateInput",
    "PlatformKey",
    "ReleaseAsset",
    "RpcAliases",
    "UserRecord",
    "utcnow_iso",
]
