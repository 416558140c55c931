from __future__ import annotations

from mnhost.domain import (
    ArchiveKind,
    ChainPlugin,
    DaemonNames,
    DefaultPorts,
    PlatformKey,
    ReleaseAsset,
    RpcAliases,
)

from .templates import masternode_conf

_RELEASE = "https://github.com/PIVX-Project/PIVX/releases/download/v5.6.1"

PIVX = ChainPlugin(
    id="pivx",
    name="PIVX",
    symbol="PIVX",
    daemon=DaemonNames(win32="pivx-qt.exe", linux="pivxd"),
    default_ports=DefaultPorts(p2p=51472, rpc=51473),
    releases={
        "5.6.1": {
            PlatformKey.WIN32_X64: ReleaseAsset(
                url=f"{_RELEASE}/pivx-5.6.1-win64.zip",
                sha256="ae3a7896dee74600665af717fb5785f52be3e2f5cab3a57873020c66bdff54fc",
                archive=ArchiveKind.ZIP,
            ),
            PlatformKey.LINUX_X64: ReleaseAsset(
                url=f"{_RELEASE}/pivx-5.6.1-x86_64-linux-gnu.tar.gz",
                sha256="6704625c63ff73da8c57f0fbb1dab6f1e4bd8f62c17467e05f52a64012a0ee2f",
                archive=ArchiveKind.TAR_GZ,
            ),
            PlatformKey.LINUX_ARM64: ReleaseAsset(
                url=f"{_RELEASE}/pivx-5.6.1-aarch64-linux-gnu.tar.gz",
                sha256="8f1c0243f8a21da6cce51b96c5317c425b9c50e3de2949b2e838ead11426b447",
                archive=ArchiveKind.TAR_GZ,
            ),
            PlatformKey.LINUX_ARM: ReleaseAsset(
                url=f"{_RELEASE}/pivx-5.6.1-arm-linux-gnueabihf.tar.gz",
                sha256="f865dede694de837aa57f10096dbf99efdef1dda210433d5b33111aa81085074",
                archive=ArchiveKind.TAR_GZ,
            ),
        }
    },
    render_config=masternode_conf,
    rpc=RpcAliases(stop="stop", block_count="getblockcount", masternode_status="masternode status"),
)
