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

_RELEASE = "https://github.com/dogecash/dogecash/releases/download/5.5.1"

DOGECASH = ChainPlugin(
    id="dogecash",
    name="DogeCash",
    symbol="DOGEC",
    daemon=DaemonNames(win32="dogecash-qt.exe", linux="dogecashd"),
    default_ports=DefaultPorts(p2p=22556, rpc=22555),
    releases={
        "5.5.1": {
            PlatformKey.WIN32_X64: ReleaseAsset(
                url=f"{_RELEASE}/dogecash-5.5.1-win64.zip",
                sha256="5e470328ee68750a2f6e86f75c83cecaeac2ad973f5573b83dcb6e3156a91591",
                archive=ArchiveKind.ZIP,
            ),
            PlatformKey.LINUX_X64: ReleaseAsset(
                url=f"{_RELEASE}/dogecash-5.5.1-x86_64-linux-gnu.tar.gz",
                sha256="deab49107e8930148e24bb922b3bef6f009e3709d425619ff0044d121d7a02ef",
                archive=ArchiveKind.TAR_GZ,
            ),
            PlatformKey.LINUX_ARM: ReleaseAsset(
                url=f"{_RELEASE}/dogecash-5.5.1-arm-linux-gnueabihf.tar.gz",
                sha256="5c94f91b5e948dddda151bf1379324428d7223abaeb072a406410f6cb155d4b0",
                archive=ArchiveKind.TAR_GZ,
            ),
            PlatformKey.LINUX_ARM64: ReleaseAsset(
                url=f"{_RELEASE}/dogecash-5.5.1-aarch64-linux-gnu.tar.gz",
                sha256="5882c0e2307775e7c257c6728bd4eeef7f0112b7e42181662df4a2ffbd20e10d",
                archive=ArchiveKind.TAR_GZ,
            ),
        }
    },
    render_config=masternode_conf,
    rpc=RpcAliases(stop="stop", block_count="getblockcount", masternode_status="masternode status"),
)
