from __future__ import annotations

from functools import partial

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

_RELEASE = "https://github.com/ZENZO-Ecosystem/ZENZO-Core/releases/download/v2.1.0"

# Zenzo's DNS seeds are unreliable; ship known-good peers with every config.
SEED_PEERS: tuple[str, ...] = (
    "109.205.181.156",
    "135.181.183.38",
    "144.91.100.97",
    "144.91.106.129",
    "161.97.127.55",
    "164.68.102.142",
    "164.68.120.4:26210",
    "167.86.109.168",
    "173.212.204.201",
    "178.18.244.204",
    "185.194.217.23:26210",
    "207.180.204.7",
    "213.136.75.61",
    "38.242.150.174",
    "5.189.135.33",
    "62.171.131.253",
    "144.217.84.156:26210",
    "[2605:a140:2184:6619:267d::6]:26210",
)

ZENZO = ChainPlugin(
    id="zenzo",
    name="Zenzo",
    symbol="ZNZ",
    daemon=DaemonNames(win32="zenzod.exe", linux="zenzod"),
    default_ports=DefaultPorts(p2p=26210, rpc=26211),
    releases={
        "2.1.0": {
            PlatformKey.WIN32_X64: ReleaseAsset(
                url=f"{_RELEASE}/zenzo-2.1.0-win64.zip",
                sha256="b57a994a236ee915443b0b7d4f19bb338235cd94e2ce9e99baf9d065b7abd6da",
                archive=ArchiveKind.ZIP,
            ),
            PlatformKey.LINUX_X64: ReleaseAsset(
                url=f"{_RELEASE}/zenzo-2.1.0-x86_64-linux-gnu.tar.gz",
                sha256="1f3a85d2344bd92255b438a15ed4fd04398b5a78e0ee42133798ff49a554e72d",
                archive=ArchiveKind.TAR_GZ,
            ),
            PlatformKey.LINUX_ARM: ReleaseAsset(
                url=f"{_RELEASE}/zenzo-2.1.0-arm-linux-gnueabihf.tar.gz",
                sha256="6e6b2fc49bedb04d0230de2880c8e122e6a3ab622243a7732fe595d3dbcec07c",
                archive=ArchiveKind.TAR_GZ,
            ),
            PlatformKey.LINUX_ARM64: ReleaseAsset(
                url=f"{_RELEASE}/zenzo-2.1.0-aarch64-linux-gnu.tar.gz",
                sha256="f613022307e1af7e95cf91e6940c1ad62f74b1beafcee9645b89ac43e3c4f963",
                archive=ArchiveKind.TAR_GZ,
            ),
        }
    },
    render_config=partial(masternode_conf, extra=[f"addnode={peer}" for peer in SEED_PEERS]),
    rpc=RpcAliases(stop="stop", block_count="getblockcount", masternode_status="masternode status"),
)
