"""Config templates shared by Bitcoin-derived masternode coins."""

from __future__ import annotations

from typing import Iterable

from mnhost.domain import NodeConfig


def masternode_conf(node: NodeConfig, *, extra: Iterable[str] = ()) -> str:
    lines = [
        "server=1",
        "daemon=1",
        "listen=1",
        "",
        f"port={node.p2p_port}",
        f"rpcport={node.rpc_port}",
        f"rpcuser={node.rpc_user}",
        f"rpcpassword={node.rpc_password}",
        "rpcallowip=127.0.0.1",
        "rpcbind=127.0.0.1",
        "txindex=1",
        "",
        "masternode=1",
        f"masternodeprivkey={node.masternode_key}",
        f"externalip={node.external_ip}:{node.p2p_port}",
    ]
    extra = list(extra)
    if extra:
        lines.append("")
        lines.extend(extra)
    return "\n".join(lines)


def parse_conf(text: str) -> dict[str, list[str]]:
    """Parse ``key=value`` lines; repeated keys (``addnode``) keep every value."""

    values: dict[str, list[str]] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        values.setdefault(key.strip(), []).append(value.strip())
    return values
