from __future__ import annotations

import os
from pathlib import Path

from mnhost.domain import ChainPlugin, NodeConfig

CONF_MODE = 0o600


def render_config(chain: ChainPlugin, node: NodeConfig) -> str:
    return chain.render_config(node).rstrip() + "\n"


def write_config(chain: ChainPlugin, node: NodeConfig) -> Path:
    """Write ``<datadir>/<chain>.conf``; it holds RPC credentials and the masternode key, so owner-only."""

    content = render_config(chain, node)
    datadir = Path(node.datadir)
    datadir.mkdir(parents=True, exist_ok=True)
    conf_path = datadir / f"{chain.id}.conf"
    fd = os.open(conf_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CONF_MODE)
    with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
        fh.write(content)
    # O_CREAT's mode is ignored for files that already exist.
    os.chmod(conf_path, CONF_MODE)
    return conf_path
