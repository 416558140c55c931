from __future__ import annotations

import os
import stat

import pytest

from conftest import node_record
from mnhost.services.chains import ChainRegistry
from mnhost.services.chains.templates import parse_conf
from mnhost.services.core.config_writer import write_config


def test_pivx_config_round_trip(tmp_path):
    pivx = ChainRegistry.with_builtins().get("pivx")
    node = node_record("mn1", datadir=tmp_path / "mn1")
    node.rpc_user, node.rpc_password = "abc", "xyz"

    conf_path = write_config(pivx, node)

    assert conf_path == tmp_path / "mn1" / "pivx.conf"
    values = parse_conf(conf_path.read_text(encoding="utf-8"))
    assert values["port"] == ["51472"]
    assert values["rpcport"] == ["51473"]
    assert values["rpcuser"] == ["abc"]
    assert values["rpcpassword"] == ["xyz"]
    assert values["masternode"] == ["1"]
    assert values["externalip"] == ["203.0.113.10:51472"]
    assert conf_path.read_text(encoding="utf-8").endswith("\n")


@pytest.mark.skipif(os.name == "nt", reason="posix permissions")
def test_config_is_owner_only_even_when_rewritten(tmp_path):
    pivx = ChainRegistry.with_builtins().get("pivx")
    node = node_record("mn1", datadir=tmp_path / "mn1")
    conf_path = tmp_path / "mn1" / "pivx.conf"
    conf_path.parent.mkdir(parents=True)
    conf_path.write_text("stale\n", encoding="utf-8")
    conf_path.chmod(0o644)

    write_config(pivx, node)

    assert stat.S_IMODE(conf_path.stat().st_mode) == 0o600
    assert "stale" not in conf_path.read_text(encoding="utf-8")
