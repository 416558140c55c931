from __future__ import annotations

from typer.testing import CliRunner

from mnhost.apps.cli.app import app

runner = CliRunner()


def test_chain_commands(tmp_path):
    result = runner.invoke(app, ["--base-dir", str(tmp_path), "chain", "latest", "pivx"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "5.6.1"

    result = runner.invoke(app, ["--base-dir", str(tmp_path), "chain", "list"])
    assert result.exit_code == 0
    assert "dogecash" in result.output

    result = runner.invoke(app, ["--base-dir", str(tmp_path), "chain", "latest", "bitcoin"])
    assert result.exit_code == 1


def test_user_and_node_listing(tmp_path):
    base = ["--base-dir", str(tmp_path)]

    result = runner.invoke(app, [*base, "user", "add", "alice", "--password", "pw"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, [*base, "node", "list", "--user", "alice"])
    assert result.exit_code == 0, result.output
    assert "no nodes" in result.output

    result = runner.invoke(app, [*base, "node", "status", "mn1", "--user", "alice"])
    assert result.exit_code == 1
