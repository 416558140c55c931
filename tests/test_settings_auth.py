from __future__ import annotations

from pathlib import Path

import bcrypt
import pytest

from mnhost.adapters.db import SqliteNodeStore
from mnhost.adapters.fs.path_provider import PathProvider
from mnhost.services.auth import AuthService, hash_password, verify_password
from mnhost.services.errors import AuthError, SettingsError, UsernameTakenError
from mnhost.services.settings import Settings, resolve_base_dir


def test_explicit_base_dir_wins():
    assert resolve_base_dir({"MNHOST_BASE_DIR": "/srv/mn", "PTERODACTYL": "1"}) == Path("/srv/mn")


def test_pterodactyl_container_home():
    assert resolve_base_dir({"PTERODACTYL_SERVER_UUID": "abc"}) == Path("/home/container/.mnhost")


def test_env_overrides_and_port_fallbacks(tmp_path):
    env = {"MNHOST_BASE_DIR": str(tmp_path), "SERVER_PORT": "9000", "SKIP_VERIFY": "1", "MNHOST_LOG_LEVEL": "debug"}

    settings = Settings.from_sources(env)

    assert settings.base_dir == tmp_path
    assert settings.api_port == 9000
    assert settings.skip_verify is True
    assert settings.log_level == "DEBUG"


def test_yaml_file_then_environment(tmp_path):
    (tmp_path / "mnhost.yaml").write_text("api_port: 7000\nreadiness_timeout: 30\nbase_dir: /ignored\n", encoding="utf-8")

    from_file = Settings.from_sources({"MNHOST_BASE_DIR": str(tmp_path)})
    assert (from_file.api_port, from_file.readiness_timeout, from_file.base_dir) == (7000, 30.0, tmp_path)

    from_env = Settings.from_sources({"MNHOST_BASE_DIR": str(tmp_path), "PORT": "8181"})
    assert from_env.api_port == 8181


@pytest.mark.parametrize(
    ("raw", "expected"),
    [('"false"', False), ('"0"', False), ('"yes"', True), ("true", True), ("false", False)],
)
def test_yaml_skip_verify_strings_are_parsed_as_flags(tmp_path, raw, expected):
    (tmp_path / "mnhost.yaml").write_text(f"skip_verify: {raw}\n", encoding="utf-8")

    assert Settings.from_sources({"MNHOST_BASE_DIR": str(tmp_path)}).skip_verify is expected


def test_invalid_port_is_settings_error(tmp_path):
    with pytest.raises(SettingsError):
        Settings.from_sources({"MNHOST_BASE_DIR": str(tmp_path), "PORT": "http"})


def test_path_provider_layout(tmp_path):
    paths = PathProvider.from_settings(Settings(base_dir=tmp_path))
    base = tmp_path.resolve()

    assert paths.core_bin_dir("pivx", "5.6.1") == base / "cores" / "pivx" / "5.6.1" / "bin"
    assert paths.node_datadir(3, "mn1") == base / "nodes" / "3" / "mn1"
    assert paths.core_archive_path("pivx", "5.6.1", "linux-x64", "tar.gz").name == "core-linux-x64.tar.gz"
    assert paths.db_path() == base / "mnhost.sqlite"


def test_password_hashing():
    encoded = hash_password("hunter2", rounds=4)
    assert encoded.startswith("$2b$04$")
    assert bcrypt.checkpw(b"hunter2", encoded.encode("ascii"))
    assert verify_password("hunter2", encoded)
    assert not verify_password("hunter3", encoded)
    assert not verify_password("hunter2", "garbage")
    assert hash_password("hunter2", rounds=4) != encoded


def test_default_cost_and_length_limit():
    assert hash_password("pw").startswith("$2b$10$")
    with pytest.raises(ValueError):
        hash_password("x" * 73)


@pytest.mark.anyio
async def test_sessions_round_trip(tmp_path):
    auth = AuthService(SqliteNodeStore(tmp_path / "db.sqlite"), ttl_seconds=60)
    user = await auth.register("alice", "pw")

    with pytest.raises(UsernameTakenError):
        await auth.register("alice", "other")
    with pytest.raises(AuthError):
        await auth.authenticate("alice", "wrong")

    token = await auth.open_session(await auth.authenticate("alice", "pw"))
    assert (await auth.resolve_session(token)).id == user.id

    await auth.close_session(token)
    with pytest.raises(AuthError):
        await auth.resolve_session(token)
