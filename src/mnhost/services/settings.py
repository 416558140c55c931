# src/mnhost/services/settings.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from mnhost.config import const
from mnhost.services.errors import SettingsError

_log = logging.getLogger("mnhost.settings")

_PTERODACTYL_ENV = ("PTERODACTYL_SERVER_UUID", "PTERODACTYL_SERVER_ID", "PTERODACTYL")
_PORT_ENV = ("PORT", "SERVER_PORT", "PTERODACTYL_SERVER_PORT")


def _env_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _as_flag(value: Any) -> bool:
    if isinstance(value, str):
        return _env_flag(value)
    return bool(value)


def _is_docker() -> bool:
    if Path("/.dockerenv").exists():
        return True
    try:
        cgroup = Path("/proc/1/cgroup").read_text(encoding="utf-8")
    except OSError:
        return False
    return "docker" in cgroup or "containerd" in cgroup


def resolve_base_dir(env: Mapping[str, str] | None = None) -> Path:
    """Pick the data root: explicit env, Pterodactyl container home, then ``~/.mnhost``."""

    env = os.environ if env is None else env
    explicit = env.get("MNHOST_BASE_DIR")
    if explicit:
        return Path(explicit).expanduser()

    if any(env.get(key) for key in _PTERODACTYL_ENV) or Path(const.CONTAINER_HOME).exists():
        return Path(const.CONTAINER_HOME) / const.DEFAULT_BASE_DIRNAME

    if _is_docker():
        raise SettingsError("Running in Docker without Pterodactyl. Set MNHOST_BASE_DIR to a mounted volume path.")

    return Path.home() / const.DEFAULT_BASE_DIRNAME


def _read_file_overrides(base_dir: Path) -> dict[str, Any]:
    path = base_dir / const.SETTINGS_FILENAME
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise SettingsError(f"failed to read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SettingsError(f"{path} must contain a mapping")
    data.pop("base_dir", None)
    return data


@dataclass(frozen=True, slots=True)
class Settings:
    base_dir: Path
    skip_verify: bool = False
    api_host: str = const.DEFAULT_API_HOST
    api_port: int = const.DEFAULT_API_PORT
    log_level: str = "INFO"
    session_ttl_seconds: int = const.SESSION_TTL_S
    readiness_timeout: float = const.READINESS_TIMEOUT_S
    readiness_interval: float = const.READINESS_INTERVAL_S
    rpc_timeout: float = const.RPC_TIMEOUT_S
    profile: str = "default"

    @classmethod
    def from_sources(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``mnhost.yaml`` under the base dir, then the environment."""

        env = os.environ if env is None else env
        base_dir = resolve_base_dir(env)
        values: dict[str, Any] = {}
        known = {f.name for f in fields(cls)}
        for key, value in _read_file_overrides(base_dir).items():
            if key in known:
                values[key] = value
            else:
                _log.warning("ignoring unknown setting %r in %s", key, const.SETTINGS_FILENAME)

        if "SKIP_VERIFY" in env:
            values["skip_verify"] = _env_flag(env.get("SKIP_VERIFY"))
        if env.get("MNHOST_HOST"):
            values["api_host"] = env["MNHOST_HOST"]
        for key in _PORT_ENV:
            if env.get(key):
                try:
                    values["api_port"] = int(env[key])
                except ValueError as exc:
                    raise SettingsError(f"{key} must be an integer, got {env[key]!r}") from exc
                break
        if env.get("MNHOST_LOG_LEVEL"):
            values["log_level"] = env["MNHOST_LOG_LEVEL"]
        if env.get("MNHOST_PROFILE"):
            values["profile"] = env["MNHOST_PROFILE"]

        return cls(base_dir=base_dir, **values)._normalized()

    def with_overrides(self, **changes: Any) -> "Settings":
        if "base_dir" in changes and changes["base_dir"] is not None:
            changes["base_dir"] = Path(changes["base_dir"])
        return replace(self, **changes)._normalized()

    def _normalized(self) -> "Settings":
        return replace(
            self,
            base_dir=Path(self.base_dir).expanduser(),
            skip_verify=_as_flag(self.skip_verify),
            api_port=int(self.api_port),
            log_level=str(self.log_level).upper(),
            session_ttl_seconds=int(self.session_ttl_seconds),
            readiness_timeout=float(self.readiness_timeout),
            readiness_interval=float(self.readiness_interval),
            rpc_timeout=float(self.rpc_timeout),
        )
