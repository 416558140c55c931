"""Node and user records as stored by the persistence layer."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

__all__ = ["NodeConfig", "NodeCreateInput", "UserRecord", "utcnow_iso"]

_SECRET_FIELDS = ("rpc_password", "masternode_key", "daemon_path")


def utcnow_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


@dataclass(slots=True)
class NodeConfig:
    id: str
    chain: str
    datadir: str
    p2p_port: int
    rpc_port: int
    rpc_user: str
    rpc_password: str
    masternode_key: str
    external_ip: str
    owner_id: int | None = None
    snapshot_url: str | None = None
    core_version: str | None = None
    daemon_path: str | None = None
    created_at: str = field(default_factory=utcnow_iso)

    @property
    def datadir_path(self) -> Path:
        return Path(self.datadir)

    def conf_path(self) -> Path:
        return self.datadir_path / f"{self.chain}.conf"

    def as_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "chain": self.chain,
            "datadir": self.datadir,
            "p2p_port": self.p2p_port,
            "rpc_port": self.rpc_port,
            "rpc_user": self.rpc_user,
            "rpc_password": self.rpc_password,
            "masternode_key": self.masternode_key,
            "external_ip": self.external_ip,
            "snapshot_url": self.snapshot_url,
            "core_version": self.core_version,
            "daemon_path": self.daemon_path,
            "created_at": self.created_at,
        }

    def public_view(self) -> dict[str, object]:
        """Node fields safe to hand to dashboards and listings."""

        data = self.as_dict()
        for key in _SECRET_FIELDS:
            data.pop(key, None)
        return data

    def reveal_secrets(self) -> dict[str, object]:
        return {
            "id": self.id,
            "rpc_user": self.rpc_user,
            "rpc_password": self.rpc_password,
            "masternode_key": self.masternode_key,
        }


@dataclass(slots=True)
class NodeCreateInput:
    id: str
    chain: str
    external_ip: str
    masternode_key: str
    p2p_port: int | None = None
    rpc_port: int | None = None
    snapshot_url: str | None = None
    core_version: str | None = None


@dataclass(slots=True)
class UserRecord:
    id: int
    username: str
    password_hash: str
    created_at: str | None = None

    def public_view(self) -> dict[str, object]:
        return {"id": self.id, "username": self.username}
