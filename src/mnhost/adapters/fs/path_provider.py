# src/mnhost/adapters/fs/path_provider.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from mnhost.config import const
from mnhost.services.settings import Settings


@dataclass(slots=True)
class PathProvider:
    """Single source of truth for the on-disk layout. Always returns pathlib.Path."""

    base: Path

    @classmethod
    def from_settings(cls, settings: Settings) -> "PathProvider":
        return cls(base=Path(settings.base_dir).expanduser().resolve())

    def base_dir(self) -> Path:
        return self.base

    # --- installed cores ---

    def cores_dir(self) -> Path:
        return (self.base / "cores").resolve()

    def core_dir(self, chain_id: str, version: str) -> Path:
        return (self.cores_dir() / chain_id / version).resolve()

    def core_bin_dir(self, chain_id: str, version: str) -> Path:
        return self.core_dir(chain_id, version) / "bin"

    def core_archive_path(self, chain_id: str, version: str, platform_key: str, archive_kind: str) -> Path:
        return self.core_dir(chain_id, version) / f"core-{platform_key}.{archive_kind}"

    # --- node data directories ---

    def nodes_dir(self) -> Path:
        return (self.base / "nodes").resolve()

    def node_datadir(self, owner_id: int | str, node_id: str) -> Path:
        return (self.nodes_dir() / str(owner_id) / node_id).resolve()

    # --- service state ---

    def db_path(self) -> Path:
        return self.base / const.DB_FILENAME

    def logs_dir(self) -> Path:
        return (self.base / "logs").resolve()

    def ensure_tree(self) -> None:
        for p in (self.base_dir(), self.cores_dir(), self.nodes_dir(), self.logs_dir()):
            p.mkdir(parents=True, exist_ok=True)
