# src/mnhost/adapters/db/sqlite.py
"""SQLite persistence for users, nodes and API sessions.

Blocking ``sqlite3`` work runs in a worker thread; every public method is a coroutine.
"""
from __future__ import annotations

import asyncio
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable, Final, Iterable, TypeVar

from mnhost.domain import NodeConfig, UserRecord, utcnow_iso
from mnhost.services.errors import NodeIdConflictError, NodeNotFoundError, StorageError

__all__ = ["SqliteNodeStore"]

T = TypeVar("T")

_NODE_COLUMNS: Final[tuple[str, ...]] = (
    "node_id",
    "owner_id",
    "chain",
    "datadir",
    "p2p_port",
    "rpc_port",
    "rpc_user",
    "rpc_password",
    "masternode_key",
    "external_ip",
    "snapshot_url",
    "core_version",
    "daemon_path",
    "created_at",
)

# NodeConfig attribute -> column, for partial updates.
_UPDATABLE: Final[dict[str, str]] = {
    "chain": "chain",
    "datadir": "datadir",
    "p2p_port": "p2p_port",
    "rpc_port": "rpc_port",
    "rpc_user": "rpc_user",
    "rpc_password": "rpc_password",
    "masternode_key": "masternode_key",
    "external_ip": "external_ip",
    "snapshot_url": "snapshot_url",
    "core_version": "core_version",
    "daemon_path": "daemon_path",
}


def _row_to_node(row: sqlite3.Row) -> NodeConfig:
    return NodeConfig(
        id=row["node_id"],
        owner_id=row["owner_id"],
        chain=row["chain"],
        datadir=row["datadir"],
        p2p_port=int(row["p2p_port"]),
        rpc_port=int(row["rpc_port"]),
        rpc_user=row["rpc_user"],
        rpc_password=row["rpc_password"],
        masternode_key=row["masternode_key"],
        external_ip=row["external_ip"],
        snapshot_url=row["snapshot_url"],
        core_version=row["core_version"],
        daemon_path=row["daemon_path"],
        created_at=row["created_at"],
    )


def _row_to_user(row: sqlite3.Row | None) -> UserRecord | None:
    if row is None:
        return None
    return UserRecord(
        id=int(row["id"]),
        username=row["username"],
        password_hash=row["password_hash"],
        created_at=row["created_at"],
    )


class SqliteNodeStore:
    _SCHEMA: Final[str] = """
    PRAGMA journal_mode=WAL;
    PRAGMA foreign_keys=ON;

    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS nodes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        node_id TEXT NOT NULL UNIQUE,
        owner_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        chain TEXT NOT NULL,
        datadir TEXT NOT NULL,
        p2p_port INTEGER NOT NULL,
        rpc_port INTEGER NOT NULL,
        rpc_user TEXT NOT NULL,
        rpc_password TEXT NOT NULL,
        masternode_key TEXT NOT NULL,
        external_ip TEXT NOT NULL,
        snapshot_url TEXT,
        core_version TEXT,
        daemon_path TEXT,
        created_at TEXT NOT NULL,
        UNIQUE (owner_id, node_id)
    );

    CREATE TABLE IF NOT EXISTS sessions (
        token TEXT PRIMARY KEY,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        created_at INTEGER NOT NULL,
        expires_at INTEGER NOT NULL
    );

    CREATE INDEX IF NOT EXISTS idx_nodes_owner ON nodes(owner_id);
    CREATE INDEX IF NOT EXISTS idx_nodes_chain ON nodes(chain);
    CREATE INDEX IF NOT EXISTS idx_sessions_expires ON sessions(expires_at);
    """

    def __init__(self, db_path: str | Path) -> None:
        self._path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------ lifecycle
    async def init(self) -> None:
        await asyncio.to_thread(self._open)

    def _open(self) -> None:
        if self._conn is not None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._path, isolation_level=None, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.executescript(self._SCHEMA)
        except sqlite3.Error as exc:
            raise StorageError(f"failed to open {self._path}: {exc}") from exc
        self._conn = conn

    async def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            await asyncio.to_thread(conn.close)

    async def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        def _locked() -> T:
            if self._conn is None:
                self._open()
            assert self._conn is not None
            with self._lock:
                try:
                    return fn(self._conn)
                except sqlite3.Error as exc:
                    raise StorageError(str(exc)) from exc

        return await asyncio.to_thread(_locked)

    # ------------------------------------------------------------------ users
    async def create_user(self, username: str, password_hash: str) -> UserRecord:
        def _op(con: sqlite3.Connection) -> UserRecord:
            created = utcnow_iso()
            cur = con.execute(
                "INSERT INTO users(username, password_hash, created_at) VALUES (?, ?, ?)",
                (username, password_hash, created),
            )
            return UserRecord(id=int(cur.lastrowid), username=username, password_hash=password_hash, created_at=created)

        return await self._run(_op)

    async def get_user_by_username(self, username: str) -> UserRecord | None:
        return await self._run(
            lambda con: _row_to_user(con.execute("SELECT * FROM users WHERE username=?", (username,)).fetchone())
        )

    async def get_user_by_id(self, user_id: int) -> UserRecord | None:
        return await self._run(
            lambda con: _row_to_user(con.execute("SELECT * FROM users WHERE id=?", (int(user_id),)).fetchone())
        )

    # ------------------------------------------------------------------ nodes
    async def list_nodes(self, owner_id: int) -> list[NodeConfig]:
        return await self._run(
            lambda con: [
                _row_to_node(r)
                for r in con.execute("SELECT * FROM nodes WHERE owner_id=? ORDER BY id", (int(owner_id),)).fetchall()
            ]
        )

    async def list_all_nodes(self) -> list[NodeConfig]:
        return await self._run(
            lambda con: [_row_to_node(r) for r in con.execute("SELECT * FROM nodes ORDER BY id").fetchall()]
        )

    async def list_nodes_for_chain(self, chain_id: str) -> list[NodeConfig]:
        return await self._run(
            lambda con: [
                _row_to_node(r) for r in con.execute("SELECT * FROM nodes WHERE chain=? ORDER BY id", (chain_id,)).fetchall()
            ]
        )

    async def get_node(self, owner_id: int, node_id: str) -> NodeConfig:
        row = await self._run(
            lambda con: con.execute(
                "SELECT * FROM nodes WHERE owner_id=? AND node_id=?", (int(owner_id), node_id)
            ).fetchone()
        )
        if row is None:
            raise NodeNotFoundError(node_id)
        return _row_to_node(row)

    async def add_node(self, owner_id: int, node: NodeConfig) -> None:
        def _op(con: sqlite3.Connection) -> None:
            placeholders = ", ".join("?" for _ in _NODE_COLUMNS)
            values = (
                node.id,
                int(owner_id),
                node.chain,
                node.datadir,
                int(node.p2p_port),
                int(node.rpc_port),
                node.rpc_user,
                node.rpc_password,
                node.masternode_key,
                node.external_ip,
                node.snapshot_url,
                node.core_version,
                node.daemon_path,
                node.created_at,
            )
            try:
                con.execute(f"INSERT INTO nodes({', '.join(_NODE_COLUMNS)}) VALUES ({placeholders})", values)
            except sqlite3.IntegrityError as exc:
                if "node_id" in str(exc):
                    raise NodeIdConflictError(node.id) from exc
                raise

        await self._run(_op)
        node.owner_id = int(owner_id)

    async def update_node(self, owner_id: int, node_id: str, /, **changes: Any) -> None:
        """Partial update; pass ``None`` explicitly to clear a nullable column."""

        unknown = set(changes) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"cannot update node fields: {', '.join(sorted(unknown))}")
        if not changes:
            return
        assignments = ", ".join(f"{_UPDATABLE[key]}=?" for key in changes)
        params = [*changes.values(), int(owner_id), node_id]

        def _op(con: sqlite3.Connection) -> int:
            cur = con.execute(f"UPDATE nodes SET {assignments} WHERE owner_id=? AND node_id=?", params)
            return cur.rowcount

        if await self._run(_op) == 0:
            raise NodeNotFoundError(node_id)

    async def remove_node(self, owner_id: int, node_id: str) -> None:
        await self._run(
            lambda con: con.execute("DELETE FROM nodes WHERE owner_id=? AND node_id=?", (int(owner_id), node_id))
        )

    async def node_exists(self, owner_id: int, node_id: str) -> bool:
        row = await self._run(
            lambda con: con.execute(
                "SELECT COUNT(*) FROM nodes WHERE owner_id=? AND node_id=?", (int(owner_id), node_id)
            ).fetchone()
        )
        return bool(row[0])

    async def node_id_in_use(self, node_id: str) -> bool:
        row = await self._run(lambda con: con.execute("SELECT COUNT(*) FROM nodes WHERE node_id=?", (node_id,)).fetchone())
        return bool(row[0])

    async def ports_in_use(self, ports: Iterable[int] | None = None) -> set[int]:
        """Ports (either role, any owner) already taken; restricted to ``ports`` when given."""

        wanted = None if ports is None else {int(p) for p in ports}

        def _op(con: sqlite3.Connection) -> set[int]:
            used: set[int] = set()
            for row in con.execute("SELECT p2p_port, rpc_port FROM nodes").fetchall():
                used.add(int(row[0]))
                used.add(int(row[1]))
            return used

        used = await self._run(_op)
        return used if wanted is None else used & wanted

    # ------------------------------------------------------------------ sessions
    async def create_session(self, token: str, user_id: int, ttl_seconds: int) -> None:
        now = int(time.time())
        await self._run(
            lambda con: con.execute(
                "INSERT INTO sessions(token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
                (token, int(user_id), now, now + max(int(ttl_seconds), 1)),
            )
        )

    async def get_session(self, token: str) -> dict[str, int] | None:
        row = await self._run(
            lambda con: con.execute(
                "SELECT user_id, created_at, expires_at FROM sessions WHERE token=?", (token,)
            ).fetchone()
        )
        if row is None:
            return None
        return {"user_id": int(row[0]), "created_at": int(row[1]), "expires_at": int(row[2])}

    async def delete_session(self, token: str) -> None:
        await self._run(lambda con: con.execute("DELETE FROM sessions WHERE token=?", (token,)))

    async def delete_expired_sessions(self) -> int:
        now = int(time.time())
        return await self._run(lambda con: con.execute("DELETE FROM sessions WHERE expires_at<?", (now,)).rowcount)
