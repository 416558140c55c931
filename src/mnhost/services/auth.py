# src/mnhost/services/auth.py
"""Account registration, password hashing and session tokens."""
from __future__ import annotations

import asyncio
import logging
import re
import secrets
import time

import bcrypt

from mnhost.adapters.db import SqliteNodeStore
from mnhost.config import const
from mnhost.domain import UserRecord
from mnhost.services.errors import AuthError, UsernameTakenError

_log = logging.getLogger("mnhost.auth")

_BCRYPT_ROUNDS = 10
_BCRYPT_MAX_BYTES = 72
_username_re = re.compile(r"^[A-Za-z0-9_.\-]{1,64}$")


def hash_password(password: str, *, rounds: int = _BCRYPT_ROUNDS) -> str:
    """bcrypt hash in modular crypt format (``$2b$10$...``)."""

    secret = password.encode("utf-8")
    if len(secret) > _BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {_BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, encoded: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), encoded.encode("ascii"))
    except ValueError:
        return False


class AuthService:
    def __init__(self, store: SqliteNodeStore, *, ttl_seconds: int = const.SESSION_TTL_S) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def register(self, username: str, password: str) -> UserRecord:
        username = (username or "").strip()
        if not username or not password:
            raise ValueError("Username and password required")
        if not _username_re.match(username):
            raise ValueError("Username may contain letters, digits, '.', '_' or '-' (max 64)")
        if await self.store.get_user_by_username(username) is not None:
            raise UsernameTakenError(username)
        user = await self.store.create_user(username, await asyncio.to_thread(hash_password, password))
        _log.info("user %s registered (id=%s)", user.username, user.id)
        return user

    async def authenticate(self, username: str, password: str) -> UserRecord:
        if not username or not password:
            raise ValueError("Username and password required")
        user = await self.store.get_user_by_username(username.strip())
        if user is None or not await asyncio.to_thread(verify_password, password, user.password_hash):
            raise AuthError("Invalid credentials", error_code="invalid_credentials")
        return user

    async def open_session(self, user: UserRecord) -> str:
        token = secrets.token_urlsafe(32)
        await self.store.create_session(token, user.id, self.ttl_seconds)
        return token

    async def resolve_session(self, token: str | None) -> UserRecord:
        if not token:
            raise AuthError("Unauthorized")
        session = await self.store.get_session(token)
        if session is None:
            raise AuthError("Unauthorized")
        if session["expires_at"] < int(time.time()):
            await self.store.delete_expired_sessions()
            raise AuthError("Session expired", error_code="session_expired")
        user = await self.store.get_user_by_id(session["user_id"])
        if user is None:
            raise AuthError("Unauthorized")
        return user

    async def close_session(self, token: str | None) -> None:
        if token:
            await self.store.delete_session(token)
