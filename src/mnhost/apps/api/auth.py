# src/mnhost/apps/api/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel, Field

from mnhost.domain import UserRecord
from mnhost.services.agent_context import AppContext, get_ctx

router = APIRouter(tags=["auth"])


class Credentials(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=1024)


def session_token(
    authorization: str | None = Header(default=None),
    x_mnhost_session: str | None = Header(default=None),
) -> str | None:
    """
    Accept either ``Authorization: Bearer <token>`` or ``X-MnHost-Session``.
    """
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return x_mnhost_session or None


async def require_user(
    token: str | None = Depends(session_token),
    ctx: AppContext = Depends(get_ctx),
) -> UserRecord:
    return await ctx.auth.resolve_session(token)


@router.post("/register")
async def register(body: Credentials, ctx: AppContext = Depends(get_ctx)):
    user = await ctx.auth.register(body.username, body.password)
    token = await ctx.auth.open_session(user)
    return {**user.public_view(), "token": token}


@router.post("/login")
async def login(body: Credentials, ctx: AppContext = Depends(get_ctx)):
    user = await ctx.auth.authenticate(body.username, body.password)
    token = await ctx.auth.open_session(user)
    return {**user.public_view(), "token": token}


@router.post("/logout")
async def logout(token: str | None = Depends(session_token), ctx: AppContext = Depends(get_ctx)):
    await ctx.auth.close_session(token)
    return {"ok": True}


@router.get("/me")
async def me(user: UserRecord = Depends(require_user)):
    return user.public_view()
