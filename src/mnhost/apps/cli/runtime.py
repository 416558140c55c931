# src/mnhost/apps/cli/runtime.py
from __future__ import annotations

import asyncio
import json
import os
import traceback
from typing import Any, Awaitable, Callable, TypeVar

import typer

from mnhost.domain import UserRecord
from mnhost.services.agent_context import AppContext, get_ctx
from mnhost.services.errors import MnHostError

T = TypeVar("T")


def run(fn: Callable[[AppContext], Awaitable[T]]) -> T:
    """Run ``fn(ctx)`` with the store opened; MnHostError becomes a red message and exit code 1."""

    async def _main() -> T:
        ctx = get_ctx()
        await ctx.store.init()
        try:
            return await fn(ctx)
        finally:
            await ctx.store.close()

    try:
        return asyncio.run(_main())
    except (MnHostError, ValueError) as exc:
        if os.getenv("MNHOST_CLI_DEBUG") == "1":
            traceback.print_exc()
        typer.secho(f"error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc


async def resolve_user(ctx: AppContext, username: str) -> UserRecord:
    user = await ctx.store.get_user_by_username(username)
    if user is None:
        raise ValueError(f"unknown user: {username}")
    return user


def echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))
