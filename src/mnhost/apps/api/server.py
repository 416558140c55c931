# src/mnhost/apps/api/server.py
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mnhost import __version__
from mnhost.services.agent_context import AppContext, get_ctx, init_ctx, set_ctx
from mnhost.services.errors import MnHostError
from mnhost.services.logging import setup_logging

_log = logging.getLogger("mnhost.api")


def create_app(ctx: AppContext | None = None, *, configure_logging: bool = True) -> FastAPI:
    """Build the HTTP app around ``ctx`` (or a context from the environment)."""

    if ctx is None:
        ctx = init_ctx()
    else:
        set_ctx(ctx)
    if configure_logging:
        logfile = setup_logging(ctx.settings, ctx.paths)
        _log.info("logging to %s", logfile)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await ctx.store.init()
        dropped = await ctx.store.delete_expired_sessions()
        if dropped:
            _log.info("dropped %d expired sessions", dropped)
        app.state.ctx = ctx
        try:
            yield
        finally:
            await ctx.store.close()

    # imported here so routers resolve the context installed above
    from mnhost.apps.api import auth, nodes, public

    app = FastAPI(title="mnhost API", lifespan=lifespan, version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS", "DELETE"],
        allow_headers=["Content-Type", "X-MnHost-Session", "Authorization"],
        allow_credentials=False,
    )
    app.dependency_overrides[get_ctx] = lambda: ctx

    app.include_router(auth.router, prefix="/api/auth")
    app.include_router(nodes.router, prefix="/api")
    app.include_router(public.router, prefix="/public")

    @app.exception_handler(MnHostError)
    async def _mnhost_error(request: Request, exc: MnHostError):
        if exc.status_code >= 500:
            _log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"ok": False, "error": str(exc), "code": exc.error_code},
        )

    @app.exception_handler(ValueError)
    async def _value_error(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"ok": False, "error": str(exc), "code": "invalid_request"})

    @app.get("/api/ping")
    async def ping():
        return {"ok": True, "ts": time.time()}

    return app
