# src/mnhost/services/agent_context.py
"""Process-wide application context shared by the HTTP API and the CLI."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from mnhost.adapters.db import SqliteNodeStore
from mnhost.adapters.fs.path_provider import PathProvider
from mnhost.services.auth import AuthService
from mnhost.services.chains import ChainRegistry
from mnhost.services.nodes import ExplorerService, NodeManager, WalletService
from mnhost.services.settings import Settings

_log = logging.getLogger("mnhost.context")


@dataclass(slots=True)
class AppContext:
    settings: Settings
    paths: PathProvider
    store: SqliteNodeStore
    chains: ChainRegistry
    manager: NodeManager
    wallet: WalletService
    explorer: ExplorerService
    auth: AuthService


_ctx: AppContext | None = None


def build_ctx(settings: Settings | None = None, *, chains: ChainRegistry | None = None, **manager_kwargs: Any) -> AppContext:
    """Wire every service for ``settings``; ``manager_kwargs`` reach :class:`NodeManager` (test seams)."""

    settings = settings or Settings.from_sources()
    paths = PathProvider.from_settings(settings)
    paths.ensure_tree()
    store = SqliteNodeStore(paths.db_path())
    chains = chains or ChainRegistry.with_builtins()
    manager = NodeManager(settings=settings, paths=paths, store=store, chains=chains, **manager_kwargs)
    return AppContext(
        settings=settings,
        paths=paths,
        store=store,
        chains=chains,
        manager=manager,
        wallet=WalletService(manager),
        explorer=ExplorerService(manager),
        auth=AuthService(store, ttl_seconds=settings.session_ttl_seconds),
    )


def set_ctx(ctx: AppContext | None) -> None:
    global _ctx
    _ctx = ctx


def init_ctx(settings: Settings | None = None, **kwargs: Any) -> AppContext:
    ctx = build_ctx(settings, **kwargs)
    set_ctx(ctx)
    _log.debug("context initialised at %s", ctx.paths.base_dir())
    return ctx


def get_ctx() -> AppContext:
    """Return the installed context, building a default one on first use."""

    if _ctx is None:
        return init_ctx()
    return _ctx
