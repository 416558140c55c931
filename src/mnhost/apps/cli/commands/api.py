# src/mnhost/apps/cli/commands/api.py
from __future__ import annotations

import os
from typing import Optional

import typer
import uvicorn

from mnhost.services.agent_context import get_ctx

app = typer.Typer(help="HTTP API for mnhost")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Defaults to MNHOST_HOST or 0.0.0.0"),
    port: Optional[int] = typer.Option(None, "--port", help="Defaults to PORT / SERVER_PORT or 8080"),
    reload: bool = typer.Option(False, "--reload", help="for development"),
):
    """Serve the HTTP API (FastAPI)."""
    settings = get_ctx().settings
    # the app factory rebuilds its context from the environment
    os.environ["MNHOST_BASE_DIR"] = str(settings.base_dir)
    uvicorn.run(
        "mnhost.apps.api.server:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
    )
