"""Detached daemon launch. The daemon is never supervised; stop goes through RPC."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Any

_log = logging.getLogger("mnhost.core.process")


def _is_windows() -> bool:
    return os.name == "nt"


def daemon_argv(daemon_path: Path | str, datadir: Path | str, conf_path: Path | str) -> list[str]:
    return [str(daemon_path), f"-datadir={datadir}", f"-conf={conf_path}"]


def _detach_kwargs() -> dict[str, Any]:
    if _is_windows():
        flags = (
            getattr(subprocess, "DETACHED_PROCESS", 0)
            | getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)
            | getattr(subprocess, "CREATE_NO_WINDOW", 0)
        )
        return {"creationflags": flags}
    return {"start_new_session": True}


def start_daemon(daemon_path: Path | str, datadir: Path | str, conf_path: Path | str) -> int:
    """Spawn the daemon in its own session with all stdio on the null device; returns its pid."""

    argv = daemon_argv(daemon_path, datadir, conf_path)
    _log.info("starting daemon %s", argv)
    proc = subprocess.Popen(
        argv,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        close_fds=True,
        **_detach_kwargs(),
    )
    return int(proc.pid)
