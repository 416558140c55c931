"""Bootstrap a node's data directory from a pre-synced chain-state archive."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from pathlib import Path

from mnhost.config import const
from mnhost.domain import ArchiveKind, NodeConfig

from .downloader import Downloader
from .extract import extract_archive

_log = logging.getLogger("mnhost.core.snapshot")

SNAPSHOT_DIRS: tuple[str, ...] = (const.BLOCKS_DIRNAME, const.CHAINSTATE_DIRNAME)
_SCRATCH_DIRNAME = "_snapshot_tmp"


def replace_dir(src: Path, dst: Path) -> None:
    """Remove ``dst`` then move ``src`` into its place, copying across filesystems."""

    shutil.rmtree(dst, ignore_errors=True)
    try:
        os.rename(src, dst)
    except OSError:
        shutil.copytree(src, dst)
        shutil.rmtree(src, ignore_errors=True)


def _install_from_scratch(scratch: Path, datadir: Path) -> list[str]:
    replaced: list[str] = []
    for name in SNAPSHOT_DIRS:
        src = scratch / name
        if src.is_dir():
            replace_dir(src, datadir / name)
            replaced.append(name)
    return replaced


class SnapshotApplier:
    def __init__(self, *, downloader: Downloader | None = None) -> None:
        self.downloader = downloader or Downloader()

    async def apply(self, node: NodeConfig, snapshot_url: str) -> list[str]:
        """Returns the names of the data subdirectories that were replaced."""

        kind = ArchiveKind.from_url(snapshot_url)
        datadir = Path(node.datadir)
        scratch = datadir / _SCRATCH_DIRNAME
        archive_path = datadir / f"snapshot.{kind}"

        datadir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(shutil.rmtree, scratch, True)
        scratch.mkdir(parents=True, exist_ok=True)
        try:
            await self.downloader.fetch(snapshot_url, archive_path)
            await asyncio.to_thread(extract_archive, archive_path, scratch, kind)
            replaced = await asyncio.to_thread(_install_from_scratch, scratch, datadir)
        finally:
            await asyncio.to_thread(shutil.rmtree, scratch, True)
            await asyncio.to_thread(archive_path.unlink, True)

        if replaced:
            _log.info("snapshot applied to node %s: %s", node.id, ", ".join(replaced))
        else:
            _log.warning("snapshot %s for node %s contained no %s", snapshot_url, node.id, "/".join(SNAPSHOT_DIRS))
        return replaced
