"""Fetch, verify and unpack prebuilt daemon releases into ``cores/<chain>/<version>/bin``."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable

from mnhost.adapters.fs.path_provider import PathProvider
from mnhost.domain import PlatformKey
from mnhost.services.chains import ChainRegistry
from mnhost.services.errors import NoReleaseForPlatformError

from .downloader import Downloader
from .extract import extract_archive
from .platform import current_platform_key
from .verify import verify_sha256

_log = logging.getLogger("mnhost.core.installer")


class ArtifactInstaller:
    def __init__(
        self,
        paths: PathProvider,
        chains: ChainRegistry,
        *,
        downloader: Downloader | None = None,
        skip_verify: bool = False,
        platform_key: Callable[[], PlatformKey] = current_platform_key,
    ) -> None:
        self.paths = paths
        self.chains = chains
        self.downloader = downloader or Downloader()
        self.skip_verify = skip_verify
        self._platform_key = platform_key

    def platform_key(self) -> PlatformKey:
        return self._platform_key()

    def bin_dir(self, chain_id: str, version: str) -> Path:
        return self.paths.core_bin_dir(chain_id, version)

    async def install(self, chain_id: str, version: str) -> Path:
        """Download and unpack ``chain_id`` ``version`` for this host; returns the ``bin`` dir.

        Always downloads: re-running overwrites the previous extraction in place.
        """
        chain = self.chains.get(chain_id)
        platform_key = self.platform_key()
        asset = chain.release(version, platform_key)
        if asset is None:
            raise NoReleaseForPlatformError(chain.id, version, str(platform_key))

        archive_path = self.paths.core_archive_path(chain.id, version, str(platform_key), str(asset.archive))
        extract_dir = self.bin_dir(chain.id, version)

        await self.downloader.fetch(asset.url, archive_path)
        if self.skip_verify:
            _log.warning("checksum verification disabled; installing %s %s unverified", chain.id, version)
        else:
            await verify_sha256(archive_path, asset.sha256)
        await asyncio.to_thread(extract_archive, archive_path, extract_dir, asset.archive)
        _log.info("installed %s core %s (%s) at %s", chain.id, version, platform_key, extract_dir)
        return extract_dir
