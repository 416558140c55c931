"""Streamed HTTP downloads for release archives and chain snapshots."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import httpx

from mnhost.services.errors import DownloadError

_log = logging.getLogger("mnhost.core.download")


class Downloader:
    """Fetch a URL into a file. No overall timeout: snapshots can be many gigabytes."""

    def __init__(
        self,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        connect_timeout: float = 30.0,
        chunk_size: int = 1 << 16,
    ) -> None:
        self._transport = transport
        self._timeout = httpx.Timeout(None, connect=connect_timeout)
        self._chunk_size = chunk_size

    async def fetch(self, url: str, dest: Path) -> Path:
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        partial = dest.with_name(dest.name + ".part")
        written = 0
        _log.info("downloading %s -> %s", url, dest)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True, transport=self._transport
            ) as client:
                async with client.stream("GET", url) as response:
                    if response.status_code < 200 or response.status_code >= 300:
                        raise DownloadError(
                            url, f"{response.status_code} {response.reason_phrase}", status=response.status_code
                        )
                    with open(partial, "wb") as fh:
                        async for chunk in response.aiter_bytes(self._chunk_size):
                            fh.write(chunk)
                            written += len(chunk)
        except httpx.HTTPError as exc:
            partial.unlink(missing_ok=True)
            raise DownloadError(url, str(exc) or exc.__class__.__name__) from exc
        except BaseException:
            partial.unlink(missing_ok=True)
            raise

        if written == 0:
            partial.unlink(missing_ok=True)
            raise DownloadError(url, "empty response body")
        os.replace(partial, dest)
        _log.debug("downloaded %s bytes from %s", written, url)
        return dest
