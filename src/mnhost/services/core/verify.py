from __future__ import annotations

import asyncio
import hashlib
from pathlib import Path

from mnhost.services.errors import ChecksumMismatchError


def sha256_file(path: Path, *, chunk_size: int = 1 << 20) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


async def verify_sha256(path: Path, expected: str) -> None:
    actual = await asyncio.to_thread(sha256_file, Path(path))
    if actual.lower() != expected.strip().lower():
        raise ChecksumMismatchError(str(path), expected, actual)
