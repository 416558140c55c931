"""Release install pipeline: download, verify, extract."""

from __future__ import annotations

import os

import httpx
import pytest

from conftest import make_chain, make_tar_gz, make_zip, sha256
from mnhost.domain import ArchiveKind, PlatformKey, ReleaseAsset
from mnhost.services.chains import ChainRegistry
from mnhost.services.core.downloader import Downloader
from mnhost.services.core.extract import extract_archive
from mnhost.services.core.installer import ArtifactInstaller
from mnhost.services.errors import (
    ChecksumMismatchError,
    DownloadError,
    ExtractError,
    NoReleaseForPlatformError,
)

DAEMON = b"#!/bin/sh\necho daemon\n"


def _serve(payloads: dict[str, bytes], hits: list[str] | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if hits is not None:
            hits.append(str(request.url))
        body = payloads.get(str(request.url))
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=body)

    return httpx.MockTransport(handler)


def _installer(paths, archive: bytes, kind: ArchiveKind, *, checksum: str | None = None, skip_verify=False):
    url = f"https://releases.test/testcoin-1.0.0.{kind.value}"
    asset = ReleaseAsset(url=url, sha256=checksum or sha256(archive), archive=kind)
    chains = ChainRegistry([make_chain(versions={"1.0.0": asset})])
    return ArtifactInstaller(
        paths,
        chains,
        downloader=Downloader(transport=_serve({url: archive})),
        skip_verify=skip_verify,
        platform_key=lambda: PlatformKey.LINUX_X64,
    )


@pytest.mark.anyio
async def test_tar_release_installs_nested_executable(paths):
    archive = make_tar_gz({"testcoin-1.0.0/bin/testcoind": DAEMON})
    installer = _installer(paths, archive, ArchiveKind.TAR_GZ)

    bin_dir = await installer.install("testcoin", "1.0.0")

    daemon = bin_dir / "testcoin-1.0.0" / "bin" / "testcoind"
    assert bin_dir == paths.core_bin_dir("testcoin", "1.0.0")
    assert daemon.read_bytes() == DAEMON
    if os.name != "nt":
        assert os.access(daemon, os.X_OK)
    assert paths.core_archive_path("testcoin", "1.0.0", "linux-x64", "tar.gz").is_file()


@pytest.mark.anyio
async def test_zip_release_keeps_unix_mode(paths):
    archive = make_zip({"testcoin/testcoind": DAEMON})
    installer = _installer(paths, archive, ArchiveKind.ZIP)

    bin_dir = await installer.install("testcoin", "1.0.0")

    daemon = bin_dir / "testcoin" / "testcoind"
    assert daemon.read_bytes() == DAEMON
    if os.name != "nt":
        assert os.access(daemon, os.X_OK)


@pytest.mark.anyio
async def test_checksum_mismatch_never_extracts(paths):
    archive = make_tar_gz({"testcoin-1.0.0/bin/testcoind": DAEMON})
    installer = _installer(paths, archive, ArchiveKind.TAR_GZ, checksum="ab" * 32)

    with pytest.raises(ChecksumMismatchError) as excinfo:
        await installer.install("testcoin", "1.0.0")

    assert excinfo.value.expected == "ab" * 32
    assert not paths.core_bin_dir("testcoin", "1.0.0").exists()


@pytest.mark.anyio
async def test_skip_verify_installs_despite_bad_checksum(paths):
    archive = make_tar_gz({"testcoind": DAEMON})
    installer = _installer(paths, archive, ArchiveKind.TAR_GZ, checksum="00" * 32, skip_verify=True)

    bin_dir = await installer.install("testcoin", "1.0.0")

    assert (bin_dir / "testcoind").is_file()


@pytest.mark.anyio
async def test_missing_platform_asset(paths):
    archive = make_tar_gz({"testcoind": DAEMON})
    installer = _installer(paths, archive, ArchiveKind.TAR_GZ)
    installer._platform_key = lambda: PlatformKey.DARWIN_ARM64

    with pytest.raises(NoReleaseForPlatformError):
        await installer.install("testcoin", "1.0.0")


@pytest.mark.anyio
async def test_download_http_error_leaves_no_file(tmp_path):
    downloader = Downloader(transport=_serve({}))
    dest = tmp_path / "core.tar.gz"

    with pytest.raises(DownloadError) as excinfo:
        await downloader.fetch("https://releases.test/missing.tar.gz", dest)

    assert excinfo.value.status == 404
    assert not dest.exists()
    assert not (tmp_path / "core.tar.gz.part").exists()


@pytest.mark.anyio
async def test_download_rejects_empty_body(tmp_path):
    downloader = Downloader(transport=_serve({"https://releases.test/empty": b""}))

    with pytest.raises(DownloadError):
        await downloader.fetch("https://releases.test/empty", tmp_path / "empty.bin")


def test_zip_member_outside_target_is_refused(tmp_path):
    archive = tmp_path / "evil.zip"
    archive.write_bytes(make_zip({"../escape.txt": b"x"}))

    with pytest.raises(ExtractError):
        extract_archive(archive, tmp_path / "out", ArchiveKind.ZIP)

    assert not (tmp_path / "escape.txt").exists()


def test_corrupt_archive_raises_extract_error(tmp_path):
    archive = tmp_path / "broken.tar.gz"
    archive.write_bytes(b"not a tarball")

    with pytest.raises(ExtractError):
        extract_archive(archive, tmp_path / "out", "tar.gz")
