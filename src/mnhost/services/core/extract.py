"""Zip / gzip-tar extraction that keeps executable bits and refuses path escapes."""

from __future__ import annotations

import logging
import os
import stat
import tarfile
import zipfile
from pathlib import Path

from mnhost.domain import ArchiveKind
from mnhost.services.errors import ExtractError

_log = logging.getLogger("mnhost.core.extract")


def _safe_target(root: Path, member: str) -> Path:
    target = (root / member).resolve()
    if target != root and root not in target.parents:
        raise ExtractError(f"archive member escapes target directory: {member}")
    return target


def _extract_zip(archive: Path, out_dir: Path) -> None:
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            target = _safe_target(out_dir, info.filename)
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, open(target, "wb") as dst:
                while True:
                    chunk = src.read(1 << 20)
                    if not chunk:
                        break
                    dst.write(chunk)
            # zipfile drops unix permissions; restore them from the external attributes.
            mode = (info.external_attr >> 16) & 0o777
            if mode:
                os.chmod(target, mode | stat.S_IRUSR | stat.S_IWUSR)


def _extract_tar(archive: Path, out_dir: Path) -> None:
    with tarfile.open(archive, "r:gz") as tf:
        if hasattr(tarfile, "data_filter"):
            tf.extractall(out_dir, filter="data")
            return
        members = []
        for member in tf.getmembers():
            _safe_target(out_dir, member.name)
            if member.issym() or member.islnk():
                _safe_target(out_dir, os.path.join(os.path.dirname(member.name), member.linkname))
            members.append(member)
        tf.extractall(out_dir, members=members)


def extract_archive(archive: Path, out_dir: Path, kind: ArchiveKind | str) -> Path:
    archive = Path(archive)
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    root = out_dir.resolve()
    kind = ArchiveKind(kind)
    _log.info("extracting %s (%s) into %s", archive, kind, out_dir)
    try:
        if kind is ArchiveKind.ZIP:
            _extract_zip(archive, root)
        else:
            _extract_tar(archive, root)
    except ExtractError:
        raise
    except (OSError, zipfile.BadZipFile, tarfile.TarError) as exc:
        raise ExtractError(f"failed to extract {archive}: {exc}") from exc
    return out_dir
