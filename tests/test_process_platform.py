from __future__ import annotations

import subprocess

import pytest

from mnhost.domain import PlatformKey
from mnhost.services.core import process
from mnhost.services.core.platform import current_platform_key
from mnhost.services.errors import UnsupportedPlatformError


class _RecordingPopen:
    calls: list = []

    def __init__(self, argv, **kwargs):
        type(self).calls.append((argv, kwargs))
        self.pid = 31337


@pytest.fixture
def popen(monkeypatch):
    _RecordingPopen.calls = []
    monkeypatch.setattr(process.subprocess, "Popen", _RecordingPopen)
    return _RecordingPopen


def test_daemon_argv_passes_datadir_and_conf(tmp_path):
    argv = process.daemon_argv(tmp_path / "pivxd", tmp_path / "mn1", tmp_path / "mn1" / "pivx.conf")

    assert argv == [str(tmp_path / "pivxd"), f"-datadir={tmp_path / 'mn1'}", f"-conf={tmp_path / 'mn1' / 'pivx.conf'}"]


def test_start_daemon_detaches_with_null_stdio(popen, monkeypatch, tmp_path):
    monkeypatch.setattr(process, "_is_windows", lambda: False)

    pid = process.start_daemon("/opt/pivxd", tmp_path, tmp_path / "pivx.conf")

    assert pid == 31337
    (argv, kwargs), = popen.calls
    assert argv == ["/opt/pivxd", f"-datadir={tmp_path}", f"-conf={tmp_path / 'pivx.conf'}"]
    assert kwargs["stdin"] is subprocess.DEVNULL
    assert kwargs["stdout"] is subprocess.DEVNULL
    assert kwargs["stderr"] is subprocess.DEVNULL
    assert kwargs["start_new_session"] is True
    assert "creationflags" not in kwargs


def test_windows_launch_uses_creation_flags(popen, monkeypatch, tmp_path):
    monkeypatch.setattr(process, "_is_windows", lambda: True)

    process.start_daemon("C:/cores/pivxd.exe", tmp_path, tmp_path / "pivx.conf")

    (_, kwargs), = popen.calls
    assert "start_new_session" not in kwargs
    assert isinstance(kwargs["creationflags"], int)


@pytest.mark.parametrize(
    ("system", "machine", "expected"),
    [
        ("Linux", "x86_64", PlatformKey.LINUX_X64),
        ("Linux", "aarch64", PlatformKey.LINUX_ARM64),
        ("Linux", "armv7l", PlatformKey.LINUX_ARM),
        ("Windows", "AMD64", PlatformKey.WIN32_X64),
        ("Darwin", "arm64", PlatformKey.DARWIN_ARM64),
    ],
)
def test_platform_key_mapping(system, machine, expected):
    assert current_platform_key(system, machine) is expected


@pytest.mark.parametrize(("system", "machine"), [("FreeBSD", "x86_64"), ("Linux", "riscv64"), ("Windows", "arm64")])
def test_unmapped_platform_is_rejected(system, machine):
    with pytest.raises(UnsupportedPlatformError):
        current_platform_key(system, machine)
