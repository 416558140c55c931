"""Host platform detection for selecting prebuilt core archives."""

from __future__ import annotations

import platform as _platform

from mnhost.domain import PlatformKey
from mnhost.services.errors import UnsupportedPlatformError

_SYSTEMS = {"windows": "win32", "linux": "linux", "darwin": "darwin"}
_MACHINES = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "armv7": "arm",
    "arm": "arm",
}


def current_platform_key(system: str | None = None, machine: str | None = None) -> PlatformKey:
    system = system if system is not None else _platform.system()
    machine = machine if machine is not None else _platform.machine()
    os_part = _SYSTEMS.get(system.strip().lower())
    arch_part = _MACHINES.get(machine.strip().lower())
    if os_part and arch_part:
        try:
            return PlatformKey(f"{os_part}-{arch_part}")
        except ValueError:
            pass
    raise UnsupportedPlatformError(system, machine)
