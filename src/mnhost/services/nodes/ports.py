"""Host-wide port allocation for new nodes."""

from __future__ import annotations

from typing import Iterable

from mnhost.config import const
from mnhost.domain import DefaultPorts
from mnhost.services.errors import PortAllocationExhaustedError


class PortPicker:
    """Linear probe upward from a start port, skipping anything already taken."""

    def __init__(self, used: Iterable[int]) -> None:
        self.used: set[int] = {int(p) for p in used}

    def reserve(self, port: int) -> int:
        self.used.add(int(port))
        return int(port)

    def pick(self, start: int) -> int:
        port = int(start)
        while port in self.used:
            port += 1
            if port > const.MAX_PORT:
                raise PortAllocationExhaustedError(start)
        return self.reserve(port)


def allocate_ports(
    used: Iterable[int],
    defaults: DefaultPorts,
    *,
    p2p_port: int | None = None,
    rpc_port: int | None = None,
) -> tuple[int, int]:
    """Return ``(p2p, rpc)``. Explicit ports are taken as-is; only defaults are probed."""

    picker = PortPicker(used)
    if p2p_port is not None:
        picker.reserve(p2p_port)
    if rpc_port is not None:
        picker.reserve(rpc_port)

    p2p = int(p2p_port) if p2p_port is not None else picker.pick(defaults.p2p)
    rpc = int(rpc_port) if rpc_port is not None else picker.pick(defaults.rpc)
    if p2p == rpc:
        rpc = picker.pick(rpc + 1)
    return p2p, rpc
