"""Keyed collection of chain plugins."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from mnhost.domain import ChainPlugin
from mnhost.services.errors import NoReleasesError, UnknownChainError

from . import semver
from .dogecash import DOGECASH
from .pivx import PIVX
from .zenzo import ZENZO

_log = logging.getLogger("mnhost.chains")

BUILTIN_CHAINS: tuple[ChainPlugin, ...] = (PIVX, DOGECASH, ZENZO)


class ChainRegistry:
    """Read-only after startup; later registrations replace earlier ones with the same id."""

    def __init__(self, chains: Iterable[ChainPlugin] = ()) -> None:
        self._chains: dict[str, ChainPlugin] = {}
        for chain in chains:
            self.register(chain)

    @classmethod
    def with_builtins(cls, extra: Iterable[ChainPlugin] = ()) -> "ChainRegistry":
        return cls([*BUILTIN_CHAINS, *extra])

    def register(self, chain: ChainPlugin) -> None:
        if chain.id in self._chains:
            _log.info("chain plugin %s overridden", chain.id)
        self._chains[chain.id] = chain

    def get(self, chain_id: str) -> ChainPlugin:
        chain = self._chains.get(chain_id)
        if chain is None:
            raise UnknownChainError(chain_id)
        return chain

    def list(self) -> list[ChainPlugin]:
        return list(self._chains.values())

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._chains

    def __iter__(self) -> Iterator[ChainPlugin]:
        return iter(self._chains.values())

    def latest_version(self, chain: ChainPlugin | str) -> str:
        plugin = self.get(chain) if isinstance(chain, str) else chain
        newest = semver.latest(plugin.versions())
        if newest is None:
            raise NoReleasesError(plugin.id)
        return newest
