"""Numeric dotted-version helpers used to pick the newest core release."""

from __future__ import annotations

from functools import cmp_to_key
from itertools import zip_longest
from typing import Iterable, Tuple


def parse(version: str | None) -> Tuple[int, ...]:
    if not version:
        return (0,)
    parts: list[int] = []
    for raw in version.strip().lstrip("vV").split("."):
        try:
            parts.append(max(0, int(raw)))
        except ValueError:
            parts.append(0)
    return tuple(parts)


def compare(a: str, b: str) -> int:
    for left, right in zip_longest(parse(a), parse(b), fillvalue=0):
        if left != right:
            return -1 if left < right else 1
    return 0


def sort_versions(versions: Iterable[str]) -> list[str]:
    return sorted(versions, key=cmp_to_key(compare))


def latest(versions: Iterable[str]) -> str | None:
    ordered = sort_versions(versions)
    return ordered[-1] if ordered else None
