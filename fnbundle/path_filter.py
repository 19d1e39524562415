from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Pattern, Tuple


@lru_cache(maxsize=512)
def _compile(pattern: str) -> Pattern[str]:
    # only '*' (any run, '/' included) and '?' (one char) are special
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), flags=re.DOTALL)


def _match_one(pattern: str, path: str) -> bool:
    return _compile(pattern).fullmatch(path) is not None


def matches(path: str, patterns: Iterable[str]) -> bool:
    for pattern in patterns:
        if pattern and _match_one(pattern, path):
            return True
    return False


class PathFilter:
    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self._patterns: Tuple[str, ...] = tuple(p for p in patterns if p)

    @property
    def patterns(self) -> Tuple[str, ...]:
        return self._patterns

    def matches(self, path: str) -> bool:
        return matches(path, self._patterns)

    def __repr__(self) -> str:
        return f"PathFilter({list(self._patterns)!r})"
