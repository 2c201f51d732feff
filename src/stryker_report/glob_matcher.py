"""Path glob compilation.

Supported wildcards:

* ``**`` matches any run of characters, separators included.  When it is
  a whole segment followed by ``/`` it also matches zero directories, so
  ``src/**/a.cs`` matches both ``src/a.cs`` and ``src/x/y/a.cs``, while
  ``a**/b.cs`` still needs a ``/`` after ``a``.
* ``*`` matches any run of characters other than ``/``.
* ``?`` matches a single character other than ``/``.

Everything else matches literally.  Backslashes in both the pattern and the
candidate are treated as ``/``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from stryker_report.errors import InvalidArgumentsError


def _to_posix(path: str) -> str:
    return path.replace("\\", "/")


def glob_to_regex(pattern: str) -> str:
    """Translate a normalized glob pattern into an unanchored regex body."""
    parts: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "*":
            if i + 1 < n and pattern[i + 1] == "*":
                whole_segment = i == 0 or pattern[i - 1] == "/"
                if whole_segment and i + 2 < n and pattern[i + 2] == "/":
                    parts.append("(?:.*/)?")
                    i += 3
                else:
                    parts.append(".*")
                    i += 2
                continue
            parts.append("[^/]*")
        elif ch == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(ch))
        i += 1
    return "".join(parts)


class GlobMatcher:
    """A compiled, anchored path glob.

    ``glob_to_regex`` escapes every literal, so no pattern it produces
    fails to compile; the ``re.error`` branch only guards changes to
    that translation.
    """

    def __init__(self, pattern: str) -> None:
        self.pattern = _to_posix(pattern)
        try:
            self._regex = re.compile(r"\A" + glob_to_regex(self.pattern) + r"\Z", re.DOTALL)
        except re.error as exc:
            raise InvalidArgumentsError(f"Invalid file pattern: {pattern} ({exc})") from exc

    def matches(self, path: str) -> bool:
        return self._regex.match(_to_posix(path)) is not None

    def __repr__(self) -> str:
        return f"GlobMatcher({self.pattern!r})"


def compile_glob(pattern: str) -> GlobMatcher:
    return GlobMatcher(pattern)


def compile_globs(patterns: Iterable[str]) -> list[GlobMatcher]:
    """Compile each distinct pattern once, keeping first-seen order."""
    seen: dict[str, GlobMatcher] = {}
    for pattern in patterns:
        if pattern not in seen:
            seen[pattern] = GlobMatcher(pattern)
    return list(seen.values())


def matches_any(matchers: Iterable[GlobMatcher], path: str) -> bool:
    return any(m.matches(path) for m in matchers)
