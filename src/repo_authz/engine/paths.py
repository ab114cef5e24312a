"""Repository path helpers."""
from __future__ import annotations

from collections.abc import Iterator


def normalize_path(path: str) -> str:
    """Return ``path`` as an absolute, slash-collapsed path without trailing ``/``.

    ``.`` segments are dropped and ``..`` removes the preceding segment;
    a ``..`` at the root stays at the root.

    >>> normalize_path("trunk//src/")
    '/trunk/src'
    >>> normalize_path("/pub/../secret/./x")
    '/secret/x'
    >>> normalize_path("")
    '/'
    """
    parts: list[str] = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        parts.append(part)
    return "/" + "/".join(parts)


def ancestors(path: str) -> Iterator[str]:
    """Yield ``path`` and each parent up to and including ``/``.

    >>> list(ancestors("/a/b"))
    ['/a/b', '/a', '/']
    """
    current = normalize_path(path)
    while True:
        yield current
        if current == "/":
            return
        current = current.rsplit("/", 1)[0] or "/"


def is_within(path: str, base: str) -> bool:
    """True when ``path`` equals ``base`` or lies beneath it.

    >>> is_within("/proj/a", "/proj")
    True
    >>> is_within("/project", "/proj")
    False
    """
    if base == "/":
        return path.startswith("/")
    return path == base or path.startswith(base + "/")


def qualify(repository: str, path: str | None) -> str:
    """Render a ``repo:path`` label, using an empty path for whole-repo queries."""
    return f"{repository}:{path if path is not None else ''}"
