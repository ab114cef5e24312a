"""Per-connection cache of loaded access files.

One :class:`PolicyCache` lives as long as the connection (or session) that
owns it.  Requests on that connection share the cached policy; a changed
file is not noticed until a new cache is created.

Thread-safety is achieved with a threading.Lock around the fill path, so
at most one load of a given access file runs at a time.  Reads of an
already cached policy are plain dict lookups.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from repo_authz.policy.source import PolicySource

logger = logging.getLogger(__name__)

_KEY_PREFIX = "repo_authz:"


class PolicyCache:
    """Memoises loaded policies keyed by their storage location."""

    def __init__(self) -> None:
        self._entries: dict[str, PolicySource] = {}
        self._lock = threading.Lock()

    @staticmethod
    def key_for(location: str | Path) -> str:
        return f"{_KEY_PREFIX}{location}"

    def get(self, location: str | Path) -> PolicySource | None:
        return self._entries.get(self.key_for(location))

    def get_or_load(
        self,
        location: str | Path,
        loader: Callable[[str | Path], PolicySource],
    ) -> PolicySource:
        """Return the cached policy for ``location``, loading it on a miss.

        Exceptions raised by ``loader`` propagate and nothing is cached, so
        the next request retries the load.
        """
        key = self.key_for(location)
        policy = self._entries.get(key)
        if policy is not None:
            return policy

        with self._lock:
            policy = self._entries.get(key)
            if policy is None:
                policy = loader(location)
                self._entries[key] = policy
                logger.debug("Cached access policy %s", key)
        return policy

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, location: object) -> bool:
        if not isinstance(location, (str, Path)):
            return False
        return self.key_for(location) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
