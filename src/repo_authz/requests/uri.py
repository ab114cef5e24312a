"""Decompose request URIs into ``(repository, path)`` pairs.

The engine is mounted at a base path; the first segment after the base
names the repository and the remainder is the repository-relative path::

    base_path = "/svn"
    "/svn/myrepo/trunk/a.c"   -> ("myrepo", "/trunk/a.c")
    "/svn/myrepo"             -> ("myrepo", "/")
    "/svn/myrepo/!svn/act/42" -> ("myrepo", None)

URIs under the special ``!svn`` namespace address protocol resources
(activities, baselines, working resources) rather than repository paths,
so they carry no path to authorise.

``.`` and ``..`` segments are resolved after percent-decoding and before
the mount check, so ``/svn/myrepo/pub/%2e%2e/secret`` is authorised as
``/secret``.
"""
from __future__ import annotations

import posixpath
from urllib.parse import unquote, urlsplit

from repo_authz.engine.paths import normalize_path
from repo_authz.exceptions import DestinationOutsideMount, InvalidRequestShape

SPECIAL_URI = "!svn"


def _decoded_path(uri: str) -> str:
    """Percent-decode the path of ``uri`` and resolve its dot segments."""
    path = unquote(urlsplit(uri).path)
    if not path.startswith("/"):
        return path
    return "/" + posixpath.normpath(path).lstrip("/")


class UriDecomposer:
    """Maps URIs under a mount base onto repository names and paths.

    Parameters
    ----------
    base_path:
        The location the repositories are served under, e.g. ``"/svn"``.
    special_uri:
        Name of the protocol-resource namespace segment.
    """

    def __init__(self, base_path: str = "/", special_uri: str = SPECIAL_URI) -> None:
        self._base_path = normalize_path(base_path)
        self._special_uri = special_uri

    @property
    def base_path(self) -> str:
        return self._base_path

    def is_under_base(self, path: str) -> bool:
        if self._base_path == "/":
            return path.startswith("/")
        return path == self._base_path or path.startswith(self._base_path + "/")

    def split(self, uri: str) -> tuple[str, str | None]:
        """Return ``(repository, path)`` for a request URI.

        Raises
        ------
        InvalidRequestShape
            If the URI is outside the mount base or names no repository.
        """
        path = _decoded_path(uri)
        if not self.is_under_base(path):
            raise InvalidRequestShape(
                f"URI '{uri}' is outside mount base '{self._base_path}'."
            )
        return self._split_decoded(path, uri)

    def _split_decoded(self, path: str, uri: str) -> tuple[str, str | None]:
        relative = path[len(self._base_path):] if self._base_path != "/" else path
        segments = [s for s in relative.split("/") if s]
        if not segments:
            raise InvalidRequestShape(f"URI '{uri}' does not name a repository.")

        repository, rest = segments[0], segments[1:]
        if rest and rest[0] == self._special_uri:
            return repository, None
        return repository, "/" + "/".join(rest)

    def destination(self, header: str | None) -> tuple[str, str | None]:
        """Decompose a ``Destination`` header value.

        Raises
        ------
        InvalidRequestShape
            If the header is missing or empty, or names no repository.
        DestinationOutsideMount
            If the destination is not under this mount base once its dot
            segments are resolved.
        """
        if not header:
            raise InvalidRequestShape("MOVE/COPY request carries no Destination.")

        path = _decoded_path(header)
        if not self.is_under_base(path):
            raise DestinationOutsideMount(path, self._base_path)
        return self._split_decoded(path, header)
