"""Map inbound WebDAV/DeltaV requests onto access queries.

Read-only methods need READ on the request path.  COPY needs READ on the
whole source subtree.  Everything that changes the repository needs WRITE,
and so does any method not listed here.  MOVE and COPY additionally need
WRITE on their destination.

MERGE is special: its request URI names the activity being merged, not the
paths it touches, so the path is dropped and the query covers the whole
repository.  The committed paths are authorised one by one by the editing
layer.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from repo_authz.engine.checker import AccessQuery
from repo_authz.engine.paths import qualify
from repo_authz.engine.permissions import Permission
from repo_authz.requests.uri import UriDecomposer

logger = logging.getLogger(__name__)

READ_METHODS: frozenset[str] = frozenset(["OPTIONS", "GET", "HEAD", "PROPFIND", "REPORT"])
READ_TREE_METHODS: frozenset[str] = frozenset(["COPY"])
WRITE_METHODS: frozenset[str] = frozenset(
    [
        "MOVE",
        "MKCOL",
        "DELETE",
        "PUT",
        "PROPPATCH",
        "CHECKOUT",
        "CHECKIN",
        "UNCHECKOUT",
        "MERGE",
        "MKACTIVITY",
        "LOCK",
        "UNLOCK",
        "VERSION-CONTROL",
    ]
)
DESTINATION_METHODS: frozenset[str] = frozenset(["MOVE", "COPY"])
PATHLESS_METHODS: frozenset[str] = frozenset(["MERGE"])


@dataclass(frozen=True)
class DavRequest:
    """The parts of an inbound request the engine looks at.

    Attributes
    ----------
    method:
        HTTP/WebDAV method name.
    uri:
        Request URI (path, optionally with scheme/host/query).
    destination:
        ``Destination`` header value for MOVE/COPY, else ``None``.
    """

    method: str
    uri: str
    destination: str | None = None


@dataclass(frozen=True)
class ClassifiedRequest:
    """Access queries derived from one request."""

    method: str
    source: AccessQuery
    destination: AccessQuery | None = None

    @property
    def queries(self) -> tuple[AccessQuery, ...]:
        if self.destination is None:
            return (self.source,)
        return (self.source, self.destination)

    @property
    def source_label(self) -> str:
        return qualify(self.source.repository, self.source.path)

    @property
    def destination_label(self) -> str | None:
        if self.destination is None:
            return None
        return qualify(self.destination.repository, self.destination.path)


def required_permission(method: str) -> Permission:
    """Return the access ``method`` needs on its request path."""
    method = method.upper()
    if method in READ_METHODS:
        return Permission.READ
    if method in READ_TREE_METHODS:
        return Permission.READ_TREE
    if method not in WRITE_METHODS:
        logger.debug("Unknown method %s, requiring write access", method)
    return Permission.WRITE


class RequestClassifier:
    """Builds :class:`ClassifiedRequest` objects for one mount.

    Parameters
    ----------
    decomposer:
        Maps request and destination URIs to ``(repository, path)``.
    """

    def __init__(self, decomposer: UriDecomposer) -> None:
        self._decomposer = decomposer

    def classify(self, request: DavRequest, user: str | None) -> ClassifiedRequest:
        """Return the queries ``user`` must pass for ``request``.

        Raises
        ------
        InvalidRequestShape
            If the URI does not decompose or a MOVE/COPY has no destination.
        DestinationOutsideMount
            If a MOVE/COPY destination leaves the mount.
        """
        method = request.method.upper()
        repository, path = self._decomposer.split(request.uri)
        if method in PATHLESS_METHODS:
            path = None

        source = AccessQuery(
            repository=repository,
            path=path,
            user=user,
            required=required_permission(method),
        )
        if method not in DESTINATION_METHODS:
            return ClassifiedRequest(method=method, source=source)

        dest_repository, dest_path = self._decomposer.destination(request.destination)
        destination = AccessQuery(
            repository=dest_repository,
            path=dest_path,
            user=user,
            required=Permission.WRITE,
        )
        return ClassifiedRequest(method=method, source=source, destination=destination)
