"""Single-pass request authorization.

:class:`RequestAuthorizer` turns one request plus one (possibly absent)
user into an :class:`AccessCheck`: classify the request, fetch the access
policy through the connection's cache, and check every derived query.
It does not know about authentication phases; that is the job of
:mod:`repo_authz.protocol.decision`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from repo_authz.cache import PolicyCache
from repo_authz.config import AuthzConfig
from repo_authz.engine.checker import AccessChecker, CheckResult
from repo_authz.exceptions import DestinationOutsideMount, InvalidRequestShape, PolicyLoadError
from repo_authz.policy.loader import AccessFileLoader
from repo_authz.requests.classifier import ClassifiedRequest, DavRequest, RequestClassifier
from repo_authz.requests.uri import UriDecomposer

logger = logging.getLogger(__name__)


class AccessStatus(str, Enum):
    """Outcome of checking one request."""

    GRANTED = "granted"
    DENIED = "denied"
    # The request could not be turned into queries; no opinion.
    DECLINED = "declined"
    # The request is malformed in a way that must be refused outright.
    REJECTED = "rejected"


@dataclass(frozen=True)
class AccessCheck:
    """Result of :meth:`RequestAuthorizer.check`."""

    status: AccessStatus
    reason: str = ""
    request: ClassifiedRequest | None = None
    results: tuple[CheckResult, ...] = field(default_factory=tuple)

    @property
    def allowed(self) -> bool:
        return self.status is AccessStatus.GRANTED

    @property
    def source_label(self) -> str | None:
        return self.request.source_label if self.request is not None else None

    @property
    def destination_label(self) -> str | None:
        return self.request.destination_label if self.request is not None else None


class RequestAuthorizer:
    """Checks requests against the configured access file.

    Parameters
    ----------
    config:
        Engine configuration (access file location, mount base).
    loader:
        Optional :class:`AccessFileLoader` override.
    """

    def __init__(self, config: AuthzConfig, loader: AccessFileLoader | None = None) -> None:
        self._config = config
        self._loader = loader or AccessFileLoader(strict=config.strict_access_file)
        self._classifier = RequestClassifier(UriDecomposer(config.base_path))

    @property
    def config(self) -> AuthzConfig:
        return self._config

    def check(
        self,
        request: DavRequest,
        user: str | None,
        cache: PolicyCache,
    ) -> AccessCheck:
        """Decide whether ``user`` may perform ``request``.

        Never raises for bad requests or unreadable access files: those
        become ``REJECTED``/``DECLINED`` and ``DENIED`` respectively.
        """
        try:
            classified = self._classifier.classify(request, user)
        except DestinationOutsideMount as exc:
            logger.error("Rejecting %s %s: %s", request.method, request.uri, exc)
            return AccessCheck(status=AccessStatus.REJECTED, reason=str(exc))
        except InvalidRequestShape as exc:
            logger.debug("Declining %s %s: %s", request.method, request.uri, exc)
            return AccessCheck(status=AccessStatus.DECLINED, reason=str(exc))

        access_file = self._config.access_file
        if access_file is None:
            return AccessCheck(
                status=AccessStatus.DECLINED,
                reason="No access file configured.",
                request=classified,
            )

        try:
            policy = cache.get_or_load(access_file, self._loader.load)
        except PolicyLoadError as exc:
            logger.error("%s", exc)
            return AccessCheck(
                status=AccessStatus.DENIED,
                reason=f"Access file unavailable: {exc}",
                request=classified,
            )

        checker = AccessChecker(policy)
        results: list[CheckResult] = []
        for query in classified.queries:
            result = checker.evaluate(query)
            results.append(result)
            if not result.allowed:
                return AccessCheck(
                    status=AccessStatus.DENIED,
                    reason=_denial_reason(result),
                    request=classified,
                    results=tuple(results),
                )

        return AccessCheck(
            status=AccessStatus.GRANTED,
            reason="",
            request=classified,
            results=tuple(results),
        )


def _denial_reason(result: CheckResult) -> str:
    query = result.query
    if result.veto_section is not None:
        return f"{query.required.name} on {query.label} vetoed by [{result.veto_section}]"
    if result.deciding_section is not None:
        return f"{query.required.name} on {query.label} denied by [{result.deciding_section}]"
    return f"{query.required.name} on {query.label}: no matching rule"
