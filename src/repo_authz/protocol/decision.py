"""Two-phase decision protocol.

The host consults the engine twice per request:

1. **Anonymous phase**: before authentication is attempted, with no user.
   A grant here lets the request through without ever asking for
   credentials.
2. **Authenticated phase**: after the host has established the user; this
   makes the final call.

Each request gets a :class:`RequestDecision`, an explicit state machine::

    UNCHECKED -> ANONYMOUS_PHASE -> ALLOWED | DEFERRED | DENIED
    UNCHECKED | DEFERRED | DENIED -> AUTHENTICATED_PHASE
        -> ALLOWED | DENIED_FINAL | DENIED_NON_AUTHORITATIVE

and every phase returns a :class:`PhaseOutcome` carrying the
:class:`HostDecision` the host should act on.

Example
-------
::

    protocol = DecisionProtocol(config)
    decision = protocol.begin(DavRequest("GET", "/svn/repo/trunk/a.c"), cache)
    first = decision.anonymous_phase(HostContext(auth_required=True, satisfy_any=True))
    if first.decision is not HostDecision.ALLOW:
        final = decision.authenticated_phase(HostContext(user="alice"))
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from repo_authz.cache import PolicyCache
from repo_authz.config import AuthzConfig
from repo_authz.exceptions import ProtocolStateError
from repo_authz.protocol.authorizer import AccessCheck, AccessStatus, RequestAuthorizer
from repo_authz.requests.classifier import DavRequest

logger = logging.getLogger(__name__)


class HostDecision(str, Enum):
    """What the host should do with the request."""

    ALLOW = "allow"
    # Let other authorization mechanisms decide.
    DENY_DEFER = "deny_defer"
    # Terminal rejection.
    DENY_FINAL = "deny_final"
    # Refuse now so the authenticated phase runs with real credentials.
    ESCALATE = "escalate"


class ProtocolState(str, Enum):
    UNCHECKED = "unchecked"
    ANONYMOUS_PHASE = "anonymous_phase"
    ALLOWED = "allowed"
    DEFERRED = "deferred"
    DENIED = "denied"
    AUTHENTICATED_PHASE = "authenticated_phase"
    DENIED_FINAL = "denied_final"
    DENIED_NON_AUTHORITATIVE = "denied_non_authoritative"


_AUTHENTICATED_ENTRY_STATES: frozenset[ProtocolState] = frozenset(
    [ProtocolState.UNCHECKED, ProtocolState.DEFERRED, ProtocolState.DENIED]
)


@dataclass(frozen=True)
class HostContext:
    """What the host reports about authentication for a request.

    Attributes
    ----------
    auth_required:
        The host requires authentication for this resource.
    satisfy_any:
        Either anonymous or authenticated access suffices.
    has_credentials:
        The request carries credentials the host has not validated yet.
    user:
        The authenticated user (authenticated phase only).
    """

    auth_required: bool = False
    satisfy_any: bool = False
    has_credentials: bool = False
    user: str | None = None


@dataclass(frozen=True)
class PhaseOutcome:
    """Result of running one protocol phase."""

    phase: str
    state: ProtocolState
    decision: HostDecision
    reason: str = ""
    challenge: bool = False
    check: AccessCheck | None = None

    @property
    def allowed(self) -> bool:
        return self.decision is HostDecision.ALLOW


class RequestDecision:
    """Protocol state for a single request.

    Create through :meth:`DecisionProtocol.begin`.
    """

    def __init__(
        self,
        config: AuthzConfig,
        authorizer: RequestAuthorizer,
        request: DavRequest,
        cache: PolicyCache,
    ) -> None:
        self._config = config
        self._authorizer = authorizer
        self._request = request
        self._cache = cache
        self._state = ProtocolState.UNCHECKED
        self._outcomes: list[PhaseOutcome] = []

    @property
    def state(self) -> ProtocolState:
        return self._state

    @property
    def request(self) -> DavRequest:
        return self._request

    @property
    def outcomes(self) -> list[PhaseOutcome]:
        return list(self._outcomes)

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def anonymous_phase(self, host: HostContext) -> PhaseOutcome:
        """Run the pre-authentication check.

        Raises
        ------
        ProtocolStateError
            If any phase already ran for this request.
        """
        if self._state is not ProtocolState.UNCHECKED:
            raise ProtocolStateError(
                f"Anonymous phase cannot run from state '{self._state.value}'."
            )
        self._state = ProtocolState.ANONYMOUS_PHASE

        if not self._config.anonymous or self._config.access_file is None:
            return self._finish(
                "anonymous", ProtocolState.DEFERRED, HostDecision.DENY_DEFER,
                "Anonymous checking not configured.",
            )

        if host.auth_required:
            if not host.satisfy_any:
                # Authentication will happen anyway; the anonymous rules are moot.
                return self._finish(
                    "anonymous", ProtocolState.DEFERRED, HostDecision.DENY_DEFER,
                    "Authentication required for this resource.",
                )
            if host.has_credentials:
                return self._finish(
                    "anonymous", ProtocolState.DENIED, HostDecision.ESCALATE,
                    "Credentials supplied; deferring to authenticated check.",
                )

        check = self._authorizer.check(self._request, None, self._cache)
        if check.status is AccessStatus.GRANTED:
            self._log_granted(None, check)
            return self._finish(
                "anonymous", ProtocolState.ALLOWED, HostDecision.ALLOW, "", check=check
            )
        if check.status is AccessStatus.REJECTED:
            return self._finish(
                "anonymous", ProtocolState.DENIED, HostDecision.DENY_FINAL,
                check.reason, check=check,
            )
        if check.status is AccessStatus.DECLINED or not self._config.authoritative:
            return self._finish(
                "anonymous", ProtocolState.DEFERRED, HostDecision.DENY_DEFER,
                check.reason, check=check,
            )

        if not host.auth_required:
            self._log_denied(None, check)
        return self._finish(
            "anonymous", ProtocolState.DENIED, HostDecision.DENY_FINAL,
            check.reason, check=check,
        )

    def authenticated_phase(self, host: HostContext) -> PhaseOutcome:
        """Run the post-authentication check with ``host.user``.

        Raises
        ------
        ProtocolStateError
            If the request was already allowed or finally decided.
        """
        if self._state not in _AUTHENTICATED_ENTRY_STATES:
            raise ProtocolStateError(
                f"Authenticated phase cannot run from state '{self._state.value}'."
            )
        self._state = ProtocolState.AUTHENTICATED_PHASE

        if self._config.access_file is None:
            return self._finish(
                "authenticated", ProtocolState.DENIED_NON_AUTHORITATIVE,
                HostDecision.DENY_DEFER, "No access file configured.",
            )

        check = self._authorizer.check(self._request, host.user, self._cache)
        if check.status is AccessStatus.GRANTED:
            self._log_granted(host.user, check)
            return self._finish(
                "authenticated", ProtocolState.ALLOWED, HostDecision.ALLOW, "", check=check
            )
        if check.status is AccessStatus.REJECTED:
            return self._finish(
                "authenticated", ProtocolState.DENIED_FINAL, HostDecision.DENY_FINAL,
                check.reason, check=check,
            )
        if check.status is AccessStatus.DENIED and self._config.authoritative:
            self._log_denied(host.user, check)
            return self._finish(
                "authenticated", ProtocolState.DENIED_FINAL, HostDecision.DENY_FINAL,
                check.reason, challenge=True, check=check,
            )
        return self._finish(
            "authenticated", ProtocolState.DENIED_NON_AUTHORITATIVE,
            HostDecision.DENY_DEFER, check.reason, check=check,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _finish(
        self,
        phase: str,
        state: ProtocolState,
        decision: HostDecision,
        reason: str,
        challenge: bool = False,
        check: AccessCheck | None = None,
    ) -> PhaseOutcome:
        self._state = state
        outcome = PhaseOutcome(
            phase=phase,
            state=state,
            decision=decision,
            reason=reason,
            challenge=challenge,
            check=check,
        )
        self._outcomes.append(outcome)
        return outcome

    def _describe(self, user: str | None, check: AccessCheck) -> str:
        who = f"'{user}'" if user is not None else "-"
        parts = [who, self._request.method.upper(), check.source_label or self._request.uri]
        if check.destination_label is not None:
            parts.append(check.destination_label)
        return " ".join(parts)

    def _log_granted(self, user: str | None, check: AccessCheck) -> None:
        logger.info("Access granted: %s", self._describe(user, check))

    def _log_denied(self, user: str | None, check: AccessCheck) -> None:
        logger.error("Access denied: %s", self._describe(user, check))


class DecisionProtocol:
    """Factory for per-request :class:`RequestDecision` state machines.

    Parameters
    ----------
    config:
        Engine configuration.
    authorizer:
        Optional :class:`RequestAuthorizer` override.
    """

    def __init__(
        self,
        config: AuthzConfig,
        authorizer: RequestAuthorizer | None = None,
    ) -> None:
        self._config = config
        self._authorizer = authorizer or RequestAuthorizer(config)

    @property
    def config(self) -> AuthzConfig:
        return self._config

    def begin(self, request: DavRequest, cache: PolicyCache) -> RequestDecision:
        """Start the protocol for ``request`` on the connection owning ``cache``."""
        return RequestDecision(self._config, self._authorizer, request, cache)
