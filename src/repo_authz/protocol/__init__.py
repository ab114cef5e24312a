"""Request authorization and the two-phase decision protocol."""
from __future__ import annotations

from repo_authz.protocol.authorizer import AccessCheck, AccessStatus, RequestAuthorizer
from repo_authz.protocol.decision import (
    DecisionProtocol,
    HostContext,
    HostDecision,
    PhaseOutcome,
    ProtocolState,
    RequestDecision,
)

__all__ = [
    "AccessCheck",
    "AccessStatus",
    "DecisionProtocol",
    "HostContext",
    "HostDecision",
    "PhaseOutcome",
    "ProtocolState",
    "RequestAuthorizer",
    "RequestDecision",
]
