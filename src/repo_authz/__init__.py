"""repo-authz: path-based access control for version-control repositories.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import repo_authz as authz
>>> policy = authz.AccessPolicy.from_mapping({"/": {"*": "r"}})
>>> checker = authz.AccessChecker(policy)
>>> checker.check(authz.AccessQuery("repo", "/trunk", None, authz.Permission.READ))
True
"""
from __future__ import annotations

__version__: str = "0.1.0"

from repo_authz.cache import PolicyCache
from repo_authz.config import AuditConfig, AuthzConfig, ConfigLoader

# ---------------------------------------------------------------------------
# Policy data
# ---------------------------------------------------------------------------
from repo_authz.policy.loader import AccessFileLoader
from repo_authz.policy.source import AccessPolicy, PolicySource, Rule, Section

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
from repo_authz.engine.checker import AccessChecker, AccessQuery, CheckResult
from repo_authz.engine.groups import GroupResolver
from repo_authz.engine.permissions import Permission, PermissionBits, PermissionResolver
from repo_authz.engine.subtree import SubtreeVerifier
from repo_authz.engine.walker import AncestorWalker

# ---------------------------------------------------------------------------
# Requests and protocol
# ---------------------------------------------------------------------------
from repo_authz.requests.classifier import DavRequest, RequestClassifier
from repo_authz.requests.uri import UriDecomposer
from repo_authz.protocol.authorizer import AccessCheck, AccessStatus, RequestAuthorizer
from repo_authz.protocol.decision import (
    DecisionProtocol,
    HostContext,
    HostDecision,
    PhaseOutcome,
    ProtocolState,
    RequestDecision,
)

# ---------------------------------------------------------------------------
# Host integration
# ---------------------------------------------------------------------------
from repo_authz.audit.logger import AuditLogger
from repo_authz.plugin.authz_plugin import AuthzPlugin

from repo_authz.exceptions import (
    AuthzError,
    ConfigError,
    DestinationOutsideMount,
    InvalidRequestShape,
    PolicyLoadError,
    ProtocolStateError,
)

__all__ = [
    "__version__",
    # Policy data
    "AccessFileLoader",
    "AccessPolicy",
    "PolicyCache",
    "PolicySource",
    "Rule",
    "Section",
    # Engine
    "AccessChecker",
    "AccessQuery",
    "AncestorWalker",
    "CheckResult",
    "GroupResolver",
    "Permission",
    "PermissionBits",
    "PermissionResolver",
    "SubtreeVerifier",
    # Requests and protocol
    "AccessCheck",
    "AccessStatus",
    "DavRequest",
    "DecisionProtocol",
    "HostContext",
    "HostDecision",
    "PhaseOutcome",
    "ProtocolState",
    "RequestAuthorizer",
    "RequestClassifier",
    "RequestDecision",
    "UriDecomposer",
    # Host integration
    "AuditConfig",
    "AuditLogger",
    "AuthzConfig",
    "AuthzPlugin",
    "ConfigLoader",
    # Errors
    "AuthzError",
    "ConfigError",
    "DestinationOutsideMount",
    "InvalidRequestShape",
    "PolicyLoadError",
    "ProtocolStateError",
]
