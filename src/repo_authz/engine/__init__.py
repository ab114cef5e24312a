"""Policy resolution: permissions, groups, ancestor walk and subtree veto."""
from __future__ import annotations

from repo_authz.engine.checker import AccessChecker, AccessQuery, CheckResult
from repo_authz.engine.groups import GroupResolver
from repo_authz.engine.permissions import Permission, PermissionBits, PermissionResolver
from repo_authz.engine.subtree import SubtreeVerifier
from repo_authz.engine.walker import AncestorWalker, WalkResult

__all__ = [
    "AccessChecker",
    "AccessQuery",
    "AncestorWalker",
    "CheckResult",
    "GroupResolver",
    "Permission",
    "PermissionBits",
    "PermissionResolver",
    "SubtreeVerifier",
    "WalkResult",
]
