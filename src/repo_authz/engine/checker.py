"""Access checks over a loaded policy.

:class:`AccessChecker` composes the ancestor walk and the subtree veto into
the single boolean answer for an :class:`AccessQuery`.

Example
-------
::

    checker = AccessChecker(policy)
    checker.check(AccessQuery("myrepo", "/trunk/a.c", "alice", Permission.WRITE))
"""
from __future__ import annotations

from dataclasses import dataclass

from repo_authz.engine.groups import GroupResolver
from repo_authz.engine.paths import normalize_path, qualify
from repo_authz.engine.permissions import Permission, PermissionResolver
from repo_authz.engine.subtree import SubtreeVerifier
from repo_authz.engine.walker import AncestorWalker
from repo_authz.policy.source import PolicySource


@dataclass(frozen=True)
class AccessQuery:
    """One access question about one path.

    Attributes
    ----------
    repository:
        Repository name.
    path:
        Repository-relative path, or ``None`` for the whole repository.
    user:
        Authenticated username, or ``None`` for anonymous.
    required:
        ``READ``, ``WRITE`` or ``READ_TREE``.
    """

    repository: str
    path: str | None
    user: str | None
    required: Permission

    def __post_init__(self) -> None:
        if self.path is not None:
            object.__setattr__(self, "path", normalize_path(self.path))

    @property
    def label(self) -> str:
        """``repo:path`` rendering used in logs."""
        return qualify(self.repository, self.path)


@dataclass(frozen=True)
class CheckResult:
    """Verdict for one query plus the sections that shaped it."""

    query: AccessQuery
    allowed: bool
    deciding_section: str | None = None
    veto_section: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


class AccessChecker:
    """Answers :class:`AccessQuery` objects against one policy."""

    def __init__(self, policy: PolicySource) -> None:
        self._policy = policy
        self._resolver = PermissionResolver(policy, GroupResolver(policy))
        self._walker = AncestorWalker(self._resolver)
        self._subtree = SubtreeVerifier(self._resolver)

    @property
    def policy(self) -> PolicySource:
        return self._policy

    def evaluate(self, query: AccessQuery) -> CheckResult:
        """Return the verdict for ``query`` with the deciding/vetoing sections."""
        required = query.required
        require_subtree = required == Permission.READ_TREE
        if require_subtree:
            required = Permission.READ

        walk = self._walker.walk(query.repository, query.path, query.user, required)
        if not walk.allowed or not require_subtree or query.path is None:
            return CheckResult(query=query, allowed=walk.allowed, deciding_section=walk.section)

        veto = self._subtree.find_veto(query.repository, query.path, query.user, required)
        return CheckResult(
            query=query,
            allowed=veto is None,
            deciding_section=walk.section,
            veto_section=veto,
        )

    def check(self, query: AccessQuery) -> bool:
        return self.evaluate(query).allowed
