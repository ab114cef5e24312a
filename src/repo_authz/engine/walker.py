"""Ancestor walk: find the deepest section that decides a request.

Precedence runs on two axes.  Depth comes first: a decisive section at a
deeper path always wins over anything at a shallower one.  At the same
depth, the repository-qualified section (``repo:/path``) is consulted before
the generic one (``/path``).  A section only decides when one of its
matching lines mentions a required bit; otherwise the walk moves to the
parent.  Reaching past ``/`` without a decision denies.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from repo_authz.engine.paths import ancestors
from repo_authz.engine.permissions import Permission, PermissionResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalkResult:
    """Outcome of an ancestor walk.

    Attributes
    ----------
    allowed:
        The verdict.
    section:
        Name of the section that decided, or ``None`` when the whole-repo
        shortcut or the default deny applied.
    """

    allowed: bool
    section: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


class AncestorWalker:
    """Resolves a path against a policy by walking up its ancestors."""

    def __init__(self, resolver: PermissionResolver) -> None:
        self._resolver = resolver

    def walk(
        self,
        repository: str,
        path: str | None,
        user: str | None,
        required: Permission,
    ) -> WalkResult:
        """Return the verdict together with the section that produced it.

        Raises
        ------
        ValueError
            If ``required`` includes ``READ_TREE``; the subtree half of that
            check is done by :class:`~repo_authz.engine.checker.AccessChecker`.
        """
        if required & Permission.READ_TREE:
            raise ValueError(
                "READ_TREE cannot be resolved by an ancestor walk alone; use AccessChecker."
            )
        if path is None:
            # Whole-repository queries are not authorised at this level.
            return WalkResult(allowed=True)

        for ancestor in ancestors(path):
            for section in (f"{repository}:{ancestor}", ancestor):
                bits = self._resolver.resolve(section, user)
                if bits.is_decisive(required):
                    allowed = bits.grants(required)
                    logger.debug(
                        "Section [%s] decides %s for %s: %s",
                        section,
                        required.name,
                        user or "<anonymous>",
                        "allow" if allowed else "deny",
                    )
                    return WalkResult(allowed=allowed, section=section)

        logger.debug(
            "No decisive section for %s:%s (%s); default deny",
            repository,
            path,
            user or "<anonymous>",
        )
        return WalkResult(allowed=False)

    def resolve(
        self,
        repository: str,
        path: str | None,
        user: str | None,
        required: Permission,
    ) -> bool:
        return self.walk(repository, path, user, required).allowed
