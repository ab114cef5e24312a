"""Subtree veto for recursive reads.

Checks every section that lies at or beneath a base path, each on its own
without walking ancestors.  Any section whose matching lines deny the
required access vetoes the whole subtree.  Whether the sections refer to
paths that exist in the repository is never checked.
"""
from __future__ import annotations

import logging

from repo_authz.engine.paths import is_within, normalize_path
from repo_authz.engine.permissions import Permission, PermissionResolver

logger = logging.getLogger(__name__)


class SubtreeVerifier:
    """Scans descendant sections for an explicit denial."""

    def __init__(self, resolver: PermissionResolver) -> None:
        self._resolver = resolver

    def find_veto(
        self,
        repository: str,
        base_path: str,
        user: str | None,
        required: Permission = Permission.READ,
    ) -> str | None:
        """Return the first section that denies ``required``, or ``None``.

        Qualified sections of ``repository`` are scanned first, generic
        sections second, each in the policy's declared order.
        """
        base = normalize_path(base_path)
        policy = self._resolver.policy
        prefix = f"{repository}:"

        qualified = policy.section_names(
            lambda name: name.startswith(prefix) and is_within(name[len(prefix):], base)
        )
        generic = policy.section_names(lambda name: is_within(name, base))

        for section in (*qualified, *generic):
            if not self._resolver.resolve(section, user).grants(required):
                logger.debug(
                    "Subtree of %s:%s vetoed by [%s] for %s",
                    repository,
                    base,
                    section,
                    user or "<anonymous>",
                )
                return section
        return None

    def verify_subtree(
        self,
        repository: str,
        base_path: str,
        user: str | None,
        required: Permission = Permission.READ,
    ) -> bool:
        return self.find_veto(repository, base_path, user, required) is None
