"""Flat group membership lookup against the ``groups`` section."""
from __future__ import annotations

from repo_authz.policy.source import GROUPS_SECTION, PolicySource


class GroupResolver:
    """Answers ``is this user a member of that group`` for one policy.

    Membership is a single containment check on the group's comma-separated
    member list.  Entries are compared literally (no case folding), and an
    ``@other`` entry is just a string: groups are never expanded
    transitively.
    """

    def __init__(self, policy: PolicySource) -> None:
        self._policy = policy

    def members(self, group: str) -> list[str]:
        """Return the declared members of ``group`` (empty if undefined)."""
        for rule in self._policy.section_rules(GROUPS_SECTION):
            if rule.principal == group:
                return [m.strip() for m in rule.permissions.split(",") if m.strip()]
        return []

    def is_member(self, group: str, user: str) -> bool:
        return user in self.members(group)
