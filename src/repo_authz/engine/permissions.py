"""Permission flags and per-section permission resolution.

A section is resolved for one principal by folding every matching rule
line into a pair of bitmasks.  A line whose permission string contains
``r`` adds READ to ``allow``; a line without ``r`` adds READ to ``deny``.
The same holds for ``w`` and WRITE.  Non-matching lines contribute nothing,
so a section with no line for the principal stays silent.

Example
-------
::

    resolver = PermissionResolver(policy)
    bits = resolver.resolve("/trunk", "alice")
    bits.is_decisive(Permission.WRITE)
    bits.grants(Permission.WRITE)
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from repo_authz.engine.groups import GroupResolver
from repo_authz.policy.source import PolicySource, Rule

logger = logging.getLogger(__name__)


class Permission(enum.IntFlag):
    """Access levels a request can require."""

    NONE = 0
    READ = 1
    WRITE = 2
    READ_TREE = 4


# Letter in a permission string -> the permission it grants.
_LETTERS: tuple[tuple[str, Permission], ...] = (
    ("r", Permission.READ),
    ("w", Permission.WRITE),
)


@dataclass(frozen=True)
class PermissionBits:
    """Accumulated allow/deny masks for one principal in one section."""

    allow: Permission = Permission.NONE
    deny: Permission = Permission.NONE

    def __or__(self, other: PermissionBits) -> PermissionBits:
        return PermissionBits(allow=self.allow | other.allow, deny=self.deny | other.deny)

    def is_decisive(self, required: Permission) -> bool:
        """True when some matching line mentioned a bit of ``required``."""
        return bool((self.allow | self.deny) & required)

    def grants(self, required: Permission) -> bool:
        """An explicit grant wins; otherwise any recorded denial refuses."""
        return bool(self.allow & required) or not (self.deny & required)

    @classmethod
    def from_permission_string(cls, permissions: str) -> PermissionBits:
        allow = Permission.NONE
        deny = Permission.NONE
        for letter, flag in _LETTERS:
            if letter in permissions:
                allow |= flag
            else:
                deny |= flag
        return cls(allow=allow, deny=deny)


class PermissionResolver:
    """Evaluates a section's rule lines for a principal.

    Parameters
    ----------
    policy:
        The policy the sections are read from.
    groups:
        Optional :class:`GroupResolver` override; one bound to ``policy`` is
        created when omitted.
    """

    def __init__(self, policy: PolicySource, groups: GroupResolver | None = None) -> None:
        self._policy = policy
        self._groups = groups or GroupResolver(policy)

    @property
    def policy(self) -> PolicySource:
        return self._policy

    def matches(self, rule: Rule, user: str | None) -> bool:
        """Whether ``rule`` applies to ``user`` (``None`` is anonymous)."""
        if rule.is_wildcard:
            return True
        if user is None:
            return False
        group = rule.group_name
        if group is not None:
            return self._groups.is_member(group, user)
        return rule.principal == user

    def resolve(self, section: str, user: str | None) -> PermissionBits:
        """Fold every matching line of ``section`` into one :class:`PermissionBits`."""
        bits = PermissionBits()
        for rule in self._policy.section_rules(section):
            if not self.matches(rule, user):
                continue
            bits = bits | PermissionBits.from_permission_string(rule.permissions)
            logger.debug(
                "[%s] %s = %s => allow = %d, deny = %d",
                section,
                rule.principal,
                rule.permissions,
                bits.allow,
                bits.deny,
            )
        return bits
