"""Policy data: parsed access-file sections and the loader that builds them."""
from __future__ import annotations

from repo_authz.policy.loader import AccessFileLoader
from repo_authz.policy.source import (
    GROUPS_SECTION,
    AccessPolicy,
    PolicySource,
    Rule,
    Section,
)

__all__ = [
    "GROUPS_SECTION",
    "AccessFileLoader",
    "AccessPolicy",
    "PolicySource",
    "Rule",
    "Section",
]
