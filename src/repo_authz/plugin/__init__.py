"""Host integration: the AuthzPlugin facade."""
from __future__ import annotations

from repo_authz.plugin.authz_plugin import AuthzPlugin

__all__ = ["AuthzPlugin"]
