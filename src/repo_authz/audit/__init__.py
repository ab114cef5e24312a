"""Decision audit trail."""
from __future__ import annotations

from repo_authz.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
