"""AuthzPlugin: entry point for host request pipelines.

The plugin wires together the configuration, decision protocol and audit
trail, and exposes the two hooks a host calls per request:

- ``access_checker(decision, host)``: before authentication
- ``auth_checker(decision, host)``: after authentication

Example
-------
>>> plugin = AuthzPlugin()
>>> plugin.load_config(Path("authz.yaml"))
>>> cache = plugin.new_connection()
>>> decision = plugin.begin(DavRequest("GET", "/svn/repo/trunk/README"), cache)
>>> plugin.access_checker(decision, HostContext()).decision
<HostDecision.ALLOW: 'allow'>
"""
from __future__ import annotations

import logging
from pathlib import Path

from repo_authz.audit.logger import AuditLogger
from repo_authz.cache import PolicyCache
from repo_authz.config import AuthzConfig, ConfigLoader
from repo_authz.protocol.authorizer import AccessCheck, RequestAuthorizer
from repo_authz.protocol.decision import (
    DecisionProtocol,
    HostContext,
    PhaseOutcome,
    RequestDecision,
)
from repo_authz.requests.classifier import DavRequest

logger = logging.getLogger(__name__)


class AuthzPlugin:
    """Host-facing facade over the authorization engine.

    Call :meth:`load_config` (or :meth:`configure`) before any other method.

    Parameters
    ----------
    config_loader:
        Optional :class:`ConfigLoader` override (for testing).
    """

    def __init__(self, config_loader: ConfigLoader | None = None) -> None:
        self._config_loader = config_loader or ConfigLoader()
        self._config: AuthzConfig | None = None
        self._authorizer: RequestAuthorizer | None = None
        self._protocol: DecisionProtocol | None = None
        self._audit: AuditLogger | None = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def load_config(self, path: str | Path) -> None:
        """Load and apply an engine YAML configuration.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ConfigError:
            When the file fails validation.
        """
        self.configure(self._config_loader.load(Path(path)))
        logger.info("AuthzPlugin loaded config from %s", path)

    def load_config_defaults(self) -> None:
        self.configure(self._config_loader.defaults())

    def configure(self, config: AuthzConfig) -> None:
        self._config = config
        self._authorizer = RequestAuthorizer(config)
        self._protocol = DecisionProtocol(config, self._authorizer)
        self._audit = AuditLogger(config.audit.log_path) if config.audit.enabled else None

    @property
    def config(self) -> AuthzConfig:
        self._ensure_initialised()
        assert self._config is not None
        return self._config

    # ------------------------------------------------------------------
    # Request hooks
    # ------------------------------------------------------------------

    def new_connection(self) -> PolicyCache:
        """Return a fresh cache to share across one connection's requests."""
        return PolicyCache()

    def begin(self, request: DavRequest, cache: PolicyCache | None = None) -> RequestDecision:
        self._ensure_initialised()
        assert self._protocol is not None
        return self._protocol.begin(request, cache if cache is not None else PolicyCache())

    def access_checker(self, decision: RequestDecision, host: HostContext) -> PhaseOutcome:
        """Anonymous phase: decide before authentication is attempted."""
        outcome = decision.anonymous_phase(host)
        self._audit_outcome(decision, None, outcome)
        return outcome

    def auth_checker(self, decision: RequestDecision, host: HostContext) -> PhaseOutcome:
        """Authenticated phase: final decision with ``host.user``."""
        outcome = decision.authenticated_phase(host)
        self._audit_outcome(decision, host.user, outcome)
        return outcome

    def check(
        self,
        request: DavRequest,
        user: str | None,
        cache: PolicyCache | None = None,
    ) -> AccessCheck:
        """One-shot check of ``request`` for ``user`` outside the protocol."""
        self._ensure_initialised()
        assert self._authorizer is not None
        return self._authorizer.check(request, user, cache if cache is not None else PolicyCache())

    def get_status(self) -> dict[str, object]:
        """Return a summary of the active configuration."""
        self._ensure_initialised()
        assert self._config is not None
        return {
            "access_file": str(self._config.access_file) if self._config.access_file else None,
            "base_path": self._config.base_path,
            "authoritative": self._config.authoritative,
            "anonymous": self._config.anonymous,
            "audit_log": str(self._audit.log_path) if self._audit is not None else None,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _audit_outcome(
        self,
        decision: RequestDecision,
        user: str | None,
        outcome: PhaseOutcome,
    ) -> None:
        if self._audit is not None:
            self._audit.log_decision(decision.request, user, outcome)

    def _ensure_initialised(self) -> None:
        if self._protocol is None:
            raise RuntimeError(
                "AuthzPlugin is not configured. Call load_config() or configure() first."
            )
