"""Engine configuration loader with Pydantic v2 validation.

Loads and validates an ``authz.yaml`` file into a typed
:class:`AuthzConfig` object.  Unknown keys are allowed to support future
schema additions without breakage.

Example
-------
>>> loader = ConfigLoader()
>>> config = loader.load_string("access_file: /etc/svn/authz\\nbase_path: /svn\\n")
>>> config.base_path
'/svn'
"""
from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from repo_authz.exceptions import ConfigError


class AuditConfig(BaseModel):
    """Configuration for the decision audit trail."""

    model_config = {"extra": "allow"}

    enabled: bool = Field(default=False)
    log_path: Path = Field(default=Path("./authz_audit.jsonl"))


class AuthzConfig(BaseModel):
    """Top-level engine configuration.

    Attributes
    ----------
    authoritative:
        When ``True`` a denial is final; otherwise it is passed on to other
        authorization mechanisms.
    anonymous:
        When ``False`` the anonymous phase expresses no opinion.
    access_file:
        Location of the access file.  Without one the engine never decides.
    base_path:
        Mount location the repositories are served under.
    strict_access_file:
        Reject access files with unknown section shapes or letters.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    authoritative: bool = Field(default=True)
    anonymous: bool = Field(default=True)
    access_file: Path | None = Field(default=None)
    base_path: str = Field(default="/")
    strict_access_file: bool = Field(default=False)
    audit: AuditConfig = Field(default_factory=AuditConfig)

    @field_validator("base_path")
    @classmethod
    def validate_base_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"base_path must be absolute, got '{value}'")
        return value


class ConfigLoader:
    """Loads and validates engine YAML configuration."""

    def load(self, config_path: Path) -> AuthzConfig:
        """Load and validate a configuration file.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ConfigError:
            When the YAML is malformed or fails validation.
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Authz config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            return self.load_string(fh.read())

    def load_string(self, yaml_content: str) -> AuthzConfig:
        try:
            raw: dict[str, object] = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse config YAML: {exc}") from exc
        return self.load_from_dict(raw)

    def load_from_dict(self, raw: dict[str, object]) -> AuthzConfig:
        try:
            return AuthzConfig.model_validate(raw)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc

    def defaults(self) -> AuthzConfig:
        """Return a default configuration with all defaults applied."""
        return AuthzConfig()
