"""Access file loader.

Reads an access file from disk (or a string) and builds an immutable
:class:`~repo_authz.policy.source.AccessPolicy`.  Two formats are accepted.

INI access file (default, any extension other than ``.yaml``/``.yml``)
---------------------------------------------------------------------
::

    [groups]
    devs = alice, bob

    [/]
    * = r

    [myrepo:/trunk]
    @devs = rw
    carol =

Principal names keep their case, and sections keep their declared order.

YAML variant (``.yaml`` / ``.yml``)
-----------------------------------
::

    groups:
      devs: [alice, bob]
    sections:
      "/":
        "*": r
      "myrepo:/trunk":
        "@devs": rw
        carol: ""

Example
-------
::

    loader = AccessFileLoader()
    policy = loader.load("/etc/svn/authz")
    policy.section_rules("/")
"""
from __future__ import annotations

import configparser
import logging
from collections.abc import Mapping
from pathlib import Path

import yaml

from repo_authz.exceptions import PolicyLoadError
from repo_authz.policy.source import GROUPS_SECTION, AccessPolicy, Rule, Section

logger = logging.getLogger(__name__)

_YAML_SUFFIXES: frozenset[str] = frozenset([".yaml", ".yml"])
_KNOWN_PERMISSION_LETTERS: frozenset[str] = frozenset("rw")
# Keeps configparser from merging a DEFAULT section into every path section.
_NO_DEFAULT_SECTION = "\x00no-default"


class _CaseSensitiveParser(configparser.RawConfigParser):
    def optionxform(self, optionstr: str) -> str:
        return optionstr


class AccessFileLoader:
    """Loads :class:`AccessPolicy` objects from access files.

    Parameters
    ----------
    strict:
        When ``True``, section names that are neither ``groups`` nor a
        path (``/...`` or ``repo:/...``) and permission strings holding
        letters other than ``r``/``w`` are rejected.  Default ``False``
        (such entries are loaded and simply never match).
    """

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict

    def load(self, location: str | Path) -> AccessPolicy:
        """Load an access file from disk.

        Raises
        ------
        PolicyLoadError
            If the file is missing, unreadable, or malformed.
        """
        path = Path(location)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PolicyLoadError(f"Cannot read access file: {exc}", str(path)) from exc

        if path.suffix.lower() in _YAML_SUFFIXES:
            policy = self.load_yaml_string(text, location=str(path))
        else:
            policy = self.load_string(text, location=str(path))

        logger.info("Loaded %d access sections from %s", len(policy), path)
        return policy

    def load_string(self, text: str, location: str | None = None) -> AccessPolicy:
        """Parse INI access file content."""
        parser = _CaseSensitiveParser(
            strict=False,
            interpolation=None,
            default_section=_NO_DEFAULT_SECTION,
        )
        try:
            parser.read_string(text, source=location or "<string>")
        except configparser.Error as exc:
            raise PolicyLoadError(f"Malformed access file: {exc}", location) from exc

        sections = [
            Section(
                name=name,
                rules=tuple(
                    Rule(principal=principal, permissions=(value or "").strip())
                    for principal, value in parser.items(name, raw=True)
                ),
            )
            for name in parser.sections()
        ]
        return self._build(sections, location)

    def load_yaml_string(self, text: str, location: str | None = None) -> AccessPolicy:
        """Parse the YAML access file variant."""
        try:
            raw = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise PolicyLoadError(f"Failed to parse YAML: {exc}", location) from exc
        return self.load_from_dict(raw, location=location)

    def load_from_dict(
        self,
        config: Mapping[str, object],
        location: str | None = None,
    ) -> AccessPolicy:
        """Build a policy from an already-parsed YAML-style mapping."""
        if not isinstance(config, Mapping):
            raise PolicyLoadError("Access file must be a mapping.", location)

        sections: list[Section] = []
        raw_groups = config.get("groups", {}) or {}
        if not isinstance(raw_groups, Mapping):
            raise PolicyLoadError("'groups' must be a mapping.", location)
        if raw_groups:
            sections.append(
                Section(
                    name=GROUPS_SECTION,
                    rules=tuple(
                        Rule(principal=str(group), permissions=_join_members(members))
                        for group, members in raw_groups.items()
                    ),
                )
            )

        raw_sections = config.get("sections", {}) or {}
        if not isinstance(raw_sections, Mapping):
            raise PolicyLoadError("'sections' must be a mapping.", location)
        for name, body in raw_sections.items():
            if body is None:
                body = {}
            if not isinstance(body, Mapping):
                raise PolicyLoadError(
                    f"Section '{name}' must map principals to permissions.", location
                )
            sections.append(
                Section(
                    name=str(name),
                    rules=tuple(
                        Rule(principal=str(principal), permissions="" if perms is None else str(perms))
                        for principal, perms in body.items()
                    ),
                )
            )
        return self._build(sections, location)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build(self, sections: list[Section], location: str | None) -> AccessPolicy:
        if self._strict:
            for section in sections:
                self._validate_section(section, location)
        return AccessPolicy(sections, location=location)

    def _validate_section(self, section: Section, location: str | None) -> None:
        if section.name == GROUPS_SECTION:
            return
        if not section.path.startswith("/"):
            raise PolicyLoadError(
                f"Section '{section.name}' is neither 'groups' nor a path.", location
            )
        for rule in section.rules:
            unknown = set(rule.permissions) - _KNOWN_PERMISSION_LETTERS
            if unknown:
                raise PolicyLoadError(
                    f"Unknown permission letters {sorted(unknown)} for "
                    f"'{rule.principal}' in section '{section.name}'.",
                    location,
                )


def _join_members(members: object) -> str:
    if members is None:
        return ""
    if isinstance(members, (list, tuple)):
        return ",".join(str(m) for m in members)
    return str(members)
