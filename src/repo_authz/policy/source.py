"""Immutable in-memory representation of a parsed access file.

An :class:`AccessPolicy` holds named sections, each an ordered sequence of
:class:`Rule` lines.  Section names take one of three shapes:

- ``groups``: the reserved group definition section
- ``/path``: a generic section, applies to every repository
- ``repo:/path``: a qualified section, applies to one repository only

Example
-------
::

    policy = AccessPolicy.from_mapping({
        "groups": {"devs": "alice, bob"},
        "/": {"*": "r"},
        "myrepo:/trunk": {"@devs": "rw"},
    })
    policy.section_rules("myrepo:/trunk")
    # (Rule(principal='@devs', permissions='rw'),)
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

GROUPS_SECTION = "groups"


@dataclass(frozen=True)
class Rule:
    """One ``principal = permissions`` line of a section.

    Attributes
    ----------
    principal:
        ``*``, a bare username, or ``@groupname``.
    permissions:
        The raw permission string, e.g. ``"rw"``, ``"r"`` or ``""``.
    """

    principal: str
    permissions: str

    @property
    def is_wildcard(self) -> bool:
        return self.principal == "*"

    @property
    def group_name(self) -> str | None:
        """The referenced group name for ``@group`` principals, else ``None``."""
        if self.principal.startswith("@"):
            return self.principal[1:]
        return None


@dataclass(frozen=True)
class Section:
    """A named, ordered group of rule lines."""

    name: str
    rules: tuple[Rule, ...] = ()

    @property
    def repository(self) -> str | None:
        """Repository a qualified section is scoped to, ``None`` if generic."""
        repository, sep, _ = self.name.partition(":")
        return repository if sep else None

    @property
    def path(self) -> str:
        """The path part of the section name, without any repository prefix."""
        _, sep, path = self.name.partition(":")
        return path if sep else self.name


@runtime_checkable
class PolicySource(Protocol):
    """Read-only view of parsed policy data consumed by the engine."""

    def section_rules(self, name: str) -> tuple[Rule, ...]:
        ...

    def section_names(self, predicate: Callable[[str], bool] | None = None) -> list[str]:
        ...

    def has_section(self, name: str) -> bool:
        ...


class AccessPolicy:
    """Immutable :class:`PolicySource` backed by a dict of sections.

    Sections keep the order in which they were declared; that order is the
    enumeration order used by the subtree check.

    Parameters
    ----------
    sections:
        Iterable of :class:`Section` objects.  A repeated section name
        replaces the earlier definition in place.
    location:
        Optional storage location the policy was loaded from.
    """

    def __init__(self, sections: Iterable[Section], location: str | None = None) -> None:
        self._sections: dict[str, Section] = {}
        for section in sections:
            self._sections[section.name] = section
        self._location = location

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Mapping[str, str] | Iterable[tuple[str, str]]],
        location: str | None = None,
    ) -> AccessPolicy:
        """Build a policy from ``{section: {principal: permissions}}``.

        Section bodies may also be iterables of ``(principal, permissions)``
        pairs, which allows the same principal to appear on several lines.
        """
        sections: list[Section] = []
        for name, body in data.items():
            pairs = body.items() if isinstance(body, Mapping) else body
            rules = tuple(
                Rule(principal=str(principal), permissions="" if perms is None else str(perms))
                for principal, perms in pairs
            )
            sections.append(Section(name=str(name), rules=rules))
        return cls(sections, location=location)

    # ------------------------------------------------------------------
    # PolicySource
    # ------------------------------------------------------------------

    def section_rules(self, name: str) -> tuple[Rule, ...]:
        """Return the rule lines of ``name``, or ``()`` if no such section."""
        section = self._sections.get(name)
        return section.rules if section is not None else ()

    def section_names(self, predicate: Callable[[str], bool] | None = None) -> list[str]:
        """Return section names in declared order, optionally filtered."""
        if predicate is None:
            return list(self._sections)
        return [name for name in self._sections if predicate(name)]

    def has_section(self, name: str) -> bool:
        return name in self._sections

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def section(self, name: str) -> Section | None:
        return self._sections.get(name)

    @property
    def sections(self) -> list[Section]:
        return list(self._sections.values())

    @property
    def location(self) -> str | None:
        return self._location

    def __len__(self) -> int:
        return len(self._sections)

    def __repr__(self) -> str:
        return f"AccessPolicy(sections={len(self._sections)}, location={self._location!r})"
