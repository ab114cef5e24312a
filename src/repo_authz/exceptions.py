"""Exception hierarchy for repo-authz.

Every error raised by the engine derives from :class:`AuthzError` so a host
can catch the whole family in one place.  Path resolution itself never
raises; these errors only come from loading policy files, decomposing
request URIs, and driving the decision protocol out of order.
"""
from __future__ import annotations


class AuthzError(Exception):
    """Base class for all repo-authz errors."""


class ConfigError(AuthzError, ValueError):
    """Raised when the engine configuration is invalid."""


class PolicyLoadError(AuthzError):
    """Raised when an access file cannot be read or parsed.

    Attributes
    ----------
    location:
        The storage location of the access file, if known.
    """

    def __init__(self, message: str, location: str | None = None) -> None:
        self.location = location
        prefix = f"[{location}] " if location else ""
        super().__init__(f"{prefix}{message}")


class InvalidRequestShape(AuthzError, ValueError):
    """Raised when a request cannot be mapped to access queries.

    The host should let its own request validation report the problem;
    the engine declines to decide.
    """


class DestinationOutsideMount(InvalidRequestShape):
    """Raised when a MOVE/COPY destination lies outside the mount base.

    Attributes
    ----------
    destination:
        The decoded destination path.
    base_path:
        The configured mount base the destination failed to match.
    """

    def __init__(self, destination: str, base_path: str) -> None:
        self.destination = destination
        self.base_path = base_path
        super().__init__(
            f"Destination '{destination}' is outside mount base '{base_path}'."
        )


class ProtocolStateError(AuthzError, RuntimeError):
    """Raised when a decision phase runs from a state that does not allow it."""
