"""Request decomposition and classification."""
from __future__ import annotations

from repo_authz.requests.classifier import (
    ClassifiedRequest,
    DavRequest,
    RequestClassifier,
    required_permission,
)
from repo_authz.requests.uri import UriDecomposer

__all__ = [
    "ClassifiedRequest",
    "DavRequest",
    "RequestClassifier",
    "UriDecomposer",
    "required_permission",
]
