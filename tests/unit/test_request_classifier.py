"""Unit tests for requests/uri.py and requests/classifier.py."""
from __future__ import annotations

import pytest

from repo_authz.engine.permissions import Permission
from repo_authz.exceptions import DestinationOutsideMount, InvalidRequestShape
from repo_authz.requests.classifier import DavRequest, RequestClassifier, required_permission
from repo_authz.requests.uri import UriDecomposer


@pytest.fixture()
def decomposer() -> UriDecomposer:
    return UriDecomposer("/svn")


@pytest.fixture()
def classifier(decomposer: UriDecomposer) -> RequestClassifier:
    return RequestClassifier(decomposer)


# ---------------------------------------------------------------------------
# UriDecomposer
# ---------------------------------------------------------------------------


class TestUriDecomposer:
    def test_repository_and_path(self, decomposer: UriDecomposer) -> None:
        assert decomposer.split("/svn/myrepo/trunk/a.c") == ("myrepo", "/trunk/a.c")

    def test_repository_root(self, decomposer: UriDecomposer) -> None:
        assert decomposer.split("/svn/myrepo") == ("myrepo", "/")
        assert decomposer.split("/svn/myrepo/") == ("myrepo", "/")

    def test_percent_decoding(self, decomposer: UriDecomposer) -> None:
        assert decomposer.split("/svn/r/my%20file.txt") == ("r", "/my file.txt")

    def test_query_string_ignored(self, decomposer: UriDecomposer) -> None:
        assert decomposer.split("/svn/r/trunk?p=3") == ("r", "/trunk")

    def test_special_namespace_has_no_path(self, decomposer: UriDecomposer) -> None:
        assert decomposer.split("/svn/r/!svn/act/1234") == ("r", None)

    def test_outside_mount_raises(self, decomposer: UriDecomposer) -> None:
        with pytest.raises(InvalidRequestShape):
            decomposer.split("/git/r/trunk")

    def test_string_prefix_of_mount_is_outside(self, decomposer: UriDecomposer) -> None:
        with pytest.raises(InvalidRequestShape):
            decomposer.split("/svnx/r/trunk")

    def test_mount_without_repository_raises(self, decomposer: UriDecomposer) -> None:
        with pytest.raises(InvalidRequestShape, match="repository"):
            decomposer.split("/svn/")

    def test_root_mount(self) -> None:
        assert UriDecomposer("/").split("/r/a") == ("r", "/a")

    def test_destination_absolute_url(self, decomposer: UriDecomposer) -> None:
        assert decomposer.destination("https://host.example/svn/r/tags/v1") == ("r", "/tags/v1")

    def test_destination_missing(self, decomposer: UriDecomposer) -> None:
        with pytest.raises(InvalidRequestShape):
            decomposer.destination(None)

    def test_destination_outside_mount(self, decomposer: UriDecomposer) -> None:
        with pytest.raises(DestinationOutsideMount) as exc_info:
            decomposer.destination("http://host/elsewhere/r/x")
        assert exc_info.value.base_path == "/svn"
        assert exc_info.value.destination == "/elsewhere/r/x"

    def test_encoded_parent_segment_resolved(self, decomposer: UriDecomposer) -> None:
        assert decomposer.split("/svn/r/pub/%2e%2e/secret/x") == ("r", "/secret/x")
        assert decomposer.split("/svn/r/pub/%2E%2E/secret/x") == ("r", "/secret/x")

    def test_current_segment_dropped(self, decomposer: UriDecomposer) -> None:
        assert decomposer.split("/svn/r/./trunk/%2e/a.c") == ("r", "/trunk/a.c")

    def test_parent_segment_can_change_repository(self, decomposer: UriDecomposer) -> None:
        assert decomposer.split("/svn/r/../other/trunk") == ("other", "/trunk")

    def test_parent_segments_climbing_out_of_mount(self, decomposer: UriDecomposer) -> None:
        with pytest.raises(InvalidRequestShape, match="outside mount"):
            decomposer.split("/svn/r/../../etc/passwd")

    def test_parent_segment_leaving_no_repository(self, decomposer: UriDecomposer) -> None:
        with pytest.raises(InvalidRequestShape, match="repository"):
            decomposer.split("/svn/r/%2e%2e")

    def test_destination_parent_segment_resolved(self, decomposer: UriDecomposer) -> None:
        assert decomposer.destination("http://h/svn/r/pub/../secret/x") == ("r", "/secret/x")

    def test_destination_climbing_out_of_mount(self, decomposer: UriDecomposer) -> None:
        with pytest.raises(DestinationOutsideMount) as exc_info:
            decomposer.destination("http://h/svn/r/../../elsewhere/x")
        assert exc_info.value.destination == "/elsewhere/x"


# ---------------------------------------------------------------------------
# required_permission
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("method", ["OPTIONS", "GET", "HEAD", "PROPFIND", "REPORT"])
def test_read_methods(method: str) -> None:
    assert required_permission(method) == Permission.READ


@pytest.mark.parametrize(
    "method",
    ["MOVE", "MKCOL", "DELETE", "PUT", "PROPPATCH", "CHECKOUT", "MERGE", "MKACTIVITY", "LOCK", "UNLOCK"],
)
def test_write_methods(method: str) -> None:
    assert required_permission(method) == Permission.WRITE


def test_copy_needs_read_tree() -> None:
    assert required_permission("COPY") == Permission.READ_TREE


def test_unknown_method_needs_write() -> None:
    assert required_permission("BREW") == Permission.WRITE


def test_method_case_insensitive() -> None:
    assert required_permission("propfind") == Permission.READ


# ---------------------------------------------------------------------------
# RequestClassifier
# ---------------------------------------------------------------------------


class TestRequestClassifier:
    def test_get(self, classifier: RequestClassifier) -> None:
        classified = classifier.classify(DavRequest("GET", "/svn/r/trunk/a"), "alice")
        assert classified.destination is None
        assert classified.source.repository == "r"
        assert classified.source.path == "/trunk/a"
        assert classified.source.user == "alice"
        assert classified.source.required == Permission.READ
        assert classified.queries == (classified.source,)

    def test_copy_source_and_destination(self, classifier: RequestClassifier) -> None:
        classified = classifier.classify(
            DavRequest("COPY", "/svn/r/trunk", destination="http://h/svn/r/tags/v1"),
            "alice",
        )
        assert classified.source.required == Permission.READ_TREE
        assert classified.destination is not None
        assert classified.destination.required == Permission.WRITE
        assert classified.destination_label == "r:/tags/v1"

    def test_move_destination_never_read_tree(self, classifier: RequestClassifier) -> None:
        classified = classifier.classify(
            DavRequest("MOVE", "/svn/r/a", destination="/svn/r/b"), None
        )
        assert classified.source.required == Permission.WRITE
        assert classified.destination is not None
        assert classified.destination.required == Permission.WRITE

    def test_merge_ignores_request_path(self, classifier: RequestClassifier) -> None:
        classified = classifier.classify(DavRequest("MERGE", "/svn/r/trunk/secret"), "bob")
        assert classified.source.path is None
        assert classified.source_label == "r:"

    def test_copy_without_destination_raises(self, classifier: RequestClassifier) -> None:
        with pytest.raises(InvalidRequestShape):
            classifier.classify(DavRequest("COPY", "/svn/r/trunk"), "alice")

    def test_cross_mount_destination_raises(self, classifier: RequestClassifier) -> None:
        with pytest.raises(DestinationOutsideMount):
            classifier.classify(
                DavRequest("MOVE", "/svn/r/a", destination="http://h/other/r/b"), "alice"
            )

    def test_destination_ignored_for_other_methods(self, classifier: RequestClassifier) -> None:
        classified = classifier.classify(
            DavRequest("PUT", "/svn/r/a", destination="http://h/other/r/b"), "alice"
        )
        assert classified.destination is None
