"""Tests for AccessFileLoader and AccessPolicy."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from repo_authz.exceptions import PolicyLoadError
from repo_authz.policy.loader import AccessFileLoader
from repo_authz.policy.source import AccessPolicy, PolicySource, Rule


_INI_ACCESS_FILE = textwrap.dedent(
    """\
    # Sample access file
    [groups]
    devs = alice, bob
    Admins = Carol

    [/]
    * = r

    [myrepo:/trunk]
    @devs = rw
    Carol =
    """
)

_YAML_ACCESS_FILE = textwrap.dedent(
    """\
    groups:
      devs: [alice, bob]
    sections:
      "/":
        "*": r
      "myrepo:/trunk":
        "@devs": rw
        carol: ""
      "/empty":
    """
)


@pytest.fixture()
def loader() -> AccessFileLoader:
    return AccessFileLoader()


@pytest.fixture()
def strict_loader() -> AccessFileLoader:
    return AccessFileLoader(strict=True)


# ---------------------------------------------------------------------------
# INI format
# ---------------------------------------------------------------------------


class TestIniAccessFile:
    def test_sections_in_declared_order(self, loader: AccessFileLoader) -> None:
        policy = loader.load_string(_INI_ACCESS_FILE)
        assert policy.section_names() == ["groups", "/", "myrepo:/trunk"]

    def test_rules_keep_order_and_values(self, loader: AccessFileLoader) -> None:
        policy = loader.load_string(_INI_ACCESS_FILE)
        assert policy.section_rules("myrepo:/trunk") == (
            Rule(principal="@devs", permissions="rw"),
            Rule(principal="Carol", permissions=""),
        )

    def test_principal_case_preserved(self, loader: AccessFileLoader) -> None:
        policy = loader.load_string(_INI_ACCESS_FILE)
        principals = [r.principal for r in policy.section_rules("groups")]
        assert principals == ["devs", "Admins"]

    def test_group_value_is_raw_member_list(self, loader: AccessFileLoader) -> None:
        policy = loader.load_string(_INI_ACCESS_FILE)
        assert policy.section_rules("groups")[0].permissions == "alice, bob"

    def test_missing_section_has_no_rules(self, loader: AccessFileLoader) -> None:
        policy = loader.load_string(_INI_ACCESS_FILE)
        assert policy.section_rules("/nowhere") == ()
        assert not policy.has_section("/nowhere")

    def test_line_outside_section_raises(self, loader: AccessFileLoader) -> None:
        with pytest.raises(PolicyLoadError):
            loader.load_string("* = r\n")

    def test_line_without_value_raises(self, loader: AccessFileLoader) -> None:
        with pytest.raises(PolicyLoadError):
            loader.load_string("[/]\njust-a-name\n")

    def test_no_default_section_merging(self, loader: AccessFileLoader) -> None:
        policy = loader.load_string("[DEFAULT]\n* = rw\n\n[/]\nalice = r\n")
        assert policy.section_rules("/") == (Rule(principal="alice", permissions="r"),)

    def test_repeated_header_continues_section(self, loader: AccessFileLoader) -> None:
        policy = loader.load_string(
            "[/]\nalice = r\n\n[/x]\nbob = r\n\n[/]\nalice = rw\ncarol = r\n"
        )
        assert policy.section_names() == ["/", "/x"]
        assert policy.section_rules("/") == (
            Rule(principal="alice", permissions="rw"),
            Rule(principal="carol", permissions="r"),
        )

    def test_policy_satisfies_protocol(self, loader: AccessFileLoader) -> None:
        assert isinstance(loader.load_string(_INI_ACCESS_FILE), PolicySource)


# ---------------------------------------------------------------------------
# YAML format
# ---------------------------------------------------------------------------


class TestYamlAccessFile:
    def test_groups_list_joined(self, loader: AccessFileLoader) -> None:
        policy = loader.load_yaml_string(_YAML_ACCESS_FILE)
        assert policy.section_rules("groups") == (
            Rule(principal="devs", permissions="alice,bob"),
        )

    def test_sections_loaded(self, loader: AccessFileLoader) -> None:
        policy = loader.load_yaml_string(_YAML_ACCESS_FILE)
        assert policy.section_names() == ["groups", "/", "myrepo:/trunk", "/empty"]
        assert policy.section_rules("/empty") == ()

    def test_null_permission_is_empty(self, loader: AccessFileLoader) -> None:
        policy = loader.load_from_dict({"sections": {"/": {"bob": None}}})
        assert policy.section_rules("/") == (Rule(principal="bob", permissions=""),)

    def test_malformed_yaml_raises(self, loader: AccessFileLoader) -> None:
        with pytest.raises(PolicyLoadError, match="YAML"):
            loader.load_yaml_string("sections: [unclosed\n")

    def test_non_mapping_section_raises(self, loader: AccessFileLoader) -> None:
        with pytest.raises(PolicyLoadError, match="/bad"):
            loader.load_from_dict({"sections": {"/bad": ["alice"]}})

    def test_non_mapping_root_raises(self, loader: AccessFileLoader) -> None:
        with pytest.raises(PolicyLoadError):
            loader.load_from_dict(["not", "a", "mapping"])  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# load from disk
# ---------------------------------------------------------------------------


class TestLoadFromDisk:
    def test_ini_file(self, loader: AccessFileLoader, tmp_path: Path) -> None:
        path = tmp_path / "authz"
        path.write_text(_INI_ACCESS_FILE, encoding="utf-8")
        policy = loader.load(path)
        assert policy.location == str(path)
        assert len(policy) == 3

    def test_yaml_file_by_suffix(self, loader: AccessFileLoader, tmp_path: Path) -> None:
        path = tmp_path / "authz.yaml"
        path.write_text(_YAML_ACCESS_FILE, encoding="utf-8")
        policy = loader.load(path)
        assert policy.has_section("myrepo:/trunk")

    def test_missing_file_raises_policy_load_error(
        self, loader: AccessFileLoader, tmp_path: Path
    ) -> None:
        with pytest.raises(PolicyLoadError) as exc_info:
            loader.load(tmp_path / "absent")
        assert exc_info.value.location == str(tmp_path / "absent")


# ---------------------------------------------------------------------------
# strict mode
# ---------------------------------------------------------------------------


class TestStrictMode:
    def test_valid_file_accepted(self, strict_loader: AccessFileLoader) -> None:
        policy = strict_loader.load_string(_INI_ACCESS_FILE)
        assert len(policy) == 3

    def test_non_path_section_rejected(self, strict_loader: AccessFileLoader) -> None:
        with pytest.raises(PolicyLoadError, match="neither"):
            strict_loader.load_string("[trunk]\n* = r\n")

    def test_unknown_letters_rejected(self, strict_loader: AccessFileLoader) -> None:
        with pytest.raises(PolicyLoadError, match="x"):
            strict_loader.load_string("[/]\n* = rx\n")

    def test_lenient_mode_accepts_unknown_letters(self, loader: AccessFileLoader) -> None:
        policy = loader.load_string("[/]\n* = rx\n")
        assert policy.section_rules("/")[0].permissions == "rx"


# ---------------------------------------------------------------------------
# AccessPolicy
# ---------------------------------------------------------------------------


class TestAccessPolicy:
    def test_from_mapping_with_pairs(self) -> None:
        policy = AccessPolicy.from_mapping({"/": [("alice", "r"), ("alice", "w")]})
        assert len(policy.section_rules("/")) == 2

    def test_section_name_parts(self) -> None:
        policy = AccessPolicy.from_mapping({"repo:/a/b": {"*": "r"}, "/c": {}})
        qualified = policy.section("repo:/a/b")
        generic = policy.section("/c")
        assert qualified is not None and generic is not None
        assert qualified.repository == "repo"
        assert qualified.path == "/a/b"
        assert generic.repository is None
        assert generic.path == "/c"

    def test_section_names_predicate(self) -> None:
        policy = AccessPolicy.from_mapping({"/a": {}, "r:/a": {}, "/b": {}})
        assert policy.section_names(lambda n: n.startswith("/")) == ["/a", "/b"]

    def test_group_name_of_rule(self) -> None:
        assert Rule("@devs", "rw").group_name == "devs"
        assert Rule("alice", "rw").group_name is None
        assert Rule("*", "r").is_wildcard
