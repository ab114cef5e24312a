#!/usr/bin/env python3
"""Example: Quickstart for repo-authz

Minimal working example: load an access file, check a few paths, and
show how group rules and deeper sections take precedence.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install repo-authz
"""
from __future__ import annotations

import repo_authz as authz

ACCESS_FILE = """\
[groups]
devs = alice, bob

[/]
* = r

[/secret]
* =
alice = r

[myrepo:/trunk]
@devs = rw
"""


def main() -> None:
    print(f"repo-authz version: {authz.__version__}")

    # Step 1: Parse the access file
    policy = authz.AccessFileLoader().load_string(ACCESS_FILE, location="<example>")
    print(f"Access policy ready: {len(policy)} sections loaded")

    # Step 2: Ask some questions
    checker = authz.AccessChecker(policy)
    queries = [
        authz.AccessQuery("myrepo", "/trunk/main.c", "alice", authz.Permission.WRITE),
        authz.AccessQuery("myrepo", "/trunk/main.c", "carol", authz.Permission.WRITE),
        authz.AccessQuery("myrepo", "/secret/plan.txt", None, authz.Permission.READ),
        authz.AccessQuery("myrepo", "/secret/plan.txt", "alice", authz.Permission.READ),
        authz.AccessQuery("myrepo", "/", "bob", authz.Permission.READ_TREE),
    ]
    for query in queries:
        result = checker.evaluate(query)
        verdict = "ALLOW" if result.allowed else "DENY"
        who = query.user or "<anonymous>"
        section = result.veto_section or result.deciding_section or "default"
        print(f"  [{verdict}] {who:12} {query.required.name:9} {query.label}  ({section})")


if __name__ == "__main__":
    main()
