#!/usr/bin/env python3
"""Example: Two-phase request authorization

Drives the host-facing plugin the way a WebDAV server would: an anonymous
check before authentication, then an authenticated check when needed.

Usage:
    python examples/02_request_pipeline.py

Requirements:
    pip install repo-authz
"""
from __future__ import annotations

import logging
import tempfile
from pathlib import Path

import repo_authz as authz

ACCESS_FILE = """\
[groups]
devs = alice, bob

[/]
* = r

[repo:/trunk]
@devs = rw
"""


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    with tempfile.TemporaryDirectory() as tmp:
        access_file = Path(tmp) / "authz"
        access_file.write_text(ACCESS_FILE, encoding="utf-8")

        plugin = authz.AuthzPlugin()
        plugin.configure(authz.AuthzConfig(access_file=access_file, base_path="/svn"))
        cache = plugin.new_connection()

        requests = [
            (authz.DavRequest("GET", "/svn/repo/trunk/README"), "alice"),
            (authz.DavRequest("PUT", "/svn/repo/trunk/main.c"), "alice"),
            (authz.DavRequest("PUT", "/svn/repo/trunk/main.c"), "carol"),
            (authz.DavRequest("COPY", "/svn/repo/trunk", destination="/svn/repo/tags/v1"), "bob"),
        ]
        for request, user in requests:
            decision = plugin.begin(request, cache)
            outcome = plugin.access_checker(
                decision, authz.HostContext(auth_required=True, satisfy_any=True)
            )
            if not outcome.allowed:
                outcome = plugin.auth_checker(
                    decision, authz.HostContext(auth_required=True, user=user)
                )
            print(
                f"{request.method:5} {request.uri:28} {user:6} -> "
                f"{outcome.decision.value} ({outcome.phase})"
            )


if __name__ == "__main__":
    main()
