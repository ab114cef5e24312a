"""CLI entry point for repo-authz.

Invoked as::

    repo-authz [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m repo_authz.cli.main

Commands
--------
- check     Check one path for one user against an access file
- request   Check a WebDAV request (method + URI) through the full pipeline
- sections  List the sections of an access file
- groups    List the groups of an access file
- version   Show version information
"""
from __future__ import annotations

import sys
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from repo_authz.exceptions import ConfigError, PolicyLoadError
from repo_authz.policy.loader import AccessFileLoader
from repo_authz.policy.source import AccessPolicy

console = Console()
err_console = Console(stderr=True)

_DEFAULT_CONFIG = Path("authz.yaml")

_PERMISSION_CHOICES: dict[str, str] = {
    "read": "READ",
    "write": "WRITE",
    "read-tree": "READ_TREE",
}


def _load_policy(access_file: str, strict: bool) -> AccessPolicy:
    try:
        return AccessFileLoader(strict=strict).load(access_file)
    except PolicyLoadError as exc:
        err_console.print(f"[red]Cannot load access file:[/red] {escape(str(exc))}")
        sys.exit(2)


def _verdict_panel(allowed: bool, title: str) -> Panel:
    status_str = "[green]ALLOWED[/green]" if allowed else "[red]DENIED[/red]"
    return Panel(status_str, title=title, border_style="blue")


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="repo-authz")
def cli() -> None:
    """repo-authz: path-based authorization for repository namespaces."""


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from repo_authz import __version__

    console.print(
        Panel(
            f"[bold]repo-authz[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Path-based access control for version-control repositories.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.option(
    "--access-file",
    "-f",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Access file to evaluate.",
)
@click.option("--repo", "-r", "repository", required=True, help="Repository name.")
@click.option("--path", "-p", "path", default=None, help="Repository path (omit for whole repository).")
@click.option("--user", "-u", default=None, help="Username (omit for anonymous).")
@click.option(
    "--permission",
    type=click.Choice(sorted(_PERMISSION_CHOICES)),
    default="read",
    show_default=True,
    help="Access level required.",
)
@click.option("--strict", is_flag=True, default=False, help="Validate the access file strictly.")
def check_command(
    access_file: str,
    repository: str,
    path: str | None,
    user: str | None,
    permission: str,
    strict: bool,
) -> None:
    """Check whether USER has PERMISSION on PATH in REPO."""
    from repo_authz.engine.checker import AccessChecker, AccessQuery
    from repo_authz.engine.permissions import Permission

    policy = _load_policy(access_file, strict)
    query = AccessQuery(
        repository=repository,
        path=path,
        user=user,
        required=Permission[_PERMISSION_CHOICES[permission]],
    )
    result = AccessChecker(policy).evaluate(query)

    console.print(_verdict_panel(result.allowed, "Access Check Result"))
    console.print(
        f"  Query: [cyan]{escape(query.label)}[/cyan] {query.required.name} "
        f"for {escape(user or '<anonymous>')}"
    )
    if result.deciding_section:
        console.print(f"  Decided by: [bold]{escape(f'[{result.deciding_section}]')}[/bold]")
    elif path is not None and not result.allowed:
        console.print("  Decided by: [yellow]default deny[/yellow]")
    if result.veto_section:
        console.print(f"  Subtree vetoed by: [bold red]{escape(f'[{result.veto_section}]')}[/bold red]")

    sys.exit(0 if result.allowed else 1)


# ---------------------------------------------------------------------------
# request
# ---------------------------------------------------------------------------


@cli.command(name="request")
@click.argument("method")
@click.argument("uri")
@click.option("--destination", "-d", default=None, help="Destination header for MOVE/COPY.")
@click.option("--user", "-u", default=None, help="Username (omit for anonymous).")
@click.option(
    "--config",
    "-c",
    "config_path",
    default=str(_DEFAULT_CONFIG),
    show_default=True,
    type=click.Path(),
    help="Path to authz.yaml.",
)
@click.option("--access-file", "-f", default=None, type=click.Path(), help="Override the configured access file.")
@click.option("--base-path", "-b", default=None, help="Override the configured mount base.")
def request_command(
    method: str,
    uri: str,
    destination: str | None,
    user: str | None,
    config_path: str,
    access_file: str | None,
    base_path: str | None,
) -> None:
    """Check METHOD on URI as the host pipeline would."""
    from repo_authz.cache import PolicyCache
    from repo_authz.config import ConfigLoader
    from repo_authz.plugin.authz_plugin import AuthzPlugin
    from repo_authz.requests.classifier import DavRequest

    loader = ConfigLoader()
    cfg_path = Path(config_path)
    try:
        config = loader.load(cfg_path) if cfg_path.exists() else loader.defaults()
    except ConfigError as exc:
        err_console.print(f"[red]Invalid config:[/red] {escape(str(exc))}")
        sys.exit(2)

    overrides: dict[str, object] = {}
    if access_file is not None:
        overrides["access_file"] = Path(access_file)
    if base_path is not None:
        overrides["base_path"] = base_path
    if overrides:
        config = config.model_copy(update=overrides)

    # A broken access file exits 2; the authorizer alone would report a denial.
    cache = PolicyCache()
    if config.access_file is not None:
        policy = _load_policy(str(config.access_file), config.strict_access_file)
        cache.get_or_load(config.access_file, lambda _location: policy)

    plugin = AuthzPlugin(config_loader=loader)
    plugin.configure(config)
    check = plugin.check(DavRequest(method=method, uri=uri, destination=destination), user, cache)

    console.print(_verdict_panel(check.allowed, escape(f"{method.upper()} {uri}")))
    console.print(f"  Status: [magenta]{check.status.value}[/magenta]")
    if check.reason:
        console.print(f"  Reason: {escape(check.reason)}")

    if check.results:
        table = Table(title="Queries", box=box.SIMPLE)
        table.add_column("Target", style="cyan")
        table.add_column("Required", style="magenta")
        table.add_column("Section")
        table.add_column("Result")
        for result in check.results:
            table.add_row(
                escape(result.query.label),
                result.query.required.name,
                escape(result.veto_section or result.deciding_section or "-"),
                "[green]allow[/green]" if result.allowed else "[red]deny[/red]",
            )
        console.print(table)

    sys.exit(0 if check.allowed else 1)


# ---------------------------------------------------------------------------
# sections / groups
# ---------------------------------------------------------------------------


@cli.command(name="sections")
@click.option("--access-file", "-f", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--repo", "-r", "repository", default=None, help="Only show sections that apply to this repository.")
def sections_command(access_file: str, repository: str | None) -> None:
    """List the sections of an access file in declared order."""
    from repo_authz.policy.source import GROUPS_SECTION

    policy = _load_policy(access_file, strict=False)
    table = Table(title=f"Sections in {escape(access_file)}", box=box.SIMPLE)
    table.add_column("Section", style="cyan")
    table.add_column("Scope", style="magenta")
    table.add_column("Rules")

    for section in policy.sections:
        if section.name == GROUPS_SECTION:
            continue
        if repository is not None and section.repository not in (None, repository):
            continue
        rules = ", ".join(f"{r.principal}={r.permissions or '-'}" for r in section.rules)
        table.add_row(escape(section.name), escape(section.repository or "all"), escape(rules))

    console.print(table)


@cli.command(name="groups")
@click.option("--access-file", "-f", required=True, type=click.Path(exists=True, dir_okay=False))
def groups_command(access_file: str) -> None:
    """List the groups defined in an access file."""
    from repo_authz.engine.groups import GroupResolver
    from repo_authz.policy.source import GROUPS_SECTION

    policy = _load_policy(access_file, strict=False)
    resolver = GroupResolver(policy)
    rules = policy.section_rules(GROUPS_SECTION)
    if not rules:
        console.print("[yellow]No groups defined.[/yellow]")
        return

    table = Table(title="Groups", box=box.SIMPLE)
    table.add_column("Group", style="cyan")
    table.add_column("Members")
    for rule in rules:
        table.add_row(escape(rule.principal), escape(", ".join(resolver.members(rule.principal))))
    console.print(table)


if __name__ == "__main__":
    cli()
