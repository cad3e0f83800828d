"""Command-line interface for apigate."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from apigate import __version__
from apigate.config import (
    GateConfig,
    GitHubEnv,
    find_project_root,
    load_config,
    save_config,
    set_config_value,
)
from apigate.exceptions import ApiGateError
from apigate.ui.console import Console

console = Console()


def _get_project_root(path: str | None = None) -> Path:
    """Resolve the repository root or error."""
    if path:
        root = Path(path).resolve()
        if not root.exists():
            console.error(f"Path does not exist: {path}")
            sys.exit(2)
        return root

    root = find_project_root()
    if root is None:
        console.error("Not inside a git repository. Specify one with --path.")
        sys.exit(2)
    return root


def _setup_logging(verbose: bool) -> None:
    logger = logging.getLogger("apigate")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _load(root: Path, github: GitHubEnv, base: str | None, head: str | None) -> GateConfig:
    config = load_config(root, github)
    if base:
        config.git.base_ref = base
    if head:
        config.git.head_ref = head
    return config


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="apigate")
@click.pass_context
def main(ctx: click.Context):
    """apigate - detect API-breaking changes in a pull request.

    Runs the full gate when called without a subcommand.
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(check)


@main.command()
@click.option("--path", "-p", default=None, help="Path to the repository root.")
@click.option("--base", "-b", default=None, help="Base ref (default: $GITHUB_BASE_REF or main).")
@click.option("--head", default=None, help="Head ref (default: HEAD).")
@click.option("--no-comment", is_flag=True, help="Never post the report as a PR comment.")
@click.option("--verbose", "-v", is_flag=True, help="Log every command that is run.")
def check(
    path: str | None = None,
    base: str | None = None,
    head: str | None = None,
    no_comment: bool = False,
    verbose: bool = False,
):
    """Run all breaking-change checks and exit 1 if any fires."""
    from apigate.checks.runner import run_gate

    _setup_logging(verbose)
    root = _get_project_root(path)
    github = GitHubEnv.from_environ()

    try:
        config = _load(root, github, base, head)
        console.banner(config.git.base_ref)
        result = run_gate(root, config, github, console, post_comment=not no_comment)
    except ApiGateError as e:
        console.error(str(e))
        sys.exit(2)

    if result.comment_posted:
        console.success("Posted report to PR")
    sys.exit(result.exit_code)


@main.command()
@click.option("--path", "-p", default=None, help="Path to the repository root.")
@click.option("--base", "-b", default=None, help="Base ref (default: $GITHUB_BASE_REF or main).")
@click.option("--head", default=None, help="Head ref (default: HEAD).")
def report(path: str | None, base: str | None, head: str | None):
    """Print the breaking changes report without exporting or posting it."""
    from apigate.checks.runner import build_report, run_checks

    _setup_logging(False)
    root = _get_project_root(path)
    try:
        config = _load(root, GitHubEnv.from_environ(), base, head)
        verdict = run_checks(root, config)
        click.echo(build_report(root, config, verdict))
    except ApiGateError as e:
        console.error(str(e))
        sys.exit(2)


# =========================================================================
# Config Management
# =========================================================================

@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the repository root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Manage apigate configuration (.apigate/config.json)."""
    root = _get_project_root(path)
    try:
        config = load_config(root, GitHubEnv())
    except ApiGateError as e:
        console.error(str(e))
        sys.exit(2)

    if action == "show":
        console.console.print_json(json.dumps(config.model_dump(), indent=2))
    elif action == "get":
        if not key:
            console.error("Usage: apigate config get <key>")
            sys.exit(1)
        data = config.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                console.error(f"Unknown key: {key}")
                sys.exit(1)
        click.echo(f"{key} = {data}")
    elif action == "set":
        if not key or value is None:
            console.error("Usage: apigate config set <key> <value>")
            sys.exit(1)
        try:
            # Try to parse as JSON for non-string values
            try:
                parsed_value = json.loads(value)
            except json.JSONDecodeError:
                parsed_value = value

            config = set_config_value(config, key, parsed_value)
            save_config(root, config)
            console.success(f"Set {key} = {parsed_value}")
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except ApiGateError as e:
            console.error(str(e))
            sys.exit(1)


if __name__ == "__main__":
    main()
