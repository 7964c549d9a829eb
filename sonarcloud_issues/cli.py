"""CLI entry point: command definitions using Click.

Commands:
    init        Generate a template defaults file
    fetch       fetch_sonarcloud_issues - one page of projected issues
    summarize   summarize_sonarcloud_issues - aggregate counts and top rules
    serve       Run the MCP stdio server
"""

import functools
import json
import logging
import sys
from typing import Any

import click

from sonarcloud_issues import __version__


# ---------------------------------------------------------------------------
# Helpers shared by all data commands
# ---------------------------------------------------------------------------

def _make_fetcher(ctx: click.Context):
    """Load the optional defaults file and return an IssueFetcher. Exits on error."""
    from sonarcloud_issues.config import DEFAULT_URL, ConfigError, load_defaults
    from sonarcloud_issues.reports.issues import IssueFetcher

    obj = ctx.obj
    defaults: dict[str, Any] = {}
    if obj["config_path"]:
        try:
            defaults = load_defaults(obj["config_path"])
        except ConfigError as exc:
            click.echo(f"Configuration error: {exc}", err=True)
            sys.exit(1)

    url = obj["url"] or defaults.get("url") or DEFAULT_URL
    logging.getLogger(__name__).debug("Using SonarCloud at %s", url)
    return IssueFetcher(url=url, timeout=obj["timeout"], defaults=defaults)


def _emit(text: str, ctx: click.Context) -> None:
    """Write JSON text to stdout or to the file specified by --output."""
    obj = ctx.obj
    if not obj["pretty"]:
        text = json.dumps(json.loads(text), ensure_ascii=False)

    output_path: str | None = obj["output_path"]
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Report written to '{output_path}'", err=True)
    else:
        click.echo(text)


def _handle_errors(func):
    """Decorator that catches tool exceptions and exits cleanly."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from sonarcloud_issues.client import (
            AuthenticationError,
            HTTPStatusError,
            NotFoundError,
            SonarCloudError,
        )
        from sonarcloud_issues.config import ConfigError

        try:
            return func(*args, **kwargs)
        except ConfigError as exc:
            click.echo(f"Configuration error: {exc}", err=True)
            sys.exit(1)
        except AuthenticationError as exc:
            click.echo(f"Authentication error: {exc}", err=True)
            sys.exit(1)
        except NotFoundError as exc:
            click.echo(f"Not found: {exc}", err=True)
            sys.exit(1)
        except HTTPStatusError as exc:
            click.echo(f"HTTP error: {exc}", err=True)
            sys.exit(1)
        except SonarCloudError as exc:
            click.echo(f"SonarCloud error: {exc}", err=True)
            sys.exit(1)
        except ValueError as exc:
            click.echo(f"Invalid arguments: {exc}", err=True)
            sys.exit(1)

    return wrapper


def _arguments(**values: Any) -> dict[str, Any]:
    """Drop options the user did not give (None / empty multiple)."""
    return {k: (list(v) if isinstance(v, tuple) else v)
            for k, v in values.items() if v not in (None, ())}


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default=None,
              help="Optional YAML defaults file (token, organization, project_key, url).")
@click.option("--url", default=None,
              help="SonarCloud base URL (default: https://sonarcloud.io).")
@click.option("--timeout", type=float, default=None,
              help="HTTP timeout in seconds. No timeout by default.")
@click.option("--output", "output_path", default=None,
              help="Write JSON output to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Pretty-print the JSON output.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging on stderr.")
@click.version_option(__version__, prog_name="sonarcloud-issues")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, url: str | None, timeout: float | None,
        output_path: str | None, pretty: bool, verbose: bool) -> None:
    """SonarCloud issue tool: fetch and summarize issues as JSON."""
    if verbose:
        # stdout carries JSON / MCP frames, so logs go to stderr
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="[%(levelname)s] %(name)s: %(message)s",
        )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["url"] = url
    ctx.obj["timeout"] = timeout
    ctx.obj["output_path"] = output_path
    ctx.obj["pretty"] = pretty


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="sonarcloud-config.yaml", show_default=True,
              help="Path where the template defaults file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template sonarcloud-config.yaml file."""
    from sonarcloud_issues.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your token, organization and project key.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# fetch
# ---------------------------------------------------------------------------

@cli.command("fetch")
@click.option("--token", default=None, help="API token (else SONARCLOUD_TOKEN).")
@click.option("--organization", default=None, help="Organization key.")
@click.option("--branch", default=None, help="Branch key.")
@click.option("--pr", "pull_request", default=None, help="Pull request id.")
@click.option("--component", "component_keys", multiple=True,
              help="Component key (repeatable). Defaults to SONARCLOUD_PROJECT_KEY.")
@click.option("--author", multiple=True, help="SCM account (repeatable).")
@click.option("--rule", "rules", multiple=True, help="Rule key (repeatable).")
@click.option("--status", "issue_statuses", multiple=True, help="Issue status (repeatable).")
@click.option("--impact-severity", "impact_severities", multiple=True,
              help="Impact severity (repeatable).")
@click.option("--resolved/--unresolved", default=None, help="Match resolved or unresolved issues.")
@click.option("--since-leak-period", is_flag=True, default=False,
              help="Only issues created since the leak period.")
@click.option("--page", "p", type=int, default=None, help="1-based page number.")
@click.option("--page-size", "ps", type=click.IntRange(1, 500), default=None, help="Page size.")
@click.pass_context
@_handle_errors
def fetch_command(ctx: click.Context, token, organization, branch, pull_request, component_keys,
                  author, rules, issue_statuses, impact_severities, resolved,
                  since_leak_period, p, ps) -> None:
    """Fetch one page of issues."""
    from sonarcloud_issues.tools import FETCH_TOOL, call_tool

    arguments = _arguments(
        token=token, organization=organization, branch=branch, pullRequest=pull_request,
        componentKeys=component_keys, author=author, rules=rules,
        issueStatuses=issue_statuses, impactSeverities=impact_severities,
        resolved=resolved, sinceLeakPeriod=since_leak_period, p=p, ps=ps,
    )
    fetcher = _make_fetcher(ctx)
    try:
        _emit(call_tool(FETCH_TOOL, arguments, fetcher=fetcher), ctx)
    finally:
        fetcher.close()


# ---------------------------------------------------------------------------
# summarize
# ---------------------------------------------------------------------------

@cli.command("summarize")
@click.option("--token", default=None, help="API token (else SONARCLOUD_TOKEN).")
@click.option("--pr", "pull_request", default=None, help="Pull request id.")
@click.option("--status", "issue_statuses", multiple=True, help="Issue status (repeatable).")
@click.option("--impact-severity", "impact_severities", multiple=True,
              help="Impact severity (repeatable).")
@click.option("--since-leak-period", is_flag=True, default=False,
              help="Only issues created since the leak period.")
@click.pass_context
@_handle_errors
def summarize_command(ctx: click.Context, token, pull_request, issue_statuses,
                      impact_severities, since_leak_period) -> None:
    """Summarize issues (first 500 only)."""
    from sonarcloud_issues.tools import SUMMARIZE_TOOL, call_tool

    arguments = _arguments(
        token=token, pullRequest=pull_request, issueStatuses=issue_statuses,
        impactSeverities=impact_severities, sinceLeakPeriod=since_leak_period,
    )
    fetcher = _make_fetcher(ctx)
    try:
        _emit(call_tool(SUMMARIZE_TOOL, arguments, fetcher=fetcher), ctx)
    finally:
        fetcher.close()


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------

@cli.command("serve")
@click.pass_context
def serve_command(ctx: click.Context) -> None:
    """Run the MCP server on stdin/stdout."""
    from sonarcloud_issues.server import serve

    serve(_make_fetcher(ctx))
