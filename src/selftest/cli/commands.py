"""CLI commands for the platform self-test."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import Any, NoReturn, TypeVar

import click
from rich.console import Console
from rich.table import Table

from selftest.config import SelfTestConfig, load_config
from selftest.core.check import CheckStatus
from selftest.errors import SelfTestError
from selftest.observability import configure_logging
from selftest.reporters import ConsoleReporter, JSONReporter
from selftest.runner import TestCatalog, build_catalog, find_category
from selftest.session import SelfTestSession

T = TypeVar("T")


def _fail(error: SelfTestError, verbose: bool) -> NoReturn:
    click.echo(error.format_verbose() if verbose else f"Error [{error.error_code.value}]: {error}", err=True)
    sys.exit(2)


def _category_index(catalog: TestCatalog, value: str, param_hint: str) -> int:
    """Resolve a category given by name or 1-based number to its catalog index."""
    try:
        index = int(value) - 1 if value.isdigit() else find_category(catalog, value)
    except KeyError:
        raise click.BadParameter(f"unknown category {value!r}", param_hint=param_hint)
    if not 0 <= index < len(catalog):
        raise click.BadParameter(f"category out of range 1..{len(catalog)}", param_hint=param_hint)
    return index


def _run_session(
    ctx: click.Context,
    body: Callable[[SelfTestSession], Awaitable[T]],
    **session_kwargs: Any,
) -> T:
    """Open a session, sign in, run ``body`` and close it."""
    config: SelfTestConfig = ctx.obj["config"]

    async def main() -> T:
        async with SelfTestSession.from_config(config, **session_kwargs) as session:
            await session.sign_in()
            return await body(session)

    try:
        return asyncio.run(main())
    except SelfTestError as e:
        _fail(e, ctx.obj["verbose"])


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config file")
@click.option("--json-logs", is_flag=True, default=None, help="Emit logs as JSON lines")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str | None, json_logs: bool | None) -> None:
    """Platform self-test - provision fixtures and run the integration catalog."""
    ctx.ensure_object(dict)

    try:
        config_obj = load_config(config, json_logs=json_logs or None)
    except SelfTestError as e:
        _fail(e, verbose)

    configure_logging(
        level="DEBUG" if verbose else config_obj.log_level,
        json_format=config_obj.json_logs,
    )
    ctx.obj["config"] = config_obj
    ctx.obj["verbose"] = verbose


@cli.command()
def catalog() -> None:
    """List every check in run order."""
    console = Console()
    table = Table(title="Self-test catalog")
    table.add_column("Category", style="bold")
    table.add_column("#", justify="right")
    table.add_column("Check")
    table.add_column("Description", style="dim")

    for category in build_catalog():
        for index, definition in enumerate(category.checks, start=1):
            table.add_row(category.name if index == 1 else "", str(index), definition.name, definition.description)
    console.print(table)


@cli.command()
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Report format (defaults to report_format from config)",
)
@click.option("--output", "-o", type=click.Path(), help="Also write the report to this file")
@click.option("--no-analysis", is_flag=True, help="Skip the AI summary")
@click.option(
    "--category",
    "categories",
    multiple=True,
    help="Only run this category (name or 1-based number); repeatable",
)
@click.option("--no-color", is_flag=True, help="Disable ANSI colors")
@click.pass_context
def run(
    ctx: click.Context,
    output_format: str | None,
    output: str | None,
    no_analysis: bool,
    no_color: bool,
    categories: tuple[str, ...],
) -> None:
    """Run the catalog once and print a report."""
    config: SelfTestConfig = ctx.obj["config"]
    selected = None
    if categories:
        checks = build_catalog()
        selected = [_category_index(checks, value, "--category") for value in categories]
    output_format = output_format or config.report_format
    console_reporter = ConsoleReporter(color=not no_color)
    observers = [console_reporter] if output_format == "console" else []

    async def body(session: SelfTestSession) -> Any:
        return await session.run_all(analyze=not no_analysis, categories=selected)

    report = _run_session(ctx, body, observers=observers)

    reporter = console_reporter if output_format == "console" else JSONReporter()
    if output_format == "console":
        console_reporter.report(report)
    else:
        click.echo(reporter.generate(report))
    if output:
        saved = reporter.save(report, output)
        click.echo(f"Report written to {saved}", err=True)

    sys.exit(0 if report.all_passed else 1)


@cli.command()
@click.argument("category")
@click.argument("index", type=int)
@click.pass_context
def check(ctx: click.Context, category: str, index: int) -> None:
    """Run a single check: CATEGORY (name or 1-based number) and 1-based INDEX."""
    checks = build_catalog()
    category_index = _category_index(checks, category, "CATEGORY")
    if not 1 <= index <= len(checks[category_index]):
        raise click.BadParameter(
            f"index out of range 1..{len(checks[category_index])}", param_hint="INDEX"
        )

    async def body(session: SelfTestSession) -> Any:
        return await session.run_check(category_index, index - 1)

    result = _run_session(ctx, body)
    icon = "✓" if result.status == CheckStatus.SUCCESS else "✗"
    click.echo(f"{icon} {checks[category_index].name} / {result.name}: {result.message}")
    sys.exit(0 if result.status == CheckStatus.SUCCESS else 1)


@cli.command()
@click.pass_context
def setup(ctx: click.Context) -> None:
    """Register a test user and create a test character."""

    async def body(session: SelfTestSession) -> Any:
        return await session.setup()

    env = _run_session(ctx, body)
    click.echo(f"Test user {env.user_id} ({env.email} / {env.password})")
    click.echo(f"Test character {env.character_id}")


@cli.command()
@click.pass_context
def seed(ctx: click.Context) -> None:
    """Seed the social partner, follow, favorite and notifications."""

    async def body(session: SelfTestSession) -> Any:
        return await session.seed()

    outcome = _run_session(ctx, body)
    partner = outcome.value
    click.echo(f"Partner user {partner.user_id} ({partner.nickname or 'no nickname'})")
    if partner.character_id is not None:
        click.echo(f"Partner character {partner.character_id}")


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def cleanup(ctx: click.Context, yes: bool) -> None:
    """Delete all self-test data on the server."""

    def confirm() -> bool:
        return yes or click.confirm("Delete all test data? This cannot be undone.", default=False)

    async def body(session: SelfTestSession) -> Any:
        return await session.cleanup(confirm)

    report = _run_session(ctx, body)
    if report is None:
        click.echo("Cleanup cancelled.")
        return
    if not report.ok:
        click.echo(f"Cleanup failed: {report.error}", err=True)
        sys.exit(1)
    click.echo(
        f"{report.message}: {report.users} users, {report.characters} characters, {report.chats} chats"
    )


def main() -> None:
    cli(obj={})
