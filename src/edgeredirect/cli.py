"""Edgeredirect CLI - Command line interface."""

from __future__ import annotations

import asyncio
import json
import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from edgeredirect.core.config import EdgeRedirectConfig
from edgeredirect.core.exceptions import ConfigError, format_error_for_user

console = Console()

BANNER = """
┌─┐┌┬┐┌─┐┌─┐  ┬─┐┌─┐┌┬┐┬┬─┐┌─┐┌─┐┌┬┐
├┤  ││├┬┘├┤   ├┬┘├┤  │││├┬┘├┤ │   │
└─┘─┴┘└─┘└─┘  ┴└─└─┘─┴┘┴┴└─└─┘└─┘ ┴
      Send every link where it belongs
"""


def _print_config_error(error: ConfigError) -> None:
    console.print(
        Panel(
            f"[red]{format_error_for_user(error)}[/red]",
            title=f"Error: {error.code}",
            border_style="red",
        )
    )


def _load_or_exit(ctx: click.Context, **overrides) -> EdgeRedirectConfig:
    from edgeredirect.server.main import load_config

    try:
        return load_config(ctx.obj.get("config_file"), **overrides)
    except ConfigError as e:
        _print_config_error(e)
        sys.exit(1)


@click.group()
@click.option(
    "--config", "-c",
    "config_file",
    type=click.Path(exists=True),
    help="Path to YAML or TOML config file",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, verbose: bool):
    """Edgeredirect - HTTP redirect service.

    \b
    Examples:
        edgeredirect serve --port 8080
        edgeredirect resolve https://example.com/blog/hello
        edgeredirect rules --json
    """
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["verbose"] = verbose


@main.command()
@click.option("--host", default=None, help="Bind address (default: 0.0.0.0)")
@click.option("--port", "-p", type=int, default=None, help="Bind port (default: 8080)")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Log level (default: info)",
)
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, log_level: str | None):
    """Run the redirect server."""
    from edgeredirect.server.main import BANNER as SERVER_BANNER
    from edgeredirect.server.main import configure_logging, print_startup_summary, run_server

    if ctx.obj["verbose"] and log_level is None:
        log_level = "debug"
    cfg = _load_or_exit(ctx, host=host, port=port, log_level=log_level)

    configure_logging(cfg.server.log_level)
    console.print(SERVER_BANNER, style="cyan")
    print_startup_summary(cfg.redirects, cfg.server)

    try:
        asyncio.run(run_server(cfg))
    except KeyboardInterrupt:
        console.print("\nShutting down...", style="yellow")


@main.command()
@click.argument("url")
@click.option("--method", "-X", default="GET", help="Request method (default: GET)")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def resolve(ctx: click.Context, url: str, method: str, json_output: bool):
    """Show where a request for URL would be sent.

    Runs the same HTTPS, www and rule stages as the server.
    """
    from edgeredirect.pipeline import PreprocessOptions, Redirect, RequestPipeline
    from edgeredirect.rules.provider import RuleConfigProvider
    from edgeredirect.rules.resolver import create_request_info
    from edgeredirect.server.main import configure_logging

    cfg = _load_or_exit(ctx)
    configure_logging("debug" if ctx.obj["verbose"] else "error")

    try:
        request = create_request_info(url, method=method)
    except ValueError as e:
        console.print(f"[red]Invalid URL:[/red] {e}")
        sys.exit(1)

    provider = RuleConfigProvider.from_settings(cfg.redirects)
    pipeline = RequestPipeline(PreprocessOptions.from_settings(cfg.redirects), provider)
    outcome = asyncio.run(pipeline.run(request))

    if isinstance(outcome, Redirect):
        result = {
            "url": request.url,
            "redirect": True,
            "location": outcome.url,
            "status": outcome.status,
            "reason": outcome.reason,
            "rule": outcome.rule.to_dict() if outcome.rule else None,
        }
    else:
        result = {"url": request.url, "redirect": False}
    result["rules_source"] = provider.source_name

    if json_output:
        click.echo(json.dumps(result, indent=2))
        return

    if result["redirect"]:
        body = (
            f"[bold]Request:[/bold]  {request.url}\n"
            f"[bold]Location:[/bold] [cyan]{outcome.url}[/cyan]\n"
            f"[bold]Status:[/bold]   {outcome.status}\n"
            f"[bold]Reason:[/bold]   {outcome.reason}"
        )
        if outcome.rule is not None:
            body += f"\n[bold]Rule:[/bold]     {outcome.rule.source} -> {outcome.rule.target}"
        console.print(Panel(body, title="Redirect", border_style="green"))
    else:
        console.print(
            Panel(
                f"No redirect for [bold]{request.url}[/bold]",
                title="No match",
                border_style="yellow",
            )
        )


@main.command()
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def rules(ctx: click.Context, json_output: bool):
    """List the active redirect rules, in evaluation order."""
    from edgeredirect.rules.models import rules_to_list
    from edgeredirect.rules.provider import RuleConfigProvider
    from edgeredirect.server.main import configure_logging

    cfg = _load_or_exit(ctx)
    configure_logging("debug" if ctx.obj["verbose"] else "error")

    provider = RuleConfigProvider.from_settings(cfg.redirects)
    active = asyncio.run(provider.get_active_rules())

    if json_output:
        click.echo(json.dumps(rules_to_list(active), indent=2))
        return

    table = Table(title=f"Redirect Rules (source: {provider.source_name})")
    table.add_column("#", style="dim")
    table.add_column("Domain", style="magenta")
    table.add_column("From", style="cyan")
    table.add_column("To", style="green")
    table.add_column("Status")
    table.add_column("Query")
    table.add_column("Case")

    for position, rule in enumerate(active, start=1):
        table.add_row(
            str(position),
            rule.domain or "*",
            rule.source,
            rule.target,
            str(rule.effective_status),
            "keep" if rule.keeps_query else "drop",
            "sensitive" if rule.matches_case else "ignore",
        )

    console.print(table)


@main.group()
def config():
    """View configuration settings.

    Redirect settings come from FORCE_HTTPS, WWW_REDIRECT, GIST_CONFIG_URL,
    RULES_FILE, ADMIN_KEY and friends. Listener settings use the
    EDGEREDIRECT_ prefix.
    """
    pass


@config.command("show")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def config_show(ctx: click.Context, json_output: bool):
    """Show current configuration settings.

    Values come from the config file, environment variables or defaults.
    The admin key is masked.
    """
    cfg = _load_or_exit(ctx)
    display = cfg.to_display_dict()

    if json_output:
        click.echo(json.dumps(display, indent=2))
        return

    console.print("[bold]Current Configuration[/bold]\n")

    for section_name, settings in display.items():
        table = Table(title=section_name.replace("_", " ").title())
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")
        table.add_column("Env Variable", style="dim")

        prefix = "EDGEREDIRECT_" if section_name == "server" else ""
        for key, value in settings.items():
            value_str = str(value) if value is not None else "[dim]None[/dim]"
            table.add_row(key, value_str, f"{prefix}{key.upper()}")

        console.print(table)
        console.print()


@main.command()
def version():
    """Show version information."""
    from edgeredirect import __version__

    console.print(BANNER, style="cyan")
    console.print(f"[bold]Version:[/bold] {__version__}")
    console.print(f"[bold]Python:[/bold] {sys.version}")


if __name__ == "__main__":
    main()
