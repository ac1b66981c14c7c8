"""Edgeredirect Server - Main entry point."""

import asyncio
import logging
import sys

import click
import structlog
from rich.console import Console
from rich.panel import Panel

from edgeredirect.core.config import (
    EdgeRedirectConfig,
    RedirectSettings,
    ServerSettings,
    load_config_from_file,
)
from edgeredirect.core.exceptions import ConfigError, format_error_for_user
from edgeredirect.server.app import RedirectServer

console = Console()

BANNER = """
┌─┐┌┬┐┌─┐┌─┐  ┬─┐┌─┐┌┬┐┬┬─┐┌─┐┌─┐┌┬┐
├┤  ││├┬┘├┤   ├┬┘├┤  │││├┬┘├┤ │   │
└─┘─┴┘└─┘└─┘  ┴└─└─┘─┴┘┴┴└─└─┘└─┘ ┴
           REDIRECT SERVER
"""


def configure_logging(log_level: str) -> None:
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
    )


def load_config(
    config_file: str | None = None,
    host: str | None = None,
    port: int | None = None,
    log_level: str | None = None,
) -> EdgeRedirectConfig:
    """Build configuration from an optional file, the environment and CLI overrides.

    Raises:
        ConfigError: If any setting is invalid or the file cannot be read.
    """
    if config_file:
        try:
            config = EdgeRedirectConfig.from_mapping(load_config_from_file(config_file))
        except (OSError, ValueError) as e:
            raise ConfigError(f"Could not load {config_file}: {e}") from e
    else:
        config = EdgeRedirectConfig()

    overrides = {
        key: value
        for key, value in (("host", host), ("port", port), ("log_level", log_level))
        if value is not None
    }
    if overrides:
        try:
            server = ServerSettings(**{**config.server.model_dump(), **overrides})
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
        config = EdgeRedirectConfig(redirects=config.redirects, server=server)
    return config


def print_startup_summary(redirects: RedirectSettings, server: ServerSettings) -> None:
    console.print(f"Listening on {server.host}:{server.port}...", style="yellow")
    console.print(f"Force HTTPS: {redirects.force_https}", style="dim")
    console.print(f"WWW redirect: {redirects.www_redirect}", style="dim")
    if redirects.gist_config_url:
        console.print(f"Rules: {redirects.gist_config_url}", style="dim")
    elif redirects.rules_file:
        console.print(f"Rules: {redirects.rules_file}", style="dim")
    else:
        console.print("Rules: built-in defaults", style="dim")
    console.print(f"Rule cache TTL: {redirects.rules_cache_ttl:g}s", style="dim")
    if redirects.admin_key:
        console.print("Admin endpoints: bearer auth enabled", style="green")
    else:
        console.print("Admin endpoints: OPEN (set ADMIN_KEY to protect them)", style="red")


@click.command()
@click.option(
    "--config", "-c",
    "config_file",
    type=click.Path(exists=True),
    help="Path to YAML or TOML config file",
)
@click.option("--host", default=None, help="Bind address (default: 0.0.0.0)")
@click.option("--port", "-p", type=int, default=None, help="Bind port (default: 8080)")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Log level (default: info)",
)
def main(config_file: str | None, host: str | None, port: int | None, log_level: str | None):
    """Run the edgeredirect HTTP server."""
    try:
        config = load_config(config_file, host, port, log_level)
    except ConfigError as e:
        console.print(Panel(f"[red]{format_error_for_user(e)}[/red]", title=f"Error: {e.code}", border_style="red"))
        sys.exit(1)

    configure_logging(config.server.log_level)
    console.print(BANNER, style="cyan")
    print_startup_summary(config.redirects, config.server)

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        console.print("\nShutting down...", style="yellow")


async def run_server(config: EdgeRedirectConfig):
    """Run the redirect server until cancelled."""
    server = RedirectServer(config.redirects, config.server)

    try:
        await server.start()
        console.print("Server started, press Ctrl+C to stop", style="green")

        await asyncio.Event().wait()
    finally:
        await server.stop()


if __name__ == "__main__":
    main()
