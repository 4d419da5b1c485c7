"""Command line entry point for torrentdeck.

``torrentdeck`` with no subcommand opens the interactive terminal client;
``torrentdeck status`` and ``torrentdeck config`` are one-shot commands that
print to the console.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from torrentdeck import __version__
from torrentdeck.config.config import ConfigManager, init_config
from torrentdeck.engine.http_client import HttpTorrentEngine
from torrentdeck.interface.add_input import to_row
from torrentdeck.interface.render import format_bytes, format_rate, status_label
from torrentdeck.models import LogLevel
from torrentdeck.utils.exceptions import ConfigurationError, TorrentDeckError
from torrentdeck.utils.logging_config import log_exception

logger = logging.getLogger(__name__)


def _get_config_from_context(ctx: click.Context) -> ConfigManager:
    """Build the configuration manager from the group options, once."""
    if "config_manager" not in ctx.obj:
        options: dict[str, Any] = ctx.obj["options"]
        try:
            ctx.obj["config_manager"] = init_config(
                options.get("config"),
                overrides={
                    "engine.url": options.get("engine_url"),
                    "add.download_dir": options.get("download_dir"),
                    "ui.refresh_interval": options.get("refresh_interval"),
                    "observability.log_level": options.get("log_level"),
                    "observability.log_file": options.get("log_file"),
                },
            )
        except ConfigurationError as e:
            raise click.ClickException(str(e)) from e
    return ctx.obj["config_manager"]


def _engine_for(cfg_mgr: ConfigManager) -> HttpTorrentEngine:
    cfg = cfg_mgr.config
    return HttpTorrentEngine(cfg.engine.url, timeout=cfg.engine.request_timeout)


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file path",
)
@click.option("--engine-url", "-e", help="Base URL of the torrent engine API")
@click.option(
    "--download-dir",
    "-o",
    type=click.Path(file_okay=False),
    help="Default download directory",
)
@click.option(
    "--refresh-interval",
    type=float,
    help="Seconds between periodic refreshes",
)
@click.option(
    "--log-level",
    type=click.Choice([level.value for level in LogLevel], case_sensitive=False),
    callback=lambda _ctx, _param, value: value.upper() if value else value,
    help="Log level",
)
@click.option("--log-file", type=click.Path(dir_okay=False), help="Log file path")
@click.version_option(__version__, prog_name="torrentdeck")
@click.pass_context
def cli(ctx, config, engine_url, download_dir, refresh_interval, log_level, log_file):
    """Torrentdeck - keyboard-driven terminal client for a torrent engine."""
    ctx.ensure_object(dict)
    ctx.obj["options"] = {
        "config": config,
        "engine_url": engine_url,
        "download_dir": download_dir,
        "refresh_interval": refresh_interval,
        "log_level": log_level,
        "log_file": log_file,
    }
    if ctx.invoked_subcommand is None:
        ctx.invoke(interactive)


@cli.command()
@click.pass_context
def interactive(ctx):
    """Open the interactive terminal client (the default)."""
    from torrentdeck.interface.dashboard import run_dashboard

    cfg_mgr = _get_config_from_context(ctx)
    # The terminal belongs to the UI; log to the configured file only.
    cfg_mgr.setup_logging(console=False)
    logger.info("Starting torrentdeck %s against %s", __version__, cfg_mgr.config.engine.url)

    async def _run() -> None:
        async with _engine_for(cfg_mgr) as engine:
            await run_dashboard(engine, cfg_mgr.config)

    asyncio.run(_run())


@cli.command()
@click.pass_context
def status(ctx):
    """Print the engine's torrents and exit."""
    cfg_mgr = _get_config_from_context(ctx)
    cfg_mgr.setup_logging(console=True)
    console = Console()

    async def _fetch():
        async with _engine_for(cfg_mgr) as engine:
            return await engine.session_stats(), await engine.list_torrents(with_stats=True)

    try:
        stats, torrents = asyncio.run(_fetch())
    except TorrentDeckError as e:
        log_exception(logger, e, "status")
        raise click.ClickException(str(e)) from e

    table = Table(title=f"Torrents at {cfg_mgr.config.engine.url}")
    table.add_column("Id", justify="right")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Down", justify="right")
    table.add_column("Up", justify="right")
    for details in torrents:
        row = to_row(details)
        if row is None:
            continue
        label, colour = status_label(row)
        progress = f"{row.stats.progress * 100:.1f}%" if row.stats else "-"
        size = format_bytes(row.stats.total_bytes) if row.stats else "-"
        down = format_rate(row.stats.download_mbps) if row.stats else "-"
        up = format_rate(row.stats.upload_mbps) if row.stats else "-"
        table.add_row(
            str(row.id), escape(row.name), f"[{colour}]{label}[/{colour}]", progress, size, down, up
        )
    console.print(table)
    console.print(
        f"↓ {format_rate(stats.download_speed.mbps)}  "
        f"↑ {format_rate(stats.upload_speed.mbps)}  "
        f"live peers {stats.peers.live}"
    )


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Print the effective configuration as TOML."""
    cfg_mgr = _get_config_from_context(ctx)
    if cfg_mgr.config_file:
        click.echo(f"# loaded from {cfg_mgr.config_file}")
    click.echo(cfg_mgr.export())


def main() -> None:
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
