"""CLI entry point: extprobe.

Subcommands:
    extprobe scan --browser --origin http://localhost:8000/     # probe inside Chromium
    extprobe scan --url-template 'http://mirror.local/{id}/{path}'  # probe over HTTP
    extprobe scan --json                                        # machine-readable summary
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import click
import httpx

from extprobe.config import ScanConfig
from extprobe.core.logging import setup_logging
from extprobe.engine.aggregator import ScanListener
from extprobe.engine.loaders import HttpxResourceLoader
from extprobe.engine.probe import ProbeStrategy
from extprobe.engine.runner import ExtensionScan, default_dataset_loader
from extprobe.exceptions import ConfigError, LoaderStartError
from extprobe.models import ScanState, ScanStatus
from extprobe.render import JsonCollector, TerminalRenderer

if TYPE_CHECKING:
    from extprobe.engine.browser import BrowserResourceLoader


def _build_config(
    candidates: str | None,
    metadata: str | None,
    url_template: str | None,
    concurrency: int | None,
    timeout: float | None,
    batch_delay: float | None,
) -> ScanConfig:
    """Environment defaults, overridden by whatever was given on the command line."""
    config = ScanConfig.from_env()
    if candidates is not None:
        config.candidates_source = candidates
    if metadata is not None:
        config.metadata_source = metadata
    if url_template is not None:
        config.url_template = url_template
    if concurrency is not None:
        config.concurrency = concurrency
    if timeout is not None:
        config.timeout = timeout
    if batch_delay is not None:
        config.batch_delay = batch_delay
    config.validate()
    return config


def _make_loader(
    config: ScanConfig,
    *,
    browser: bool,
    origin: str | None,
    headed: bool,
    user_data_dir: str | None,
    channel: str | None,
) -> HttpxResourceLoader | BrowserResourceLoader:
    if browser:
        if not origin:
            raise ConfigError("--origin is required with --browser")
        from extprobe.engine.browser import BrowserResourceLoader

        return BrowserResourceLoader(
            origin, headless=not headed, user_data_dir=user_data_dir, channel=channel
        )

    scheme = urlparse(config.url_template).scheme
    if scheme not in ("http", "https"):
        raise ConfigError(
            f"url template scheme {scheme!r} can only be probed from a browser; "
            "pass --browser --origin URL or an http(s) --url-template"
        )
    return HttpxResourceLoader()


async def _run_scan(
    config: ScanConfig,
    loader: HttpxResourceLoader | BrowserResourceLoader,
    listener: ScanListener,
) -> ScanState:
    async with loader, httpx.AsyncClient(timeout=30.0) as client:
        probe = ProbeStrategy(loader, timeout=config.timeout, url_template=config.url_template)
        scan = ExtensionScan(
            config,
            probe.probe,
            listener,
            load_datasets=default_dataset_loader(config, client),
        )
        return await scan.run()


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """extprobe: detect installed browser extensions."""
    setup_logging("DEBUG" if verbose else None)


@main.command("scan")
@click.option("--candidates", default=None, help="Candidate list (URL or path) [extension_ids.json]")
@click.option("--metadata", default=None, help="Metadata map (URL or path) [extensions_metadata.json]")
@click.option("--url-template", default=None, help="Probe URL template with {id} and {path}")
@click.option("--concurrency", type=int, default=None, help="Probes per batch [12]")
@click.option("--timeout", type=float, default=None, help="Per-probe deadline in seconds [2.5]")
@click.option("--batch-delay", type=float, default=None, help="Pause between batches in seconds [0.08]")
@click.option("--browser", is_flag=True, help="Probe from inside Chromium via Playwright")
@click.option("--origin", default=None, help="HTTP(S) page to probe from (with --browser)")
@click.option("--headed", is_flag=True, help="Show the browser window")
@click.option("--user-data-dir", default=None, help="Browser profile whose extensions to probe")
@click.option("--channel", default=None, help="Browser channel, e.g. 'chrome'")
@click.option("--json", "as_json", is_flag=True, help="Print a JSON summary instead of rows")
def scan(
    candidates: str | None,
    metadata: str | None,
    url_template: str | None,
    concurrency: int | None,
    timeout: float | None,
    batch_delay: float | None,
    browser: bool,
    origin: str | None,
    headed: bool,
    user_data_dir: str | None,
    channel: str | None,
    as_json: bool,
) -> None:
    """Probe every candidate extension and report the ones installed."""
    try:
        config = _build_config(
            candidates, metadata, url_template, concurrency, timeout, batch_delay
        )
        loader = _make_loader(
            config,
            browser=browser,
            origin=origin,
            headed=headed,
            user_data_dir=user_data_dir,
            channel=channel,
        )
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    listener: TerminalRenderer | JsonCollector = JsonCollector() if as_json else TerminalRenderer()
    try:
        state = asyncio.run(_run_scan(config, loader, listener))
    except LoaderStartError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if isinstance(listener, JsonCollector):
        click.echo(json.dumps(listener.summary(state.as_dict()), indent=2))
    elif state.status is ScanStatus.COMPLETE:
        listener.finish()

    if state.status is ScanStatus.FAILED:
        sys.exit(1)


if __name__ == "__main__":
    main()
