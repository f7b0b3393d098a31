"""Main CLI application using Cyclopts.

Runs the connector outside a host framework, which is handy for checking
a source configuration against live sources.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import cyclopts

from aggregate_connector.application.di import create_container
from aggregate_connector.cli.console import Console
from aggregate_connector.config import ConnectorSettings, configure_logging, load_settings
from aggregate_connector.connector import AggregateConnector

DEFAULT_CONFIG_NAME = "aggregate.yaml"

app = cyclopts.App(
    name="aggregate-connector",
    help="Aggregate connector - read from many sources at once",
)

console = Console()


def _load_or_exit(path: Path) -> ConnectorSettings:
    if not path.exists():
        console.error(f"{path} not found")
        sys.exit(1)
    try:
        return load_settings(path)
    except Exception as e:
        console.error(f"{path} is invalid: {e}")
        sys.exit(1)


def describe_sources(settings: ConnectorSettings) -> list[dict[str, str]]:
    """Summarize how each configured source will be resolved."""
    rows: list[dict[str, str]] = []
    for name, entry in settings.sources.items():
        if entry is None:
            kind, target = "disabled", "-"
        elif entry.service is not None:
            kind, target = "service", type(entry.service).__name__
        elif callable(entry.module):
            kind, target = "module", getattr(entry.module, "__qualname__", repr(entry.module))
        else:
            kind, target = "module", str(entry.module)
        rows.append({"name": name, "kind": kind, "target": target})
    return rows


@app.command
def validate(path: Path = Path(DEFAULT_CONFIG_NAME)) -> None:
    """Validate a config file.

    Args:
        path: Path to the config file. Defaults to ./aggregate.yaml
    """
    settings = _load_or_exit(path)
    console.success(f"{path} is valid ({len(settings.sources)} source(s))")


@app.command
def sources(path: Path = Path(DEFAULT_CONFIG_NAME)) -> None:
    """List configured sources and how they are resolved.

    Args:
        path: Path to the config file. Defaults to ./aggregate.yaml
    """
    settings = _load_or_exit(path)
    console.table(
        describe_sources(settings),
        [("name", "Source"), ("kind", "Kind"), ("target", "Target")],
        title=settings.name,
    )


@app.command(name="all")
def all_(
    model: str,
    /,
    *,
    config: Path = Path(DEFAULT_CONFIG_NAME),
    options: str = "{}",
) -> None:
    """Run an aggregate read and print the documents as JSON.

    Args:
        model: Model name passed to the connector.
        config: Path to the config file. Defaults to ./aggregate.yaml
        options: Call options as a JSON object.
    """
    settings = _load_or_exit(config)
    configure_logging(settings.logging)

    try:
        call_options = json.loads(options)
    except json.JSONDecodeError as e:
        console.error(f"--options is not valid JSON: {e}")
        sys.exit(1)

    try:
        documents = asyncio.run(run_all(settings, model, call_options))
    except Exception as e:
        console.error(f"Aggregate read failed: {e}")
        sys.exit(1)

    console.print_json(documents)
    console.info(f"{len(documents)} document(s) from {len(settings.sources)} source(s)")


async def run_all(
    settings: ConnectorSettings,
    model: str,
    options: dict[str, Any],
) -> list[dict[str, Any]]:
    """Connect, read ``model`` from all sources and disconnect."""
    container = create_container(settings)
    try:
        connector = await container.get(AggregateConnector)
        await connector.connect()
        try:
            return await connector.all(model, None, options)
        finally:
            await connector.disconnect()
    finally:
        await container.close()
