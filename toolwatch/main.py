"""Entry point for toolwatch."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from toolwatch.config import settings
from toolwatch.engine import build_engine
from toolwatch.monitor.models import StatusRecord

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

_STYLE = {
    "healthy": "green",
    "degraded": "yellow",
    "down": "bold red",
    "unknown": "dim",
}


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel(
        f"toolwatch listening on http://{settings.api_host}:{settings.api_port} "
        f"({settings.environment})",
        style="bold green",
    ))
    uvicorn.run(
        "toolwatch.api.server:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


async def _sweep_once() -> list[StatusRecord]:
    engine = build_engine(settings)
    try:
        return await engine.scheduler.run_sweep()
    finally:
        await engine.aclose()


def run_sweep() -> None:
    """Run a single sweep in-process and print the results."""
    with console.status("[bold green]Polling status pages..."):
        records = asyncio.run(_sweep_once())

    table = Table(title="Tool status")
    table.add_column("Tool")
    table.add_column("Status")
    table.add_column("Latency", justify="right")
    table.add_column("Detail")
    for r in records:
        latency = f"{r.latency_ms}ms" if r.latency_ms is not None else "-"
        status = r.verdict.value
        table.add_row(r.name, f"[{_STYLE[status]}]{status}[/]", latency, r.error or "")
    console.print(table)


def main() -> None:
    parser = argparse.ArgumentParser(description="toolwatch status monitor")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the API server and background poller")
    sub.add_parser("sweep", help="Poll every target once and print the result")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    elif args.command == "sweep":
        run_sweep()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
