"""Console output for hop reports and progress."""

import json
from typing import Optional

import yaml
from rich.console import Console
from rich.markup import escape

from ..trace.aggregate import Aggregated
from ..trace.models import HopEvent
from ..trace.report import format_hop, format_report, report_data

FORMATS = ("text", "json", "yaml")


class ReportRenderer:
    """Renders reports and status lines with consistent styling."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def report(
        self, aggregated: Aggregated, fmt: str = "text", title: Optional[str] = None
    ) -> None:
        """Print an aggregated report.

        Args:
            aggregated: Output of ``aggregate``
            fmt: Output format (text, json, yaml)
            title: Host (or batch) the report belongs to
        """
        if fmt == "json":
            self.console.print_json(
                json.dumps({"target": title, "hops": report_data(aggregated)})
            )
            return
        if fmt == "yaml":
            self.console.print(
                yaml.safe_dump(
                    {"target": title, "hops": report_data(aggregated)},
                    sort_keys=False,
                ),
                markup=False,
                highlight=False,
            )
            return
        if title:
            self.console.print(f"\n[bold]{escape(title)}[/]")
        text = format_report(aggregated)
        if not text:
            self.warning("No hops recorded")
            return
        self.console.print(text, end="", markup=False, highlight=False)

    def hop(self, hop: HopEvent) -> None:
        style = "white" if hop.success else "dim"
        self.console.print(format_hop(hop), style=style, markup=False, highlight=False)

    def dot(self, source: str) -> None:
        self.console.print(source, markup=False, highlight=False)

    def status(self, message: str, style: str = "green") -> None:
        self.console.print(f"[{style}]{escape(message)}[/]")

    def error(self, message: str) -> None:
        self.console.print(f"[red]{escape(message)}[/]")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]{escape(message)}[/]")

    def info(self, message: str) -> None:
        self.console.print(f"[dim]{escape(message)}[/]")
