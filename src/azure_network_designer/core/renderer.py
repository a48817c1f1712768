"""Unified display renderer for consistent Rich output."""

from typing import Any, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
import json
import yaml

from ..models.topology import TopologyModel


class DisplayRenderer:
    """Unified renderer for all CLI output with consistent styling."""

    # Color scheme for node kinds and edge layers
    COLORS = {
        "hub": "blue",
        "spoke": "cyan",
        "l3": "yellow",
        "l7": "green",
        "fix": "green",
        "warn": "yellow",
        "ApplicationGateway": "magenta",
        "AzureFirewall": "red",
        "VpnGateway": "yellow",
        "ExpressRouteGateway": "yellow",
        "PrivateEndpoint": "bright_blue",
    }

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render(
        self,
        data: Any,
        fmt: str = "table",
        title: Optional[str] = None,
        columns: Optional[list[dict]] = None,
    ) -> bool:
        """Render data in specified format.

        Args:
            data: Data to render (list of dicts or single dict)
            fmt: Output format (table, json, yaml)
            title: Optional title for table
            columns: Column definitions for table [{name, key, style}]

        Returns:
            True if rendered as non-table format, False if table
        """
        if fmt == "json":
            self.console.print_json(json.dumps(data, default=str))
            return True
        if fmt == "yaml":
            self.console.print(yaml.safe_dump(data, sort_keys=False))
            return True
        if title and columns and isinstance(data, list):
            self.table(data, title, columns)
        return False

    def table(
        self,
        data: list[dict],
        title: str,
        columns: list[dict],
        show_index: bool = True,
        hint: Optional[str] = None,
    ) -> None:
        """Render data as a Rich table.

        Args:
            data: List of dicts to display
            title: Table title
            columns: List of {name, key, style?, width?}
            show_index: Whether to show row numbers
            hint: Optional hint text below table
        """
        if not data:
            self.console.print(f"[yellow]No {title.lower()} found[/]")
            return

        table = Table(title=title, show_header=True, header_style="bold")

        if show_index:
            table.add_column("#", style="dim", justify="right", width=4)

        for col in columns:
            table.add_column(
                col["name"],
                style=col.get("style", ""),
                width=col.get("width"),
                justify=col.get("justify", "left"),
            )

        for i, row in enumerate(data, 1):
            values = []
            if show_index:
                values.append(str(i))
            for col in columns:
                val = row.get(col["key"], "")
                if val is None:
                    val = "-"
                elif isinstance(val, list):
                    val = ", ".join(str(v) for v in val[:3])
                    if len(row.get(col["key"], [])) > 3:
                        val += "..."
                else:
                    val = str(val)
                # Kind-based coloring
                if col["key"] in ("kind", "type"):
                    color = self.COLORS.get(val, "white")
                    val = f"[{color}]{val}[/]"
                values.append(val)
            table.add_row(*values)

        self.console.print(table)
        if hint:
            self.console.print(f"[dim]{hint}[/]")

    def detail(self, data: dict, title: str, fields: list[tuple[str, str]]) -> None:
        """Render detail view as a panel.

        Args:
            data: Dict with resource details
            title: Panel title
            fields: List of (label, key) tuples
        """
        lines = []
        for label, key in fields:
            val = data.get(key, "-")
            if isinstance(val, list):
                val = ", ".join(str(v) for v in val)
            lines.append(f"[bold]{label}:[/] {val}")

        self.console.print(Panel("\n".join(lines), title=title))

    def vnets(self, model: TopologyModel) -> None:
        """Render VNets with their subnets."""
        rows = [
            {
                "id": v.id,
                "kind": v.kind,
                "cidr": v.cidr,
                "subnets": [f"{s.id} ({s.cidr})" for s in v.subnets],
            }
            for v in model.vnets
        ]
        columns = [
            {"name": "VNet", "key": "id", "style": "bold"},
            {"name": "Kind", "key": "kind"},
            {"name": "CIDR", "key": "cidr", "style": "cyan"},
            {"name": "Subnets", "key": "subnets"},
        ]
        self.table(rows, "VNets", columns, show_index=False)

    def resources(self, model: TopologyModel) -> None:
        rows = [
            {"id": r.id, "type": r.type, "label": r.label, "subnet": r.subnet_id}
            for r in model.resources
        ]
        columns = [
            {"name": "ID", "key": "id", "style": "bold"},
            {"name": "Type", "key": "type"},
            {"name": "Label", "key": "label"},
            {"name": "Subnet", "key": "subnet", "style": "dim"},
        ]
        self.table(rows, "Resources", columns)

    def edges(self, model: TopologyModel) -> None:
        rows = [{"from": e.source, "to": e.target, "kind": e.kind} for e in model.edges]
        columns = [
            {"name": "From", "key": "from"},
            {"name": "To", "key": "to"},
            {"name": "Layer", "key": "kind"},
        ]
        self.table(rows, "Edges", columns, show_index=False)

    def notes(self, model: TopologyModel) -> None:
        """Render notes, highlighting fixes and warnings."""
        for fix in model.fixes:
            self.status(f"fix: {fix}", style=self.COLORS["fix"])
        for warning in model.warnings:
            self.warning(f"warn: {warning}")
        for note in model.notes:
            if note.startswith(("fix: ", "warn: ")):
                continue
            self.info(note)

    def topology(self, model: TopologyModel) -> None:
        """Render the full model as tables."""
        self.detail(
            {
                "region": model.region,
                "hubs": [h.id for h in model.hubs],
                "spokes": [s.id for s in model.spokes],
                "peerings": len(model.peerings),
            },
            "Topology",
            [("Region", "region"), ("Hubs", "hubs"), ("Spokes", "spokes"), ("Peerings", "peerings")],
        )
        self.vnets(model)
        self.resources(model)
        self.edges(model)
        self.notes(model)

    def status(self, message: str, style: str = "green") -> None:
        """Print a status message."""
        self.console.print(f"[{style}]{message}[/]")

    def error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]{message}[/]")

    def warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]{message}[/]")

    def info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/]")
