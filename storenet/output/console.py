"""
StoreNet Console Output
========================

Rich-based console display for the StoreNet simulator: device inventory
with power / connection state, per-port link lights, a cable list, the
validator findings and a one-panel summary.

Uses the shared :class:`~shared.console.StoreNetConsole` for consistent
styling.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Optional, Sequence

from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from shared.console import StoreNetConsole
from shared.models import CheckResult, Finding

from storenet.core.definitions import DEVICE_DEFINITIONS, DeviceDefinition, get_definition
from storenet.core.models import ConnectionState, Device, DeviceStatus, LinkStatus
from storenet.core.topology import TopologyGraph


class StoreNetConsoleOutput:
    """Formatted console output for simulation results.

    Usage::

        output = StoreNetConsoleOutput()
        output.display_devices(graph)
        output.display_findings(findings)
    """

    STATUS_STYLES: dict[DeviceStatus, str] = {
        DeviceStatus.ONLINE: "storenet.online",
        DeviceStatus.OFFLINE: "storenet.offline",
        DeviceStatus.BOOTING: "storenet.booting",
        DeviceStatus.ERROR: "storenet.fault",
    }

    CONNECTION_STYLES: dict[ConnectionState, str] = {
        ConnectionState.ONLINE: "bold green",
        ConnectionState.ASSOCIATED_NO_INTERNET: "bold yellow",
        ConnectionState.ASSOCIATED_NO_IP: "yellow",
        ConnectionState.ASSOCIATING_WIFI: "cyan",
        ConnectionState.AUTH_FAILED: "bold red",
        ConnectionState.DISCONNECTED: "dim red",
    }

    LINK_GLYPHS: dict[LinkStatus, str] = {
        LinkStatus.UP: "[green]●[/green]",
        LinkStatus.DOWN: "[dim]○[/dim]",
        LinkStatus.NEGOTIATING: "[yellow]◐[/yellow]",
    }

    def __init__(self, console: Optional[StoreNetConsole] = None) -> None:
        """Initialise the console output module.

        Args:
            console: StoreNetConsole instance. Created if not provided.
        """
        self.console = console or StoreNetConsole()

    # ================================================================== #
    #  Devices
    # ================================================================== #

    def _status_cell(self, device: Device) -> str:
        style = self.STATUS_STYLES.get(device.status, "")
        return f"[{style}]{device.status.value}[/{style}]"

    def _connection_cell(self, device: Device) -> str:
        state = device.connection_state
        if state is None:
            return "[dim]-[/dim]"
        style = self.CONNECTION_STYLES.get(state, "")
        return f"[{style}]{state.value}[/{style}]"

    def display_devices(self, graph: TopologyGraph) -> None:
        """Render the device inventory with derived state."""
        self.console.section(f"Devices ({len(graph)})")
        if not len(graph):
            self.console.info("No devices in the topology.")
            return

        table = Table(
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=False,
            padding=(0, 1),
        )
        table.add_column("Id", style="bold", no_wrap=True)
        table.add_column("Name")
        table.add_column("Type", style="dim")
        table.add_column("Status")
        table.add_column("Connection")
        table.add_column("Links", justify="left")

        for device in graph:
            links = " ".join(self.LINK_GLYPHS[p.link_status] for p in device.ports)
            table.add_row(
                device.id,
                device.name,
                device.type,
                self._status_cell(device),
                self._connection_cell(device),
                links or "[dim]wireless[/dim]",
            )
        self.console.print(table)

    def display_ports(self, graph: TopologyGraph, device_id: str) -> None:
        """Render a tree of one device's ports and their partners."""
        device = graph.require_device(device_id)
        tree = Tree(f"[bold]{device.name}[/bold] [dim]({device.id})[/dim]")
        for port in device.ports:
            far = graph.neighbor(port)
            target = (
                f"{far.name} / {port.connected_to}" if far is not None else "[dim]unplugged[/dim]"
            )
            tree.add(
                f"{self.LINK_GLYPHS[port.link_status]} {port.name} "
                f"[dim]{port.role.value}[/dim] -> {target}"
            )
        self.console.print(tree)

    def display_cables(self, graph: TopologyGraph) -> None:
        cables = graph.cables()
        rows = []
        for port, far in cables:
            a = graph.owner_of(port.id)
            b = graph.owner_of(far.id)
            rows.append(
                (
                    f"{a.name if a else '?'} / {port.name}",
                    f"{b.name if b else '?'} / {far.name}",
                    "power" if port.is_power else "data",
                    port.link_status.value,
                )
            )
        self.console.table(
            f"Cables ({len(cables)})",
            ["From", "To", "Kind", "Link"],
            rows,
        )

    # ================================================================== #
    #  Findings
    # ================================================================== #

    def display_findings(self, findings: Sequence[Finding]) -> None:
        self.console.section("Topology Findings")
        if not findings:
            self.console.success("No topology problems found.")
            return
        self.console.findings_table(findings)

    def display_summary(self, result: CheckResult) -> None:
        """Render a summary panel for a finished check."""
        counts = result.metadata.get("connection_states", {})
        online = counts.get(ConnectionState.ONLINE.value, 0)
        duration = result.duration_seconds or 0.0
        lines = [
            f"[bold]Target:[/bold] {result.target}",
            f"[bold]Devices:[/bold] {result.metadata.get('device_count', 0)}"
            f"   [bold]Cables:[/bold] {result.metadata.get('cable_count', 0)}",
            f"[bold]Online:[/bold] {online}",
            f"[bold]Errors:[/bold] [storenet.error]{result.error_count}[/storenet.error]"
            f"   [bold]Warnings:[/bold] [storenet.warning]{result.warning_count}[/storenet.warning]",
            f"[dim]{result.summary} ({duration:.3f}s)[/dim]",
        ]
        self.console.print(
            Panel(
                "\n".join(lines),
                title="[bold]StoreNet Check[/bold]",
                border_style="green" if result.ok else "red",
                padding=(1, 2),
            )
        )

    # ================================================================== #
    #  Catalog
    # ================================================================== #

    def display_catalog(self, definitions: Optional[Sequence[DeviceDefinition]] = None) -> None:
        """Render the device definition catalog."""
        definitions = definitions or list(DEVICE_DEFINITIONS.values())
        rows = []
        for d in definitions:
            caps = [
                name.removeprefix("is_")
                for name, flag in d.capabilities.model_dump().items()
                if flag
            ]
            rows.append(
                (
                    d.type,
                    d.display_name,
                    d.category.value,
                    ", ".join(f"{t.suffix}({t.role.value})" for t in d.ports) or "-",
                    d.power.power_source.value,
                    ", ".join(caps) or "-",
                )
            )
        self.console.table(
            "Device Catalog",
            ["Type", "Name", "Category", "Ports", "Power", "Capabilities"],
            rows,
        )

    def describe(self, device: Device) -> str:
        """Return a one-line plain-text description of *device*."""
        definition = get_definition(device.type)
        state = device.connection_state.value if device.connection_state else "-"
        return f"{device.name} [{definition.display_name}] {device.status.value}/{state}"
