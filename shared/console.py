"""
StoreNet Console Interface
===========================

Rich-powered console abstraction shared by every StoreNet command.

The class wraps :class:`rich.console.Console` and adds helpers for the
banner, section headers, severity-coloured messages, tables, the
validator findings table and a status spinner, all with one palette.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

import datetime as _dt
from contextlib import contextmanager
from typing import Any, Generator, Sequence

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

# ---------------------------------------------------------------------------
# Theme -- one palette for all StoreNet output
# ---------------------------------------------------------------------------
_STORENET_THEME = Theme(
    {
        "storenet.banner": "bold bright_cyan",
        "storenet.section": "bold bright_magenta",
        "storenet.success": "bold green",
        "storenet.warning": "bold yellow",
        "storenet.error": "bold red",
        "storenet.info": "bold bright_blue",
        "storenet.dim": "dim white",
        "storenet.highlight": "bold bright_white",
        "storenet.online": "bold green",
        "storenet.offline": "dim red",
        "storenet.booting": "bold yellow",
        "storenet.fault": "bold white on red",
    }
)

_BANNER_ART = r"""
[bright_cyan]
  ___ _                _  _     _
 / __| |_ ___ _ _ ___ | \| |___| |_
 \__ \  _/ _ \ '_/ -_)| .` / -_)  _|
 |___/\__\___/_| \___||_|\_\___|\__|
[/bright_cyan]"""

_TAGLINE = "Retail Store Network Simulator"


class StoreNetConsole:
    """Unified console interface for StoreNet commands.

    Usage::

        con = StoreNetConsole()
        con.banner()
        con.section("Devices")
        con.success("Topology is clean")
    """

    def __init__(
        self, *, quiet: bool = False, record: bool = False, width: int | None = None
    ) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (library / test mode).
            record: Keep rendered output for export via :attr:`rich`.
            width:  Fixed render width; ``None`` follows the terminal.
        """
        self._console = Console(
            theme=_STORENET_THEME,
            quiet=quiet,
            record=record,
            width=width,
            highlight=False,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    # ------------------------------------------------------------------ #
    #  Banner / sections
    # ------------------------------------------------------------------ #

    def banner(self, version: str = "1.0.0") -> None:
        """Display the StoreNet banner with version and timestamp."""
        now = _dt.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        subtitle = (
            f"[storenet.highlight]{_TAGLINE}[/storenet.highlight]\n"
            f"[storenet.dim]Version: {version}  |  {now}[/storenet.dim]"
        )
        panel = Panel(
            Align.center(Text.from_markup(_BANNER_ART + "\n" + subtitle)),
            border_style="bright_cyan",
            padding=(1, 2),
        )
        self._console.print(panel)

    def section(self, title: str) -> None:
        """Print a section header rule."""
        self._console.rule(
            f"  {title}  ",
            style="storenet.section",
            characters="─",
        )
        self._console.print()

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(
            f"[storenet.success][✔] SUCCESS:[/storenet.success] {message}"
        )

    def warning(self, message: str) -> None:
        self._console.print(
            f"[storenet.warning][⚠] WARNING:[/storenet.warning] {message}"
        )

    def error(self, message: str) -> None:
        self._console.print(
            f"[storenet.error][✘] ERROR:[/storenet.error] {message}"
        )

    def info(self, message: str) -> None:
        self._console.print(
            f"[storenet.info][ℹ] INFO:[/storenet.info] {message}"
        )

    # ------------------------------------------------------------------ #
    #  Tables
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        styles: Sequence[str] | None = None,
    ) -> None:
        """Render a styled Rich table.

        Args:
            title:    Table title.
            columns:  Column header labels.
            rows:     Row tuples; each cell is stringified.
            caption:  Optional footer caption.
            styles:   Optional per-column Rich style strings.
        """
        tbl = Table(
            title=title,
            caption=caption,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=True,
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            style = styles[idx] if styles and idx < len(styles) else ""
            tbl.add_column(col_name, style=style)

        for row in rows:
            tbl.add_row(*(str(cell) for cell in row))

        self._console.print(tbl)

    def findings_table(self, findings: Sequence[Any]) -> None:
        """Render validator findings with severity colouring.

        Expects objects shaped like :class:`shared.models.Finding`
        (``severity``, ``id``, ``message``, ``device_ids``).
        """
        severity_style_map: dict[str, str] = {
            "ERROR": "storenet.error",
            "WARNING": "storenet.warning",
        }

        tbl = Table(
            title="Findings",
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            show_lines=True,
            padding=(0, 1),
        )
        tbl.add_column("#", style="dim", width=4, justify="right")
        tbl.add_column("Severity", width=10)
        tbl.add_column("Id", no_wrap=True)
        tbl.add_column("Message", ratio=2, overflow="fold")
        tbl.add_column("Devices", style="dim", overflow="fold")

        for idx, finding in enumerate(findings, start=1):
            sev = getattr(finding, "severity", "warning")
            sev_name = (sev.value if hasattr(sev, "value") else str(sev)).upper()
            sev_style = severity_style_map.get(sev_name, "")
            sev_cell = (
                f"[{sev_style}]{sev_name}[/{sev_style}]" if sev_style else sev_name
            )
            tbl.add_row(
                str(idx),
                sev_cell,
                str(getattr(finding, "id", "")),
                str(getattr(finding, "message", "")),
                ", ".join(getattr(finding, "device_ids", []) or []),
            )

        self._console.print(tbl)

    # ------------------------------------------------------------------ #
    #  Status spinner
    # ------------------------------------------------------------------ #

    @contextmanager
    def status(self, message: str = "Working...") -> Generator[Any, None, None]:
        """Context-manager showing a spinner with a status message."""
        with self._console.status(
            f"[storenet.info]{message}[/storenet.info]",
            spinner="dots",
            spinner_style="bright_cyan",
        ) as status_obj:
            yield status_obj

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)
