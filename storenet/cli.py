"""
StoreNet CLI
=============

Click-based command-line interface for the StoreNet store network
simulator.  Loads a saved store layout (or generates a starter sandbox),
settles the simulation and reports device state and cabling problems.

Commands:
    storenet check SAVE_FILE   - Simulate a saved layout and list problems
    storenet sandbox           - Generate the default starter inventory
    storenet devices           - List the device definition catalog

Global Options:
    --config, -c    Path to a TOML configuration file
    --output, -o    Output file path for report generation
    --format, -f    Output format: json or html (default: json)
    --verbose, -v   Enable verbose (debug) logging

Exit codes:
    0  No error-severity findings
    1  At least one error-severity finding
    2  The save file or configuration could not be read

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import sys
from typing import Optional

import click

from shared.config import StoreNetConfig
from shared.console import StoreNetConsole
from shared.logger import StoreNetLogger
from shared.models import CheckResult

from storenet import __version__
from storenet.collectors.loader import save_topology
from storenet.collectors.sandbox import DEFAULT_SANDBOX_COUNTS, build_sandbox
from storenet.core.definitions import DEVICE_TYPES
from storenet.core.engine import NetworkSimulator
from storenet.core.errors import StoreNetError
from storenet.output.console import StoreNetConsoleOutput
from storenet.output.report import StoreNetReportGenerator


# ================================================================== #
#  CLI Group
# ================================================================== #

@click.group()
@click.option(
    "--config", "-c", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a TOML configuration file.",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Output file path for report generation.",
)
@click.option(
    "--format", "-f", "output_format",
    type=click.Choice(["json", "html"], case_sensitive=False),
    default=None,
    help="Output format (json or html). Default: from config, else json.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose (debug) logging.",
)
@click.version_option(__version__, prog_name="storenet")
@click.pass_context
def storenet(
    ctx: click.Context,
    config_path: Optional[str],
    output: Optional[str],
    output_format: Optional[str],
    verbose: bool,
) -> None:
    """StoreNet -- Retail Store Network Simulator.

    Derives power, link and internet reachability for every device in a
    store layout and flags cabling mistakes.
    """
    ctx.ensure_object(dict)
    console = StoreNetConsole()

    try:
        config = StoreNetConfig.load(config_path)
    except (OSError, ValueError) as exc:
        console.error(f"Cannot load configuration: {exc}")
        sys.exit(2)

    logger = StoreNetLogger.from_config("cli", config, verbose=verbose)

    ctx.obj["config"] = config
    ctx.obj["engine"] = NetworkSimulator(
        config=config,
        logger=StoreNetLogger.from_config("engine", config, verbose=verbose),
    )
    ctx.obj["console"] = console
    ctx.obj["display"] = StoreNetConsoleOutput(console=console)
    ctx.obj["report_gen"] = StoreNetReportGenerator(version=__version__)
    ctx.obj["logger"] = logger
    ctx.obj["output"] = output
    ctx.obj["output_format"] = (output_format or config.global_settings.report_format).lower()
    ctx.obj["verbose"] = verbose


# ================================================================== #
#  Check Command
# ================================================================== #

@storenet.command()
@click.argument("save_file", type=click.Path(dir_okay=False))
@click.option(
    "--cables",
    is_flag=True,
    default=False,
    help="Also list every cable and its link state.",
)
@click.option(
    "--device", "-d", "device_ids",
    multiple=True,
    help="Show the port tree of a device (repeatable).",
)
@click.pass_context
def check(ctx: click.Context, save_file: str, cables: bool, device_ids: tuple[str, ...]) -> None:
    """Simulate a saved store layout and report problems.

    Loads SAVE_FILE, settles power, links and connection state, then
    prints the device table and every validation finding.  Exits with
    status 1 when any error-severity finding is present.

    Example:
        storenet check store-0042.json --cables
    """
    engine: NetworkSimulator = ctx.obj["engine"]
    console: StoreNetConsole = ctx.obj["console"]
    display: StoreNetConsoleOutput = ctx.obj["display"]
    logger: StoreNetLogger = ctx.obj["logger"]

    console.banner(__version__)
    console.section("Topology Check")
    console.info(f"Loading {save_file}...")

    try:
        with console.status("Simulating..."):
            engine.load(save_file)
    except StoreNetError as exc:
        console.error(exc.reason)
        sys.exit(2)

    result = engine.check(target=save_file)
    logger.debug("Check finished with %d finding(s)", len(result.findings))

    display.display_devices(engine.graph)
    if cables:
        display.display_cables(engine.graph)
    for device_id in device_ids:
        if device_id not in engine.graph:
            console.warning(f"No device with id {device_id}")
            continue
        display.display_ports(engine.graph, device_id)
    display.display_findings(result.findings)
    display.display_summary(result)

    _maybe_write_report(ctx, result)

    if not result.ok:
        sys.exit(1)


# ================================================================== #
#  Sandbox Command
# ================================================================== #

def _parse_counts(entries: tuple[str, ...]) -> dict[str, int]:
    counts = dict(DEFAULT_SANDBOX_COUNTS)
    for entry in entries:
        device_type, sep, raw = entry.partition("=")
        if not sep:
            raise click.BadParameter(f"expected TYPE=COUNT, got {entry!r}", param_hint="--count")
        if device_type not in DEVICE_TYPES:
            raise click.BadParameter(f"unknown device type {device_type!r}", param_hint="--count")
        try:
            counts[device_type] = int(raw)
        except ValueError:
            raise click.BadParameter(f"count for {device_type} is not an integer", param_hint="--count") from None
        if counts[device_type] < 0:
            raise click.BadParameter(f"count for {device_type} is negative", param_hint="--count")
    return counts


@storenet.command()
@click.option(
    "--count", "-n", "count_entries",
    multiple=True,
    metavar="TYPE=COUNT",
    help="Override how many devices of a type to create (repeatable).",
)
@click.option(
    "--save", "-s", "save_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the generated sandbox as a save file.",
)
@click.option(
    "--name",
    default="StoreNet Sandbox",
    show_default=True,
    help="Project name stored in the save file.",
)
@click.pass_context
def sandbox(ctx: click.Context, count_entries: tuple[str, ...], save_path: Optional[str], name: str) -> None:
    """Generate an uncabled starter inventory.

    Uses the setup wizard's default counts (one modem, router, unmanaged
    switch, outlet, POS and two printers) unless overridden.

    Example:
        storenet sandbox -n kds=2 -n access-point=1 --save sandbox.json
    """
    engine: NetworkSimulator = ctx.obj["engine"]
    console: StoreNetConsole = ctx.obj["console"]
    display: StoreNetConsoleOutput = ctx.obj["display"]

    counts = _parse_counts(count_entries)

    console.banner(__version__)
    console.section("Sandbox")
    engine.load(build_sandbox(counts))
    result = engine.check(target="sandbox")

    display.display_devices(engine.graph)
    display.display_findings(result.findings)
    display.display_summary(result)

    if save_path:
        try:
            path = save_topology(engine.graph, save_path, project_name=name)
        except OSError as exc:
            console.error(f"Failed to write save file: {exc}")
            sys.exit(2)
        console.success(f"Sandbox written to {path}")

    _maybe_write_report(ctx, result)


# ================================================================== #
#  Devices Command
# ================================================================== #

@storenet.command()
@click.pass_context
def devices(ctx: click.Context) -> None:
    """List the device definition catalog."""
    display: StoreNetConsoleOutput = ctx.obj["display"]
    display.display_catalog()


# ================================================================== #
#  Report Helper
# ================================================================== #

def _maybe_write_report(ctx: click.Context, result: CheckResult) -> None:
    """Write a report if an output path is specified.

    Args:
        ctx: Click context with output settings.
        result: CheckResult to write.
    """
    output_path = ctx.obj.get("output")
    if not output_path:
        return

    console: StoreNetConsole = ctx.obj["console"]
    report_gen: StoreNetReportGenerator = ctx.obj["report_gen"]
    output_format = ctx.obj.get("output_format", "json")

    try:
        if output_format == "html":
            path = report_gen.generate_html(result, output_path)
        else:
            path = report_gen.generate_json(result, output_path)
        console.success(f"Report written to {path}")
    except OSError as exc:
        console.error(f"Failed to write report: {exc}")


# ================================================================== #
#  Entry Point
# ================================================================== #

def main() -> None:
    """Main entry point for the StoreNet CLI."""
    storenet(obj={})


if __name__ == "__main__":
    main()
