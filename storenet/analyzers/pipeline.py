"""
StoreNet Simulation Pipeline
=============================

The four derivation stages, in strict order::

    power -> link -> connection state -> validation

Each stage reads only what the previous stages settled.  The pipeline
works on a copy of the input graph and returns the settled copy with the
findings, so callers can compare before/after or discard the result.
Running the pipeline on its own output is a no-op (idempotence).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from shared.config import StoreNetConfig
from shared.logger import StoreNetLogger
from shared.models import Finding

from storenet.analyzers.connection import ConnectionStateResolver
from storenet.analyzers.link import LinkStatusResolver
from storenet.analyzers.power import PowerPropagator
from storenet.analyzers.validator import TopologyValidator
from storenet.core.topology import TopologyGraph

logger = StoreNetLogger("pipeline")


@dataclass(slots=True)
class PipelineResult:
    """Settled graph plus the validator findings for it."""

    graph: TopologyGraph
    findings: list[Finding] = field(default_factory=list)
    power_passes: int = 0
    links_up: int = 0
    connection_counts: dict[str, int] = field(default_factory=dict)


def run_pipeline(
    graph: TopologyGraph,
    config: Optional[StoreNetConfig] = None,
    *,
    in_place: bool = False,
) -> PipelineResult:
    """Run every stage over *graph* and return the settled result.

    Args:
        graph: Topology to settle.  Left untouched unless *in_place*.
        config: Simulator / validator settings; defaults when ``None``.
        in_place: Settle *graph* itself instead of a copy.
    """
    config = config or StoreNetConfig()
    work = graph if in_place else graph.clone()

    with logger.timed("pipeline"):
        passes = PowerPropagator(config.simulator.max_power_passes).propagate(work)
        links_up = LinkStatusResolver(work).resolve()
        counts = ConnectionStateResolver(work).resolve()
        findings = TopologyValidator(
            offline_ap_override=config.validator.offline_ap_override,
            disabled_rules=config.validator.disabled_rules,
        ).validate(work)

    return PipelineResult(
        graph=work,
        findings=findings,
        power_passes=passes,
        links_up=links_up,
        connection_counts=counts,
    )
