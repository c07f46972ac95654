"""
StoreNet Analyzers
===================

The four simulation stages, run in order by :func:`run_pipeline`:
power propagation, link status, connection state and validation.
"""

from storenet.analyzers.power import PowerPropagator
from storenet.analyzers.link import LinkStatusResolver, update_link_statuses
from storenet.analyzers.connection import ConnectionStateResolver, update_connection_states
from storenet.analyzers.validator import TopologyValidator
from storenet.analyzers.wireless import resolve_association, retry_pending_associations
from storenet.analyzers.pipeline import PipelineResult, run_pipeline

__all__ = [
    "PowerPropagator",
    "LinkStatusResolver",
    "update_link_statuses",
    "ConnectionStateResolver",
    "update_connection_states",
    "TopologyValidator",
    "resolve_association",
    "retry_pending_associations",
    "PipelineResult",
    "run_pipeline",
]
