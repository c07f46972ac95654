"""
StoreNet Collectors
====================

Topology sources: the JSON save-file loader and the sandbox generator.
"""

from storenet.collectors.loader import (
    dump_topology,
    load_topology,
    save_topology,
    topology_from_save,
)
from storenet.collectors.sandbox import DEFAULT_SANDBOX_COUNTS, build_sandbox

__all__ = [
    "load_topology",
    "topology_from_save",
    "dump_topology",
    "save_topology",
    "build_sandbox",
    "DEFAULT_SANDBOX_COUNTS",
]
