"""
StoreNet -- Retail Store Network Simulator
============================================

StoreNet models a retail-store network (modems, routers, switches,
access points, PoE injectors, outlets, POS, printer and KDS endpoints,
mobile clients) as a graph of devices and ports.  After every change it
re-derives each device's power state, link lights and path to the
internet gateway, and flags cabling mistakes.

Modules:
    core/       - Device definitions, graph model, engine and errors
    analyzers/  - Power, link, connection-state and validation stages
    collectors/ - Save-file loader / migrator and sandbox generator
    output/     - Console display and report generation
"""

from storenet.core.engine import NetworkSimulator

__all__ = ["NetworkSimulator"]
__version__ = "1.0.0"
