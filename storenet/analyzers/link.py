"""
StoreNet Link Status Propagation
=================================

Derives the physical link light of every port.

A port's link is up when it is cabled, its own device is online and the
far end is *live*.  A port is live when its device is online, except for
pass-through ports: a PoE injector's ``poe_source`` port only carries a
link while its ``uplink`` port is cabled and that uplink is itself up.

Results are memoised per port for the duration of one run.  The
recursive check carries an explicit visited set; re-entering a port
already on the current path counts as down, so a pass-through cycle can
never recurse forever.  Dangling partners count as down.
"""

from __future__ import annotations

from typing import Optional

from shared.logger import StoreNetLogger

from storenet.core.definitions import get_definition
from storenet.core.models import Device, LinkStatus, Port, PortRole
from storenet.core.topology import TopologyGraph

logger = StoreNetLogger("link")


class LinkStatusResolver:
    """Computes ``Port.link_status`` for a whole graph.

    A resolver instance holds the memo for one graph; call
    :meth:`resolve` once per pipeline run.
    """

    def __init__(self, graph: TopologyGraph) -> None:
        self.graph = graph
        self._live: dict[str, bool] = {}

    def is_live(self, port_id: Optional[str], visited: Optional[set[str]] = None) -> bool:
        """Return whether *port_id* can carry a link right now."""
        if not port_id:
            return False
        if port_id in self._live:
            return self._live[port_id]

        visited = set() if visited is None else visited
        if port_id in visited:
            return False
        visited.add(port_id)

        device = self.graph.owner_of(port_id)
        port = self.graph.get_port(port_id)
        if device is None or port is None:
            return False

        live = self._compute_live(device, port, visited)
        self._live[port_id] = live
        return live

    def _compute_live(self, device: Device, port: Port, visited: set[str]) -> bool:
        if not device.is_online:
            return False
        caps = get_definition(device.type).capabilities
        if caps.is_poe_injector and port.role == PortRole.POE_SOURCE:
            uplink = device.first_port(PortRole.UPLINK)
            if uplink is None or uplink.connected_to is None:
                return False
            return self.link_up(uplink, visited)
        return True

    def link_up(self, port: Port, visited: Optional[set[str]] = None) -> bool:
        """Return whether the cable on *port* has a link at both ends."""
        if port.connected_to is None:
            return False
        visited = set() if visited is None else visited
        if not self.is_live(port.id, visited):
            return False
        return self.is_live(port.connected_to, visited)

    def resolve(self) -> int:
        """Write ``link_status`` on every port; return the number of up ports."""
        up = 0
        for device in self.graph:
            for port in device.ports:
                if device.is_online and self.link_up(port):
                    port.link_status = LinkStatus.UP
                    up += 1
                else:
                    port.link_status = LinkStatus.DOWN
        logger.debug("Link resolution: %d port(s) up", up)
        return up


def update_link_statuses(graph: TopologyGraph) -> int:
    """Convenience wrapper: resolve link status on *graph* in place."""
    return LinkStatusResolver(graph).resolve()
