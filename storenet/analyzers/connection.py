"""
StoreNet Connection State Resolver
===================================

Classifies every device's logical reachability to the internet gateway
(the ISP modem) into one of six :class:`ConnectionState` values.

Wired Check (wins when present):
    A device is wired when any non-power port has ``link_status == up``.
    The modem itself is ``online`` iff its status is online.  Any other
    wired device looks up its connected component in a graph of the data
    cables whose two ends are both up, between online devices only:

        modem reachable   -> online
        router reachable  -> associated_no_internet
        otherwise         -> associated_no_ip

Wireless Fallback (Wi-Fi client types only):
    Reads the association record stored on the device and inherits the
    associated access point's own state.  Nested resolution carries a
    visited set; re-entry resolves to ``disconnected``.

References:
    - Hagberg, A., Schult, D., & Swart, P. (2008). Exploring network
      structure, dynamics, and function using NetworkX. SciPy 2008.
"""

from __future__ import annotations

from typing import Optional

import networkx as nx

from shared.logger import StoreNetLogger

from storenet.core.definitions import get_definition, is_wifi_client
from storenet.core.models import AuthState, ConnectionState, Device
from storenet.core.topology import TopologyGraph

logger = StoreNetLogger("connection")

_INHERITED_FROM_AP = frozenset(
    {
        ConnectionState.ONLINE,
        ConnectionState.ASSOCIATED_NO_INTERNET,
        ConnectionState.ASSOCIATED_NO_IP,
    }
)


class ConnectionStateResolver:
    """Computes ``Device.connection_state`` for a whole graph.

    Expects power and link status to be settled already.
    """

    def __init__(self, graph: TopologyGraph) -> None:
        self.graph = graph
        self._memo: dict[str, ConnectionState] = {}
        self._live: Optional[nx.Graph] = None

    # ------------------------------------------------------------------ #
    #  Wired
    # ------------------------------------------------------------------ #

    @staticmethod
    def has_wired_link(device: Device) -> bool:
        return any(p.connected_to is not None and p.is_up for p in device.data_ports())

    def live_graph(self) -> nx.Graph:
        """Graph of online devices joined by data cables that are up at both ends."""
        if self._live is not None:
            return self._live
        live = nx.Graph()
        live.add_nodes_from(d.id for d in self.graph if d.is_online)
        for port, far in self.graph.cables():
            if port.is_power or far.is_power or not (port.is_up and far.is_up):
                continue
            a = self.graph.owner_of(port.id)
            b = self.graph.owner_of(far.id)
            if a is None or b is None or not (a.is_online and b.is_online):
                continue
            live.add_edge(a.id, b.id)
        self._live = live
        return live

    def reachable_from(self, start: Device) -> list[Device]:
        """Return online devices reachable from *start* over live data edges.

        *start* itself is always included.
        """
        live = self.live_graph()
        if start.id not in live:
            return [start]
        component = nx.node_connected_component(live, start.id)
        return [d for d in self.graph if d.id in component]

    def wired_state(self, device: Device) -> ConnectionState:
        caps = get_definition(device.type).capabilities
        if caps.is_modem:
            return ConnectionState.ONLINE if device.is_online else ConnectionState.DISCONNECTED

        reached = self.reachable_from(device)
        if any(get_definition(d.type).capabilities.is_modem for d in reached):
            return ConnectionState.ONLINE
        if any(get_definition(d.type).capabilities.is_router for d in reached):
            return ConnectionState.ASSOCIATED_NO_INTERNET
        return ConnectionState.ASSOCIATED_NO_IP

    # ------------------------------------------------------------------ #
    #  Wireless
    # ------------------------------------------------------------------ #

    def wireless_state(self, device: Device, visited: set[str]) -> ConnectionState:
        wireless = device.wireless
        if wireless is None:
            return ConnectionState.DISCONNECTED

        if wireless.auth_state == AuthState.AUTH_FAILED:
            return ConnectionState.AUTH_FAILED
        if wireless.auth_state == AuthState.ASSOCIATED:
            ap = self.graph.get_device(wireless.associated_ap_id or "")
            if ap is None or not ap.is_online:
                return ConnectionState.DISCONNECTED
            ap_state = self.state_of(ap, visited)
            if ap_state in _INHERITED_FROM_AP:
                return ap_state
            return ConnectionState.ASSOCIATED_NO_INTERNET
        if wireless.auth_state == AuthState.ASSOCIATING:
            return ConnectionState.ASSOCIATING_WIFI
        return ConnectionState.DISCONNECTED

    # ------------------------------------------------------------------ #
    #  Resolution
    # ------------------------------------------------------------------ #

    def state_of(self, device: Device, visited: Optional[set[str]] = None) -> ConnectionState:
        """Return the connection state of *device*."""
        if device.id in self._memo:
            return self._memo[device.id]
        visited = set() if visited is None else visited
        if device.id in visited:
            return ConnectionState.DISCONNECTED
        visited.add(device.id)

        if self.has_wired_link(device):
            state = self.wired_state(device)
        elif is_wifi_client(device.type):
            state = self.wireless_state(device, visited)
        else:
            state = ConnectionState.DISCONNECTED

        self._memo[device.id] = state
        return state

    def resolve(self) -> dict[str, int]:
        """Write ``connection_state`` on every device; return state counts."""
        counts: dict[str, int] = {s.value: 0 for s in ConnectionState}
        for device in self.graph:
            state = self.state_of(device)
            device.connection_state = state
            counts[state.value] += 1
        logger.debug("Connection states: %s", counts)
        return counts


def update_connection_states(graph: TopologyGraph) -> dict[str, int]:
    """Convenience wrapper: resolve connection states on *graph* in place."""
    return ConnectionStateResolver(graph).resolve()
