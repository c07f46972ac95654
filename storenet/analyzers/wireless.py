"""
StoreNet Wireless Association
==============================

Resolves a Wi-Fi client's association record from its SSID and password
against the SSIDs hosted in the store.

The record is resolved when the client is configured or loaded from a
save file that stores no association.  Clients still probing are
retried whenever a hosting device appears.  The connection-state
resolver only reads the record.  Outcomes:

    - empty SSID                                  -> ``idle``
    - no enabled host broadcasts the SSID         -> ``associating``
    - secured SSID, wrong password                -> ``auth_failed``
    - otherwise                                   -> ``associated``

When several hosts broadcast the SSID the first online one wins, falling
back to the first in graph order.  ``Open`` networks accept any password.

References:
    - IEEE 802.11-2020, 11.3 (Authentication and association).
"""

from __future__ import annotations

from storenet.core.models import AuthState, Device, WirelessConfig
from storenet.core.topology import TopologyGraph


def ssid_hosts(graph: TopologyGraph, ssid: str) -> list[Device]:
    """Return devices broadcasting *ssid*, online hosts first."""
    hosts = [
        d for d in graph
        if d.wifi_hosting is not None and d.wifi_hosting.find(ssid) is not None
    ]
    return sorted(hosts, key=lambda d: not d.is_online)


def resolve_association(graph: TopologyGraph, ssid: str, password: str) -> WirelessConfig:
    """Return the client config that *ssid* / *password* resolve to."""
    config = WirelessConfig(ssid=ssid, password=password)
    if not ssid:
        return config

    hosts = ssid_hosts(graph, ssid)
    if not hosts:
        config.auth_state = AuthState.ASSOCIATING
        return config

    for host in hosts:
        hosted = host.wifi_hosting.find(ssid)  # type: ignore[union-attr]
        if hosted is not None and hosted.accepts(password):
            config.associated_ap_id = host.id
            config.auth_state = AuthState.ASSOCIATED
            return config

    config.auth_state = AuthState.AUTH_FAILED
    return config


def retry_pending_associations(graph: TopologyGraph) -> list[str]:
    """Re-resolve clients still probing for their SSID.

    Called when a hosting device joins the graph, so a client configured
    before its access point was installed picks it up.  Returns the ids
    of clients whose record changed.
    """
    changed: list[str] = []
    for device in graph:
        wireless = device.wireless
        if wireless is None or wireless.auth_state != AuthState.ASSOCIATING:
            continue
        resolved = resolve_association(graph, wireless.ssid, wireless.password)
        if resolved.auth_state != AuthState.ASSOCIATING:
            device.wireless = resolved
            changed.append(device.id)
    return changed
