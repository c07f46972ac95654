"""
StoreNet Sandbox Generator
===========================

Creates an uncabled starter inventory from a ``{device_type: count}``
map, the same way the setup wizard seeds a new store.  Ids run on one
counter across all types (``isp-modem-1``, ``zyxel-router-2``...), and
every Wi-Fi hosting device gets a factory SSID from a second counter.

Only self-powered infrastructure (modem, outlet) starts online; the
first pipeline run settles everything else.
"""

from __future__ import annotations

from typing import Mapping, Optional

from storenet.core.definitions import get_definition, is_wifi_client
from storenet.core.models import (
    Device,
    DeviceStatus,
    SSIDConfig,
    WifiHosting,
    WifiSecurity,
    WirelessConfig,
)
from storenet.core.topology import TopologyGraph, default_device_name

DEFAULT_SANDBOX_COUNTS: dict[str, int] = {
    "isp-modem": 1,
    "zyxel-router": 1,
    "unmanaged-switch": 1,
    "power-outlet": 1,
    "v4-pos": 1,
    "epson-thermal": 1,
    "epson-impact": 1,
}


def build_sandbox(counts: Optional[Mapping[str, int]] = None) -> TopologyGraph:
    """Return a new graph holding *counts* devices of each type.

    Args:
        counts: Devices per type, in creation order.  Defaults to
            :data:`DEFAULT_SANDBOX_COUNTS`.

    Raises:
        ValueError: If a count is negative.
    """
    counts = DEFAULT_SANDBOX_COUNTS if counts is None else counts
    graph = TopologyGraph()
    id_counter = 1
    ssid_counter = 1

    for device_type, count in counts.items():
        if count < 0:
            raise ValueError(f"Negative count for {device_type}: {count}")
        definition = get_definition(device_type)
        caps = definition.capabilities
        for index in range(count):
            device_id = f"{device_type}-{id_counter}"
            id_counter += 1
            device = Device(
                id=device_id,
                type=device_type,
                name=default_device_name(device_type, index + 1),
                ports=definition.build_ports(device_id),
                status=(
                    DeviceStatus.ONLINE
                    if caps.is_modem or caps.is_outlet
                    else DeviceStatus.OFFLINE
                ),
            )
            if caps.wifi_hosting:
                device.wifi_hosting = WifiHosting(
                    enabled=True,
                    configs=[
                        SSIDConfig(
                            ssid=f"c0090-{11540000 + ssid_counter}",
                            password=f"cake{10000 + index}",
                            hidden=True,
                            security=WifiSecurity.WPA2_PSK,
                        )
                    ],
                )
                ssid_counter += 1
            if is_wifi_client(device_type):
                device.wireless = WirelessConfig()
            graph.insert(device)

    return graph
