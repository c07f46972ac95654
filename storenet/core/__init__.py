"""
StoreNet Core Module
=====================

Device definition registry, graph model, error taxonomy and the
simulation engine.
"""

from storenet.core.models import (
    AuthState,
    ConnectionState,
    Device,
    DeviceAction,
    DeviceStatus,
    LinkStatus,
    Port,
    PortRole,
    SSIDConfig,
    WifiHosting,
    WifiSecurity,
    WirelessConfig,
)
from storenet.core.definitions import (
    DEVICE_DEFINITIONS,
    DEVICE_TYPES,
    DeviceDefinition,
    get_definition,
    is_wifi_client,
)
from storenet.core.errors import (
    ConnectionRejected,
    DeviceNotFound,
    DuplicateDevice,
    SaveFileInvalid,
    StoreNetError,
    UnsupportedOperation,
)
from storenet.core.topology import TopologyGraph
from storenet.core.engine import NetworkSimulator

__all__ = [
    "NetworkSimulator",
    "TopologyGraph",
    "Device",
    "Port",
    "PortRole",
    "LinkStatus",
    "DeviceStatus",
    "AuthState",
    "ConnectionState",
    "DeviceAction",
    "WifiSecurity",
    "WirelessConfig",
    "SSIDConfig",
    "WifiHosting",
    "DEVICE_DEFINITIONS",
    "DEVICE_TYPES",
    "DeviceDefinition",
    "get_definition",
    "is_wifi_client",
    "StoreNetError",
    "ConnectionRejected",
    "DeviceNotFound",
    "DuplicateDevice",
    "UnsupportedOperation",
    "SaveFileInvalid",
]
