"""
StoreNet Core Data Models
==========================

Pydantic-based domain models for the StoreNet topology simulator: the
ports and devices that make up a store network, plus the enumerations
for the state the simulation pipeline derives on them.

A :class:`Device` owns its :class:`Port` list.  Ports reference their
cable partner by port id only (``connected_to``), so the whole topology
is an id-indexed arena rather than an object graph; the
:class:`~storenet.core.topology.TopologyGraph` keeps the index.

Derived fields (``Device.status`` after power propagation,
``Port.link_status`` and ``Device.connection_state``) are recomputed on
every pipeline run and are never authoritative on input.

References:
    - IEEE 802.3af-2003. Power over Ethernet (DTE Power via MDI).
    - IEEE 802.11i-2004. Robust Security Network Associations.
    - Pydantic v2 Documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class PortRole(str, enum.Enum):
    """Function of a physical port.

    ``power_input`` and ``power_source`` are the power roles; every other
    role carries data.  A cable never joins a power role to a data role.
    """

    WAN = "wan"
    LAN = "lan"
    UPLINK = "uplink"
    ACCESS = "access"
    GENERIC = "generic"
    POE_SOURCE = "poe_source"
    POE_CLIENT = "poe_client"
    POWER_INPUT = "power_input"
    POWER_SOURCE = "power_source"

    @property
    def is_power(self) -> bool:
        return self in (PortRole.POWER_INPUT, PortRole.POWER_SOURCE)


class LinkStatus(str, enum.Enum):
    """Physical link light state of a port."""

    UP = "up"
    DOWN = "down"
    NEGOTIATING = "negotiating"


class DeviceStatus(str, enum.Enum):
    """Power / boot state of a device."""

    ONLINE = "online"
    OFFLINE = "offline"
    BOOTING = "booting"
    ERROR = "error"


class AuthState(str, enum.Enum):
    """Wi-Fi client association state."""

    IDLE = "idle"
    ASSOCIATING = "associating"
    ASSOCIATED = "associated"
    AUTH_FAILED = "auth_failed"


class ConnectionState(str, enum.Enum):
    """Logical reachability of a device, from worst to best."""

    DISCONNECTED = "disconnected"
    ASSOCIATING_WIFI = "associating_wifi"
    AUTH_FAILED = "auth_failed"
    ASSOCIATED_NO_IP = "associated_no_ip"
    ASSOCIATED_NO_INTERNET = "associated_no_internet"
    ONLINE = "online"


class DeviceAction(str, enum.Enum):
    """Operator actions accepted by the engine."""

    REBOOT = "reboot"
    POWER_ON = "power_on"
    POWER_OFF = "power_off"
    POWER_CYCLE = "power_cycle"


class WifiSecurity(str, enum.Enum):
    """Security mode of a hosted SSID."""

    WPA2_PSK = "WPA2-PSK"
    OPEN = "Open"


# ---------------------------------------------------------------------------
# Wireless configuration
# ---------------------------------------------------------------------------


class WirelessConfig(BaseModel):
    """Client-side Wi-Fi settings and the association they resolved to."""

    ssid: str = ""
    password: str = ""
    associated_ap_id: Optional[str] = None
    auth_state: AuthState = AuthState.IDLE


class SSIDConfig(BaseModel):
    """One SSID broadcast by a hosting device."""

    ssid: str = Field(..., min_length=1)
    password: str = ""
    hidden: bool = False
    security: WifiSecurity = WifiSecurity.WPA2_PSK

    def accepts(self, password: str) -> bool:
        """Return ``True`` if *password* authenticates against this SSID."""
        if self.security == WifiSecurity.OPEN:
            return True
        return self.password == password


class WifiHosting(BaseModel):
    """Set of SSIDs a router, modem or access point broadcasts."""

    enabled: bool = True
    configs: list[SSIDConfig] = Field(default_factory=list)

    def find(self, ssid: str) -> Optional[SSIDConfig]:
        """Return the config broadcasting *ssid*, if any."""
        if not self.enabled:
            return None
        for cfg in self.configs:
            if cfg.ssid == ssid:
                return cfg
        return None


# ---------------------------------------------------------------------------
# Port / Device
# ---------------------------------------------------------------------------


class Port(BaseModel):
    """A physical port on a device.

    Attributes:
        id: Globally unique id, ``"<device-id>-<suffix>"``.
        name: Label taken from the device definition.
        role: :class:`PortRole` of the port.
        connected_to: Partner port id, or ``None`` when uncabled.
        link_status: Derived link light state.
    """

    model_config = ConfigDict(use_enum_values=False)

    id: str = Field(..., min_length=1)
    name: str = ""
    role: PortRole
    connected_to: Optional[str] = None
    link_status: LinkStatus = LinkStatus.DOWN

    @property
    def is_power(self) -> bool:
        return self.role.is_power

    @property
    def is_up(self) -> bool:
        return self.link_status == LinkStatus.UP


class Device(BaseModel):
    """A device placed in the store.

    Attributes:
        id: Unique device id.
        type: Device type key into the definition registry.
        name: Human-readable name.
        ports: Ports created from the definition.
        status: Power / boot state.
        ip: Operator-assigned IP note.
        notes: Operator notes.
        wireless: Client Wi-Fi settings (Wi-Fi client types only).
        wifi_hosting: Hosted SSIDs (Wi-Fi hosting types only).
        connection_state: Derived reachability.
    """

    model_config = ConfigDict(use_enum_values=False)

    id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    name: str = ""
    ports: list[Port] = Field(default_factory=list)
    status: DeviceStatus = DeviceStatus.OFFLINE
    ip: Optional[str] = None
    notes: Optional[str] = None
    wireless: Optional[WirelessConfig] = None
    wifi_hosting: Optional[WifiHosting] = None
    connection_state: Optional[ConnectionState] = None

    @property
    def is_online(self) -> bool:
        return self.status == DeviceStatus.ONLINE

    def get_port(self, port_id: str) -> Optional[Port]:
        """Return the port with *port_id*, or ``None``."""
        for port in self.ports:
            if port.id == port_id:
                return port
        return None

    def ports_with_role(self, *roles: PortRole) -> Iterator[Port]:
        """Yield the ports whose role is one of *roles*."""
        for port in self.ports:
            if port.role in roles:
                yield port

    def first_port(self, role: PortRole) -> Optional[Port]:
        """Return the first port with *role*, or ``None``."""
        return next(self.ports_with_role(role), None)

    def data_ports(self) -> Iterator[Port]:
        """Yield the ports that carry data."""
        for port in self.ports:
            if not port.is_power:
                yield port
