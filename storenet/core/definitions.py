"""
StoreNet Device Definitions
============================

Static catalog of every device type the simulator knows about: display
name, category, port templates, power model and capability flags.

The catalog is the single source of truth for port layout.  A device's
port list is generated from its definition once, at creation time, and
the save-file loader migrates older files to match it.

Unrecognised type strings resolve to the ``unknown`` definition.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from storenet.core.models import Port, PortRole


class Category(str, enum.Enum):
    POS = "pos"
    PRINTER = "printer"
    WIRELESS = "wireless"
    INFRA = "infra"
    POWER = "power"


class PowerSource(str, enum.Enum):
    OUTLET = "outlet"
    POE = "poe"
    INTERNAL = "internal"


class PortTemplate(BaseModel):
    """Port layout entry; the port id is ``"<device-id>-<suffix>"``."""

    model_config = ConfigDict(frozen=True)

    suffix: str
    label: str
    role: PortRole


class PowerModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    requires_power: bool
    power_source: PowerSource


class Capabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_router: bool = False
    is_switch: bool = False
    is_ap: bool = False
    is_poe_injector: bool = False
    is_outlet: bool = False
    is_modem: bool = False
    is_mobile: bool = False
    is_endpoint: bool = False
    wifi_hosting: bool = False
    poe_source: bool = False


class DeviceDefinition(BaseModel):
    """Catalog entry for one device type."""

    model_config = ConfigDict(frozen=True)

    type: str
    display_name: str
    category: Category
    ports: tuple[PortTemplate, ...] = ()
    power: PowerModel
    capabilities: Capabilities = Field(default_factory=Capabilities)

    def build_ports(self, device_id: str) -> list[Port]:
        """Create a fresh, uncabled port list for *device_id*."""
        return [
            Port(id=f"{device_id}-{tpl.suffix}", name=tpl.label, role=tpl.role)
            for tpl in self.ports
        ]

    def template_for(self, suffix: str) -> Optional[PortTemplate]:
        for tpl in self.ports:
            if tpl.suffix == suffix:
                return tpl
        return None


# ---------------------------------------------------------------------------
# Template helpers
# ---------------------------------------------------------------------------


def _port(suffix: str, label: str, role: PortRole) -> PortTemplate:
    return PortTemplate(suffix=suffix, label=label, role=role)


def _port_range(count: int, prefix: str, label: str, role: PortRole) -> list[PortTemplate]:
    return [_port(f"{prefix}{i}", f"{label} {i}", role) for i in range(1, count + 1)]


_PWR = _port("pwr", "Power", PortRole.POWER_INPUT)
_MAINS = PowerModel(requires_power=True, power_source=PowerSource.OUTLET)
_INTERNAL = PowerModel(requires_power=False, power_source=PowerSource.INTERNAL)
_POE = PowerModel(requires_power=True, power_source=PowerSource.POE)


def _router(type_: str, name: str) -> DeviceDefinition:
    return DeviceDefinition(
        type=type_,
        display_name=name,
        category=Category.INFRA,
        ports=(
            _port("wan", "WAN", PortRole.WAN),
            *_port_range(4, "lan", "LAN", PortRole.LAN),
            _PWR,
        ),
        power=_MAINS,
        capabilities=Capabilities(is_router=True, wifi_hosting=True),
    )


def _switch(type_: str, name: str, *, poe: bool) -> DeviceDefinition:
    return DeviceDefinition(
        type=type_,
        display_name=name,
        category=Category.INFRA,
        ports=(*_port_range(8, "p", "Port", PortRole.GENERIC), _PWR),
        power=_MAINS,
        capabilities=Capabilities(is_switch=True, poe_source=poe),
    )


def _ap(type_: str, name: str, suffix: str, label: str) -> DeviceDefinition:
    return DeviceDefinition(
        type=type_,
        display_name=name,
        category=Category.WIRELESS,
        ports=(_port(suffix, label, PortRole.POE_CLIENT),),
        power=_POE,
        capabilities=Capabilities(is_ap=True, wifi_hosting=True),
    )


def _endpoint(type_: str, name: str, category: Category) -> DeviceDefinition:
    return DeviceDefinition(
        type=type_,
        display_name=name,
        category=category,
        ports=(_port("eth", "ETH", PortRole.ACCESS), _PWR),
        power=_MAINS,
        capabilities=Capabilities(is_endpoint=True),
    )


def _mobile(type_: str, name: str) -> DeviceDefinition:
    return DeviceDefinition(
        type=type_,
        display_name=name,
        category=Category.POS,
        ports=(),
        power=_INTERNAL,
        capabilities=Capabilities(is_endpoint=True, is_mobile=True),
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_DEFINITIONS: list[DeviceDefinition] = [
    DeviceDefinition(
        type="isp-modem",
        display_name="ISP Modem",
        category=Category.INFRA,
        ports=(
            _port("wan", "ISP/Coax", PortRole.WAN),
            _port("lan", "LAN", PortRole.LAN),
        ),
        power=_INTERNAL,
        capabilities=Capabilities(is_modem=True, wifi_hosting=True),
    ),
    _router("zyxel-router", "Zyxel Router"),
    _router("cradlepoint-router", "Cradlepoint Router"),
    _switch("managed-switch", "Managed Switch", poe=True),
    _switch("unmanaged-switch", "Unmanaged Switch", poe=False),
    _ap("access-point", "Access Point", "eth", "ETH"),
    _ap("datto-ap440", "Datto AP440", "eth_poe", "ETH/PoE"),
    _ap("datto-ap62", "Datto AP62", "eth", "ETH"),
    DeviceDefinition(
        type="poe-injector",
        display_name="PoE Injector",
        category=Category.POWER,
        ports=(
            _port("poe_out", "PoE OUT", PortRole.POE_SOURCE),
            _port("lan_in", "LAN IN", PortRole.UPLINK),
            _port("power", "POWER", PortRole.POWER_INPUT),
        ),
        power=_MAINS,
        capabilities=Capabilities(is_poe_injector=True, poe_source=True),
    ),
    DeviceDefinition(
        type="power-outlet",
        display_name="Power Outlet",
        category=Category.POWER,
        ports=tuple(_port_range(4, "outlet", "Outlet", PortRole.POWER_SOURCE)),
        power=_INTERNAL,
        capabilities=Capabilities(is_outlet=True),
    ),
    _endpoint("pos", "POS Terminal", Category.POS),
    _endpoint("datavan-pos", "Datavan POS", Category.POS),
    _endpoint("poindus-pos", "Poindus POS", Category.POS),
    _endpoint("v3-pos", "V3 POS", Category.POS),
    _endpoint("v4-pos", "V4 POS", Category.POS),
    _endpoint("printer", "Printer", Category.PRINTER),
    _endpoint("epson-thermal", "Epson Thermal", Category.PRINTER),
    _endpoint("epson-impact", "Epson Kitchen", Category.PRINTER),
    _endpoint("kds", "KDS", Category.POS),
    _endpoint("elo-kds", "Elo KDS", Category.POS),
    _mobile("orderpad", "OrderPad"),
    _mobile("cakepop", "CakePop"),
    DeviceDefinition(
        type="unknown",
        display_name="Unknown Device",
        category=Category.INFRA,
        ports=(
            _port("p1", "Port 1", PortRole.GENERIC),
            _port("p2", "Port 2", PortRole.GENERIC),
        ),
        power=_MAINS,
    ),
]

DEVICE_DEFINITIONS: dict[str, DeviceDefinition] = {d.type: d for d in _DEFINITIONS}

DEVICE_TYPES: tuple[str, ...] = tuple(DEVICE_DEFINITIONS)

# Types that carry a client Wi-Fi radio.
WIFI_CLIENT_TYPES: frozenset[str] = frozenset({"kds", "elo-kds", "orderpad", "cakepop"})

# AC-powered types whose older saves predate the power_input port.
AC_POWERED_TYPES: frozenset[str] = frozenset(
    d.type
    for d in _DEFINITIONS
    if d.power.power_source == PowerSource.OUTLET
    and any(tpl.role == PortRole.POWER_INPUT for tpl in d.ports)
)


def get_definition(device_type: str) -> DeviceDefinition:
    """Return the definition for *device_type*, falling back to ``unknown``."""
    return DEVICE_DEFINITIONS.get(device_type, DEVICE_DEFINITIONS["unknown"])


def is_wifi_client(device_type: str) -> bool:
    return device_type in WIFI_CLIENT_TYPES
