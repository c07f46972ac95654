"""
StoreNet Topology Graph
========================

Id-indexed arena of devices and ports.  The graph owns every
:class:`~storenet.core.models.Device` and keeps a flat port-id index
(``port_id -> device_id``) alongside the device map, so that resolving a
cable end is a dictionary lookup rather than a scan.

The graph enforces the structural invariants of the topology:

* port ids are unique across the graph;
* ``connected_to`` is either ``None`` or a port on a *different* device,
  and is always symmetric;
* a power-role port is never cabled to a data-role port;
* removing a device clears the far end of every cable that pointed at it.

Anything that would break one of these raises a
:class:`~storenet.core.errors.StoreNetError` subclass and leaves the graph
unchanged.  Anything that is merely a bad idea (a loop, an AP on a
non-PoE switch) is allowed here and reported later by the validator.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from shared.logger import StoreNetLogger

from storenet.core.definitions import (
    DeviceDefinition,
    PowerSource,
    get_definition,
    is_wifi_client,
)
from storenet.core.errors import (
    ConnectionRejected,
    DeviceNotFound,
    DuplicateDevice,
)
from storenet.core.models import (
    Device,
    DeviceStatus,
    LinkStatus,
    Port,
    SSIDConfig,
    WifiHosting,
    WifiSecurity,
    WirelessConfig,
)

logger = StoreNetLogger("topology")

_SSID_BASE = 11540000
_PASSWORD_BASE = 10000


def default_device_name(device_type: str, index: int) -> str:
    """Return the default display name, e.g. ``"ZYXEL ROUTER 1"``."""
    return f"{device_type.upper().replace('-', ' ', 1)} {index}"


def default_ssid(sequence: int) -> SSIDConfig:
    """Return the factory SSID a hosting device ships with."""
    return SSIDConfig(
        ssid=f"c0090-{_SSID_BASE + sequence}",
        password=f"cake{_PASSWORD_BASE + sequence}",
        hidden=True,
        security=WifiSecurity.WPA2_PSK,
    )


class TopologyGraph:
    """Mutable store network topology.

    Usage::

        graph = TopologyGraph()
        modem = graph.add_device("isp-modem")
        router = graph.add_device("zyxel-router")
        graph.connect(f"{modem.id}-lan", f"{router.id}-wan")

    Attributes are private; use the accessor methods.  Iteration yields
    devices in insertion order, which is the order every pipeline stage
    and the validator walk them in.
    """

    def __init__(self, devices: Iterable[Device] = ()) -> None:
        self._devices: dict[str, Device] = {}
        self._port_index: dict[str, str] = {}
        for device in devices:
            self.insert(device)

    # ================================================================== #
    #  Lookup
    # ================================================================== #

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self) -> Iterator[Device]:
        return iter(list(self._devices.values()))

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    @property
    def devices(self) -> list[Device]:
        return list(self._devices.values())

    def get_device(self, device_id: str) -> Optional[Device]:
        return self._devices.get(device_id)

    def require_device(self, device_id: str) -> Device:
        """Return the device or raise :class:`DeviceNotFound`."""
        device = self._devices.get(device_id)
        if device is None:
            raise DeviceNotFound(f"Device {device_id} not found.")
        return device

    def get_port(self, port_id: Optional[str]) -> Optional[Port]:
        owner = self.owner_of(port_id)
        if owner is None:
            return None
        return owner.get_port(port_id)  # type: ignore[arg-type]

    def owner_of(self, port_id: Optional[str]) -> Optional[Device]:
        """Return the device that owns *port_id*, or ``None``."""
        if not port_id:
            return None
        device_id = self._port_index.get(port_id)
        if device_id is None:
            return None
        return self._devices.get(device_id)

    def partner(self, port: Port) -> Optional[Port]:
        """Return the far end of *port*'s cable; dangling ends resolve to ``None``."""
        return self.get_port(port.connected_to)

    def neighbor(self, port: Port) -> Optional[Device]:
        """Return the device at the far end of *port*'s cable."""
        return self.owner_of(port.connected_to)

    def definition(self, device: Device) -> DeviceDefinition:
        return get_definition(device.type)

    def devices_of_type(self, device_type: str) -> list[Device]:
        return [d for d in self._devices.values() if d.type == device_type]

    def cables(self) -> list[tuple[Port, Port]]:
        """Return each cable once as ``(port, partner)`` in device order."""
        seen: set[str] = set()
        result: list[tuple[Port, Port]] = []
        for device in self._devices.values():
            for port in device.ports:
                if port.id in seen:
                    continue
                far = self.partner(port)
                if far is None:
                    continue
                seen.add(port.id)
                seen.add(far.id)
                result.append((port, far))
        return result

    # ================================================================== #
    #  Device lifecycle
    # ================================================================== #

    def insert(self, device: Device) -> Device:
        """Insert a fully-formed device (used by the loader and :meth:`clone`).

        Raises:
            DuplicateDevice: If the device id or any of its port ids is taken.
        """
        if device.id in self._devices:
            raise DuplicateDevice(f"Device id {device.id} already exists.")
        port_ids = [p.id for p in device.ports]
        for port_id in port_ids:
            if port_id in self._port_index or port_ids.count(port_id) > 1:
                raise DuplicateDevice(f"Port id {port_id} already exists.")
        self._devices[device.id] = device
        for port_id in port_ids:
            self._port_index[port_id] = device.id
        return device

    def add_device(
        self,
        device_type: str,
        *,
        device_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Device:
        """Create a device of *device_type* with fresh ports and defaults.

        Status starts ``online`` for internally powered types and
        ``offline`` otherwise; the next pipeline run settles it.  Wi-Fi
        hosting types get one factory SSID, Wi-Fi client types an empty
        client config.
        """
        definition = get_definition(device_type)
        index = len(self.devices_of_type(device_type)) + 1
        if device_id is None:
            device_id = self._next_device_id(device_type, index)

        device = Device(
            id=device_id,
            type=device_type,
            name=name or default_device_name(device_type, index),
            ports=definition.build_ports(device_id),
            status=(
                DeviceStatus.ONLINE
                if definition.power.power_source == PowerSource.INTERNAL
                else DeviceStatus.OFFLINE
            ),
        )
        if definition.capabilities.wifi_hosting:
            device.wifi_hosting = WifiHosting(
                enabled=True, configs=[default_ssid(self._next_ssid_sequence())]
            )
        if is_wifi_client(device_type):
            device.wireless = WirelessConfig()

        self.insert(device)
        logger.debug("Added device %s (%s)", device.id, device.type)
        return device

    def remove_device(self, device_id: str) -> Device:
        """Remove a device after disconnecting every cable attached to it."""
        device = self.require_device(device_id)
        for port in device.ports:
            if port.connected_to:
                self.disconnect(port.id)
        # Cables pointing at us that we do not point back at
        for other in self._devices.values():
            for port in other.ports:
                if port.connected_to and self._port_index.get(port.connected_to) == device_id:
                    port.connected_to = None
                    port.link_status = LinkStatus.DOWN
        for port in device.ports:
            self._port_index.pop(port.id, None)
        del self._devices[device_id]
        logger.debug("Removed device %s", device_id)
        return device

    # ================================================================== #
    #  Cabling
    # ================================================================== #

    def connect(self, port_a_id: str, port_b_id: str) -> None:
        """Cable two ports together.

        Any existing cable on either port is removed first (both ends).

        Raises:
            ConnectionRejected: If a port is missing, both ids name the
                same port or the same device, or one side is a power port
                and the other a data port.
        """
        device_a = self.owner_of(port_a_id)
        device_b = self.owner_of(port_b_id)
        if device_a is None:
            raise ConnectionRejected(f"Port {port_a_id} not found.")
        if device_b is None:
            raise ConnectionRejected(f"Port {port_b_id} not found.")
        if port_a_id == port_b_id:
            raise ConnectionRejected("Cannot connect a port to itself.")
        if device_a.id == device_b.id:
            raise ConnectionRejected("Cannot connect a device to itself.")

        port_a = device_a.get_port(port_a_id)
        port_b = device_b.get_port(port_b_id)
        assert port_a is not None and port_b is not None

        if port_a.is_power != port_b.is_power:
            if get_definition(device_a.type).capabilities.is_outlet or get_definition(
                device_b.type
            ).capabilities.is_outlet:
                raise ConnectionRejected("Power strip only accepts power connections.")
            raise ConnectionRejected("Cannot connect power cable to data port.")

        self.disconnect(port_a.id)
        self.disconnect(port_b.id)
        port_a.connected_to = port_b.id
        port_b.connected_to = port_a.id
        logger.debug("Connected %s <-> %s", port_a.id, port_b.id)

    def disconnect(self, port_id: str) -> None:
        """Remove the cable on *port_id* (both ends).  No-op when uncabled."""
        port = self.get_port(port_id)
        if port is None or port.connected_to is None:
            return
        far = self.partner(port)
        if far is not None and far.connected_to == port.id:
            far.connected_to = None
            far.link_status = LinkStatus.DOWN
        port.connected_to = None
        port.link_status = LinkStatus.DOWN

    # ================================================================== #
    #  Copying
    # ================================================================== #

    def clone(self) -> TopologyGraph:
        """Return a deep copy; mutations on the copy never leak back."""
        return TopologyGraph(d.model_copy(deep=True) for d in self._devices.values())

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    def _next_device_id(self, device_type: str, start: int) -> str:
        n = start
        while f"{device_type}-{n}" in self._devices:
            n += 1
        return f"{device_type}-{n}"

    def _next_ssid_sequence(self) -> int:
        taken = {
            cfg.ssid
            for d in self._devices.values()
            if d.wifi_hosting is not None
            for cfg in d.wifi_hosting.configs
        }
        n = len(taken) + 1
        while f"c0090-{_SSID_BASE + n}" in taken:
            n += 1
        return n
