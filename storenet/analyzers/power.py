"""
StoreNet Power Propagation
===========================

Derives which devices have power and settles ``Device.status``
accordingly.

Power Rules:
    - ``requires_power`` false (modem, outlet, mobile): always powered.
    - Mains (``outlet``) devices: the ``power_input`` port is cabled and
      the device on the far end is online.  A mains device whose
      definition has no ``power_input`` port is treated as fed by an
      unmodelled supply.
    - PoE devices: the ``poe_client`` port is cabled to a ``poe_source``
      port, or to a ``generic`` port on a PoE-capable device, and that
      upstream device is neither offline nor booting.

State Transitions:
    - No power: ``offline`` (from any status).
    - Power and ``offline``: ``online``, except mobile devices, which
      stay off until switched on.
    - Power and ``booting`` / ``error``: unchanged.

The computation is a bounded fixed-point iteration.  Within one pass
every device is decided against the statuses captured at the start of
the pass, then all decisions are applied together, so the result does
not depend on device order.  Iteration stops when a pass changes
nothing or the pass cap is reached.

References:
    - IEEE 802.3af-2003. Power over Ethernet, PSE / PD roles.
    - Kleene, S. C. (1952). Introduction to Metamathematics. (Least
      fixed point by iteration from bottom.)
"""

from __future__ import annotations

from shared.logger import StoreNetLogger

from storenet.core.definitions import PowerSource, get_definition
from storenet.core.models import Device, DeviceStatus, PortRole
from storenet.core.topology import TopologyGraph

logger = StoreNetLogger("power")

_UNPOWERED_UPSTREAM = frozenset({DeviceStatus.OFFLINE, DeviceStatus.BOOTING})


class PowerPropagator:
    """Settles device power status over a topology graph.

    Usage::

        propagator = PowerPropagator(max_passes=5)
        passes = propagator.propagate(graph)
    """

    def __init__(self, max_passes: int = 5) -> None:
        """Initialise the propagator.

        Args:
            max_passes: Upper bound on fixed-point passes.  It covers the
                deepest power chain in the catalog (outlet, injector,
                AP), not an arbitrary graph.
        """
        if max_passes < 1:
            raise ValueError("max_passes must be at least 1")
        self.max_passes = max_passes

    # ------------------------------------------------------------------ #
    #  Power check
    # ------------------------------------------------------------------ #

    def has_power(
        self,
        device: Device,
        graph: TopologyGraph,
        statuses: dict[str, DeviceStatus],
    ) -> bool:
        """Return whether *device* is powered given the *statuses* snapshot."""
        definition = get_definition(device.type)
        if not definition.power.requires_power:
            return True

        if definition.power.power_source == PowerSource.POE:
            return self._has_poe(device, graph, statuses)

        power_port = device.first_port(PortRole.POWER_INPUT)
        if power_port is None:
            return True
        source = graph.neighbor(power_port)
        if source is None:
            return False
        return statuses.get(source.id) == DeviceStatus.ONLINE

    def _has_poe(
        self,
        device: Device,
        graph: TopologyGraph,
        statuses: dict[str, DeviceStatus],
    ) -> bool:
        client = device.first_port(PortRole.POE_CLIENT)
        if client is None:
            return False
        upstream_port = graph.partner(client)
        upstream = graph.neighbor(client)
        if upstream_port is None or upstream is None:
            return False
        if statuses.get(upstream.id) in _UNPOWERED_UPSTREAM:
            return False
        if upstream_port.role == PortRole.POE_SOURCE:
            return True
        return (
            upstream_port.role == PortRole.GENERIC
            and get_definition(upstream.type).capabilities.poe_source
        )

    # ------------------------------------------------------------------ #
    #  Propagation
    # ------------------------------------------------------------------ #

    @staticmethod
    def next_status(device: Device, powered: bool) -> DeviceStatus:
        """Return the status *device* moves to given its power state."""
        if not powered:
            return DeviceStatus.OFFLINE
        if device.status == DeviceStatus.OFFLINE:
            if get_definition(device.type).capabilities.is_mobile:
                return DeviceStatus.OFFLINE
            return DeviceStatus.ONLINE
        return device.status

    def propagate(self, graph: TopologyGraph) -> int:
        """Settle every device's status in place.

        Returns:
            Number of passes executed.
        """
        passes = 0
        while passes < self.max_passes:
            passes += 1
            snapshot = {d.id: d.status for d in graph}
            updates: dict[str, DeviceStatus] = {}
            for device in graph:
                status = self.next_status(
                    device, self.has_power(device, graph, snapshot)
                )
                if status != device.status:
                    updates[device.id] = status

            for device_id, status in updates.items():
                graph.require_device(device_id).status = status

            if not updates:
                break
            logger.debug("Power pass %d changed %d device(s)", passes, len(updates))
        else:
            logger.warning(
                "Power propagation hit the %d-pass cap before settling",
                self.max_passes,
            )
        return passes
