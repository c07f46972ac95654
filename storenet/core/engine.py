"""
StoreNet Engine
================

Central orchestration engine for the StoreNet simulator.  The engine
owns the live :class:`~storenet.core.topology.TopologyGraph`, applies
operator mutations to it and re-runs the full simulation pipeline after
every one, so that callers only ever observe a settled topology.

Architecture follows the Mediator pattern (Gamma et al., 1994): the
engine is the only component that mutates the graph and the only one
that knows the order of the pipeline stages.

Mutations:
    connect, disconnect, add_device, remove_device,
    set_device_override, set_wireless_config, trigger_action, load

Observations:
    devices, validation_errors, snapshot, check

Timed device actions (reboot, power cycle) are fire-and-forget calls
through a pluggable scheduler and re-enter the engine like any other
mutation.  Every mutation holds the engine lock, so a timer thread never
observes a half-updated graph.  A later explicit change simply
overwrites what an earlier scheduled one set.

References:
    - Gamma, E., Helm, R., Johnson, R., & Vlissides, J. (1994).
      Design Patterns. Addison-Wesley. (Mediator Pattern)
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Callable, Optional

from shared.config import StoreNetConfig
from shared.logger import StoreNetLogger
from shared.models import CheckResult, Finding

from storenet.analyzers.pipeline import PipelineResult, run_pipeline
from storenet.analyzers.wireless import resolve_association, retry_pending_associations
from storenet.collectors.loader import load_topology
from storenet.core.definitions import is_wifi_client
from storenet.core.errors import UnsupportedOperation
from storenet.core.models import Device, DeviceAction, DeviceStatus
from storenet.core.topology import TopologyGraph

Scheduler = Callable[[float, Callable[[], None]], Any]


def thread_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    """Run *callback* after *delay* seconds on a daemon timer thread."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class NetworkSimulator:
    """Live store network simulation.

    Usage::

        sim = NetworkSimulator()
        modem = sim.add_device("isp-modem")
        router = sim.add_device("zyxel-router")
        sim.connect(f"{modem}-lan", f"{router}-wan")
        for finding in sim.validation_errors:
            print(finding.id, finding.message)

    Attributes:
        config: StoreNetConfig instance.
    """

    def __init__(
        self,
        graph: Optional[TopologyGraph] = None,
        config: Optional[StoreNetConfig] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        logger: Optional[StoreNetLogger] = None,
    ) -> None:
        """Initialise the simulator and settle the initial graph.

        Args:
            graph: Starting topology.  An empty graph when ``None``.
            config: StoreNetConfig instance.  Defaults when ``None``.
            scheduler: ``(delay, callback)`` callable used for timed
                device transitions.  Daemon threads when ``None``.
            logger: Logger instance.  A new one is created if not provided.
        """
        self.config: StoreNetConfig = config or StoreNetConfig()
        self._logger: StoreNetLogger = logger or StoreNetLogger("engine")
        self._scheduler: Scheduler = scheduler or thread_scheduler
        self._lock = threading.RLock()
        self._graph: TopologyGraph = graph if graph is not None else TopologyGraph()
        self._last: Optional[PipelineResult] = None
        self._settle()

    # ================================================================== #
    #  Observation
    # ================================================================== #

    @property
    def graph(self) -> TopologyGraph:
        return self._graph

    @property
    def devices(self) -> list[Device]:
        with self._lock:
            return self._graph.devices

    @property
    def validation_errors(self) -> list[Finding]:
        with self._lock:
            return list(self._last.findings) if self._last else []

    def get_device(self, device_id: str) -> Device:
        with self._lock:
            return self._graph.require_device(device_id)

    def snapshot(self) -> dict[str, Any]:
        """Return a JSON-safe dump of devices and findings."""
        with self._lock:
            return {
                "devices": [d.model_dump(mode="json") for d in self._graph],
                "validation_errors": [
                    f.model_dump(mode="json") for f in self.validation_errors
                ],
            }

    def check(self, target: str = "topology") -> CheckResult:
        """Package the current state as a :class:`CheckResult`."""
        with self._lock:
            result = CheckResult(tool_name="storenet", target=target)
            for finding in self.validation_errors:
                result.add_finding(finding)
            result.metadata = {
                "device_count": len(self._graph),
                "cable_count": len(self._graph.cables()),
                "power_passes": self._last.power_passes if self._last else 0,
                "links_up": self._last.links_up if self._last else 0,
                "connection_states": dict(self._last.connection_counts) if self._last else {},
                "devices": [d.model_dump(mode="json") for d in self._graph],
            }
            return result.finalize()

    # ================================================================== #
    #  Cabling
    # ================================================================== #

    def connect(self, port_a: str, port_b: str) -> None:
        """Cable two ports.  Raises ``ConnectionRejected`` with the reason."""
        with self._mutation("connect", port_a, port_b):
            self._graph.connect(port_a, port_b)
            self._logger.debug("Connected %s <-> %s", port_a, port_b)

    def disconnect(self, port_id: str) -> None:
        with self._mutation("disconnect", port_id):
            self._graph.disconnect(port_id)
            self._logger.debug("Disconnected %s", port_id)

    # ================================================================== #
    #  Device lifecycle
    # ================================================================== #

    def add_device(
        self,
        device_type: str,
        *,
        device_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> str:
        """Add a device of *device_type* and return its id."""
        with self._mutation("add_device", device_id or device_type):
            device = self._graph.add_device(device_type, device_id=device_id, name=name)
            self._logger.info("Added %s (%s)", device.name, device.id)
            if device.wifi_hosting is not None:
                self._retry_wifi_clients()
            return device.id

    def remove_device(self, device_id: str) -> None:
        with self._mutation("remove_device", device_id):
            device = self._graph.remove_device(device_id)
            self._logger.info("Removed %s (%s)", device.name, device.id)

    def set_device_override(
        self,
        device_id: str,
        *,
        status: Optional[DeviceStatus | str] = None,
        ip: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Set operator fields on a device.

        A status override is re-settled by the power stage: forcing a
        powered mains device ``offline`` brings it straight back
        ``online``, while ``booting`` and ``error`` stick until power is
        lost.
        """
        with self._mutation("set_device_override", device_id):
            device = self._graph.require_device(device_id)
            if status is not None:
                device.status = DeviceStatus(status)
            if ip is not None:
                device.ip = ip
            if notes is not None:
                device.notes = notes

    def set_wireless_config(self, device_id: str, ssid: str, password: str = "") -> None:
        """Configure a Wi-Fi client and resolve its association once.

        Raises:
            UnsupportedOperation: If the device type has no Wi-Fi radio.
        """
        with self._mutation("set_wireless_config", device_id):
            device = self._graph.require_device(device_id)
            if not is_wifi_client(device.type):
                raise UnsupportedOperation(
                    f"{device.name} ({device.type}) does not support Wi-Fi "
                    "client configuration."
                )
            device.wireless = resolve_association(self._graph, ssid, password)
            self._logger.info(
                "Wi-Fi %s -> %s: %s",
                device.id,
                ssid or "<none>",
                device.wireless.auth_state.value,
            )

    def load(self, source: TopologyGraph | str | Path) -> None:
        """Replace the live topology with *source* (a graph or save file)."""
        graph = source if isinstance(source, TopologyGraph) else load_topology(source)
        with self._mutation("load", str(source) if isinstance(source, (str, Path)) else "graph"):
            self._graph = graph
            self._logger.info("Loaded topology with %d device(s)", len(graph))
            self._retry_wifi_clients()

    # ================================================================== #
    #  Device actions
    # ================================================================== #

    def trigger_action(self, device_id: str, action: DeviceAction | str) -> None:
        """Run an operator power action on a device.

        reboot / power_on:  booting now, online after the boot delay.
        power_off:          offline now.
        power_cycle:        offline now, booting after the off delay,
                            online after a further boot delay.
        """
        try:
            action = DeviceAction(action)
        except ValueError:
            raise UnsupportedOperation(f"Unknown device action: {action}") from None

        sim = self.config.simulator
        with self._mutation(f"action:{action.value}", device_id):
            device = self._graph.require_device(device_id)
            if action in (DeviceAction.REBOOT, DeviceAction.POWER_ON):
                device.status = DeviceStatus.BOOTING
                self._schedule(sim.boot_delay_seconds, device_id, DeviceStatus.ONLINE)
            elif action == DeviceAction.POWER_OFF:
                device.status = DeviceStatus.OFFLINE
            else:
                device.status = DeviceStatus.OFFLINE
                self._scheduler(
                    sim.power_cycle_off_seconds,
                    lambda: self._finish_power_cycle(device_id),
                )

    def _finish_power_cycle(self, device_id: str) -> None:
        self._apply_scheduled(device_id, DeviceStatus.BOOTING)
        self._schedule(self.config.simulator.boot_delay_seconds, device_id, DeviceStatus.ONLINE)

    def _schedule(self, delay: float, device_id: str, status: DeviceStatus) -> None:
        self._scheduler(delay, lambda: self._apply_scheduled(device_id, status))

    def _apply_scheduled(self, device_id: str, status: DeviceStatus) -> None:
        with self._lock:
            if device_id not in self._graph:
                self._logger.debug("Scheduled %s for removed device %s dropped", status.value, device_id)
                return
            with self._mutation(f"scheduled:{status.value}", device_id):
                self._graph.require_device(device_id).status = status

    # ================================================================== #
    #  Internal helpers
    # ================================================================== #

    def _retry_wifi_clients(self) -> None:
        for device_id in retry_pending_associations(self._graph):
            self._logger.info(
                "Wi-Fi %s: %s",
                device_id,
                self._graph.require_device(device_id).wireless.auth_state.value,  # type: ignore[union-attr]
            )

    def _settle(self) -> None:
        self._last = run_pipeline(self._graph, self.config, in_place=True)

    class _Mutation:
        """Engine lock plus a logged mutation scope; re-settles on success."""

        def __init__(self, engine: NetworkSimulator, name: str, subjects: tuple[str, ...]) -> None:
            self._engine = engine
            self._scope = engine._logger.mutation(name, *subjects)

        def __enter__(self) -> None:
            self._engine._lock.acquire()
            self._scope.__enter__()

        def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
            try:
                if exc is None:
                    self._engine._settle()
            finally:
                self._scope.__exit__(exc_type, exc, tb)
                self._engine._lock.release()

    def _mutation(self, name: str, *subjects: str) -> NetworkSimulator._Mutation:
        return self._Mutation(self, name, subjects)
