"""
Pytest configuration and shared fixtures for StoreNet tests.
"""

from __future__ import annotations

from typing import Callable

import pytest

from storenet.core.topology import TopologyGraph


# ============== Scheduler Fixtures ==============


class RecordingScheduler:
    """Collects scheduled callbacks so tests can fire them on demand."""

    def __init__(self) -> None:
        self.calls: list[tuple[float, Callable[[], None]]] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> None:
        self.calls.append((delay, callback))

    @property
    def delays(self) -> list[float]:
        return [delay for delay, _ in self.calls]

    def run_next(self) -> None:
        _, callback = self.calls.pop(0)
        callback()

    def run_all(self) -> None:
        while self.calls:
            self.run_next()


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


# ============== Topology Fixtures ==============


def build_wired_store() -> TopologyGraph:
    """Outlet, modem, router and a receipt printer, cabled correctly.

    Ids: power-outlet-1, isp-modem-1, zyxel-router-1, epson-thermal-1.
    """
    graph = TopologyGraph()
    graph.add_device("power-outlet")
    graph.add_device("isp-modem")
    graph.add_device("zyxel-router")
    graph.add_device("epson-thermal")

    graph.connect("isp-modem-1-lan", "zyxel-router-1-wan")
    graph.connect("power-outlet-1-outlet1", "zyxel-router-1-pwr")
    graph.connect("zyxel-router-1-lan1", "epson-thermal-1-eth")
    graph.connect("power-outlet-1-outlet2", "epson-thermal-1-pwr")
    return graph


def add_powered_ap(graph: TopologyGraph, *, uplink: str | None = "zyxel-router-1-lan2") -> None:
    """Add a PoE injector and an access point fed from the first outlet.

    Ids: poe-injector-1, access-point-1.
    """
    graph.add_device("poe-injector")
    graph.add_device("access-point")
    graph.connect("power-outlet-1-outlet3", "poe-injector-1-power")
    graph.connect("poe-injector-1-poe_out", "access-point-1-eth")
    if uplink is not None:
        graph.connect(uplink, "poe-injector-1-lan_in")


@pytest.fixture
def wired_store() -> TopologyGraph:
    return build_wired_store()


@pytest.fixture
def store_with_ap() -> TopologyGraph:
    graph = build_wired_store()
    add_powered_ap(graph)
    return graph
