"""Tests for the topology graph model: cabling rules and device lifecycle."""

import pytest

from storenet.core.errors import ConnectionRejected, DeviceNotFound, DuplicateDevice
from storenet.core.models import DeviceStatus, LinkStatus, PortRole
from storenet.core.topology import TopologyGraph, default_device_name


def _assert_symmetric(graph: TopologyGraph) -> None:
    for device in graph:
        for port in device.ports:
            if port.connected_to is not None:
                far = graph.get_port(port.connected_to)
                assert far is not None
                assert far.connected_to == port.id


def test_add_device_builds_ports_from_definition():
    graph = TopologyGraph()
    router = graph.add_device("zyxel-router")

    assert router.id == "zyxel-router-1"
    assert router.name == "ZYXEL ROUTER 1"
    assert [p.id for p in router.ports] == [
        "zyxel-router-1-wan",
        "zyxel-router-1-lan1",
        "zyxel-router-1-lan2",
        "zyxel-router-1-lan3",
        "zyxel-router-1-lan4",
        "zyxel-router-1-pwr",
    ]
    assert router.status == DeviceStatus.OFFLINE
    assert router.wifi_hosting is not None and router.wifi_hosting.enabled
    assert router.wireless is None


def test_add_device_initial_status_and_wireless():
    graph = TopologyGraph()
    modem = graph.add_device("isp-modem")
    pad = graph.add_device("orderpad")
    kds = graph.add_device("kds")

    assert modem.status == DeviceStatus.ONLINE
    assert pad.status == DeviceStatus.ONLINE
    assert pad.ports == []
    assert pad.wireless is not None and pad.wireless.ssid == ""
    assert kds.status == DeviceStatus.OFFLINE
    assert kds.wireless is not None


def test_add_device_skips_taken_ids():
    graph = TopologyGraph()
    graph.add_device("pos", device_id="pos-2")
    second = graph.add_device("pos")
    assert second.id == "pos-3"
    with pytest.raises(DuplicateDevice):
        graph.add_device("pos", device_id="pos-2")


def test_hosting_devices_get_distinct_default_ssids():
    graph = TopologyGraph()
    modem = graph.add_device("isp-modem")
    router = graph.add_device("zyxel-router")
    ssids = {modem.wifi_hosting.configs[0].ssid, router.wifi_hosting.configs[0].ssid}
    assert ssids == {"c0090-11540001", "c0090-11540002"}
    assert router.wifi_hosting.configs[0].hidden


def test_unknown_type_uses_fallback_definition():
    graph = TopologyGraph()
    device = graph.add_device("mystery-box")
    assert [p.role for p in device.ports] == [PortRole.GENERIC, PortRole.GENERIC]


def test_default_device_name_replaces_first_hyphen_only():
    assert default_device_name("datto-ap-440", 2) == "DATTO AP-440 2"


def test_connect_is_symmetric(wired_store):
    _assert_symmetric(wired_store)
    assert wired_store.get_port("isp-modem-1-lan").connected_to == "zyxel-router-1-wan"
    assert len(wired_store.cables()) == 4


@pytest.mark.parametrize(
    "port_a, port_b, reason",
    [
        ("nope", "zyxel-router-1-wan", "Port nope not found."),
        ("zyxel-router-1-wan", "zyxel-router-1-wan", "Cannot connect a port to itself."),
        ("zyxel-router-1-lan1", "zyxel-router-1-lan2", "Cannot connect a device to itself."),
        ("power-outlet-1-outlet1", "zyxel-router-1-lan1", "Power strip only accepts power connections."),
        ("zyxel-router-1-pwr", "epson-thermal-1-eth", "Cannot connect power cable to data port."),
    ],
)
def test_connect_rejections_leave_graph_unchanged(port_a, port_b, reason):
    graph = TopologyGraph()
    graph.add_device("power-outlet")
    graph.add_device("zyxel-router")
    graph.add_device("epson-thermal")

    with pytest.raises(ConnectionRejected) as excinfo:
        graph.connect(port_a, port_b)

    assert excinfo.value.reason == reason
    assert graph.cables() == []


def test_connect_replaces_existing_cable_on_both_ends(wired_store):
    wired_store.add_device("epson-impact")
    wired_store.connect("zyxel-router-1-lan1", "epson-impact-1-eth")

    assert wired_store.get_port("epson-thermal-1-eth").connected_to is None
    assert wired_store.get_port("zyxel-router-1-lan1").connected_to == "epson-impact-1-eth"
    _assert_symmetric(wired_store)


def test_disconnect_clears_both_ends(wired_store):
    wired_store.get_port("zyxel-router-1-lan1").link_status = LinkStatus.UP
    wired_store.disconnect("epson-thermal-1-eth")

    router_lan = wired_store.get_port("zyxel-router-1-lan1")
    assert router_lan.connected_to is None
    assert router_lan.link_status == LinkStatus.DOWN
    assert wired_store.get_port("epson-thermal-1-eth").connected_to is None

    # no-op on an uncabled port
    wired_store.disconnect("epson-thermal-1-eth")


def test_remove_device_clears_far_ends(wired_store):
    removed = wired_store.remove_device("zyxel-router-1")

    assert removed.id == "zyxel-router-1"
    assert "zyxel-router-1" not in wired_store
    assert wired_store.get_port("zyxel-router-1-wan") is None
    assert wired_store.get_port("isp-modem-1-lan").connected_to is None
    assert wired_store.get_port("epson-thermal-1-eth").connected_to is None
    assert wired_store.get_port("power-outlet-1-outlet1").connected_to is None
    _assert_symmetric(wired_store)


def test_remove_missing_device_raises():
    with pytest.raises(DeviceNotFound):
        TopologyGraph().remove_device("ghost-1")


def test_clone_is_independent(wired_store):
    copy = wired_store.clone()
    copy.disconnect("epson-thermal-1-eth")
    copy.require_device("isp-modem-1").status = DeviceStatus.ERROR

    assert wired_store.get_port("epson-thermal-1-eth").connected_to == "zyxel-router-1-lan1"
    assert wired_store.require_device("isp-modem-1").status == DeviceStatus.ONLINE


def test_dangling_reference_resolves_to_no_partner(wired_store):
    port = wired_store.get_port("epson-thermal-1-eth")
    port.connected_to = "gone-1-eth"
    assert wired_store.partner(port) is None
    assert wired_store.neighbor(port) is None
