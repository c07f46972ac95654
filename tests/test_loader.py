"""Tests for the save-file loader, migration and writer."""

import json

import pytest

from storenet.collectors.loader import (
    CURRENT_SCHEMA_VERSION,
    dump_topology,
    load_topology,
    migrate_save,
    sanitize_cables,
    schema_version_of,
    topology_from_save,
)
from storenet.core.errors import SaveFileInvalid
from storenet.core.engine import NetworkSimulator
from storenet.core.models import AuthState, ConnectionState, DeviceStatus, PortRole


def _v1_save():
    return {
        "version": 1,
        "activeScenario": "legacy",
        "devices": [
            {
                "id": "m1",
                "type": "isp-modem",
                "name": "Modem",
                "status": "online",
                "ports": [
                    {"id": "m1-wan", "name": "ISP/Coax", "role": "wan"},
                    {"id": "m1-lan", "name": "LAN", "role": "lan", "connectedTo": "r1-wan"},
                ],
            },
            {
                "id": "r1",
                "type": "zyxel-router",
                "name": "Router",
                "ports": [
                    {"id": "r1-wan", "name": "WAN", "role": "wan", "connectedTo": "m1-lan"},
                    {"id": "r1-lan1", "name": "LAN 1", "role": "lan"},
                ],
            },
            {
                "id": "o1",
                "type": "power-outlet",
                "ports": [{"id": "o1-outlet1", "role": "generic"}],
            },
        ],
    }


def test_schema_version_detection():
    assert schema_version_of({"schemaVersion": 2}) == 2
    assert schema_version_of({"version": 1}) == 1
    assert schema_version_of({}) == 1


def test_migration_adds_power_ports_and_reroles_outlets():
    raw = _v1_save()
    migrated = migrate_save(raw)

    assert migrated["schemaVersion"] == CURRENT_SCHEMA_VERSION
    assert "activeScenario" not in migrated
    router_ports = migrated["devices"][1]["ports"]
    assert router_ports[-1]["id"] == "r1-pwr"
    assert router_ports[-1]["role"] == "power_input"
    assert migrated["devices"][2]["ports"][0]["role"] == "power_source"
    # the input is left alone
    assert len(raw["devices"][1]["ports"]) == 2


def test_migration_uses_definition_suffix_for_injector():
    raw = {
        "version": 1,
        "devices": [{"id": "inj", "type": "poe-injector", "ports": []}],
    }
    ports = migrate_save(raw)["devices"][0]["ports"]
    assert [p["id"] for p in ports] == ["inj-power"]


def test_topology_from_legacy_save():
    graph = topology_from_save(_v1_save())

    assert [d.id for d in graph] == ["m1", "r1", "o1"]
    assert graph.get_port("r1-wan").connected_to == "m1-lan"
    assert graph.get_port("r1-pwr").role == PortRole.POWER_INPUT
    assert graph.require_device("m1").status == DeviceStatus.ONLINE
    assert graph.require_device("o1").name == "o1"


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"devices": "nope"},
        {"schemaVersion": 2, "devices": [{"id": "x"}]},
        {"schemaVersion": 2, "devices": [{"id": "x", "type": "pos", "ports": [{"id": "p", "role": "bogus"}]}]},
        {"schemaVersion": 9, "devices": []},
    ],
)
def test_invalid_structures_are_rejected(data):
    with pytest.raises(SaveFileInvalid):
        topology_from_save(data)


def test_duplicate_ids_are_rejected():
    data = {
        "schemaVersion": 2,
        "devices": [
            {"id": "a", "type": "pos", "ports": [{"id": "a-eth", "role": "access"}]},
            {"id": "a", "type": "pos", "ports": []},
        ],
    }
    with pytest.raises(SaveFileInvalid, match="Duplicate device id"):
        topology_from_save(data)

    data["devices"][1] = {"id": "b", "type": "pos", "ports": [{"id": "a-eth", "role": "access"}]}
    with pytest.raises(SaveFileInvalid, match="Duplicate port id"):
        topology_from_save(data)


def test_broken_cables_are_cleared():
    data = {
        "schemaVersion": 2,
        "devices": [
            {
                "id": "r1",
                "type": "zyxel-router",
                "ports": [
                    {"id": "r1-lan1", "role": "lan", "connectedTo": "nowhere"},
                    {"id": "r1-lan2", "role": "lan", "connectedTo": "p1-eth"},
                    {"id": "r1-lan3", "role": "lan", "connectedTo": "r1-lan4"},
                    {"id": "r1-lan4", "role": "lan", "connectedTo": "r1-lan3"},
                    {"id": "r1-pwr", "role": "power_input", "connectedTo": "p1-eth"},
                ],
            },
            {
                "id": "p1",
                "type": "pos",
                "ports": [
                    {"id": "p1-eth", "role": "access", "connectedTo": "r1-pwr"},
                    {"id": "p1-pwr", "role": "power_input"},
                ],
            },
        ],
    }
    graph = topology_from_save(data)

    for device in graph:
        for port in device.ports:
            assert port.connected_to is None, port.id


def test_sanitize_reports_count(wired_store):
    wired_store.get_port("epson-thermal-1-eth").connected_to = "zyxel-router-1-lan4"

    # router lan1 no longer pointed back at, printer eth points at an empty port
    assert sanitize_cables(wired_store) == 2
    assert wired_store.get_port("zyxel-router-1-lan1").connected_to is None
    assert wired_store.get_port("epson-thermal-1-eth").connected_to is None
    assert len(wired_store.cables()) == 3


def test_wireless_config_follows_device_capability():
    data = {
        "schemaVersion": 2,
        "devices": [
            {"id": "p", "type": "pos", "ports": [], "wireless": {"ssid": "x"}},
            {"id": "k", "type": "kds", "ports": []},
            {"id": "o", "type": "orderpad", "wireless": {"ssid": "c0090-1", "authState": "associating"}},
        ],
    }
    graph = topology_from_save(data)

    assert graph.require_device("p").wireless is None
    assert graph.require_device("k").wireless.ssid == ""
    assert graph.require_device("o").wireless.ssid == "c0090-1"
    assert graph.require_device("o").wireless.auth_state.value == "associating"


def test_load_topology_errors(tmp_path):
    with pytest.raises(SaveFileInvalid, match="Cannot read"):
        load_topology(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{", encoding="utf-8")
    with pytest.raises(SaveFileInvalid, match="Invalid JSON"):
        load_topology(bad)


def test_dump_uses_camel_case_and_reloads(wired_store, tmp_path):
    data = dump_topology(wired_store, project_name="Store 42")

    assert data["schemaVersion"] == CURRENT_SCHEMA_VERSION
    assert data["projectInfo"] == {"name": "Store 42"}
    router = data["devices"][2]
    assert router["id"] == "zyxel-router-1"
    assert router["ports"][0] == {
        "id": "zyxel-router-1-wan",
        "name": "WAN",
        "role": "wan",
        "connectedTo": "isp-modem-1-lan",
    }
    assert router["wifiHosting"]["configs"][0]["security"] == "WPA2-PSK"
    assert "wireless" not in router

    path = tmp_path / "store.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    reloaded = load_topology(path)
    assert [d.id for d in reloaded] == [d.id for d in wired_store]
    assert len(reloaded.cables()) == len(wired_store.cables())


def test_bare_client_wireless_is_associated_on_load(store_with_ap):
    store_with_ap.add_device("orderpad")
    hosted = store_with_ap.require_device("access-point-1").wifi_hosting.configs[0]
    data = dump_topology(store_with_ap)
    pad = next(d for d in data["devices"] if d["id"] == "orderpad-1")
    pad["wireless"] = {"ssid": hosted.ssid, "password": hosted.password}

    graph = topology_from_save(data)
    wireless = graph.require_device("orderpad-1").wireless
    assert wireless.auth_state == AuthState.ASSOCIATED
    assert wireless.associated_ap_id == "access-point-1"

    sim = NetworkSimulator(graph, scheduler=lambda delay, cb: None)
    assert sim.get_device("orderpad-1").connection_state == ConnectionState.ONLINE


def test_saved_probing_client_finds_ap_in_same_save(store_with_ap):
    store_with_ap.add_device("cakepop")
    hosted = store_with_ap.require_device("access-point-1").wifi_hosting.configs[0]
    data = dump_topology(store_with_ap)
    pop = next(d for d in data["devices"] if d["id"] == "cakepop-1")
    pop["wireless"] = {"ssid": hosted.ssid, "password": "wrong", "authState": "associating"}

    graph = topology_from_save(data)
    assert graph.require_device("cakepop-1").wireless.auth_state == AuthState.AUTH_FAILED
