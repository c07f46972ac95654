"""Tests for the topology validator rules and the offline-AP override."""

from storenet.analyzers.pipeline import run_pipeline
from storenet.analyzers.validator import (
    OFFLINE_AP_OVERRIDE_RULE,
    TopologyValidator,
    poe_chain_looks_correct,
)
from shared.models import Severity
from storenet.core.models import DeviceStatus
from storenet.core.topology import TopologyGraph

from conftest import add_powered_ap


def _findings(graph, **validator_kwargs):
    settled = run_pipeline(graph).graph
    return TopologyValidator(**validator_kwargs).validate(settled)


def _ids(findings):
    return [f.id for f in findings]


def _rules(findings):
    return {f.rule for f in findings}


def test_clean_store_has_no_findings(wired_store):
    assert _findings(wired_store) == []


def test_validation_is_read_only_and_repeatable(store_with_ap):
    settled = run_pipeline(store_with_ap).graph
    settled.disconnect("epson-thermal-1-eth")
    before = [d.model_dump() for d in settled]
    validator = TopologyValidator()

    first = validator.validate(settled)
    second = validator.validate(settled)

    assert first == second
    assert [d.model_dump() for d in settled] == before


# ---------------------------------------------------------------------------
# Loops
# ---------------------------------------------------------------------------


def test_switch_triangle_reports_one_loop(wired_store):
    wired_store.add_device("unmanaged-switch")
    wired_store.add_device("unmanaged-switch")
    wired_store.connect("unmanaged-switch-1-p1", "unmanaged-switch-2-p1")
    wired_store.connect("zyxel-router-1-lan2", "unmanaged-switch-1-p2")
    wired_store.connect("zyxel-router-1-lan3", "unmanaged-switch-2-p2")

    loops = [f for f in _findings(wired_store) if f.rule == "network-loop"]

    assert len(loops) == 1
    assert loops[0].id == "network-loop-unmanaged-switch-1"
    assert loops[0].severity == Severity.ERROR
    assert set(loops[0].device_ids) == {
        "zyxel-router-1",
        "unmanaged-switch-1",
        "unmanaged-switch-2",
    }


def test_double_cable_between_switches_is_a_loop():
    graph = TopologyGraph()
    graph.add_device("unmanaged-switch")
    graph.add_device("unmanaged-switch")
    graph.connect("unmanaged-switch-1-p1", "unmanaged-switch-2-p1")
    graph.connect("unmanaged-switch-1-p2", "unmanaged-switch-2-p2")

    assert "network-loop" in _rules(_findings(graph))


def test_power_cables_never_form_a_loop(wired_store):
    assert "network-loop" not in _rules(_findings(wired_store))


# ---------------------------------------------------------------------------
# Router WAN and modem segment
# ---------------------------------------------------------------------------


def test_router_wan_left_empty(wired_store):
    wired_store.disconnect("zyxel-router-1-wan")
    ids = _ids(_findings(wired_store))

    assert "router-wan-not-connected-zyxel-router-1" in ids
    assert "misidentified-router-zyxel-router-1" in ids


def test_router_wan_on_modem_coax_port(wired_store):
    wired_store.connect("isp-modem-1-wan", "zyxel-router-1-wan")
    findings = {f.id: f for f in _findings(wired_store)}

    finding = findings["router-wan-wrong-modem-port-zyxel-router-1"]
    assert "ISP/Coax" in finding.message
    assert finding.device_ids == ["zyxel-router-1", "isp-modem-1"]


def test_router_wan_on_switch_is_misuse(wired_store):
    wired_store.add_device("unmanaged-switch")
    wired_store.connect("zyxel-router-1-wan", "unmanaged-switch-1-p1")

    assert "wan-misuse-zyxel-router-1" in _ids(_findings(wired_store))


def test_modem_and_router_lan_on_one_switch():
    graph = TopologyGraph()
    graph.add_device("isp-modem")
    graph.add_device("zyxel-router")
    graph.add_device("unmanaged-switch")
    graph.connect("isp-modem-1-lan", "unmanaged-switch-1-p1")
    graph.connect("zyxel-router-1-lan1", "unmanaged-switch-1-p2")

    ids = _ids(_findings(graph))
    assert "modem-switch-conflict-isp-modem-1" in ids
    assert "router-wan-not-connected-zyxel-router-1" in ids


def test_router_wan_on_modem_switch_is_not_a_conflict():
    graph = TopologyGraph()
    graph.add_device("isp-modem")
    graph.add_device("zyxel-router")
    graph.add_device("unmanaged-switch")
    graph.connect("isp-modem-1-lan", "unmanaged-switch-1-p1")
    graph.connect("zyxel-router-1-wan", "unmanaged-switch-1-p2")

    rules = _rules(_findings(graph))
    assert "modem-switch-conflict" not in rules
    assert "wan-misuse" in rules


def test_endpoint_on_modem_bypasses_router():
    graph = TopologyGraph()
    graph.add_device("power-outlet")
    graph.add_device("isp-modem")
    graph.add_device("epson-thermal")
    graph.connect("isp-modem-1-lan", "epson-thermal-1-eth")
    graph.connect("power-outlet-1-outlet1", "epson-thermal-1-pwr")

    findings = _findings(graph)
    assert _ids(findings) == ["bypass-router-epson-thermal-1"]


def test_modem_segment_stops_at_router_wan():
    graph = TopologyGraph()
    graph.add_device("isp-modem")
    graph.add_device("unmanaged-switch")
    graph.add_device("zyxel-router")
    graph.add_device("epson-thermal")
    graph.add_device("epson-thermal")
    graph.connect("isp-modem-1-lan", "unmanaged-switch-1-p1")
    graph.connect("zyxel-router-1-wan", "unmanaged-switch-1-p2")
    graph.connect("epson-thermal-1-eth", "unmanaged-switch-1-p3")
    graph.connect("zyxel-router-1-lan1", "epson-thermal-2-eth")

    assert TopologyValidator.modem_segment(graph) == {"unmanaged-switch-1", "epson-thermal-1"}


# ---------------------------------------------------------------------------
# Endpoints, routers, unknown devices
# ---------------------------------------------------------------------------


def test_disconnected_endpoint_is_isolated(wired_store):
    wired_store.disconnect("epson-thermal-1-eth")
    findings = _findings(wired_store)

    assert _ids(findings) == ["isolated-epson-thermal-1"]
    assert findings[0].severity == Severity.WARNING


def test_routers_cabled_together(wired_store):
    wired_store.add_device("cradlepoint-router")
    wired_store.connect("zyxel-router-1-lan2", "cradlepoint-router-1-lan1")

    ids = _ids(_findings(wired_store))
    assert "multi-router-zyxel-router-1-cradlepoint-router-1" in ids
    assert "misidentified-router-cradlepoint-router-1" in ids


def test_cabled_unknown_device(wired_store):
    wired_store.add_device("unknown")
    wired_store.connect("zyxel-router-1-lan2", "unknown-1-p1")

    assert "unknown-device-unknown-1" in _ids(_findings(wired_store))


def test_router_wan_on_unknown_device_is_reported_once(wired_store):
    wired_store.disconnect("zyxel-router-1-wan")
    wired_store.add_device("unknown")
    wired_store.connect("zyxel-router-1-wan", "unknown-1-p1")
    findings = _findings(wired_store)

    assert "unknown-device-unknown-1" in _ids(findings)
    assert "wan-misuse" not in _rules(findings)


def test_uncabled_unknown_device_is_ignored():
    graph = TopologyGraph()
    graph.add_device("unknown")
    assert _findings(graph) == []


# ---------------------------------------------------------------------------
# Access points and injectors
# ---------------------------------------------------------------------------


def test_ap_on_plain_switch_has_no_poe(wired_store):
    wired_store.add_device("unmanaged-switch")
    wired_store.add_device("access-point")
    wired_store.connect("power-outlet-1-outlet3", "unmanaged-switch-1-pwr")
    wired_store.connect("zyxel-router-1-lan2", "unmanaged-switch-1-p8")
    wired_store.connect("unmanaged-switch-1-p1", "access-point-1-eth")

    result = run_pipeline(wired_store)

    assert result.graph.require_device("access-point-1").status == DeviceStatus.OFFLINE
    assert "ap-no-poe-access-point-1" in _ids(result.findings)


def test_correct_ap_chain_is_clean(store_with_ap):
    assert _findings(store_with_ap) == []


def test_ap_on_injector_lan_port(wired_store):
    wired_store.add_device("poe-injector")
    wired_store.add_device("access-point")
    wired_store.connect("power-outlet-1-outlet3", "poe-injector-1-power")
    wired_store.connect("poe-injector-1-lan_in", "access-point-1-eth")

    assert "ap-wrong-injector-port-access-point-1" in _ids(_findings(wired_store))


def test_injector_uplinked_to_modem(wired_store):
    add_powered_ap(wired_store, uplink=None)
    wired_store.add_device("isp-modem")
    wired_store.connect("isp-modem-2-lan", "poe-injector-1-lan_in")

    ids = _ids(_findings(wired_store))
    assert "injector-wrong-connection-poe-injector-1" in ids
    assert "bypass-router-access-point-1" in ids


def test_injector_on_isolated_switch(wired_store):
    add_powered_ap(wired_store, uplink=None)
    wired_store.add_device("unmanaged-switch")
    wired_store.connect("power-outlet-1-outlet4", "unmanaged-switch-1-pwr")
    wired_store.connect("unmanaged-switch-1-p1", "poe-injector-1-lan_in")

    ids = _ids(_findings(wired_store))
    assert "injector-isolated-switch-poe-injector-1" in ids
    assert "ap-no-router-path-access-point-1" in ids


def test_unpowered_injector_feeding_ap(store_with_ap):
    store_with_ap.disconnect("poe-injector-1-power")
    ids = _ids(_findings(store_with_ap))

    assert "injector-no-power-poe-injector-1" in ids


def test_uncabled_ap(wired_store):
    wired_store.add_device("access-point")
    assert _ids(_findings(wired_store)) == ["ap-not-connected-access-point-1"]


# ---------------------------------------------------------------------------
# Offline-AP override
# ---------------------------------------------------------------------------


def _store_with_booting_injector(graph):
    settled = run_pipeline(graph).graph
    settled.require_device("poe-injector-1").status = DeviceStatus.BOOTING
    return run_pipeline(settled).graph


def test_offline_ap_with_correct_chain_gets_health_hint(store_with_ap):
    settled = _store_with_booting_injector(store_with_ap)
    ap = settled.require_device("access-point-1")

    assert ap.status == DeviceStatus.OFFLINE
    assert poe_chain_looks_correct(settled, ap)

    findings = TopologyValidator().validate(settled)
    assert _ids(findings) == [f"{OFFLINE_AP_OVERRIDE_RULE}-access-point-1"]
    assert findings[0].severity == Severity.WARNING


def test_override_can_be_switched_off(store_with_ap):
    settled = _store_with_booting_injector(store_with_ap)
    findings = TopologyValidator(offline_ap_override=False).validate(settled)

    assert _ids(findings) == ["ap-no-router-path-access-point-1"]


def test_override_leaves_wiring_findings_alone(wired_store):
    wired_store.add_device("access-point")
    settled = run_pipeline(wired_store).graph
    ap = settled.require_device("access-point-1")

    assert not poe_chain_looks_correct(settled, ap)
    assert _ids(TopologyValidator().validate(settled)) == ["ap-not-connected-access-point-1"]


def test_disabled_rules_are_dropped(wired_store):
    wired_store.disconnect("epson-thermal-1-eth")
    assert _findings(wired_store, disabled_rules=["isolated"]) == []
