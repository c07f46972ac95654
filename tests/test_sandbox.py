"""Tests for the sandbox generator."""

import pytest

from storenet.analyzers.pipeline import run_pipeline
from storenet.collectors.sandbox import DEFAULT_SANDBOX_COUNTS, build_sandbox
from storenet.core.models import DeviceStatus


def test_default_sandbox_ids_and_status():
    graph = build_sandbox()

    assert [d.id for d in graph] == [
        "isp-modem-1",
        "zyxel-router-2",
        "unmanaged-switch-3",
        "power-outlet-4",
        "v4-pos-5",
        "epson-thermal-6",
        "epson-impact-7",
    ]
    online = {d.id for d in graph if d.status == DeviceStatus.ONLINE}
    assert online == {"isp-modem-1", "power-outlet-4"}
    assert graph.cables() == []
    assert len(graph) == sum(DEFAULT_SANDBOX_COUNTS.values())


def test_sandbox_names_count_per_type():
    graph = build_sandbox({"pos": 2, "kds": 1})
    assert [d.name for d in graph] == ["POS 1", "POS 2", "KDS 1"]
    assert graph.require_device("kds-3").wireless is not None
    assert graph.require_device("pos-1").wireless is None


def test_sandbox_ssids():
    graph = build_sandbox({"isp-modem": 1, "zyxel-router": 2})
    configs = [d.wifi_hosting.configs[0] for d in graph]

    assert [c.ssid for c in configs] == ["c0090-11540001", "c0090-11540002", "c0090-11540003"]
    assert [c.password for c in configs] == ["cake10000", "cake10000", "cake10001"]
    assert all(c.hidden for c in configs)


def test_negative_count_is_rejected():
    with pytest.raises(ValueError):
        build_sandbox({"pos": -1})


def test_fresh_sandbox_findings():
    findings = run_pipeline(build_sandbox()).findings
    ids = {f.id for f in findings}

    assert "router-wan-not-connected-zyxel-router-2" in ids
    assert {"isolated-v4-pos-5", "isolated-epson-thermal-6", "isolated-epson-impact-7"} <= ids
