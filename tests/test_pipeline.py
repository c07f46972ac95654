"""Tests for the four-stage pipeline as a whole."""

from shared.config import StoreNetConfig
from storenet.analyzers.pipeline import run_pipeline
from storenet.core.models import ConnectionState, DeviceStatus


def _derived(graph):
    return [
        (
            d.id,
            d.status,
            d.connection_state,
            tuple((p.id, p.link_status) for p in d.ports),
        )
        for d in graph
    ]


def test_pipeline_is_idempotent(store_with_ap):
    first = run_pipeline(store_with_ap)
    second = run_pipeline(first.graph)

    assert _derived(first.graph) == _derived(second.graph)
    assert first.findings == second.findings
    assert second.power_passes == 1


def test_pipeline_leaves_input_untouched_by_default(wired_store):
    before = [d.model_dump() for d in wired_store]
    result = run_pipeline(wired_store)

    assert [d.model_dump() for d in wired_store] == before
    assert result.graph is not wired_store
    assert result.graph.require_device("zyxel-router-1").status == DeviceStatus.ONLINE


def test_pipeline_in_place(wired_store):
    result = run_pipeline(wired_store, in_place=True)

    assert result.graph is wired_store
    assert wired_store.require_device("epson-thermal-1").connection_state == ConnectionState.ONLINE


def test_pipeline_reports_stage_counters(wired_store):
    result = run_pipeline(wired_store)

    assert result.power_passes == 2
    assert result.links_up == 8
    assert result.connection_counts[ConnectionState.ONLINE.value] == 3
    assert result.connection_counts[ConnectionState.DISCONNECTED.value] == 1
    assert sum(result.connection_counts.values()) == len(wired_store)


def test_pipeline_honours_config(store_with_ap):
    config = StoreNetConfig()
    config.simulator.max_power_passes = 1
    config.validator.disabled_rules = ["ap-no-router-path"]

    result = run_pipeline(store_with_ap, config)

    assert result.power_passes == 1
    assert result.graph.require_device("access-point-1").status == DeviceStatus.OFFLINE
    assert all(f.rule != "ap-no-router-path" for f in result.findings)


def test_power_loss_is_monotone(store_with_ap):
    settled = run_pipeline(store_with_ap).graph
    settled.disconnect("poe-injector-1-power")
    result = run_pipeline(settled)

    for device_id in ("poe-injector-1", "access-point-1"):
        assert result.graph.require_device(device_id).status == DeviceStatus.OFFLINE
