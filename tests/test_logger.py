"""Tests for the structured logger and its mutation scope."""

import json

import pytest

from shared.config import StoreNetConfig
from shared.logger import StoreNetLogger
from storenet.core.engine import NetworkSimulator
from storenet.core.errors import ConnectionRejected

from conftest import build_wired_store


def _json_logger(tmp_path, component):
    path = tmp_path / f"{component}.log"
    log = StoreNetLogger(
        component,
        log_level="DEBUG",
        log_file=path,
        json_logs=True,
        console_output=False,
    )
    return log, path


def _records(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_mutation_scope_tags_records(tmp_path):
    log, path = _json_logger(tmp_path, "scope")

    with log.mutation("connect", "zyxel-router-1-lan2", "pos-1-eth"):
        log.info("cabling")
    log.info("idle")

    records = _records(path)
    assert records[0]["message"] == "cabling"
    assert records[0]["mutation"] == "connect"
    assert records[0]["subjects"] == ["zyxel-router-1-lan2", "pos-1-eth"]
    assert records[1]["message"].startswith("connect settled in")
    assert "mutation" not in records[2]


def test_rejected_mutation_is_logged_and_reraised(tmp_path):
    log, path = _json_logger(tmp_path, "rejects")

    with pytest.raises(ConnectionRejected):
        with log.mutation("connect", "power-outlet-1-outlet3"):
            raise ConnectionRejected("Power strip only accepts power connections.")

    (record,) = _records(path)
    assert record["level"] == "WARNING"
    assert record["message"] == "connect rejected: Power strip only accepts power connections."
    assert record["subjects"] == ["power-outlet-1-outlet3"]


def test_plain_file_lines_carry_mutation_tag(tmp_path):
    path = tmp_path / "plain.log"
    log = StoreNetLogger("plain", log_level="DEBUG", log_file=path, console_output=False)

    with log.mutation("disconnect", "pos-1-eth"):
        log.info("unplugged")

    assert "[disconnect pos-1-eth] unplugged" in path.read_text(encoding="utf-8")


def test_engine_mutations_name_their_subjects(tmp_path):
    log, path = _json_logger(tmp_path, "engine-subjects")
    sim = NetworkSimulator(build_wired_store(), logger=log, scheduler=lambda delay, cb: None)

    sim.disconnect("epson-thermal-1-eth")
    with pytest.raises(ConnectionRejected):
        sim.connect("power-outlet-1-outlet3", "zyxel-router-1-lan2")

    records = _records(path)
    disconnects = [r for r in records if r.get("mutation") == "disconnect"]
    assert disconnects and all(r["subjects"] == ["epson-thermal-1-eth"] for r in disconnects)
    rejected = [r for r in records if r["level"] == "WARNING"]
    assert rejected[-1]["subjects"] == ["power-outlet-1-outlet3", "zyxel-router-1-lan2"]


def test_from_config_reads_global_settings(tmp_path):
    config = StoreNetConfig()
    config.global_settings.log_level = "WARNING"
    config.global_settings.log_file = str(tmp_path / "cfg.log")
    config.global_settings.log_json = True

    log = StoreNetLogger.from_config("from-config", config)
    log.info("hidden")
    log.warning("shown")
    verbose = StoreNetLogger.from_config("from-config-verbose", config, verbose=True)
    verbose.debug("detail")

    messages = [r["message"] for r in _records(tmp_path / "cfg.log")]
    assert messages == ["shown", "detail"]
