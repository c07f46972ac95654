"""
StoreNet Save-File Loader
==========================

Reads and writes the JSON save format (camelCase fields, one object per
device with its ports inline) and turns it into a
:class:`~storenet.core.topology.TopologyGraph` that satisfies the graph
invariants, so the simulator never has to re-check structure.

Load Pipeline:
    1. Parse JSON                     (``SaveFileInvalid`` on bad JSON)
    2. Migrate to the current schema  (v1 -> v2)
    3. Validate shape with pydantic   (``SaveFileInvalid`` on bad shape)
    4. Reject duplicate device / port ids
    5. Sanitise cables and wireless config
    6. Build the graph
    7. Associate Wi-Fi clients saved as a bare SSID and password

Schema v1 -> v2:
    - AC-powered device types without a power port gain the
      ``power_input`` port their definition declares.
    - ``power-outlet`` ``generic`` ports become ``power_source``.

Sanitising:
    - ``connectedTo`` pointing at a missing port, at the same device, at
      a port that does not point back, or across the power/data divide
      is cleared (on both ends where there are two).
    - Wireless client config is stripped from types without a Wi-Fi
      radio and added, empty, to types that have one.

Derived fields in the file (link status, connection state) are ignored;
the simulator recomputes them.  Saved ``status`` is kept so operator
overrides survive a reload.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from shared.logger import StoreNetLogger

from storenet.analyzers.wireless import resolve_association, retry_pending_associations
from storenet.core.definitions import AC_POWERED_TYPES, get_definition, is_wifi_client
from storenet.core.errors import SaveFileInvalid
from storenet.core.models import (
    AuthState,
    Device,
    DeviceStatus,
    LinkStatus,
    Port,
    PortRole,
    SSIDConfig,
    WifiHosting,
    WifiSecurity,
    WirelessConfig,
)
from storenet.core.topology import TopologyGraph

logger = StoreNetLogger("loader")

CURRENT_SCHEMA_VERSION = 2


# ---------------------------------------------------------------------------
# Save-file shape
# ---------------------------------------------------------------------------


class _SaveModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class SavedPort(_SaveModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    role: PortRole
    connected_to: Optional[str] = None


class SavedWireless(_SaveModel):
    ssid: str = ""
    password: str = ""
    associated_ap_id: Optional[str] = None
    auth_state: AuthState = AuthState.IDLE


class SavedSSID(_SaveModel):
    ssid: str = Field(..., min_length=1)
    password: str = ""
    hidden: bool = False
    security: WifiSecurity = WifiSecurity.WPA2_PSK


class SavedWifiHosting(_SaveModel):
    enabled: bool = True
    configs: list[SavedSSID] = Field(default_factory=list)


class SavedDevice(_SaveModel):
    id: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    name: str = ""
    ports: list[SavedPort] = Field(default_factory=list)
    status: DeviceStatus = DeviceStatus.OFFLINE
    ip: Optional[str] = None
    notes: Optional[str] = None
    wireless: Optional[SavedWireless] = None
    wifi_hosting: Optional[SavedWifiHosting] = None


class SaveFile(_SaveModel):
    schema_version: int = CURRENT_SCHEMA_VERSION
    project_info: dict[str, Any] = Field(default_factory=dict)
    devices: list[SavedDevice] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Migration
# ---------------------------------------------------------------------------


def schema_version_of(data: dict[str, Any]) -> int:
    """Return the schema version of raw save *data* (legacy ``version`` too)."""
    return int(data.get("schemaVersion") or data.get("version") or 1)


def migrate_save(data: dict[str, Any]) -> dict[str, Any]:
    """Return a migrated deep copy of raw save *data*."""
    migrated = copy.deepcopy(data)
    version = schema_version_of(migrated)
    if version < 2:
        migrated = _migrate_v1_to_v2(migrated)
    migrated["schemaVersion"] = max(version, CURRENT_SCHEMA_VERSION)
    return migrated


def _migrate_v1_to_v2(data: dict[str, Any]) -> dict[str, Any]:
    logger.info("Migrating save from schema v1 to v2")
    settings = data.get("settings")
    if isinstance(settings, dict):
        settings.pop("daisyChainDetection", None)
    data.pop("activeScenario", None)
    data.pop("scenarioObjectives", None)

    for device in data.get("devices") or []:
        if not isinstance(device, dict):
            continue
        ports = device.setdefault("ports", [])
        dtype = device.get("type", "unknown")
        has_power_port = any(
            p.get("role") in ("power_input", "power_source") for p in ports if isinstance(p, dict)
        )
        if not has_power_port and dtype in AC_POWERED_TYPES:
            template = next(
                t for t in get_definition(dtype).ports if t.role == PortRole.POWER_INPUT
            )
            ports.append(
                {
                    "id": f"{device.get('id')}-{template.suffix}",
                    "name": template.label,
                    "role": PortRole.POWER_INPUT.value,
                    "connectedTo": None,
                    "linkStatus": LinkStatus.DOWN.value,
                }
            )
        if dtype == "power-outlet":
            for port in ports:
                if isinstance(port, dict) and port.get("role") == PortRole.GENERIC.value:
                    port["role"] = PortRole.POWER_SOURCE.value

    data["schemaVersion"] = 2
    return data


# ---------------------------------------------------------------------------
# Sanitising
# ---------------------------------------------------------------------------


def _to_device(saved: SavedDevice) -> Device:
    device = Device(
        id=saved.id,
        type=saved.type,
        name=saved.name or saved.id,
        ports=[
            Port(id=p.id, name=p.name, role=p.role, connected_to=p.connected_to)
            for p in saved.ports
        ],
        status=saved.status,
        ip=saved.ip,
        notes=saved.notes,
    )
    if is_wifi_client(saved.type):
        w = saved.wireless or SavedWireless()
        device.wireless = WirelessConfig(
            ssid=w.ssid,
            password=w.password,
            associated_ap_id=w.associated_ap_id,
            auth_state=w.auth_state,
        )
    elif saved.wireless is not None:
        logger.debug("Stripping wireless config from %s (%s)", saved.id, saved.type)

    if saved.wifi_hosting is not None:
        device.wifi_hosting = WifiHosting(
            enabled=saved.wifi_hosting.enabled,
            configs=[
                SSIDConfig(
                    ssid=c.ssid,
                    password=c.password,
                    hidden=c.hidden,
                    security=c.security,
                )
                for c in saved.wifi_hosting.configs
            ],
        )
    return device


def _check_unique(devices: list[SavedDevice]) -> None:
    device_ids: set[str] = set()
    port_ids: set[str] = set()
    for device in devices:
        if device.id in device_ids:
            raise SaveFileInvalid(f"Duplicate device id: {device.id}")
        device_ids.add(device.id)
        for port in device.ports:
            if port.id in port_ids:
                raise SaveFileInvalid(f"Duplicate port id: {port.id}")
            port_ids.add(port.id)


def sanitize_cables(graph: TopologyGraph) -> int:
    """Clear every cable end that breaks a graph invariant; return the count."""
    cleared = 0
    for device in graph:
        for port in device.ports:
            if port.connected_to is None:
                continue
            far = graph.partner(port)
            owner = graph.owner_of(port.connected_to)
            broken = (
                far is None
                or owner is None
                or owner.id == device.id
                or far.connected_to != port.id
                or far.is_power != port.is_power
            )
            if broken:
                logger.warning(
                    "Clearing broken cable %s -> %s", port.id, port.connected_to
                )
                port.connected_to = None
                port.link_status = LinkStatus.DOWN
                cleared += 1
    return cleared


def _needs_association(saved: SavedDevice) -> bool:
    w = saved.wireless
    if w is None or not w.ssid or not is_wifi_client(saved.type):
        return False
    return not ({"auth_state", "associated_ap_id"} & w.model_fields_set)


def associate_saved_clients(graph: TopologyGraph, client_ids: list[str]) -> None:
    """Resolve clients saved as bare ``{ssid, password}``, then retry probing ones."""
    for device_id in client_ids:
        device = graph.require_device(device_id)
        wireless = device.wireless
        if wireless is None:
            continue
        device.wireless = resolve_association(graph, wireless.ssid, wireless.password)
        logger.debug("Associated %s from save: %s", device_id, device.wireless.auth_state.value)
    retry_pending_associations(graph)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def topology_from_save(data: dict[str, Any]) -> TopologyGraph:
    """Build a graph from raw, possibly legacy, save *data*."""
    if not isinstance(data, dict):
        raise SaveFileInvalid("Invalid save structure: expected a JSON object.")
    if not isinstance(data.get("devices"), list):
        raise SaveFileInvalid("Invalid save structure: missing devices array.")

    migrated = migrate_save(data)
    try:
        save = SaveFile.model_validate(migrated)
    except ValidationError as exc:
        raise SaveFileInvalid(f"Invalid save structure: {exc.error_count()} error(s)") from exc

    if save.schema_version != CURRENT_SCHEMA_VERSION:
        raise SaveFileInvalid(
            f"Unsupported schema version {save.schema_version} "
            f"(expected {CURRENT_SCHEMA_VERSION})"
        )

    _check_unique(save.devices)
    graph = TopologyGraph(_to_device(d) for d in save.devices)
    sanitize_cables(graph)
    associate_saved_clients(graph, [d.id for d in save.devices if _needs_association(d)])
    return graph


def load_topology(path: str | Path) -> TopologyGraph:
    """Read a save file from *path* and return its graph.

    Raises:
        SaveFileInvalid: If the file is unreadable or inconsistent.
    """
    file_path = Path(path)
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SaveFileInvalid(f"Cannot read save file {file_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise SaveFileInvalid(f"Invalid JSON in {file_path}: {exc.msg}") from exc

    graph = topology_from_save(raw)
    logger.info("Loaded %d device(s) from %s", len(graph), file_path)
    return graph


def dump_topology(graph: TopologyGraph, project_name: str = "StoreNet Project") -> dict[str, Any]:
    """Return the save-file representation of *graph* (current schema)."""
    devices = [
        SavedDevice(
            id=d.id,
            type=d.type,
            name=d.name,
            ports=[
                SavedPort(id=p.id, name=p.name, role=p.role, connected_to=p.connected_to)
                for p in d.ports
            ],
            status=d.status,
            ip=d.ip,
            notes=d.notes,
            wireless=(
                SavedWireless.model_validate(d.wireless.model_dump())
                if d.wireless is not None
                else None
            ),
            wifi_hosting=(
                SavedWifiHosting.model_validate(d.wifi_hosting.model_dump(mode="json"))
                if d.wifi_hosting is not None
                else None
            ),
        )
        for d in graph
    ]
    save = SaveFile(
        schema_version=CURRENT_SCHEMA_VERSION,
        project_info={"name": project_name},
        devices=devices,
    )
    return save.model_dump(mode="json", by_alias=True, exclude_none=True)


def save_topology(graph: TopologyGraph, path: str | Path, project_name: str = "StoreNet Project") -> Path:
    """Write *graph* to *path* as JSON and return the path."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(
        json.dumps(dump_topology(graph, project_name), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    return file_path
