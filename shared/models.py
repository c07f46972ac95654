"""
StoreNet Shared Models
=======================

Pydantic v2 models shared across the StoreNet packages.  A
:class:`Finding` is one advisory result produced by the topology
validator; a :class:`CheckResult` bundles the findings of one full
simulation run together with timing and summary metadata so that the
console and report layers can consume a single object.

Findings are advisory only.  Structural problems (a cable that may not
exist at all) are raised as exceptions by the graph model and never
appear here.

References:
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
    - SARIF v2.1.0 Specification (OASIS, 2020), result object layout.
"""

from __future__ import annotations

import datetime as _dt
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# ========================== Enumerations ===================================


class Severity(str, Enum):
    """Finding severity level.

    Attributes:
        ERROR:   Serious miswiring that will likely break the network.
        WARNING: Suspicious topology that may be intentional.
    """

    ERROR = "error"
    WARNING = "warning"

    @property
    def label(self) -> str:
        """Return the display label for this severity."""
        return self.value.upper()

    @property
    def css_class(self) -> str:
        """Return a CSS class name for severity-based styling."""
        return f"severity-{self.value}"


# ========================== Core Models ====================================


class Finding(BaseModel):
    """A single topology finding produced by the validator.

    ``id`` is stable across runs for the same problem on the same
    devices, so the UI can key on it and repeated runs never pile up
    duplicates.  ``rule`` names the check that produced the finding and
    is shared by every finding of that check.

    Attributes:
        id:         Stable finding identifier, e.g. ``"isolated-pos-3"``.
        rule:       Rule identifier, e.g. ``"isolated"``.
        message:    Human-readable explanation.
        severity:   :class:`Severity` of the finding.
        device_ids: Devices the finding refers to (may be empty).
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        use_enum_values=False,
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "id": "ap-no-poe-datto-ap440-1",
                    "rule": "ap-no-poe",
                    "message": (
                        "AP 1 is plugged directly into the Switch 1. It must "
                        "connect to the PoE injector's PoE port."
                    ),
                    "severity": "error",
                    "device_ids": ["datto-ap440-1", "unmanaged-switch-1"],
                }
            ]
        },
    )

    id: str = Field(..., min_length=1, description="Stable finding id")
    rule: str = Field(..., min_length=1, description="Producing rule id")
    message: str = Field(..., min_length=1, description="Explanation")
    severity: Severity = Field(..., description="Finding severity")
    device_ids: list[str] = Field(
        default_factory=list,
        description="Devices involved in the finding",
    )

    @field_validator("device_ids", mode="before")
    @classmethod
    def _coerce_device_ids(cls, v: Any) -> list[str]:
        """Accept a single id or any iterable of ids."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(item) for item in v]


class CheckResult(BaseModel):
    """Aggregated result of one topology check.

    Attributes:
        tool_name:  Name of the producing tool.
        target:     What was checked (save file path, ``"sandbox"``...).
        start_time: UTC timestamp when the check started.
        end_time:   UTC timestamp when the check finished.
        findings:   Validator findings, in validator order.
        summary:    Human-readable summary text.
        metadata:   Extra data (device snapshot, counts).
    """

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=False,
        extra="ignore",
    )

    tool_name: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    start_time: _dt.datetime = Field(
        default_factory=lambda: _dt.datetime.now(_dt.timezone.utc),
    )
    end_time: Optional[_dt.datetime] = None
    findings: list[Finding] = Field(default_factory=list)
    summary: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    # ------------------------------------------------------------------ #
    #  Derived properties
    # ------------------------------------------------------------------ #

    @property
    def duration_seconds(self) -> float | None:
        """Elapsed time in seconds, or ``None`` if *end_time* is unset."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def severity_counts(self) -> dict[str, int]:
        """Count of findings grouped by severity value."""
        counts: dict[str, int] = {s.value: 0 for s in Severity}
        for finding in self.findings:
            counts[finding.severity.value] += 1
        return counts

    @property
    def error_count(self) -> int:
        """Number of error-severity findings."""
        return sum(1 for f in self.findings if f.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        """Number of warning-severity findings."""
        return sum(1 for f in self.findings if f.severity == Severity.WARNING)

    @property
    def ok(self) -> bool:
        """``True`` when no error-severity findings were produced."""
        return self.error_count == 0

    # ------------------------------------------------------------------ #
    #  Mutating helpers
    # ------------------------------------------------------------------ #

    def add_finding(self, finding: Finding) -> None:
        """Append a finding."""
        self.findings.append(finding)

    def finalize(self, summary: str | None = None) -> CheckResult:
        """Set *end_time* and *summary* and return ``self``.

        When *summary* is ``None`` one is generated from the severity
        counts.
        """
        self.end_time = _dt.datetime.now(_dt.timezone.utc)
        if summary is not None:
            self.summary = summary
        else:
            parts = [
                f"{sev}: {cnt}" for sev, cnt in self.severity_counts.items() if cnt
            ]
            self.summary = (
                f"Check complete. "
                f"Findings: {len(self.findings)} "
                f"({', '.join(parts) if parts else 'none'})"
            )
        return self
