"""
StoreNet Configuration Management
==================================

Centralized configuration for the StoreNet packages using Python
dataclasses and TOML-based persistence.

Every section has working defaults, so a missing ``config.toml`` is
never an error.  Unknown keys are ignored so that newer config files do
not break older code.

References:
    - Wiggins, A. (2011). The Twelve-Factor App. https://12factor.net/
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "config.toml"


# ========================== Tool-Specific Configs ==========================


@dataclass(frozen=False, slots=True)
class SimulatorConfig:
    """Configuration for the simulation pipeline.

    ``max_power_passes`` bounds the power fixed-point iteration.  It
    encodes the deepest plausible power dependency chain in the device
    catalog (outlet -> injector -> AP is two hops), not a convergence
    proof; raise it if new device types add deeper chains.
    """

    max_power_passes: int = 5
    boot_delay_seconds: float = 10.0
    power_cycle_off_seconds: float = 2.0


@dataclass(frozen=False, slots=True)
class ValidatorConfig:
    """Configuration for the topology validator."""

    offline_ap_override: bool = True
    disabled_rules: list[str] = field(default_factory=list)


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Global settings: logging and default report format."""

    log_level: str = "INFO"
    log_file: str = ""
    log_json: bool = False
    report_format: str = "json"


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class StoreNetConfig:
    """Master configuration aggregating all sections.

    Usage:
        >>> config = StoreNetConfig.load()                  # default path
        >>> config = StoreNetConfig.load("custom.toml")     # custom path
        >>> config.simulator.max_power_passes
        5
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    simulator: SimulatorConfig = field(default_factory=SimulatorConfig)
    validator: ValidatorConfig = field(default_factory=ValidatorConfig)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> StoreNetConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``config.toml`` in the
        project root.  Missing keys fall back to dataclass defaults.

        Args:
            path: Filesystem path to a TOML configuration file.

        Returns:
            A fully-populated :class:`StoreNetConfig` instance.

        Raises:
            FileNotFoundError: If *path* was given explicitly and does
                not exist.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            simulator=cls._build_section(SimulatorConfig, raw.get("simulator", {})),
            validator=cls._build_section(ValidatorConfig, raw.get("validator", {})),
        )

    # ------------------------------------------------------------------ #
    #  Serialisation helpers
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """Serialise the entire configuration tree to a plain dictionary."""
        return asdict(self)

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares."""
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)

