"""Harness configuration and YAML profile loading.

Handles:
- The per-harness run configuration (warmup and measurement counts).
- Validating a configuration before any workload runs.
- Loading configuration profiles from YAML files.
- Merging explicit overrides with profile values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from perflab.bench.results import HostInfo
from perflab.logging import get_logger

log = get_logger("config")

DEFAULT_WARMUP_RUNS = 3
DEFAULT_MEASUREMENT_RUNS = 7


# ---------------------------------------------------------------------------
# HarnessConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HarnessConfig:
    """Configuration fixed for the lifetime of a harness."""

    warmup_runs: int = DEFAULT_WARMUP_RUNS  # 0 disables warmup
    measurement_runs: int = DEFAULT_MEASUREMENT_RUNS
    collect_garbage: bool = True  # compact before each measured trial
    host: HostInfo = field(default_factory=HostInfo)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: HarnessConfig) -> list[ValidationError]:
    """Validate a harness configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if not _is_int(config.warmup_runs):
        errors.append(
            ValidationError(
                field="warmup_runs",
                message=f"Warmup runs must be an integer (got {config.warmup_runs!r}).",
            )
        )
    elif config.warmup_runs < 0:
        errors.append(
            ValidationError(
                field="warmup_runs",
                message=f"Warmup runs cannot be negative (got {config.warmup_runs}).",
            )
        )

    if not _is_int(config.measurement_runs):
        errors.append(
            ValidationError(
                field="measurement_runs",
                message=(f"Measurement runs must be an integer (got {config.measurement_runs!r})."),
            )
        )
    elif config.measurement_runs < 1:
        errors.append(
            ValidationError(
                field="measurement_runs",
                message=(f"Need at least 1 measurement run (got {config.measurement_runs})."),
            )
        )
    elif config.measurement_runs < 3:
        errors.append(
            ValidationError(
                field="measurement_runs",
                message=(
                    f"Fewer than 3 measurement runs gives unreliable statistics "
                    f"(got {config.measurement_runs})."
                ),
                severity="warning",
            )
        )

    if not isinstance(config.collect_garbage, bool):
        errors.append(
            ValidationError(
                field="collect_garbage",
                message=f"collect_garbage must be true or false (got {config.collect_garbage!r}).",
            )
        )

    return errors


def check_config(config: HarnessConfig) -> None:
    """Raise if *config* has fatal errors; log warnings.

    Raises:
        ValueError: Listing every fatal validation error.
    """
    errors = validate_config(config)
    for w in (e for e in errors if e.severity == "warning"):
        log.warning("Config warning: %s: %s", w.field, w.message)
    fatal = [e for e in errors if e.severity == "error"]
    if fatal:
        messages = [f"  {e.field}: {e.message}" for e in fatal]
        raise ValueError("Invalid harness configuration:\n" + "\n".join(messages))


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a harness profile from a YAML file.

    Profile format::

        warmup_runs: 3
        measurement_runs: 7
        collect_garbage: true
        host:
          platform: linux
          architecture: x86_64
          runtime: CPython 3.12
          cpus: "8"

    Returns:
        The parsed YAML as a dict.
    """
    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    overrides: dict[str, Any] | None = None,
) -> HarnessConfig:
    """Build a HarnessConfig from a parsed YAML profile.

    Overrides take precedence over profile values when they are not
    None.  Keys match HarnessConfig field names.  Values are not coerced;
    the harness rejects ill-typed ones when it validates the config.
    """
    merged = dict(profile_data)
    for key, value in (overrides or {}).items():
        if value is not None:
            merged[key] = value

    host_data = merged.get("host") or {}
    if isinstance(host_data, HostInfo):
        host = host_data
    elif isinstance(host_data, dict):
        host = HostInfo.from_dict(host_data)
    else:
        raise ValueError(f"Profile 'host' must be a mapping, got {type(host_data).__name__}")

    return HarnessConfig(
        warmup_runs=merged.get("warmup_runs", DEFAULT_WARMUP_RUNS),
        measurement_runs=merged.get("measurement_runs", DEFAULT_MEASUREMENT_RUNS),
        collect_garbage=merged.get("collect_garbage", True),
        host=host,
    )
