"""Tests for perflab.bench.config — harness configuration and YAML profiles."""

from __future__ import annotations

import dataclasses
import tempfile
import unittest
from pathlib import Path

import yaml

from perflab.bench.config import (
    DEFAULT_MEASUREMENT_RUNS,
    DEFAULT_WARMUP_RUNS,
    HarnessConfig,
    check_config,
    config_from_profile,
    load_profile,
    validate_config,
)
from perflab.bench.results import HostInfo


def _write_profile(text: str) -> Path:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        f.write(text)
        return Path(f.name)


# ---------------------------------------------------------------------------
# HarnessConfig tests
# ---------------------------------------------------------------------------


class TestHarnessConfig(unittest.TestCase):
    """Tests for HarnessConfig dataclass."""

    def test_defaults(self) -> None:
        config = HarnessConfig()
        self.assertEqual(config.warmup_runs, DEFAULT_WARMUP_RUNS)
        self.assertEqual(config.measurement_runs, DEFAULT_MEASUREMENT_RUNS)
        self.assertEqual(config.warmup_runs, 3)
        self.assertEqual(config.measurement_runs, 7)
        self.assertTrue(config.collect_garbage)
        self.assertEqual(config.host, HostInfo())

    def test_frozen(self) -> None:
        """A harness validates its config once, so the config cannot change."""
        config = HarnessConfig()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            config.measurement_runs = 0  # type: ignore[misc]

    def test_replace_makes_a_new_config(self) -> None:
        config = HarnessConfig(warmup_runs=1)
        changed = dataclasses.replace(config, measurement_runs=3)
        self.assertEqual(config.measurement_runs, 7)
        self.assertEqual(changed.warmup_runs, 1)
        self.assertEqual(changed.measurement_runs, 3)


# ---------------------------------------------------------------------------
# Validation tests
# ---------------------------------------------------------------------------


class TestValidateConfig(unittest.TestCase):
    """Tests for validate_config() and check_config()."""

    def test_valid_config(self) -> None:
        self.assertEqual(validate_config(HarnessConfig()), [])

    def test_zero_warmup_is_valid(self) -> None:
        self.assertEqual(validate_config(HarnessConfig(warmup_runs=0)), [])

    def test_negative_warmup(self) -> None:
        errors = validate_config(HarnessConfig(warmup_runs=-1))
        self.assertEqual([e.field for e in errors], ["warmup_runs"])
        self.assertEqual(errors[0].severity, "error")

    def test_zero_measurement_runs(self) -> None:
        errors = validate_config(HarnessConfig(measurement_runs=0))
        self.assertEqual([e.field for e in errors], ["measurement_runs"])
        self.assertEqual(errors[0].severity, "error")

    def test_few_measurement_runs_warns(self) -> None:
        errors = validate_config(HarnessConfig(measurement_runs=2))
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].severity, "warning")

    def test_non_integer_counts(self) -> None:
        for field_name, value in (
            ("warmup_runs", 1.5),
            ("warmup_runs", "3"),
            ("measurement_runs", True),
            ("measurement_runs", None),
        ):
            with self.subTest(field=field_name, value=value):
                config = HarnessConfig(**{field_name: value})  # type: ignore[arg-type]
                errors = validate_config(config)
                self.assertEqual([e.field for e in errors], [field_name])
                self.assertEqual(errors[0].severity, "error")

    def test_check_config_raises_with_all_errors(self) -> None:
        with self.assertRaises(ValueError) as cm:
            check_config(HarnessConfig(warmup_runs=-1, measurement_runs=0))
        message = str(cm.exception)
        self.assertIn("warmup_runs", message)
        self.assertIn("measurement_runs", message)

    def test_check_config_logs_warnings(self) -> None:
        with self.assertLogs("perflab", level="WARNING") as cm:
            check_config(HarnessConfig(measurement_runs=1))
        self.assertTrue(any("measurement_runs" in line for line in cm.output))

    def test_collect_garbage_must_be_bool(self) -> None:
        for value in ("false", 0, None):
            with self.subTest(value=value):
                errors = validate_config(HarnessConfig(collect_garbage=value))  # type: ignore[arg-type]
                self.assertEqual([e.field for e in errors], ["collect_garbage"])
                self.assertEqual(errors[0].severity, "error")


# ---------------------------------------------------------------------------
# load_profile tests
# ---------------------------------------------------------------------------


class TestLoadProfile(unittest.TestCase):
    """Tests for load_profile()."""

    def test_load_profile_valid(self) -> None:
        path = _write_profile(
            "warmup_runs: 2\n"
            "measurement_runs: 10\n"
            "collect_garbage: false\n"
            "host:\n"
            "  platform: linux\n"
            "  cpus: 8\n"
        )
        try:
            data = load_profile(path)
            self.assertEqual(data["warmup_runs"], 2)
            self.assertEqual(data["measurement_runs"], 10)
            self.assertFalse(data["collect_garbage"])
            self.assertEqual(data["host"]["platform"], "linux")
        finally:
            path.unlink()

    def test_load_profile_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_profile(Path("/nonexistent/profile.yaml"))

    def test_load_profile_empty_file(self) -> None:
        path = _write_profile("")
        try:
            self.assertEqual(load_profile(path), {})
        finally:
            path.unlink()

    def test_load_profile_invalid_yaml(self) -> None:
        path = _write_profile("invalid: yaml: [unterminated\n")
        try:
            with self.assertRaises(yaml.YAMLError):
                load_profile(path)
        finally:
            path.unlink()

    def test_load_profile_not_a_mapping(self) -> None:
        path = _write_profile("- item1\n- item2\n")
        try:
            with self.assertRaises(ValueError):
                load_profile(path)
        finally:
            path.unlink()


# ---------------------------------------------------------------------------
# config_from_profile tests
# ---------------------------------------------------------------------------


class TestConfigFromProfile(unittest.TestCase):
    """Tests for config_from_profile()."""

    def test_empty_profile_gives_defaults(self) -> None:
        self.assertEqual(config_from_profile({}), HarnessConfig())

    def test_profile_values(self) -> None:
        config = config_from_profile(
            {
                "warmup_runs": 0,
                "measurement_runs": 12,
                "collect_garbage": False,
                "host": {"platform": "darwin", "cpus": 10},
            }
        )
        self.assertEqual(config.warmup_runs, 0)
        self.assertEqual(config.measurement_runs, 12)
        self.assertFalse(config.collect_garbage)
        self.assertEqual(config.host.platform, "darwin")
        self.assertEqual(config.host.cpus, "10")

    def test_overrides_win(self) -> None:
        config = config_from_profile(
            {"warmup_runs": 5, "measurement_runs": 5},
            overrides={"measurement_runs": 20, "warmup_runs": None},
        )
        self.assertEqual(config.measurement_runs, 20)
        self.assertEqual(config.warmup_runs, 5)

    def test_host_override_object(self) -> None:
        host = HostInfo(runtime="PyPy")
        config = config_from_profile({"host": {"runtime": "CPython"}}, overrides={"host": host})
        self.assertIs(config.host, host)

    def test_invalid_host(self) -> None:
        with self.assertRaises(ValueError):
            config_from_profile({"host": "linux"})

    def test_loaded_profile_round_trip(self) -> None:
        path = _write_profile("measurement_runs: 4\nhost:\n  architecture: arm64\n")
        try:
            config = config_from_profile(load_profile(path))
        finally:
            path.unlink()
        self.assertEqual(config.measurement_runs, 4)
        self.assertEqual(config.warmup_runs, DEFAULT_WARMUP_RUNS)
        self.assertEqual(config.host.architecture, "arm64")

    def test_quoted_boolean_not_coerced(self) -> None:
        """A quoted YAML "false" stays a string and fails validation."""
        path = _write_profile('collect_garbage: "false"\n')
        try:
            config = config_from_profile(load_profile(path))
        finally:
            path.unlink()
        self.assertEqual(config.collect_garbage, "false")
        with self.assertRaises(ValueError) as cm:
            check_config(config)
        self.assertIn("collect_garbage", str(cm.exception))


if __name__ == "__main__":
    unittest.main()
