"""Tests for configuration loading and validation."""

import json
import math

import pytest
from hypothesis import given, strategies as st
from pydantic import ValidationError as PydanticValidationError

from traffic_breaks.core.config import (
    Config, ConfigManager, DEFAULT_THRESHOLD_GB, InstanceConfig, parse_flag
)
from traffic_breaks.core.exceptions import ConfigurationError


@st.composite
def valid_instance_entry(draw):
    """Generate valid instance config entries."""
    region = draw(st.sampled_from(['cn-hongkong', 'cn-shanghai', 'ap-southeast-1', 'us-west-1']))
    suffix = draw(st.text(alphabet='abcdefghijklmnopqrstuvwxyz0123456789', min_size=6, max_size=20))
    threshold = draw(st.floats(min_value=0, max_value=1e6, allow_nan=False, allow_infinity=False))
    return {"region": region, "id": f"i-{suffix}", "threshold": threshold}


class TestInstanceConfig:
    """Unit tests for a single instance entry."""

    def test_accepts_short_keys(self):
        instance = InstanceConfig.model_validate({"region": "cn-hongkong", "id": "i-a", "threshold": 200})
        assert instance.region == "cn-hongkong"
        assert instance.instance_id == "i-a"
        assert instance.threshold_gb == 200.0

    def test_accepts_long_keys(self):
        instance = InstanceConfig.model_validate(
            {"region": "cn-hongkong", "instanceId": "i-a", "trafficThresholdGB": "12.5"}
        )
        assert instance.instance_id == "i-a"
        assert instance.threshold_gb == 12.5

    def test_strips_whitespace(self):
        instance = InstanceConfig(region=" cn-hongkong ", id=" i-a ", threshold=1)
        assert instance.region == "cn-hongkong"
        assert instance.instance_id == "i-a"

    @pytest.mark.parametrize("entry", [
        {"region": "", "id": "i-a", "threshold": 1},
        {"region": "cn-hongkong", "id": "   ", "threshold": 1},
        {"region": "cn-hongkong", "threshold": 1},
        {"region": "cn-hongkong", "id": "i-a"},
        {"region": "cn-hongkong", "id": "i-a", "threshold": -1},
        {"region": "cn-hongkong", "id": "i-a", "threshold": float('nan')},
        {"region": "cn-hongkong", "id": "i-a", "threshold": float('inf')},
        {"region": "cn-hongkong", "id": "i-a", "threshold": True},
        {"region": "cn-hongkong", "id": "i-a", "threshold": "lots"},
    ])
    def test_rejects_invalid_entries(self, entry):
        with pytest.raises(PydanticValidationError):
            InstanceConfig.model_validate(entry)

    def test_zero_threshold_is_valid(self):
        assert InstanceConfig(region="cn-hongkong", id="i-a", threshold=0).threshold_gb == 0

    def test_frozen(self):
        instance = InstanceConfig(region="cn-hongkong", id="i-a", threshold=1)
        with pytest.raises(PydanticValidationError):
            instance.threshold_gb = 5

    @given(entry=valid_instance_entry())
    def test_valid_entries_round_trip(self, entry):
        instance = InstanceConfig.model_validate(entry)
        assert instance.region == entry["region"]
        assert instance.instance_id == entry["id"]
        assert math.isclose(instance.threshold_gb, entry["threshold"])


class TestLoadFromEnv:
    """Unit tests for environment-style configuration."""

    def test_full_configuration(self, sample_env):
        config = ConfigManager().load_from_env(sample_env)

        assert config.access_key_id == "test-key-id"
        assert config.access_key_secret.get_secret_value() == "test-key-secret"
        assert [i.instance_id for i in config.instances] == ["i-a", "i-b", "i-c"]
        assert config.request_timeout == 15.0
        assert config.dry_run is False

    def test_secret_not_in_repr(self, sample_env):
        config = ConfigManager().load_from_env(sample_env)
        assert "test-key-secret" not in repr(config)

    @pytest.mark.parametrize("missing", ["ACCESS_KEY_ID", "ACCESS_KEY_SECRET"])
    def test_missing_credentials(self, sample_env, missing):
        env = dict(sample_env)
        del env[missing]
        with pytest.raises(ConfigurationError, match=missing):
            ConfigManager().load_from_env(env)

    def test_missing_instance_list(self, sample_env):
        env = dict(sample_env)
        del env["INSTANCES"]
        with pytest.raises(ConfigurationError, match="INSTANCES"):
            ConfigManager().load_from_env(env)

    @pytest.mark.parametrize("raw", ['[{"region": "cn-hongkong",', 'not json', ''])
    def test_malformed_instance_json(self, sample_env, raw):
        env = dict(sample_env, INSTANCES=raw)
        with pytest.raises(ConfigurationError):
            ConfigManager().load_from_env(env)

    @pytest.mark.parametrize("raw", ['{"region": "cn-hongkong"}', '42', '"text"', 'null'])
    def test_instance_list_must_be_array(self, sample_env, raw):
        env = dict(sample_env, INSTANCES=raw)
        with pytest.raises(ConfigurationError):
            ConfigManager().load_from_env(env)

    def test_invalid_entries_skipped(self, sample_env):
        entries = [
            {"region": "cn-hongkong", "id": "i-good", "threshold": 100},
            {"region": "", "id": "i-bad-region", "threshold": 100},
            {"region": "cn-hongkong", "id": "i-negative", "threshold": -5},
            "i-not-an-object",
            {"region": "cn-hongkong", "id": "i-also-good", "threshold": 0},
        ]
        manager = ConfigManager()

        config = manager.load_from_env(dict(sample_env, INSTANCES=json.dumps(entries)))

        assert [i.instance_id for i in config.instances] == ["i-good", "i-also-good"]
        assert len(manager.skipped_entries) == 3
        assert manager.skipped_entries[0].startswith("#1")

    def test_empty_array_is_valid(self, sample_env):
        config = ConfigManager().load_from_env(dict(sample_env, INSTANCES="[]"))
        assert config.instances == []

    def test_legacy_single_instance_variables(self):
        env = {
            "ACCESS_KEY_ID": "id",
            "ACCESS_KEY_SECRET": "secret",
            "REGION_ID": "cn-hongkong",
            "ECS_INSTANCE_ID": "i-legacy",
        }
        config = ConfigManager().load_from_env(env)

        assert len(config.instances) == 1
        assert config.instances[0].region == "cn-hongkong"
        assert config.instances[0].instance_id == "i-legacy"
        assert config.instances[0].threshold_gb == DEFAULT_THRESHOLD_GB == 180.0

    def test_legacy_threshold(self):
        env = {
            "ACCESS_KEY_ID": "id",
            "ACCESS_KEY_SECRET": "secret",
            "REGION_ID": "cn-hongkong",
            "ECS_INSTANCE_ID": "i-legacy",
            "TRAFFIC_THRESHOLD_GB": "50.5",
        }
        assert ConfigManager().load_from_env(env).instances[0].threshold_gb == 50.5

    def test_instances_take_precedence_over_legacy(self, sample_env):
        env = dict(sample_env, REGION_ID="cn-shanghai", ECS_INSTANCE_ID="i-legacy")
        config = ConfigManager().load_from_env(env)
        assert "i-legacy" not in [i.instance_id for i in config.instances]

    @pytest.mark.parametrize("value, expected", [("true", True), ("1", True), ("YES", True), ("false", False), ("0", False)])
    def test_dry_run_flag(self, sample_env, value, expected):
        config = ConfigManager().load_from_env(dict(sample_env, DRY_RUN=value))
        assert config.dry_run is expected

    def test_request_timeout(self, sample_env):
        config = ConfigManager().load_from_env(dict(sample_env, REQUEST_TIMEOUT="25"))
        assert config.request_timeout == 25.0

    @pytest.mark.parametrize("value", ["0", "-3", "soon"])
    def test_invalid_request_timeout(self, sample_env, value):
        with pytest.raises(ConfigurationError):
            ConfigManager().load_from_env(dict(sample_env, REQUEST_TIMEOUT=value))


class TestLoadFromFile:
    """Unit tests for JSON file configuration."""

    def test_snake_case_file(self, tmp_path, sample_instances):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "access_key_id": "file-id",
            "access_key_secret": "file-secret",
            "instances": sample_instances,
            "dry_run": True,
        }))

        config = ConfigManager(config_file=path).load_config({})

        assert config.access_key_id == "file-id"
        assert len(config.instances) == 3
        assert config.dry_run is True

    def test_environment_style_keys(self, tmp_path, sample_env):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(sample_env))

        config = ConfigManager(config_file=path).load_config()

        assert config.access_key_id == "test-key-id"
        assert len(config.instances) == 3

    def test_file_takes_precedence_over_env(self, tmp_path, sample_env, sample_instances):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "access_key_id": "file-id",
            "access_key_secret": "file-secret",
            "instances": sample_instances[:1],
        }))

        config = ConfigManager(config_file=path).load_config(sample_env)
        assert config.access_key_id == "file-id"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager(config_file=tmp_path / "absent.json").load_config()

    def test_corrupted_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("invalid json content")
        with pytest.raises(ConfigurationError, match="Invalid configuration file"):
            ConfigManager(config_file=path).load_config()

    def test_file_must_hold_object(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[]")
        with pytest.raises(ConfigurationError):
            ConfigManager(config_file=path).load_config()


class TestConfigModel:
    """Unit tests for the Config model itself."""

    def test_defaults(self):
        config = Config(access_key_id="id", access_key_secret="secret")
        assert config.instances == []
        assert config.request_timeout == 15.0
        assert config.dry_run is False

    @pytest.mark.parametrize("key_id, secret", [(" ", "secret"), ("id", " ")])
    def test_blank_credentials_rejected(self, key_id, secret):
        with pytest.raises(PydanticValidationError):
            Config(access_key_id=key_id, access_key_secret=secret)


class TestParseFlag:
    """Unit tests for flag parsing shared by env and event overrides."""

    @pytest.mark.parametrize("value", [True, "true", "TRUE", " yes ", "1", "on", 1])
    def test_true_values(self, value):
        assert parse_flag(value) is True

    @pytest.mark.parametrize("value", [False, "false", "False", "0", "no", "off", "", "maybe", 0, None])
    def test_false_values(self, value):
        assert parse_flag(value) is False
