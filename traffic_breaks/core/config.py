"""Configuration management for Traffic Breaks."""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError

from traffic_breaks.core.exceptions import ConfigurationError, ValidationError


logger = logging.getLogger(__name__)

# Threshold used by single-instance deployments that omit TRAFFIC_THRESHOLD_GB
DEFAULT_THRESHOLD_GB = 180.0
DEFAULT_REQUEST_TIMEOUT = 15.0

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


def parse_flag(value: Any) -> bool:
    """Interpret an environment or event flag. Real booleans pass through unchanged."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


class InstanceConfig(BaseModel):
    """One ECS instance guarded by the traffic quota of its region."""

    model_config = ConfigDict(frozen=True)

    region: str = Field(..., description="Region id, e.g. cn-hongkong")
    instance_id: str = Field(
        ...,
        validation_alias=AliasChoices('id', 'instanceId', 'instance_id'),
        description="ECS instance id",
    )
    threshold_gb: float = Field(
        ...,
        validation_alias=AliasChoices('threshold', 'trafficThresholdGB', 'threshold_gb'),
        description="Region traffic (GB) at or above which the instance is stopped",
    )

    @field_validator('region', 'instance_id')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator('threshold_gb', mode='before')
    @classmethod
    def reject_boolean_threshold(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("threshold must be a number, not a boolean")
        return v

    @field_validator('threshold_gb')
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        """Threshold must be a finite, non-negative number of GB."""
        if not math.isfinite(v) or v < 0:
            raise ValueError(f"threshold must be a finite non-negative number, got {v}")
        return v


class Config(BaseModel):
    """Configuration model for one Traffic Breaks run."""

    access_key_id: str = Field(..., description="Alibaba Cloud AccessKey id")
    access_key_secret: SecretStr = Field(..., description="Alibaba Cloud AccessKey secret")
    instances: List[InstanceConfig] = Field(default_factory=list, description="Guarded instances")
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT, gt=0, description="Per-request HTTP timeout in seconds"
    )
    dry_run: bool = Field(default=False, description="Log decisions without starting or stopping")

    @field_validator('access_key_id')
    @classmethod
    def validate_access_key_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("AccessKey id must not be empty")
        return v

    @field_validator('access_key_secret')
    @classmethod
    def validate_access_key_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("AccessKey secret must not be empty")
        return v


class ConfigManager:
    """Builds a validated Config from environment variables or a JSON file.

    Environment keys: ACCESS_KEY_ID, ACCESS_KEY_SECRET, INSTANCES (JSON array
    of ``{"region", "id", "threshold"}`` objects), and optionally
    REQUEST_TIMEOUT and DRY_RUN. Older single-instance deployments may set
    REGION_ID, ECS_INSTANCE_ID and TRAFFIC_THRESHOLD_GB instead of INSTANCES.
    """

    def __init__(self, config_file: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_file: Optional JSON config file. When set, it takes
                        precedence over environment variables.
        """
        self.config_file = config_file
        self.skipped_entries: List[str] = []

    def load_config(self, env: Optional[Mapping[str, str]] = None) -> Config:
        """Load configuration from the config file if set, else from ``env``.

        Raises:
            ConfigurationError: If credentials or the instance list are
                               missing or malformed.
        """
        if self.config_file is not None:
            return self.load_from_file(self.config_file)
        return self.load_from_env(env or {})

    def load_from_env(self, env: Mapping[str, str]) -> Config:
        """Build configuration from an environment-style mapping."""
        instances = env.get('INSTANCES')
        if not instances and env.get('REGION_ID') and env.get('ECS_INSTANCE_ID'):
            logger.info("INSTANCES not set, using single-instance REGION_ID/ECS_INSTANCE_ID configuration")
            instances = [{
                'region': env['REGION_ID'],
                'id': env['ECS_INSTANCE_ID'],
                'threshold': env.get('TRAFFIC_THRESHOLD_GB') or DEFAULT_THRESHOLD_GB,
            }]

        values = {
            'access_key_id': env.get('ACCESS_KEY_ID'),
            'access_key_secret': env.get('ACCESS_KEY_SECRET'),
            'instances': instances,
        }
        if env.get('REQUEST_TIMEOUT'):
            values['request_timeout'] = env['REQUEST_TIMEOUT']
        if env.get('DRY_RUN'):
            values['dry_run'] = parse_flag(env['DRY_RUN'])

        return self._build_config(values, source="environment")

    def load_from_file(self, path: Path) -> Config:
        """Build configuration from a JSON object file.

        Keys may be snake_case (``access_key_id``) or the environment names
        (``ACCESS_KEY_ID``); ``instances`` may be a real array or a JSON string.
        """
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigurationError(f"Invalid configuration file {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a JSON object")

        values: Dict[str, Any] = {}
        for key in ('access_key_id', 'access_key_secret', 'instances', 'request_timeout', 'dry_run'):
            if key in data:
                values[key] = data[key]
            elif key.upper() in data:
                values[key] = data[key.upper()]

        return self._build_config(values, source=str(path))

    def _build_config(self, values: Dict[str, Any], source: str) -> Config:
        missing = [
            name.upper() for name in ('access_key_id', 'access_key_secret')
            if not values.get(name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration in {source}: {', '.join(missing)}"
            )
        if values.get('instances') is None:
            raise ConfigurationError(
                f"Missing required configuration in {source}: INSTANCES "
                "(or REGION_ID and ECS_INSTANCE_ID)"
            )

        values = dict(values)
        values['instances'] = self._parse_instances(values['instances'])

        try:
            return Config(**values)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {source}: {e}", details=str(e))

    def _parse_instances(self, raw: Any) -> List[InstanceConfig]:
        """Parse the instance list, skipping entries that fail validation.

        Raises:
            ConfigurationError: If the list itself is not valid JSON or not an array.
        """
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Instance list is not valid JSON: {e}")

        if not isinstance(raw, list):
            raise ConfigurationError(
                f"Instance list must be a JSON array, got {type(raw).__name__}"
            )

        self.skipped_entries = []
        instances = []
        for index, entry in enumerate(raw):
            try:
                instances.append(self._parse_instance(entry))
            except ValidationError as e:
                self.skipped_entries.append(f"#{index}: {e.message}")
                logger.warning(f"Skipping instance config #{index}: {e.message}")

        if not instances:
            logger.warning("No valid instance configs found, nothing to control")
        return instances

    def _parse_instance(self, entry: Any) -> InstanceConfig:
        if not isinstance(entry, dict):
            raise ValidationError(f"expected an object, got {type(entry).__name__}")
        try:
            return InstanceConfig.model_validate(entry)
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'entry'}: {err['msg']}"
                for err in e.errors()
            )
            raise ValidationError(problems, details=str(e))
