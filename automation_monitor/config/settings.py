"""
Configuration system using Pydantic for type-safe settings management.

This module provides the monitoring thresholds applied to each automation and
the service-wide settings for the monitor, loaded from YAML files with
environment variable interpolation or directly from ``MONITOR_*`` variables.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from automation_monitor.exceptions import ConfigurationError, ThresholdValidationError


class PerformanceThresholds(BaseModel):
    """Resource usage limits for a single automation."""

    model_config = ConfigDict(extra="forbid")

    max_memory_usage: float | None = Field(default=512.0, ge=0, description="Maximum memory usage in MB")
    max_cpu_usage: float | None = Field(default=80.0, ge=0, le=100, description="Maximum CPU usage in percent")
    max_network_latency: float | None = Field(default=5000.0, ge=0, description="Maximum network latency in ms")


class MonitoringThresholds(BaseModel):
    """Alerting and health thresholds for one automation.

    Durations are milliseconds, rates are percentages.
    """

    model_config = ConfigDict(extra="forbid")

    automation_id: str | None = Field(default=None, description="Automation these thresholds apply to")
    max_execution_time: float = Field(default=300_000.0, gt=0, description="Maximum execution time in ms")
    min_success_rate: float = Field(default=95.0, ge=0, le=100, description="Minimum success rate in percent")
    max_error_rate: float = Field(default=5.0, ge=0, le=100, description="Maximum error rate in percent")
    max_retry_count: int = Field(default=3, ge=0, description="Maximum retries before health degrades")
    alert_on_consecutive_failures: int = Field(
        default=3, ge=1, description="Consecutive failures that raise a failure alert"
    )
    performance_thresholds: PerformanceThresholds = Field(default_factory=PerformanceThresholds)

    def merged(self, automation_id: str, **partial: Any) -> MonitoringThresholds:
        """Return a validated copy with ``partial`` applied on top.

        The nested ``performance_thresholds`` block is merged key by key, so a
        partial update of one resource limit keeps the others.

        Args:
            automation_id: Automation the resulting thresholds belong to
            **partial: Threshold fields to override

        Returns:
            New MonitoringThresholds instance

        Raises:
            ThresholdValidationError: If the merged values are invalid
        """
        data = self.model_dump()
        nested = partial.pop("performance_thresholds", None)
        if nested is not None:
            if isinstance(nested, BaseModel):
                nested = nested.model_dump(exclude_unset=True)
            if not isinstance(nested, dict):
                raise ThresholdValidationError("performance_thresholds must be a mapping", automation_id)
            data["performance_thresholds"] = {**data["performance_thresholds"], **nested}
        data.update(partial)
        data["automation_id"] = automation_id

        try:
            return MonitoringThresholds.model_validate(data)
        except ValidationError as e:
            raise ThresholdValidationError(f"Invalid thresholds: {e}", automation_id) from e


class MonitorSettings(BaseSettings):
    """Main monitor settings.

    Holds the engine limits, scheduler interval, default thresholds and any
    per-automation threshold overrides.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONITOR_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    health_check_interval_seconds: float = Field(default=300.0, gt=0, description="Seconds between health checks")
    max_events_per_automation: int = Field(default=1000, ge=1, description="Events retained per automation")
    max_performance_points: int = Field(default=1000, ge=1, description="Performance samples retained per automation")
    consecutive_failure_window: int = Field(
        default=10, ge=1, description="Newest events scanned for consecutive failures"
    )
    min_executions_for_rate_alert: int = Field(
        default=10, ge=1, description="Executions required before the success-rate alert can fire"
    )
    auto_default_thresholds: bool = Field(
        default=True, description="Create default thresholds for an automation on first use"
    )
    dashboard_refresh_seconds: float = Field(default=30.0, gt=0, description="Suggested dashboard polling interval")
    slow_subscriber_ms: float | None = Field(
        default=None, gt=0, description="Report subscribers whose callback takes longer than this"
    )
    log_level: str = Field(default="INFO", description="Minimum log level")
    default_thresholds: MonitoringThresholds = Field(default_factory=MonitoringThresholds)
    automations: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Per-automation threshold overrides"
    )

    @classmethod
    def from_yaml(cls, config_path: str) -> MonitorSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} syntax for environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            MonitorSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file) as f:
                yaml_content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        Supports two syntaxes:
        - ${VAR_NAME} - Required environment variable (raises if not set)
        - ${VAR_NAME:-default} - Optional with default value

        Args:
            content: String content with placeholders

        Returns:
            Content with environment variables substituted

        Raises:
            ValueError: If a required environment variable is not set

        Note:
            YAML comment lines (starting with #) are preserved unchanged.
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            stripped = line.lstrip()
            if stripped.startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
