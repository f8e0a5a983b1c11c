"""Configuration management for HSM Bootstrap."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from hsmboot.core.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = "~/.hsmboot/config.yaml"


class AWSConfig(BaseModel):
    """AWS configuration."""

    region: str = "us-east-1"
    profile: str | None = None


class ClusterSettings(BaseModel):
    """Desired cluster and node layout."""

    hsm_type: str = "hsm1.medium"
    subnet_ids: list[str] = Field(default_factory=list)
    availability_zone: str | None = None
    backup_retention_days: int | None = None
    tags: dict[str, str] = Field(default_factory=dict)

    @field_validator("backup_retention_days")
    @classmethod
    def validate_retention(cls, value: int | None) -> int | None:
        """CloudHSM accepts 7 to 379 days of backup retention."""
        if value is not None and not 7 <= value <= 379:
            raise ValueError("backup_retention_days must be between 7 and 379")
        return value


class CertificateSettings(BaseModel):
    """Certificate authority settings."""

    key_size: int = 2048
    validity_hours: int = 24 * 365 * 10  # 10 years
    country: str = "US"
    postal_code: str | None = "CA"
    organization: str = "HSM Bootstrap"
    common_name: str | None = None


class WaiterSettings(BaseModel):
    """Convergence polling settings."""

    timeout_seconds: float = Field(600, gt=0)
    delay_seconds: float = Field(10, ge=0)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"
    output: str = "stdout"


class HsmBootConfig(BaseModel):
    """Main HSM Bootstrap configuration."""

    aws: AWSConfig = Field(default_factory=AWSConfig)
    cluster: ClusterSettings = Field(default_factory=ClusterSettings)
    certificates: CertificateSettings = Field(default_factory=CertificateSettings)
    waiter: WaiterSettings = Field(default_factory=WaiterSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: str | Path) -> "HsmBootConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            HsmBootConfig instance

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        config_path = Path(path).expanduser()

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f)
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        try:
            return cls(**(data or {}))
        except Exception as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation
        """
        return self.model_dump()
