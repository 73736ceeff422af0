"""
Configuration management for the swarmcheck verification engine.

Uses pydantic-settings for type-safe environment variable handling.
Per-check options live in swarmcheck_engine.checks.options; this module only
holds run-wide settings (cluster endpoints, transport, global seed).
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    CI = "ci"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Run settings loaded from environment variables.

    Everything here is resolved once per driver invocation and handed to
    checks as plain values; checks never read the environment themselves.
    """

    model_config = SettingsConfigDict(
        env_prefix="SWARMCHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: AppEnvironment = Field(
        default=AppEnvironment.DEVELOPMENT,
        description="Application environment",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Emit JSON formatted log lines")

    # Global seed; None or negative means a fresh random seed per check
    seed: int | None = Field(
        default=None,
        description="Global workload seed applied to checks without their own seed",
    )

    # Node endpoints
    api_scheme: str = Field(default="http", description="Scheme of the node API")
    api_hostname_pattern: str = Field(
        default="{name}.{domain}",
        description="Hostname pattern for the node API",
    )
    api_domain: str = Field(default="localhost", description="Domain of the node API")
    debug_api_scheme: str = Field(default="http", description="Scheme of the node debug API")
    debug_api_hostname_pattern: str = Field(
        default="{name}-debug.{domain}",
        description="Hostname pattern for the node debug API",
    )
    debug_api_domain: str = Field(default="localhost", description="Domain of the node debug API")
    insecure_tls: bool = Field(
        default=False,
        description="Skip TLS certificate verification for node endpoints",
    )

    # Transport
    request_timeout_s: float = Field(
        default=30.0,
        description="Per-request timeout in seconds",
        gt=0,
        le=600,
    )

    # Topology
    default_node_group: str = Field(default="bee", description="Node group used by checks")
    node_names: list[str] = Field(
        default_factory=list,
        description="Names of the nodes in the default node group",
    )

    # Run selection
    checks: list[str] = Field(
        default_factory=lambda: ["pingpong"],
        description="Checks to run, in order",
    )
    check_profiles_file: Path | None = Field(
        default=None,
        description="YAML file with named check profiles",
    )
    stop_on_first_failure: bool = Field(
        default=False,
        description="Abort the run after the first failed check",
    )
    metrics_enabled: bool = Field(default=False, description="Report check observations")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @field_validator("api_scheme", "debug_api_scheme")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        lower_v = v.lower()
        if lower_v not in {"http", "https"}:
            raise ValueError(f"Invalid scheme: {v}. Must be http or https")
        return lower_v

    def api_url(self, name: str) -> str:
        """Base URL of the node API for a node name."""
        host = self.api_hostname_pattern.format(name=name, domain=self.api_domain)
        return f"{self.api_scheme}://{host}"

    def debug_api_url(self, name: str) -> str:
        """Base URL of the node debug API for a node name."""
        host = self.debug_api_hostname_pattern.format(name=name, domain=self.debug_api_domain)
        return f"{self.debug_api_scheme}://{host}"

    def get_redacted_config(self) -> dict[str, str | int | bool | None]:
        """
        Get configuration dict safe for logging.
        """
        return {
            "env": self.env.value,
            "log_level": self.log_level,
            "seed": self.seed,
            "api_scheme": self.api_scheme,
            "api_domain": self.api_domain,
            "debug_api_domain": self.debug_api_domain,
            "insecure_tls": self.insecure_tls,
            "node_group": self.default_node_group,
            "nodes": len(self.node_names),
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure single instance throughout the driver.
    """
    return Settings()
