from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

KMH_PER_MPS = 3.6


class SimulationSettings(BaseSettings):
    speed_kmh: float = Field(default=60.0, gt=0.0, le=1000.0)
    tick_interval_seconds: float = Field(default=1.0, gt=0.0, le=60.0)
    time_scale: float = Field(default=1.0, ge=0.0625, le=32.0)
    carry_over_distance: bool = Field(
        default=False,
        description="Carry distance left over at a segment end into the next segment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["text", "json"] = "text"

    model_config = SettingsConfigDict(env_prefix="SIM_", env_file=".env", extra="ignore")

    @property
    def speed_mps(self) -> float:
        return self.speed_kmh / KMH_PER_MPS


class BackendSettings(BaseSettings):
    """Which backend receives fixes, and where its tools live."""

    device_type: Literal["simulator", "device", "android"] = "simulator"
    simulator_udid: str = Field(
        default="",
        description="Booted simulator to target; empty targets every booted simulator",
    )
    device_udid: str = ""
    xcrun_path: str = "/usr/bin/xcrun"
    idevicelocation_path: str = "idevicelocation"
    adb_path: str = ""
    adb_device_id: str = ""
    command_timeout_seconds: float = Field(default=10.0, gt=0.0, le=120.0)

    model_config = SettingsConfigDict(env_prefix="BACKEND_", env_file=".env", extra="ignore")


class OSRMSettings(BaseSettings):
    base_url: str = "https://router.project-osrm.org"
    timeout_seconds: float = Field(default=5.0, gt=0.0)
    max_retries: int = Field(default=3, ge=0, le=10)
    retry_base_delay: float = Field(default=0.5, ge=0.1, le=5.0)

    model_config = SettingsConfigDict(env_prefix="OSRM_", env_file=".env", extra="ignore")

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("OSRM base URL must start with http:// or https://")
        return v.rstrip("/")


class Settings(BaseSettings):
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)
    osrm: OSRMSettings = Field(default_factory=OSRMSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
