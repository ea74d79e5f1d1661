"""
Centralized configuration management using Pydantic Settings.

Configuration is loaded from environment variables with sensible defaults.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DeviceConfig(BaseModel):
    """Per-device override record, keyed by friendly name or device id."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: Optional[str] = Field(default=None, description="Device id used for addressing")
    friendly_name: Optional[str] = Field(
        default=None, alias="friendlyName", description="Name used in command topics"
    )
    type: Optional[str] = Field(default=None, description="Device class name, e.g. Lighting2")
    subtype: Optional[int] = Field(default=None, description="Numeric subtype code")
    options: Optional[dict[str, Any]] = Field(default=None, description="Device class options")
    repetitions: Optional[int] = Field(
        default=None, ge=0, description="Number of times each command is transmitted (0 means once)"
    )

    @model_validator(mode="after")
    def _require_key(self) -> "DeviceConfig":
        if self.id is None and self.friendly_name is None:
            raise ValueError("device config needs an id or a friendlyName")
        return self


class RfxcomConfig(BaseSettings):
    """RFXCOM transceiver configuration."""

    model_config = SettingsConfigDict(env_prefix="RFXBRIDGE_RFXCOM_")

    usbport: str = Field(default="/dev/ttyUSB0", description="Serial port of the transceiver")
    debug: bool = Field(default=False, description="Enable driver debug output")
    driver: str = Field(
        default="rfx_bridge.rfxcom.simulated:create_driver",
        description="Driver factory as 'module:attribute'",
    )
    receive: list[str] = Field(
        default=["lighting1", "lighting2", "lighting4", "lighting6", "temperaturehumidity1"],
        description="Protocol classes to listen for",
    )
    devices: list[DeviceConfig] = Field(default_factory=list, description="Device overrides")
    healthcheck_interval: int = Field(
        default=60, ge=0, description="Seconds between status checks (0 disables)"
    )


class MQTTConfig(BaseSettings):
    """MQTT broker configuration."""

    model_config = SettingsConfigDict(env_prefix="RFXBRIDGE_MQTT_")

    host: str = Field(default="localhost", description="MQTT broker host")
    port: int = Field(default=1883, description="MQTT broker port")
    username: Optional[str] = Field(default=None, description="MQTT username")
    password: Optional[str] = Field(default=None, description="MQTT password")
    base_topic: str = Field(default="rfxcom2mqtt/", description="Prefix for every topic")
    qos: int = Field(default=0, ge=0, le=2, description="Publish/subscribe QoS")
    retain: bool = Field(default=True, description="Retain device publications")

    @field_validator("base_topic")
    @classmethod
    def _trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else value + "/"


class Settings(BaseSettings):
    """Application-wide settings."""

    model_config = SettingsConfigDict(
        env_prefix="RFXBRIDGE_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    version: str = Field(default="0.1.0", description="Reported bridge version")

    rfxcom: RfxcomConfig = Field(default_factory=RfxcomConfig)
    mqtt: MQTTConfig = Field(default_factory=MQTTConfig)


# Singleton settings instance
settings = Settings()
