"""
Device and bridge models published to the messaging layer.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Mapping, Optional


@dataclass
class DeviceEntity:
    """Identity of a physical device as seen by the messaging layer."""
    identifiers: list[str] = field(default_factory=list)
    name: str = ""
    manufacturer: str = "Rfxcom"
    via_device: str = "rfxcom2mqtt_bridge"

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifiers": list(self.identifiers),
            "name": self.name,
            "manufacturer": self.manufacturer,
            "via_device": self.via_device,
        }


@dataclass
class DeviceSensor:
    """A read-only measurement channel."""
    id: str = ""
    label: str = ""
    description: str = ""
    property: str = ""
    type: str = ""


@dataclass
class DeviceSwitch:
    """A controllable channel addressed by ``unit``."""
    id: str = ""
    label: str = ""
    unit: int = 0
    value_off: str = "Off"
    value_on: str = "On"
    description: str = "On/off state of the switch"
    property: str = "command"
    type: str = "binary"


@dataclass
class DeviceState(DeviceEntity):
    """Per-device registry of entities, sensors and switches."""
    id: str = ""
    type: str = ""
    subtype: int = 0
    sub_type_value: str = ""
    entities: list[str] = field(default_factory=list)
    sensors: dict[str, DeviceSensor] = field(default_factory=dict)
    switches: dict[str, DeviceSwitch] = field(default_factory=dict)


@dataclass
class RfxcomInfo:
    """Transceiver status as reported on connect and on health checks."""
    receiverTypeCode: Optional[int] = None
    receiverType: str = ""
    hardwareVersion: str = ""
    firmwareVersion: Optional[int] = None
    firmwareType: str = ""
    enabledProtocols: list[str] = field(default_factory=list)

    @classmethod
    def from_status_event(cls, evt: Mapping[str, Any]) -> "RfxcomInfo":
        """Create from a driver status event, keeping only report fields."""
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in evt.items() if key in known}
        if "enabledProtocols" in values:
            values["enabledProtocols"] = list(values["enabledProtocols"] or [])
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class BridgeInfo:
    """Bridge status published on the info topic."""
    coordinator: RfxcomInfo = field(default_factory=RfxcomInfo)
    version: str = ""
    log_level: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "coordinator": self.coordinator.to_dict(),
            "version": self.version,
            "logLevel": self.log_level,
        }


@dataclass
class DeviceBridge:
    """The bridge itself as a device."""
    identifiers: list[str] = field(default_factory=list)
    hw_version: str = ""
    sw_version: str = ""
    model: str = "Bridge"
    name: str = "Rfxcom2Mqtt Bridge"
    manufacturer: str = "Rfxcom2Mqtt"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
