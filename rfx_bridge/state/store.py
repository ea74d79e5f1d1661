"""
In-memory device state for one bridge session.

Stores are created on the first event or configuration entry for a device
and live until the process exits.
"""

import logging
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, Optional

from ..config import DeviceConfig
from ..utils import parse_int
from .models import DeviceEntity, DeviceSensor, DeviceState, DeviceSwitch

if TYPE_CHECKING:
    from ..rfxcom.events import ProtocolEvent

logger = logging.getLogger("rfxbridge.state.store")

IDENTIFIER_PREFIX = "rfxcom2mqtt_"

# Event field -> (label, description, sensor type)
SENSOR_FIELDS: dict[str, tuple[str, str, str]] = {
    "temperature": ("Temperature", "Temperature in degrees Celsius", "temperature"),
    "humidity": ("Humidity", "Relative humidity in percent", "humidity"),
    "barometer": ("Pressure", "Barometric pressure in hPa", "pressure"),
    "power": ("Power", "Instantaneous power in watts", "power"),
    "energy": ("Energy", "Total energy in watt hours", "energy"),
    "batteryLevel": ("Battery", "Battery level", "battery"),
    "rssi": ("Signal strength", "Received signal strength", "signal_strength"),
}


def switch_id(device_id: str, unit: int) -> str:
    """Entity id of the switch at ``unit`` on ``device_id``."""
    return f"{device_id}_{unit}"


class DeviceStateStore:
    """Registration and topic computation over a single DeviceState."""

    def __init__(self, state: DeviceState):
        self.state = state

    def get_info(self) -> DeviceEntity:
        """Identity-only view of the device for metadata publication."""
        return DeviceEntity(list(self.state.identifiers), self.state.name)

    def _topic(self, base_topic: str, entity_id: str) -> str:
        unit = self.state.switches[entity_id].unit
        return f"{base_topic}{self.state.type}/{self.state.subtype}/{self.state.id}/{unit}"

    def get_command_topic(self, base_topic: str, entity_id: str) -> str:
        """Raises KeyError if ``entity_id`` is not a registered switch."""
        return self._topic(base_topic, entity_id)

    def get_state_topic(self, base_topic: str, entity_id: str) -> str:
        """Same path as the command topic; direction tells them apart."""
        return self._topic(base_topic, entity_id)

    def add_entity(self, entity_id: str) -> None:
        if entity_id not in self.state.entities:
            self.state.entities.append(entity_id)

    def add_sensor_id(self, sensor_id: str) -> DeviceSensor:
        return self.add_sensor(DeviceSensor(sensor_id, sensor_id))

    def add_sensor(self, sensor: DeviceSensor) -> DeviceSensor:
        """Register ``sensor`` unless its id is taken; returns the registered one."""
        return self.state.sensors.setdefault(sensor.id, sensor)

    def get_sensors(self) -> dict[str, DeviceSensor]:
        return self.state.sensors

    def add_switch_id(self, switch_id: str) -> DeviceSwitch:
        return self.add_switch(DeviceSwitch(switch_id, switch_id))

    def add_switch(self, switch: DeviceSwitch) -> DeviceSwitch:
        """Register ``switch`` unless its id is taken; returns the registered one."""
        return self.state.switches.setdefault(switch.id, switch)

    def get_switches(self) -> dict[str, DeviceSwitch]:
        return self.state.switches


class DeviceStateRegistry:
    """
    Owns one DeviceStateStore per physical device id.

    Features:
    - Creation from configuration entries at startup
    - Creation and entity registration from inbound events
    - Stores are never removed during a session
    """

    def __init__(self) -> None:
        self._stores: dict[str, DeviceStateStore] = {}

    def get(self, device_id: str) -> Optional[DeviceStateStore]:
        return self._stores.get(str(device_id))

    def get_or_create(
        self,
        device_id: str,
        device_type: str,
        subtype: int,
        sub_type_value: str = "",
        name: Optional[str] = None,
    ) -> DeviceStateStore:
        """Return the store for ``device_id``, creating it on first use."""
        device_id = str(device_id)
        store = self._stores.get(device_id)
        if store is not None:
            return store

        state = DeviceState(
            identifiers=[IDENTIFIER_PREFIX + device_id],
            name=name or device_id,
        )
        state.id = device_id
        state.type = device_type
        state.subtype = subtype
        state.sub_type_value = sub_type_value
        store = DeviceStateStore(state)
        self._stores[device_id] = store
        logger.info("Registered device %s (%s/%s)", device_id, device_type, subtype)
        return store

    def register_config(
        self,
        devices: Iterable[DeviceConfig],
        sub_type_lookup: Optional[Callable[[str, int], str]] = None,
    ) -> list[str]:
        """
        Create stores for configured devices that carry id, type and subtype.

        Returns:
            Ids of the devices registered
        """
        registered = []
        for device in devices:
            if device.id is None or device.type is None or device.subtype is None:
                continue
            device_type = device.type.lower()
            sub_type_value = sub_type_lookup(device_type, device.subtype) if sub_type_lookup else ""
            self.get_or_create(
                device.id,
                device_type,
                device.subtype,
                sub_type_value,
                device.friendly_name,
            )
            registered.append(device.id)
        return registered

    def register_event(
        self,
        event: "ProtocolEvent",
        device_conf: Optional[DeviceConfig] = None,
    ) -> DeviceStateStore:
        """Create or update the store for the device that sent ``event``."""
        device_id = str(event.device_id)
        name = device_conf.friendly_name if device_conf and device_conf.friendly_name else device_id
        subtype = parse_int(event.subtype)
        store = self.get_or_create(
            device_id,
            event.type,
            subtype if subtype is not None else 0,
            event.sub_type_value,
            name,
        )

        unit = parse_int(event.unit_code)
        if unit is not None:
            entity_id = switch_id(device_id, unit)
            store.add_switch(DeviceSwitch(id=entity_id, label=f"{name} {unit}", unit=unit))
            store.add_entity(entity_id)
            return store

        for field_name, (label, description, sensor_type) in SENSOR_FIELDS.items():
            if field_name not in event.raw:
                continue
            sensor_id = f"{device_id}_{sensor_type}"
            store.add_sensor(
                DeviceSensor(
                    id=sensor_id,
                    label=label,
                    description=description,
                    property=field_name,
                    type=sensor_type,
                )
            )
            store.add_entity(sensor_id)
        return store

    def __len__(self) -> int:
        return len(self._stores)

    def __iter__(self) -> Iterator[DeviceStateStore]:
        return iter(list(self._stores.values()))
