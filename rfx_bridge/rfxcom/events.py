"""
Routing and enrichment of inbound protocol events.

Raw driver events are never mutated; each one is turned into an immutable
ProtocolEvent carrying the resolved identity.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Sequence

from ..config import DeviceConfig
from ..utils import parse_int
from .device_config import DeviceConfigResolver
from .protocols import RfxcomDriver, Transceiver

logger = logging.getLogger("rfxbridge.rfxcom.events")

SUBTYPE_NOT_FOUND = "notfound"

# Protocol -> command numbers addressing every unit of a device
GROUP_COMMANDS: dict[str, frozenset[int]] = {
    "lighting1": frozenset({5, 6}),
    "lighting2": frozenset({3, 4}),
    "lighting6": frozenset({2, 3}),
}

# Protocols whose device id is carried in ``data`` instead of ``id``
DATA_ID_PROTOCOLS = frozenset({"lighting4"})


def is_group_command(payload: Mapping[str, Any]) -> bool:
    """True when ``payload`` is a group on/off for its protocol."""
    commands = GROUP_COMMANDS.get(payload.get("type"))
    if commands is None:
        return False
    command_number = payload.get("commandNumber")
    if isinstance(command_number, bool) or not isinstance(command_number, int):
        return False
    return command_number in commands


def lookup_sub_type(
    transmitter_packet_types: Sequence[str],
    packet_subtypes: Mapping[str, Mapping[str, Any]],
    packet_type: str,
    subtype: Any,
) -> str:
    """
    Name of the subtype constant of ``packet_type`` equal to ``subtype``.

    ``subtype`` may be text; both sides are compared as integers.
    Returns SUBTYPE_NOT_FOUND when nothing matches.
    """
    wanted = parse_int(subtype)
    if wanted is None or packet_type not in transmitter_packet_types:
        return SUBTYPE_NOT_FOUND

    for name, value in packet_subtypes.get(packet_type, {}).items():
        if parse_int(value) == wanted:
            return name
    return SUBTYPE_NOT_FOUND


@dataclass(frozen=True)
class ProtocolEvent:
    """An inbound driver event with its resolved identity."""
    type: str
    device_id: Any
    sub_type_value: str
    device_name: Optional[str] = None
    packet_type: Any = None
    raw: Mapping[str, Any] = field(default_factory=dict)

    @property
    def subtype(self) -> Any:
        return self.raw.get("subtype")

    @property
    def unit_code(self) -> Any:
        return self.raw.get("unitCode")

    @property
    def command(self) -> Optional[str]:
        return self.raw.get("command")

    @property
    def command_number(self) -> Any:
        return self.raw.get("commandNumber")

    @property
    def is_group_command(self) -> bool:
        return is_group_command(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        """Raw fields plus the enrichment, for publication."""
        data = dict(self.raw)
        data.update(
            {
                "type": self.type,
                "deviceName": self.device_name,
                "subTypeValue": self.sub_type_value,
            }
        )
        return data


EventCallback = Callable[[str, ProtocolEvent, Optional[DeviceConfig]], None]


class ProtocolEventRouter:
    """
    Subscribes to protocol emissions and forwards enriched events.

    Every event goes to a single callback together with the device override
    matching its id, if any.
    """

    def __init__(
        self,
        driver: RfxcomDriver,
        transceiver: Transceiver,
        resolver: DeviceConfigResolver,
    ):
        self.driver = driver
        self.transceiver = transceiver
        self.resolver = resolver
        self._protocols: list[str] = []

    @property
    def protocols(self) -> list[str]:
        """Protocols subscribed so far."""
        return list(self._protocols)

    def start(self, protocol_names: Sequence[str], on_event: EventCallback) -> None:
        """Subscribe to every protocol in ``protocol_names``."""
        for protocol in protocol_names:
            logger.info("RFXCOM listen event for protocol : %s", protocol)
            self.transceiver.on(protocol, self._make_handler(protocol, on_event))
            self._protocols.append(protocol)

    def _make_handler(self, protocol: str, on_event: EventCallback) -> Callable[..., None]:
        def _handler(evt: Mapping[str, Any], packet_type: Any = None) -> None:
            logger.info("receive %s", protocol)
            event = self.enrich(protocol, evt, packet_type)
            device_conf = self.resolver.find_by_id(event.device_id)
            try:
                on_event(protocol, event, device_conf)
            except Exception as e:
                logger.warning("Event callback error for %s: %s", protocol, e)

        return _handler

    def enrich(
        self,
        protocol: str,
        evt: Mapping[str, Any],
        packet_type: Any = None,
    ) -> ProtocolEvent:
        """Build the ProtocolEvent for a raw ``evt`` of class ``protocol``."""
        subtype = evt.get("subtype")
        if protocol in DATA_ID_PROTOCOLS:
            device_id = evt.get("data")
        else:
            device_id = evt.get("id")

        sub_type_value = self.get_sub_type(protocol, subtype)
        if sub_type_value == SUBTYPE_NOT_FOUND:
            logger.debug("Unresolved subtype %s for %s", subtype, protocol)

        return ProtocolEvent(
            type=protocol,
            device_id=device_id,
            sub_type_value=sub_type_value,
            device_name=self._device_name(packet_type, subtype),
            packet_type=packet_type,
            raw=MappingProxyType(dict(evt)),
        )

    def get_sub_type(self, packet_type: str, subtype: Any) -> str:
        return lookup_sub_type(
            self.driver.transmitter_packet_types,
            self.driver.packet_subtypes,
            packet_type,
            subtype,
        )

    def _device_name(self, packet_type: Any, subtype: Any) -> Optional[str]:
        names = self.driver.device_names.get(packet_type)
        index = parse_int(subtype)
        if names is None or index is None:
            logger.debug("No device name for packet type %s subtype %s", packet_type, subtype)
            return None
        try:
            return names[index]
        except (IndexError, KeyError):
            logger.debug("No device name for packet type %s subtype %s", packet_type, subtype)
            return None
