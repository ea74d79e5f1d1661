"""
Simulated RFXCOM driver.

Mirrors the surface of a real driver without hardware: device classes
record every transmission on the transceiver, and events can be injected
as if they had been received over the air.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Mapping, Optional, Sequence

from .protocols import DriverCallback

logger = logging.getLogger("rfxbridge.rfxcom.simulated")

PACKET_TYPES: dict[str, int] = {
    "lighting1": 0x10,
    "lighting2": 0x11,
    "lighting4": 0x13,
    "lighting6": 0x15,
    "chime1": 0x16,
    "temperaturehumidity1": 0x52,
}

TRANSMITTER_PACKET_TYPES = ["lighting1", "lighting2", "lighting4", "lighting6", "chime1"]

PACKET_SUBTYPES: dict[str, dict[str, int]] = {
    "lighting1": {
        "X10": 0x00,
        "ARC": 0x01,
        "ELRO": 0x02,
        "WAVEMAN": 0x03,
        "CHACON": 0x04,
        "IMPULS": 0x05,
        "RISING_SUN": 0x06,
        "PHILIPS_SBC": 0x07,
        "ENERGENIE_ENER010": 0x08,
        "ENERGENIE_5_GANG": 0x09,
        "COCO": 0x0A,
        "HQ_COCO20": 0x0B,
        "OASE_INSCENIO": 0x0C,
    },
    "lighting2": {
        "AC": 0x00,
        "HOMEEASY_EU": 0x01,
        "ANSLUT": 0x02,
        "KAMBROOK": 0x03,
    },
    "lighting4": {
        "PT2262": 0x00,
    },
    "lighting6": {
        "BLYSS": 0x00,
        "CUVEO": 0x01,
    },
    "chime1": {
        "BYRON_SX": 0x00,
        "BYRON_MP001": 0x01,
        "SELECT_PLUS": 0x02,
        "RFU": 0x03,
        "ENVIVO": 0x04,
        "ALFAWISE": 0x05,
    },
}

DEVICE_NAMES: dict[int, list[str]] = {
    0x10: [
        "X10 lighting", "ARC", "ELRO AB400D", "Waveman", "Chacon EMW200", "IMPULS",
        "RisingSun", "Philips SBC", "Energenie ENER010", "Energenie 5-gang",
        "COCO GDR2-2000R", "HQ COCO-20", "Oase Inscenio",
    ],
    0x11: ["AC", "HomeEasy EU", "ANSLUT", "Kambrook"],
    0x13: ["PT2262"],
    0x15: ["Blyss", "Cuveo"],
    0x16: ["Byron SX", "Byron MP001", "SelectPlus", "RFU", "Envivo", "Alfawise"],
    0x52: ["THGN122/123, THGN132, THGR122/228/238/268", "THGR810, THGN800", "RTGR328"],
}


class SimulatedRfxCom:
    """Transceiver stand-in that records transmissions and emits events."""

    def __init__(self, port: str, debug: bool = False, fail_initialise: bool = False):
        self.port = port
        self.debug = debug
        self.fail_initialise = fail_initialise
        self.connected = False
        self.enabled_protocols: list[str] = []
        self.sent: list[dict[str, Any]] = []
        self._handlers: dict[str, list[Callable[..., None]]] = defaultdict(list)

    def initialise(self, callback: DriverCallback) -> None:
        if self.fail_initialise:
            callback(ConnectionError(f"cannot open {self.port}"))
            return
        self.connected = True
        self.emit("status", self.status_event())
        callback(None)

    def on(self, event: str, handler: Callable[..., None]) -> None:
        self._handlers[event].append(handler)

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers[event]):
            handler(*args)

    def enable_rfx_protocols(self, protocols: Sequence[str], callback: Callable[..., None]) -> None:
        self.enabled_protocols = list(protocols)
        callback(self.status_event())

    def get_rfx_status(self, callback: DriverCallback) -> None:
        callback(None if self.connected else ConnectionError("not connected"))

    def close(self) -> None:
        if not self.connected:
            return
        self.connected = False
        self.emit("disconnect", {"port": self.port})

    def status_event(self) -> dict[str, Any]:
        return {
            "subtype": 0,
            "seqnbr": 1,
            "cmnd": 2,
            "receiverTypeCode": 0x53,
            "receiverType": "433.92MHz transceiver",
            "hardwareVersion": "1.2",
            "firmwareVersion": 1044,
            "firmwareType": "Pro XL",
            "enabledProtocols": list(self.enabled_protocols),
        }

    def transmit(self, packet_type: str, subtype: Any, entity: str, command: str, value: Any = None) -> None:
        if not self.connected:
            raise ConnectionError("transceiver not initialised")
        record = {
            "packetType": packet_type,
            "subtype": subtype,
            "entity": entity,
            "command": command,
            "value": value,
        }
        self.sent.append(record)
        if self.debug:
            logger.debug("[SIM] transmit %s", record)

    def inject(self, protocol: str, evt: Mapping[str, Any]) -> None:
        """Emit ``evt`` as if received over the air."""
        self.emit(protocol, dict(evt), PACKET_TYPES.get(protocol))


class Transmitter:
    """Base for simulated device classes."""

    packet_type = ""

    def __init__(self, rfxcom: SimulatedRfxCom, subtype: Any, options: Optional[dict[str, Any]] = None):
        self._rfxcom = rfxcom
        self.subtype = subtype
        self.options = options or {}

    def _send(self, entity: str, command: str, value: Any = None) -> None:
        self._rfxcom.transmit(self.packet_type, self.subtype, entity, command, value)


class Lighting1(Transmitter):
    packet_type = "lighting1"

    def switchOn(self, entity: str) -> None:
        self._send(entity, "On")

    def switchOff(self, entity: str) -> None:
        self._send(entity, "Off")

    def chime(self, entity: str) -> None:
        self._send(entity, "Chime")


class Lighting2(Transmitter):
    packet_type = "lighting2"

    def switchOn(self, entity: str) -> None:
        self._send(entity, "On")

    def switchOff(self, entity: str) -> None:
        self._send(entity, "Off")

    def setLevel(self, entity: str, level: Any) -> None:
        self._send(entity, "Set level", level)


class Lighting4(Transmitter):
    packet_type = "lighting4"

    def sendData(self, entity: str, pulse_width: Any = None) -> None:
        self._send(entity, "Data", pulse_width)


class Lighting6(Transmitter):
    packet_type = "lighting6"

    def switchOn(self, entity: str) -> None:
        self._send(entity, "On")

    def switchOff(self, entity: str) -> None:
        self._send(entity, "Off")


class Chime1(Transmitter):
    packet_type = "chime1"

    def chime(self, entity: str, tone: Any = None) -> None:
        self._send(entity, "Chime", tone)


class SimulatedDriver:
    """Driver exports for the simulated transceiver."""

    def __init__(self, fail_initialise: bool = False):
        self.fail_initialise = fail_initialise
        self.transceivers: list[SimulatedRfxCom] = []

    @property
    def device_classes(self) -> dict[str, Any]:
        return {
            "Lighting1": Lighting1,
            "Lighting2": Lighting2,
            "Lighting4": Lighting4,
            "Lighting6": Lighting6,
            "Chime1": Chime1,
            "transmitterPacketTypes": TRANSMITTER_PACKET_TYPES,
            "deviceNames": DEVICE_NAMES,
        }

    @property
    def device_names(self) -> dict[int, list[str]]:
        return DEVICE_NAMES

    @property
    def transmitter_packet_types(self) -> list[str]:
        return TRANSMITTER_PACKET_TYPES

    @property
    def packet_subtypes(self) -> dict[str, dict[str, int]]:
        return PACKET_SUBTYPES

    def connect(self, port: str, debug: bool = False) -> SimulatedRfxCom:
        transceiver = SimulatedRfxCom(port, debug=debug, fail_initialise=self.fail_initialise)
        self.transceivers.append(transceiver)
        return transceiver


def create_driver() -> SimulatedDriver:
    """Driver factory referenced by the default configuration."""
    return SimulatedDriver()
