"""
Protocol definitions for the transceiver driver surface.

The driver is an external collaborator: it exports device classes, lookup
tables for packet and subtype names, and an event-emitting transceiver.
"""

from typing import Any, Callable, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

# Driver callbacks receive None on success or the error object.
DriverCallback = Callable[[Optional[Any]], None]

# Packet type -> subtype index -> human-readable device name
DeviceNameTable = Mapping[Any, Union[Sequence[str], Mapping[int, str]]]


@runtime_checkable
class Transceiver(Protocol):
    """Event emitter and command sink for one physical transceiver."""

    def initialise(self, callback: DriverCallback) -> None:
        """Open the port and reset the device, then call ``callback``."""
        ...

    def on(self, event: str, handler: Callable[..., None]) -> None:
        """Register ``handler`` for a named emission (protocol, status, disconnect)."""
        ...

    def enable_rfx_protocols(self, protocols: Sequence[str], callback: Callable[..., None]) -> None:
        """Enable receiving for ``protocols``."""
        ...

    def get_rfx_status(self, callback: DriverCallback) -> None:
        """Request a status report, ``callback`` gets an error if it fails."""
        ...

    def close(self) -> None:
        """Close the port."""
        ...


@runtime_checkable
class RfxcomDriver(Protocol):
    """
    Surface exposed by an RFXCOM driver package.

    Device classes are constructed as ``DeviceClass(transceiver, subtype[,
    options])``; their public methods are the device functions
    (``switchOn``, ``setLevel``...) called as ``fn(entity[, value])``.
    """

    @property
    def device_classes(self) -> Mapping[str, Any]:
        """Exported names; classes among them are the device types."""
        ...

    @property
    def device_names(self) -> DeviceNameTable:
        """Packet type -> subtype -> device name."""
        ...

    @property
    def transmitter_packet_types(self) -> Sequence[str]:
        """Protocol names the transceiver can transmit."""
        ...

    @property
    def packet_subtypes(self) -> Mapping[str, Mapping[str, int]]:
        """Protocol name -> subtype constant name -> numeric value."""
        ...

    def connect(self, port: str, debug: bool = False) -> Transceiver:
        """Create the transceiver for ``port``."""
        ...
