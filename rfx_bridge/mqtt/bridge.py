"""
Bridge between the RFXCOM session and MQTT.

Publishes enriched protocol events, device info and switch states, and
turns messages on the command topics into device commands.

Topics (relative to the base topic):
- bridge/state - "online" / "offline" (last will, health checks)
- bridge/info - transceiver status and bridge version
- bridge/device - the bridge as a device
- devices/<id> - every enriched event of a device
- devices/<id>/info - device identity, on first sight
- state/<type>/<subtype>/<id>/<unit> - switch state
- cmd/<DeviceType>/<entityName> - JSON command for the dispatcher; the
  entity name may contain "/" (e.g. 0x01020304/1)
- cmd/<type>/<subtype>/<id>/<unit> - "On"/"Off" for a registered switch
"""

import asyncio
import json
import logging
from typing import Any, Optional, Union

import aiomqtt

from ..config import DeviceConfig, MQTTConfig
from ..rfxcom.actions import ResolvedCommand
from ..rfxcom.events import ProtocolEvent
from ..rfxcom.exceptions import RfxBridgeError
from ..rfxcom.transceiver import OFFLINE, ONLINE, RfxcomSession
from ..state.models import BridgeInfo, DeviceBridge, DeviceSwitch, RfxcomInfo
from ..state.store import IDENTIFIER_PREFIX, DeviceStateRegistry, DeviceStateStore, switch_id
from ..utils import parse_int
from .backend import MQTTBackend, Payload

logger = logging.getLogger("rfxbridge.mqtt.bridge")

SWITCH_ON = "switchOn"
SWITCH_OFF = "switchOff"


def switch_value(switch: DeviceSwitch, command: Optional[str]) -> Optional[str]:
    """Map an event command ("On", "Group off"...) onto the switch's values."""
    if command is None:
        return None
    normalized = command.strip().lower()
    if normalized in ("on", "group on"):
        return switch.value_on
    if normalized in ("off", "group off"):
        return switch.value_off
    return command


class Bridge:
    """
    Wires one RFXCOM session to one MQTT connection.

    Driver callbacks run synchronously; their publications are queued and
    sent by a publisher task.
    """

    def __init__(
        self,
        session: RfxcomSession,
        backend: MQTTBackend,
        config: MQTTConfig,
        states: Optional[DeviceStateRegistry] = None,
        version: str = "",
        log_level: str = "",
        healthcheck_interval: int = 0,
    ):
        self.session = session
        self.backend = backend
        self.config = config
        self.states = states or DeviceStateRegistry()
        self.version = version
        self.log_level = log_level
        self.healthcheck_interval = healthcheck_interval

        self._outbox: asyncio.Queue = asyncio.Queue()
        self._tasks: list[asyncio.Task] = []
        self._running = False
        self._announced: set[str] = set()

    @property
    def base_topic(self) -> str:
        return self.config.base_topic

    @property
    def bridge_state_topic(self) -> str:
        return f"{self.base_topic}bridge/state"

    @property
    def bridge_info_topic(self) -> str:
        return f"{self.base_topic}bridge/info"

    @property
    def bridge_device_topic(self) -> str:
        return f"{self.base_topic}bridge/device"

    @property
    def command_prefix(self) -> str:
        return f"{self.base_topic}cmd/"

    @property
    def state_prefix(self) -> str:
        return f"{self.base_topic}state/"

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        """Publications waiting in the outbox."""
        return self._outbox.qsize()

    async def start(self) -> None:
        """Connect both sides and start the publisher, listener and health check."""
        if self._running:
            return

        will = aiomqtt.Will(self.bridge_state_topic, OFFLINE, qos=self.config.qos, retain=True)
        await self.backend.connect(will=will)

        self.session.on_status(self._on_status)
        self.session.on_disconnect(self._on_disconnect)
        try:
            await self.session.initialise()
        except RfxBridgeError:
            await self.backend.disconnect()
            raise

        self.session.enable_protocols()
        registered = self.states.register_config(self.session.devices, self.session.router.get_sub_type)
        if registered:
            logger.info("Registered configured devices: %s", registered)
        self.session.subscribe_protocol_events(self._on_event)

        await self.backend.subscribe(f"{self.command_prefix}#")
        await self.backend.publish(self.bridge_state_topic, ONLINE, retain=True)

        self._running = True
        self._tasks.append(asyncio.create_task(self._publish_loop()))
        self._tasks.append(asyncio.create_task(self._listen_loop()))
        if self.healthcheck_interval > 0:
            self._tasks.append(asyncio.create_task(self._healthcheck_loop()))
        logger.info("Bridge started, base topic %s", self.base_topic)

    async def stop(self) -> None:
        """Stop tasks, close the transceiver and disconnect."""
        if not self._running:
            return
        self._running = False

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        self.session.stop()
        await self.flush()
        try:
            await self.backend.publish(self.bridge_state_topic, OFFLINE, retain=True)
        except Exception as e:
            logger.warning("Failed to publish offline state: %s", e)
        await self.backend.disconnect()
        logger.info("Bridge stopped")

    def _enqueue(self, topic: str, payload: Payload, retain: Optional[bool] = None) -> None:
        self._outbox.put_nowait((topic, payload, self.config.retain if retain is None else retain))

    async def flush(self) -> None:
        """Publish everything left in the outbox."""
        while not self._outbox.empty():
            topic, payload, retain = self._outbox.get_nowait()
            await self._publish(topic, payload, retain)

    async def _publish(self, topic: str, payload: Payload, retain: bool) -> None:
        try:
            await self.backend.publish(topic, payload, retain=retain)
        except Exception as e:
            logger.warning("Failed to publish on %s: %s", topic, e)

    async def _publish_loop(self) -> None:
        while True:
            topic, payload, retain = await self._outbox.get()
            await self._publish(topic, payload, retain)

    async def _listen_loop(self) -> None:
        """Main loop to listen for command messages."""
        try:
            async for message in self.backend.messages():
                if not self._running:
                    break
                try:
                    self.handle_message(str(message.topic), message.payload)
                except Exception as e:
                    logger.warning("Error handling message on %s: %s", message.topic, e)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Listen loop error: %s", e)

    async def _healthcheck_loop(self) -> None:
        while True:
            await asyncio.sleep(self.healthcheck_interval)
            try:
                status = await self.session.get_status()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Healthcheck error: %s", e)
                continue
            self._enqueue(self.bridge_state_topic, status, retain=True)

    # Session callbacks

    def _on_status(self, info: RfxcomInfo) -> None:
        bridge_info = BridgeInfo(coordinator=info, version=self.version, log_level=self.log_level)
        self._enqueue(self.bridge_info_topic, bridge_info.to_dict(), retain=True)
        device = DeviceBridge(
            identifiers=[f"{IDENTIFIER_PREFIX}bridge"],
            hw_version=f"{info.receiverType} {info.hardwareVersion}".strip(),
            sw_version=self.version,
        )
        self._enqueue(self.bridge_device_topic, device.to_dict(), retain=True)

    def _on_disconnect(self, evt: Any) -> None:
        self._enqueue(self.bridge_state_topic, OFFLINE, retain=True)

    def _on_event(
        self,
        protocol: str,
        event: ProtocolEvent,
        device_conf: Optional[DeviceConfig],
    ) -> None:
        store = self.states.register_event(event, device_conf)
        device_topic = f"{self.base_topic}devices/{store.state.id}"

        self._enqueue(device_topic, event.to_dict())
        # Configured devices have a store before their first event
        if store.state.id not in self._announced:
            self._announced.add(store.state.id)
            self._enqueue(f"{device_topic}/info", store.get_info().to_dict(), retain=True)

        for switch in self._switches_for(store, event):
            value = switch_value(switch, event.command)
            if value is None:
                continue
            self._enqueue(store.get_state_topic(self.state_prefix, switch.id), value)

    @staticmethod
    def _switches_for(store: DeviceStateStore, event: ProtocolEvent) -> list[DeviceSwitch]:
        """Switches addressed by ``event``: one unit, or all of them for a group command."""
        if event.unit_code is None:
            return []
        if event.is_group_command:
            return list(store.get_switches().values())
        switch = store.get_switches().get(switch_id(store.state.id, parse_int(event.unit_code)))
        return [switch] if switch else []

    # Commands

    def handle_message(
        self,
        topic: str,
        payload: Union[str, bytes, bytearray, None],
    ) -> Optional[ResolvedCommand]:
        """
        Route a message received on a command topic.

        Topics whose first segment is a device class go to the dispatcher,
        with the rest of the path as entity name. Other four-segment topics
        address a registered switch. Fatal dispatch errors and malformed
        payloads are logged and the request is dropped.
        """
        if not topic.startswith(self.command_prefix):
            logger.debug("Ignoring message on %s", topic)
            return None

        parts = topic[len(self.command_prefix):].split("/")

        try:
            if isinstance(payload, (bytes, bytearray)):
                payload = payload.decode()
            text = (payload or "").strip()

            if len(parts) == 4 and not self.session.capabilities.is_valid_device_type(parts[0]):
                return self._handle_switch_command(*parts, text)
            if len(parts) >= 2:
                return self._handle_entity_command(parts[0], "/".join(parts[1:]), text)
        except RfxBridgeError as e:
            logger.error("Command on %s failed: %s", topic, e)
            return None
        except ValueError as e:
            logger.warning("Invalid command payload on %s: %s", topic, e)
            return None

        logger.warning("Unknown command topic: %s", topic)
        return None

    def _handle_entity_command(
        self,
        device_type: str,
        entity_name: str,
        text: str,
    ) -> Optional[ResolvedCommand]:
        payload = json.loads(text) if text else {}
        if not isinstance(payload, dict):
            raise ValueError("command payload must be a JSON object")
        return self.session.on_command(device_type, entity_name, payload)

    def _handle_switch_command(
        self,
        device_type: str,
        subtype: str,
        device_id: str,
        unit: str,
        text: str,
    ) -> Optional[ResolvedCommand]:
        store = self.states.get(device_id)
        if store is None or store.state.type != device_type:
            logger.warning("Unknown device %s/%s/%s", device_type, subtype, device_id)
            return None

        switch = store.get_switches().get(switch_id(device_id, unit))
        if switch is None:
            logger.warning("Unknown unit %s on device %s", unit, device_id)
            return None

        if text == switch.value_on or text.lower() == "on":
            command = SWITCH_ON
        elif text == switch.value_off or text.lower() == "off":
            command = SWITCH_OFF
        else:
            logger.warning("Unsupported switch command %r for %s", text, switch.id)
            return None

        return self.session.send_command(
            store.state.type,
            store.state.sub_type_value,
            command,
            f"{device_id}/{switch.unit}",
        )
