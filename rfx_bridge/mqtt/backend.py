"""
MQTT backend for the bridge.

Thin wrapper over an aiomqtt client: connect with a last will, publish,
subscribe and iterate incoming messages.
"""

import json
import logging
from typing import Any, AsyncIterator, Optional, Union

import aiomqtt

from ..config import MQTTConfig

logger = logging.getLogger("rfxbridge.mqtt.backend")

Payload = Union[str, bytes, dict[str, Any], list[Any], None]


def encode_payload(payload: Payload) -> Union[str, bytes, None]:
    """JSON-encode dicts and lists; strings and bytes go out unchanged."""
    if isinstance(payload, (dict, list)):
        return json.dumps(payload)
    return payload


class MQTTBackend:
    """MQTT-based transport for bridge publications and commands."""

    def __init__(
        self,
        broker_host: str = "localhost",
        broker_port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.username = username
        self.password = password
        self.qos = qos
        self._client: Optional[aiomqtt.Client] = None
        self._connected = False

    @classmethod
    def from_config(cls, config: MQTTConfig) -> "MQTTBackend":
        return cls(
            broker_host=config.host,
            broker_port=config.port,
            username=config.username,
            password=config.password,
            qos=config.qos,
        )

    @property
    def backend_type(self) -> str:
        return "mqtt"

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self, will: Optional[aiomqtt.Will] = None) -> None:
        """Connect to the MQTT broker."""
        try:
            self._client = aiomqtt.Client(
                hostname=self.broker_host,
                port=self.broker_port,
                username=self.username,
                password=self.password,
                will=will,
            )
            await self._client.__aenter__()
            self._connected = True
            logger.info("MQTT connected to %s:%d", self.broker_host, self.broker_port)
        except Exception as e:
            logger.error("Failed to connect to MQTT broker: %s", e)
            self._client = None
            raise

    async def disconnect(self) -> None:
        """Disconnect from the MQTT broker."""
        if self._client and self._connected:
            try:
                await self._client.__aexit__(None, None, None)
            except Exception as e:
                logger.warning("Error during MQTT disconnect: %s", e)
            finally:
                self._connected = False
                self._client = None
            logger.info("MQTT disconnected")

    async def publish(
        self,
        topic: str,
        payload: Payload,
        retain: bool = False,
        qos: Optional[int] = None,
    ) -> None:
        """
        Publish ``payload`` on ``topic``.

        Args:
            topic: MQTT topic to publish to
            payload: Text, bytes, or a JSON-serializable dict/list
            retain: Ask the broker to keep the message
            qos: Override the backend QoS
        """
        if not self._connected or not self._client:
            raise RuntimeError("MQTT client not connected")

        await self._client.publish(
            topic,
            encode_payload(payload),
            qos=self.qos if qos is None else qos,
            retain=retain,
        )
        logger.debug("MQTT published to %s: %s", topic, payload)

    async def subscribe(self, topic: str) -> None:
        """Subscribe to a topic for commands."""
        if not self._connected or not self._client:
            raise RuntimeError("MQTT client not connected")

        await self._client.subscribe(topic, qos=self.qos)
        logger.info("MQTT subscribed to %s", topic)

    async def messages(self) -> AsyncIterator[aiomqtt.Message]:
        """Yield incoming messages until the connection closes."""
        if not self._connected or not self._client:
            raise RuntimeError("MQTT client not connected")

        async for message in self._client.messages:
            yield message
