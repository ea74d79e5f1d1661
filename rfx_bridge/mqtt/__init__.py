"""
MQTT side of the bridge.

Backends handle the broker connection; the bridge maps RFXCOM events and
commands onto topics.
"""

from .backend import MQTTBackend, encode_payload
from .bridge import Bridge, switch_value

__all__ = ["MQTTBackend", "Bridge", "encode_payload", "switch_value"]
