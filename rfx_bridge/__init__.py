"""
rfx-bridge: RFXCOM transceiver to MQTT bridge.

Routes MQTT commands to RFXCOM device classes and publishes enriched
receive events with per-device state.
"""

__version__ = "0.1.0"
