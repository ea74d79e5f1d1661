"""
rfx-bridge - RFXCOM to MQTT bridge

Process entry point: loads settings, builds the session and the bridge,
and runs until interrupted.
"""

# Load .env file FIRST, before settings are read
from dotenv import load_dotenv
load_dotenv()

import asyncio
import logging
import signal

from .config import Settings, settings
from .mqtt import Bridge, MQTTBackend
from .rfxcom import RfxcomSession, TransceiverConnectionError, load_driver

logger = logging.getLogger("rfxbridge.main")


def configure_logging(config: Settings) -> None:
    level = "DEBUG" if config.debug else config.log_level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_bridge(config: Settings) -> Bridge:
    """Create the session and bridge described by ``config``."""
    driver = load_driver(config.rfxcom.driver)
    session = RfxcomSession(config.rfxcom, driver)
    backend = MQTTBackend.from_config(config.mqtt)
    return Bridge(
        session,
        backend,
        config.mqtt,
        version=config.version,
        log_level=config.log_level,
        healthcheck_interval=config.rfxcom.healthcheck_interval,
    )


async def run(config: Settings) -> None:
    """Run the bridge until SIGINT/SIGTERM."""
    bridge = build_bridge(config)
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Signal handlers are unavailable on some platforms
            pass

    await bridge.start()
    logger.info("rfx-bridge %s running", config.version)
    try:
        await stop_event.wait()
    finally:
        await bridge.stop()


def main() -> int:
    configure_logging(settings)
    try:
        asyncio.run(run(settings))
    except TransceiverConnectionError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
