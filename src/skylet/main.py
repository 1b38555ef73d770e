"""
Main entry point for the skylet flight controller.
"""

import asyncio
import logging
import signal
import sys

from src.skylet.core.config import Config, get_config
from src.skylet.core.exceptions import ConfigurationError, ShutdownTimeoutError
from src.skylet.hal.mock_vehicle import MockVehicle
from src.skylet.hal.vehicle import VehicleCommandSink
from src.skylet.services.flight_controller import FlightController
from src.skylet.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def build_vehicle(config: Config) -> VehicleCommandSink:
    """Build the vehicle driver named in the configuration."""
    driver = config.vehicle.VEHICLE_DRIVER
    if driver == "mock":
        return MockVehicle.from_config(config.vehicle)
    raise ConfigurationError(f"Unsupported vehicle driver: {driver}")


async def run(config: Config) -> None:
    """Fly until SIGINT/SIGTERM, then shut down cleanly."""
    controller = FlightController.from_config(config, build_vehicle(config))

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    await controller.start()
    logger.info(f"{config.app.APP_NAME} {config.app.APP_VERSION} running on {config.app.APP_NODE_NAME}")

    await stop_event.wait()
    logger.info("Shutdown requested")
    await controller.close(timeout=config.flight.FLIGHT_SHUTDOWN_TIMEOUT_S)


def main() -> None:
    """Run the skylet flight controller."""
    try:
        config = get_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    setup_logging(
        log_level=config.logging.LOG_LEVEL,
        log_format=config.logging.LOG_FORMAT,
        log_file_path=config.logging.LOG_FILE_PATH,
        log_file_max_bytes=config.logging.LOG_FILE_MAX_BYTES,
        log_file_backup_count=config.logging.LOG_FILE_BACKUP_COUNT,
        enable_console=config.logging.LOG_ENABLE_CONSOLE,
        enable_file=config.logging.LOG_ENABLE_FILE,
        enable_journal=config.logging.LOG_ENABLE_JOURNAL,
    )
    logger.info(f"Starting {config.app.APP_NAME} ({config.app.APP_ENV})")

    try:
        asyncio.run(run(config))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(2)
    except ShutdownTimeoutError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
