"""
Lifecycle base for skylet's long-running asyncio services.

The flight state machine and the connection watchdog each own background
tasks on the event loop. Subclasses create those tasks in ``start_service``
and cancel them in ``stop_service``; this class keeps the running flag,
the start time and the logging consistent between them.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

from src.skylet.utils.logging import get_logger, log_info

logger = get_logger(__name__)


class BaseService(ABC):
    """A named service whose background tasks live on the running event loop.

    Overlapping ``start()``/``stop()`` calls are serialized.
    """

    def __init__(self, service_name: str):
        self.service_name = service_name
        self._is_running = False
        self._started_at: datetime | None = None
        self._lifecycle_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def started_at(self) -> datetime | None:
        """UTC time of the last successful start, None while stopped."""
        return self._started_at

    @abstractmethod
    async def start_service(self) -> None:
        """Create the service's background tasks."""

    @abstractmethod
    async def stop_service(self) -> None:
        """Cancel the service's background tasks and wait for them to exit."""

    async def start(self) -> None:
        async with self._lifecycle_lock:
            if self._is_running:
                logger.warning(f"Service {self.service_name} is already running")
                return

            try:
                await self.start_service()
            except Exception as e:
                logger.error(f"Failed to start service {self.service_name}: {e}")
                raise

            self._is_running = True
            self._started_at = datetime.now(UTC)
            log_info(logger, "Service started", service=self.service_name)

    async def stop(self) -> None:
        """Stop the service. It is marked stopped even if teardown raises."""
        async with self._lifecycle_lock:
            if not self._is_running:
                logger.debug(f"Service {self.service_name} is not running")
                return

            try:
                await self.stop_service()
            except Exception as e:
                logger.error(f"Error stopping service {self.service_name}: {e}")
                raise
            finally:
                self._is_running = False
                self._started_at = None

            log_info(logger, "Service stopped", service=self.service_name)

    def get_status(self) -> dict[str, Any]:
        uptime = (
            (datetime.now(UTC) - self._started_at).total_seconds() if self._started_at else 0.0
        )
        return {
            "is_running": self._is_running,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "uptime_s": round(uptime, 3),
        }
