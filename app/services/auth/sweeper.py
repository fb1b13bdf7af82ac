# app/services/auth/sweeper.py
import asyncio
import logging
from typing import Optional

from app.db.otp_store import OTPStore

logger = logging.getLogger(__name__)


class OTPSweeper:
    """Background task that evicts expired OTPs on a fixed interval"""

    def __init__(self, store: OTPStore, interval_seconds: float = 300):
        if interval_seconds <= 0:
            raise ValueError("Sweep interval must be positive")
        self.store = store
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="otp-sweeper")
        logger.info(f"OTP sweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("OTP sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.store.sweep()
            except Exception as e:
                logger.error(f"Error sweeping expired OTPs: {e}", exc_info=True)
