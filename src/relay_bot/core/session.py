"""Bot session: owns the platform connection lifecycle."""

from __future__ import annotations

from relay_bot.core.types import SessionState
from relay_bot.log import get_logger
from relay_bot.messenger.base import MessageCallback, MessengerAdapter

logger = get_logger(__name__)


class BotSession:
    """Starts and stops one messenger adapter, guarding against double start.

    State moves STOPPED -> STARTING -> RUNNING -> STOPPED. A failed start
    returns to STOPPED and re-raises to the caller.
    """

    def __init__(self, adapter: MessengerAdapter, callback: MessageCallback):
        self._adapter = adapter
        self._callback = callback
        self._state = SessionState.STOPPED

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SessionState.RUNNING

    async def start(self) -> None:
        if self._state is not SessionState.STOPPED:
            logger.info("session_already_started", state=self._state.value)
            return

        self._state = SessionState.STARTING
        self._adapter.on_message(self._callback)
        try:
            await self._adapter.start()
        except Exception as e:
            self._state = SessionState.STOPPED
            logger.error("session_start_failed", platform=self._adapter.platform_name, error=str(e))
            raise

        self._state = SessionState.RUNNING
        logger.info("session_started", platform=self._adapter.platform_name)

    async def stop(self) -> None:
        if self._state is SessionState.STOPPED:
            return

        try:
            await self._adapter.stop()
        except Exception as e:
            logger.error("session_stop_error", platform=self._adapter.platform_name, error=str(e))
        finally:
            self._state = SessionState.STOPPED
        logger.info("session_stopped", platform=self._adapter.platform_name)
