"""Application orchestrator - wires all components and manages lifecycle."""

from __future__ import annotations

import aiohttp

from relay_bot.bridge.handler import MessageHandler
from relay_bot.config import AppConfig
from relay_bot.core.session import BotSession
from relay_bot.log import get_logger
from relay_bot.messenger.base import MessengerAdapter
from relay_bot.receiver.accounts import AccountLookupClient
from relay_bot.receiver.forwarder import Forwarder
from relay_bot.receiver.http import SessionFactory
from relay_bot.receiver.registration import RegistrationInitiator

logger = get_logger(__name__)


class RelayBotApp:
    """Top-level application orchestrator."""

    def __init__(
        self,
        config: AppConfig,
        adapter: MessengerAdapter | None = None,
        session_factory: SessionFactory = aiohttp.ClientSession,
    ):
        config.check_required()
        self.config = config
        self.adapter = adapter or self._create_adapter(config)
        self.accounts = AccountLookupClient(config.receiver, session_factory)
        self.registration = RegistrationInitiator(config.receiver, session_factory)
        self.forwarder = Forwarder(config.receiver, self.accounts, session_factory)
        self.handler = MessageHandler(
            adapter=self.adapter,
            config=config,
            accounts=self.accounts,
            registration=self.registration,
            forwarder=self.forwarder,
        )
        self.session = BotSession(self.adapter, self.handler.handle)

    async def start(self) -> None:
        await self.session.start()
        logger.info(
            "relay_bot_started",
            receiver_url=self.config.receiver.url,
            allowed_channels=len(self.config.allowed_channels),
        )

    async def stop(self) -> None:
        await self.session.stop()
        logger.info("relay_bot_stopped")

    @staticmethod
    def _create_adapter(config: AppConfig) -> MessengerAdapter:
        from relay_bot.messenger.discord_adapter import DiscordAdapter

        return DiscordAdapter(config.discord.token)
