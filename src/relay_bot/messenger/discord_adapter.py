"""Discord messenger adapter using discord.py v2+."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import discord

from relay_bot.core.types import Platform
from relay_bot.log import get_logger
from relay_bot.messenger.base import MessengerAdapter
from relay_bot.messenger.models import Attachment, IncomingMessage

logger = get_logger(__name__)

READY_TIMEOUT = 30


def to_incoming_message(message: discord.Message) -> IncomingMessage:
    """Convert a discord.py message into the platform-neutral model."""
    return IncomingMessage(
        message_id=str(message.id),
        author_id=str(message.author.id),
        author_name=message.author.name,
        author_is_bot=bool(message.author.bot),
        channel_id=str(message.channel.id),
        guild_id=str(message.guild.id) if message.guild else None,
        text=message.content or "",
        platform=Platform.DISCORD,
        attachments=[
            Attachment(
                url=att.url,
                content_type=att.content_type or "",
                filename=att.filename,
                size=att.size,
            )
            for att in message.attachments
        ],
        timestamp=message.created_at or datetime.now(timezone.utc),
    )


class DiscordAdapter(MessengerAdapter):
    """Discord gateway connection delivering guild and direct messages."""

    def __init__(self, token: str):
        super().__init__(token)
        self._client: discord.Client | None = None
        self._task: asyncio.Task[Any] | None = None
        self._ready = asyncio.Event()

    @property
    def platform_name(self) -> str:
        return Platform.DISCORD

    def _build_client(self) -> discord.Client:
        intents = discord.Intents.default()
        intents.message_content = True
        intents.dm_messages = True
        client = discord.Client(intents=intents)

        @client.event
        async def on_ready() -> None:
            logger.info("discord_bot_ready", user=str(client.user))
            self._ready.set()

        @client.event
        async def on_message(message: discord.Message) -> None:
            await self._on_discord_message(message)

        return client

    async def start(self) -> None:
        if not self._token:
            raise ValueError("Discord bot token not configured")

        self._ready.clear()
        self._client = self._build_client()
        self._task = asyncio.create_task(self._client.start(self._token))
        ready_waiter = asyncio.create_task(self._ready.wait())

        done, _ = await asyncio.wait(
            {self._task, ready_waiter},
            timeout=READY_TIMEOUT,
            return_when=asyncio.FIRST_COMPLETED,
        )
        if self._task in done:
            # login or gateway connection failed before on_ready
            ready_waiter.cancel()
            error = self._task.exception()
            await self._teardown()
            raise error or RuntimeError("Discord client exited before becoming ready")
        if not done:
            ready_waiter.cancel()
            logger.warning("discord_ready_timeout", timeout=READY_TIMEOUT)

        logger.info("discord_adapter_started")

    async def stop(self) -> None:
        await self._teardown()
        logger.info("discord_adapter_stopped")

    async def _teardown(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass
            self._task = None

    async def reply(self, message: IncomingMessage, text: str, *, suppress_embeds: bool = False) -> None:
        if self._client is None:
            logger.warning("discord_reply_without_client", message_id=message.message_id)
            return

        channel_id = int(message.channel_id)
        channel = self._client.get_channel(channel_id)
        if channel is None:
            channel = self._client.get_partial_messageable(channel_id)

        reference = discord.MessageReference(
            message_id=int(message.message_id),
            channel_id=channel_id,
            fail_if_not_exists=False,
        )
        await channel.send(text, reference=reference, suppress_embeds=suppress_embeds)  # type: ignore[union-attr]

    async def _on_discord_message(self, message: discord.Message) -> None:
        if not self._message_callback:
            return

        incoming = to_incoming_message(message)
        try:
            await self._message_callback(incoming)
        except Exception as e:
            logger.error(
                "discord_handler_error", error=str(e), channel_id=incoming.channel_id
            )
