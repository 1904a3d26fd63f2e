"""Abstract messenger adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from relay_bot.messenger.models import IncomingMessage

MessageCallback = Callable[[IncomingMessage], Awaitable[None]]


class MessengerAdapter(ABC):
    """Base class for chat platform adapters.

    An adapter owns the platform connection, converts platform events into
    IncomingMessage objects and delivers them to a single registered callback.
    """

    def __init__(self, token: str):
        self._token = token
        self._message_callback: MessageCallback | None = None

    @abstractmethod
    async def start(self) -> None:
        """Connect to the platform and begin receiving messages."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Gracefully disconnect."""
        ...

    @abstractmethod
    async def reply(self, message: IncomingMessage, text: str, *, suppress_embeds: bool = False) -> None:
        """Send a reply to the given message in its channel."""
        ...

    def on_message(self, callback: MessageCallback) -> None:
        """Register the callback invoked for every incoming message."""
        self._message_callback = callback

    @property
    def has_callback(self) -> bool:
        return self._message_callback is not None

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """Return platform identifier string."""
        ...
