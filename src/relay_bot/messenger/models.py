"""Platform-neutral message models handed from the adapter to the router."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from relay_bot.core.types import Platform


@dataclass(frozen=True, slots=True)
class Attachment:
    """Remote attachment reference; bytes are fetched only when forwarded."""

    url: str
    content_type: str = ""  # declared by the platform, may be empty
    filename: str = "attachment"
    size: int = 0


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    message_id: str
    author_id: str
    author_name: str
    channel_id: str
    text: str
    guild_id: Optional[str] = None
    author_is_bot: bool = False
    platform: Platform = Platform.DISCORD
    attachments: list[Attachment] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_direct(self) -> bool:
        return self.guild_id is None
