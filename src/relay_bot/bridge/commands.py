"""Command grammar: literal chat tokens mapped to handler coroutines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable

from relay_bot.messenger.models import IncomingMessage

COMMAND_PREFIX = "!"

CommandHandler = Callable[[IncomingMessage, str], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class CommandSpec:
    token: str
    handler: CommandHandler
    exact: bool = True  # False: any text starting with token, remainder passed as args


@dataclass(frozen=True, slots=True)
class CommandMatch:
    spec: CommandSpec
    args: str

    async def run(self, message: IncomingMessage) -> None:
        await self.spec.handler(message, self.args)


class CommandTable:
    """Ordered table of recognized commands; the first matching entry wins."""

    def __init__(self) -> None:
        self._specs: list[CommandSpec] = []

    def register(self, token: str, handler: CommandHandler, *, exact: bool = True) -> None:
        if not token.startswith(COMMAND_PREFIX):
            raise ValueError(f"Command token must start with {COMMAND_PREFIX!r}: {token}")
        self._specs.append(CommandSpec(token=token, handler=handler, exact=exact))

    def match(self, text: str) -> CommandMatch | None:
        for spec in self._specs:
            if spec.exact:
                if text.strip() == spec.token:
                    return CommandMatch(spec=spec, args="")
            elif text.startswith(spec.token):
                return CommandMatch(spec=spec, args=text[len(spec.token):].strip())
        return None

    def tokens(self) -> list[str]:
        return [spec.token for spec in self._specs]


def is_command_like(text: str) -> bool:
    return text.startswith(COMMAND_PREFIX)
