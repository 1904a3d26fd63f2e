"""Shared aiohttp plumbing for talking to the receiver."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Callable

import aiohttp

SessionFactory = Callable[[], aiohttp.ClientSession]

TOKEN_HEADER = "x-receiver-token"


class ReceiverError(Exception):
    """Network failure, unusable status, or unparseable body from the receiver."""

    def __init__(self, message: str, status: int | None = None, body: Any = None):
        super().__init__(message)
        self.status = status
        self.body = body


@dataclass(frozen=True, slots=True)
class ReceiverResponse:
    status: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


async def request_json(
    session: aiohttp.ClientSession, method: str, url: str, **kwargs: Any
) -> ReceiverResponse:
    """Perform one request and decode its JSON body.

    Raises ReceiverError on connection errors or when the body is not JSON,
    whatever the status. A non-2xx status with a JSON body is returned as is.
    """
    try:
        async with session.request(method, url, **kwargs) as resp:
            status = resp.status
            try:
                body = await resp.json(content_type=None)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise ReceiverError(f"Non-JSON response from {url}", status=status) from e
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise ReceiverError(f"Request to {url} failed: {e!r}") from e
    return ReceiverResponse(status=status, body=body)
