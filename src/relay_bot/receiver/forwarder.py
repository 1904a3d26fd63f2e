"""Relays image attachments and text to the receiver endpoint."""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp

from relay_bot.config import ReceiverConfig
from relay_bot.log import get_logger
from relay_bot.messenger.models import IncomingMessage
from relay_bot.receiver.accounts import AccountLookupClient
from relay_bot.receiver.http import (
    TOKEN_HEADER,
    ReceiverError,
    ReceiverResponse,
    SessionFactory,
    request_json,
)
from relay_bot.receiver.models import ForwardFailure, ForwardResult

logger = get_logger(__name__)

DEFAULT_FILENAME = "image"
FALLBACK_CONTENT_TYPE = "application/octet-stream"


def _provenance(message: IncomingMessage) -> dict[str, str]:
    return {
        "source": message.platform.value,
        "discordMessageId": message.message_id,
        "discordChannelId": message.channel_id,
        "discordAuthorId": message.author_id,
    }


def _is_empty_ack(body: Any) -> bool:
    """null, false, 0 and "" are empty; {} and [] still acknowledge the upload."""
    return body is None or (isinstance(body, (bool, int, float, str)) and not body)


def _outcome(response: ReceiverResponse, kind: str, message_id: str) -> ForwardResult:
    if not response.ok or _is_empty_ack(response.body):
        logger.error(
            "receiver_rejected",
            kind=kind,
            message_id=message_id,
            status=response.status,
            body=response.body,
        )
        return ForwardResult.failed(ForwardFailure.REJECTED, response.status, response.body)

    logger.info("forwarded", kind=kind, message_id=message_id, status=response.status)
    return ForwardResult(ok=True, status=response.status, body=response.body)


class Forwarder:
    """Posts message payloads to the receiver, one request per call, no retries."""

    def __init__(
        self,
        config: ReceiverConfig,
        accounts: AccountLookupClient,
        session_factory: SessionFactory = aiohttp.ClientSession,
    ):
        self._config = config
        self._accounts = accounts
        self._session_factory = session_factory

    @property
    def _headers(self) -> dict[str, str]:
        return {TOKEN_HEADER: self._config.token}

    async def forward_attachment(
        self, message: IncomingMessage, url: str, filename: str | None = None
    ) -> ForwardResult:
        """Download an attachment and upload it with the author's linked email.

        The author must be registered; otherwise nothing is downloaded and the
        result carries ForwardFailure.UNREGISTERED.
        """
        log = logger.bind(message_id=message.message_id, author_id=message.author_id)

        email = await self._accounts.lookup(message.author_id)
        if email is None:
            log.info("forward_skipped_unregistered")
            return ForwardResult.failed(ForwardFailure.UNREGISTERED)

        log.info("attachment_forward_start", url=url, filename=filename)
        try:
            async with self._session_factory() as session:
                async with session.get(url) as resp:
                    if not 200 <= resp.status < 300:
                        log.error("attachment_fetch_failed", status=resp.status, reason=resp.reason)
                        return ForwardResult.failed(ForwardFailure.FETCH_FAILED, resp.status)
                    content_type = resp.headers.get("Content-Type") or self._declared_type(message, url)
                    data = await resp.read()
                log.debug("attachment_fetched", size=len(data), content_type=content_type)

                form = aiohttp.FormData()
                form.add_field(
                    "file", data, filename=filename or DEFAULT_FILENAME, content_type=content_type
                )
                for key, value in _provenance(message).items():
                    form.add_field(key, value)
                form.add_field("userEmail", email)

                response = await request_json(
                    session, "POST", self._config.url, data=form, headers=self._headers
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.error("attachment_fetch_error", error=repr(e))
            return ForwardResult.failed(ForwardFailure.TRANSPORT)
        except ReceiverError as e:
            log.error("attachment_forward_error", error=str(e), status=e.status)
            return ForwardResult.failed(ForwardFailure.TRANSPORT, e.status, e.body)

        return _outcome(response, "attachment", message.message_id)

    async def forward_text(self, message: IncomingMessage) -> ForwardResult:
        text = message.text.strip()
        if not text:
            logger.debug("text_forward_empty", message_id=message.message_id)
            return ForwardResult.failed(ForwardFailure.EMPTY)

        logger.info(
            "text_forward_start",
            message_id=message.message_id,
            length=len(text),
            preview=text[:100] + ("..." if len(text) > 100 else ""),
        )
        fields: dict[str, Any] = {"text": text, **_provenance(message)}
        form = aiohttp.FormData(default_to_multipart=True)
        for key, value in fields.items():
            form.add_field(key, value)

        try:
            async with self._session_factory() as session:
                response = await request_json(
                    session, "POST", self._config.url, data=form, headers=self._headers
                )
        except ReceiverError as e:
            logger.error("text_forward_error", message_id=message.message_id, error=str(e), status=e.status)
            return ForwardResult.failed(ForwardFailure.TRANSPORT, e.status, e.body)

        return _outcome(response, "text", message.message_id)

    @staticmethod
    def _declared_type(message: IncomingMessage, url: str) -> str:
        for att in message.attachments:
            if att.url == url and att.content_type:
                return att.content_type
        return FALLBACK_CONTENT_TYPE
