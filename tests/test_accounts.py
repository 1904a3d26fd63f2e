"""Tests for AccountLookupClient."""

import asyncio

import aiohttp
import pytest

from fakes import FakeResponse
from relay_bot.receiver.accounts import AccountLookupClient
from relay_bot.receiver.http import ReceiverError

REGISTERED = {
    "success": True,
    "registered": True,
    "user": {"discordId": "42", "email": "alice@example.com", "registeredAt": "2026-01-02T03:04:05Z"},
}


def _client(receiver_config, receiver):
    return AccountLookupClient(receiver_config, session_factory=receiver)


class TestStatus:
    @pytest.mark.asyncio
    async def test_queries_status_endpoint(self, receiver_config, receiver):
        receiver.queue(FakeResponse(200, REGISTERED))

        record = await _client(receiver_config, receiver).status("42")

        call = receiver.calls[0]
        assert call.method == "GET"
        assert call.url == "http://receiver.test/api/discord/register"
        assert call.kwargs["params"] == {"discordId": "42"}
        assert record.email == "alice@example.com"
        assert record.user.registered_at.year == 2026

    @pytest.mark.asyncio
    async def test_unregistered_is_not_an_error(self, receiver_config, receiver):
        receiver.queue(FakeResponse(200, {"success": True, "registered": False}))

        record = await _client(receiver_config, receiver).status("42")

        assert record.registered is False
        assert record.email is None

    @pytest.mark.asyncio
    async def test_server_error_raises(self, receiver_config, receiver):
        receiver.queue(FakeResponse(500, {"error": "boom"}))

        with pytest.raises(ReceiverError) as exc_info:
            await _client(receiver_config, receiver).status("42")
        assert exc_info.value.status == 500

    @pytest.mark.asyncio
    async def test_shape_mismatch_raises(self, receiver_config, receiver):
        receiver.queue(FakeResponse(200, ["not", "a", "record"]))

        with pytest.raises(ReceiverError):
            await _client(receiver_config, receiver).status("42")


class TestLookup:
    @pytest.mark.asyncio
    async def test_returns_email_when_registered(self, receiver_config, receiver):
        receiver.queue(FakeResponse(200, REGISTERED))
        assert await _client(receiver_config, receiver).lookup("42") == "alice@example.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            aiohttp.ClientConnectionError("refused"),
            asyncio.TimeoutError(),
            FakeResponse(500, {"success": False, "error": "db down"}),
            FakeResponse(200, {"registered": False}),
            FakeResponse(200, {"success": True, "registered": False}),
            FakeResponse(200, {"success": True, "registered": True, "user": {}}),
            FakeResponse(200, raw=b"<html>oops</html>"),
        ],
        ids=["unreachable", "timeout", "http-500", "no-success-flag", "unregistered", "no-email", "not-json"],
    )
    async def test_every_other_outcome_is_none(self, receiver_config, receiver, response):
        receiver.queue(response)
        assert await _client(receiver_config, receiver).lookup("42") is None

    @pytest.mark.asyncio
    async def test_no_caching(self, receiver_config, receiver):
        receiver.queue(FakeResponse(200, REGISTERED), FakeResponse(200, REGISTERED))
        client = _client(receiver_config, receiver)

        await client.lookup("42")
        await client.lookup("42")

        assert len(receiver.calls) == 2
