"""Tests for RegistrationInitiator."""

import asyncio

import aiohttp
import pytest

from fakes import FakeResponse
from relay_bot.receiver.http import ReceiverError
from relay_bot.receiver.registration import RegistrationError, RegistrationInitiator


def _initiator(receiver_config, receiver):
    return RegistrationInitiator(receiver_config, session_factory=receiver)


@pytest.mark.asyncio
async def test_posts_identity_and_returns_auth_url(receiver_config, receiver):
    receiver.queue(FakeResponse(200, {"success": True, "authUrl": "https://accounts.test/o?state=x"}))

    url = await _initiator(receiver_config, receiver).initiate("42", "alice")

    assert url == "https://accounts.test/o?state=x"
    assert len(receiver.calls) == 1
    call = receiver.calls[0]
    assert call.method == "POST"
    assert call.url == "http://receiver.test/api/auth/oauth/initiate"
    assert call.kwargs["json"] == {"discordId": "42", "discordUsername": "alice"}


@pytest.mark.asyncio
async def test_refusal_carries_server_error(receiver_config, receiver):
    receiver.queue(FakeResponse(200, {"success": False, "error": "Already registered"}))

    with pytest.raises(RegistrationError, match="Already registered"):
        await _initiator(receiver_config, receiver).initiate("42", "alice")


@pytest.mark.asyncio
async def test_http_error_with_json_body(receiver_config, receiver):
    receiver.queue(FakeResponse(429, {"error": "Slow down"}))

    with pytest.raises(RegistrationError, match="Slow down"):
        await _initiator(receiver_config, receiver).initiate("42", "alice")


@pytest.mark.asyncio
async def test_missing_auth_url_uses_generic_error(receiver_config, receiver):
    receiver.queue(FakeResponse(200, {"success": True}))

    with pytest.raises(RegistrationError, match="Unknown error"):
        await _initiator(receiver_config, receiver).initiate("42", "alice")


@pytest.mark.asyncio
async def test_network_failure_is_receiver_error(receiver_config, receiver):
    receiver.queue(aiohttp.ClientConnectionError("refused"))

    with pytest.raises(ReceiverError):
        await _initiator(receiver_config, receiver).initiate("42", "alice")


@pytest.mark.asyncio
async def test_timeout_is_receiver_error(receiver_config, receiver):
    receiver.queue(asyncio.TimeoutError())

    with pytest.raises(ReceiverError):
        await _initiator(receiver_config, receiver).initiate("42", "alice")
