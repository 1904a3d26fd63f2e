"""End-to-end wiring: adapter callback through to the fake receiver."""

import asyncio

import pytest

from fakes import RECEIVER_URL, FakeReceiver, FakeResponse, RecordingAdapter, make_message, png
from relay_bot.app import RelayBotApp
from relay_bot.bridge.handler import IMAGE_FAILED_REPLY, IMAGE_RECEIVED_REPLY, REGISTER_PROMPT_REPLY
from relay_bot.config import AppConfig, ConfigError
from relay_bot.core.types import SessionState


def _app(app_config, receiver, adapter=None):
    return RelayBotApp(app_config, adapter=adapter or RecordingAdapter(), session_factory=receiver)


def test_incomplete_config_is_fatal(receiver):
    with pytest.raises(ConfigError):
        RelayBotApp(AppConfig(), adapter=RecordingAdapter(), session_factory=receiver)


@pytest.mark.asyncio
async def test_start_and_stop(app_config, receiver):
    app = _app(app_config, receiver)

    await app.start()
    assert app.session.state is SessionState.RUNNING
    assert app.adapter.has_callback

    await app.stop()
    assert app.session.state is SessionState.STOPPED


@pytest.mark.asyncio
async def test_direct_image_goes_lookup_fetch_upload(app_config):
    receiver = FakeReceiver().queue(
        FakeResponse(200, {"success": True, "registered": True, "user": {"email": "alice@example.com"}}),
        FakeResponse(200, raw=b"png-bytes", headers={"Content-Type": "image/png"}),
        FakeResponse(200, {"success": True}),
    )
    adapter = RecordingAdapter()
    app = _app(app_config, receiver, adapter)
    await app.start()

    await app.handler.handle(make_message(attachments=[png()]))

    assert [(c.method, c.url) for c in receiver.calls] == [
        ("GET", "http://receiver.test/api/discord/register"),
        ("GET", "https://cdn.test/a.png"),
        ("POST", RECEIVER_URL),
    ]
    assert adapter.reply_texts == [IMAGE_RECEIVED_REPLY]


@pytest.mark.asyncio
async def test_unreachable_registry_prompts_registration(app_config):
    receiver = FakeReceiver().queue(FakeResponse(503, raw=b"Service Unavailable"))
    adapter = RecordingAdapter()
    app = _app(app_config, receiver, adapter)

    await app.handler.handle(make_message(attachments=[png()]))

    assert len(receiver.calls) == 1
    assert adapter.reply_texts == [REGISTER_PROMPT_REPLY]


@pytest.mark.asyncio
async def test_direct_image_upload_timeout_apologises_once(app_config):
    receiver = FakeReceiver().queue(
        FakeResponse(200, {"success": True, "registered": True, "user": {"email": "alice@example.com"}}),
        FakeResponse(200, raw=b"png-bytes", headers={"Content-Type": "image/png"}),
        asyncio.TimeoutError(),
    )
    adapter = RecordingAdapter()
    app = _app(app_config, receiver, adapter)

    await app.handler.handle(make_message(attachments=[png()]))

    assert len(receiver.calls) == 3
    assert adapter.reply_texts == [IMAGE_FAILED_REPLY]


@pytest.mark.asyncio
async def test_lookup_timeout_prompts_registration(app_config):
    receiver = FakeReceiver().queue(asyncio.TimeoutError())
    adapter = RecordingAdapter()
    app = _app(app_config, receiver, adapter)

    await app.handler.handle(make_message(attachments=[png()]))

    assert len(receiver.calls) == 1
    assert adapter.reply_texts == [REGISTER_PROMPT_REPLY]
