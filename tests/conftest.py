from __future__ import annotations

import pytest

from fakes import RECEIVER_TOKEN, RECEIVER_URL, FakeReceiver, RecordingAdapter
from relay_bot.config import AppConfig, DiscordConfig, ReceiverConfig


@pytest.fixture
def receiver() -> FakeReceiver:
    return FakeReceiver()


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def receiver_config() -> ReceiverConfig:
    return ReceiverConfig(url=RECEIVER_URL, token=RECEIVER_TOKEN)


@pytest.fixture
def app_config(receiver_config: ReceiverConfig) -> AppConfig:
    return AppConfig(
        discord=DiscordConfig(token="discord-token"),
        receiver=receiver_config,
        allowed_channels=("100",),
    )
