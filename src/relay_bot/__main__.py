"""CLI entry point for relay-bot."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

from relay_bot.app import RelayBotApp
from relay_bot.config import AppConfig, ConfigError, load_config
from relay_bot.log import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="relay-bot",
        description="Relay Discord images and text to an HTTP receiver",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (("start", "Start the bot"), ("config-check", "Validate configuration")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("-c", "--config", default="config.yaml", help="Path to config file")
        sub.add_argument("-e", "--env", default=".env", help="Path to .env file")

    args = parser.parse_args()

    if args.command is None:
        # Default to start
        args.command = "start"
        args.config = "config.yaml"
        args.env = ".env"

    config = _load_or_exit(args.config, args.env)
    if args.command == "config-check":
        _check_config(config)
    elif args.command == "start":
        _run(config)


def _load_or_exit(config_path: str, env_path: str) -> AppConfig:
    try:
        config = load_config(config_path, env_path)
        config.check_required()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    return config


def _check_config(config: AppConfig) -> None:
    print("Configuration valid")
    print(f"  Receiver URL: {config.receiver.url}")
    print(f"  Status URL: {config.receiver.status_url}")
    print(f"  OAuth URL: {config.receiver.oauth_initiate_url}")
    channels = ", ".join(config.allowed_channels) or "(all)"
    print(f"  Allowed channels: {channels}")


def _run(config: AppConfig) -> None:
    setup_logging(config.log_level, json_output=config.log_json)

    async def _async_main() -> None:
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except NotImplementedError:
                # Windows doesn't support add_signal_handler
                signal.signal(sig, lambda s, f: loop.call_soon_threadsafe(stop_event.set))

        app = RelayBotApp(config)
        await app.start()
        try:
            await stop_event.wait()
        finally:
            await app.stop()

    try:
        asyncio.run(_async_main())
    except Exception as e:
        print(f"Failed to start relay-bot: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
