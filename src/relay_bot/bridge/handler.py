"""Message router: classifies each incoming message and dispatches it."""

from __future__ import annotations

from relay_bot.bridge.commands import CommandTable, is_command_like
from relay_bot.config import AppConfig
from relay_bot.log import get_logger
from relay_bot.messenger.base import MessengerAdapter
from relay_bot.messenger.models import Attachment, IncomingMessage
from relay_bot.receiver.accounts import AccountLookupClient
from relay_bot.receiver.forwarder import Forwarder
from relay_bot.receiver.http import ReceiverError
from relay_bot.receiver.models import ForwardFailure
from relay_bot.receiver.registration import AUTH_LINK_TTL_MINUTES, RegistrationError, RegistrationInitiator

logger = get_logger(__name__)

IMAGE_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/webp", "image/gif"})

REGISTER_COMMAND = "!register"
STATUS_COMMANDS = ("!status", "!whoami")

IMAGE_RECEIVED_REPLY = "Got it! I received your image and started processing."
IMAGE_FAILED_REPLY = "Sorry, I could not process that image. Please try again."
REGISTER_PROMPT_REPLY = (
    "❌ **You need to register first!**\n\n"
    "To link your Discord account with your email, use:\n`!register`\n\n"
    "After registration, you can upload images and they will be saved to your calendar account."
)
REGISTER_USAGE_REPLY = "❌ Invalid format. Use: `!register` (no email needed - you'll authenticate with Google)"
REGISTER_TECHNICAL_ERROR_REPLY = (
    "❌ Authentication setup failed due to a technical error. Please try again later."
)
STATUS_UNREGISTERED_REPLY = (
    "❌ **Registration Status: NOT REGISTERED**\n\n"
    "To register your Discord account with your email, use:\n`!register`"
)
STATUS_ERROR_REPLY = "❌ Unable to check registration status. Please try again later."


def is_supported_image(content_type: str) -> bool:
    base = content_type.split(";", 1)[0].strip().lower()
    return base in IMAGE_CONTENT_TYPES


def _auth_link_reply(auth_url: str) -> str:
    return (
        "🔐 **Google Authentication Required**\n\n"
        "To securely link your Discord account with your Google email, please click the link below:\n\n"
        f"🔗 **[Authenticate with Google]({auth_url})**\n\n"
        f"⚠️ This link expires in {AUTH_LINK_TTL_MINUTES} minutes for security.\n"
        "✅ After authentication, you'll be able to upload images that will be saved to your calendar."
    )


class MessageHandler:
    """Routes each message to a command, the attachment path, or the text path.

    Order: bot authors, commands, channel allow-list, attachments, text.
    Nothing raised downstream escapes handle().
    """

    def __init__(
        self,
        adapter: MessengerAdapter,
        config: AppConfig,
        accounts: AccountLookupClient,
        registration: RegistrationInitiator,
        forwarder: Forwarder,
    ):
        self._adapter = adapter
        self._config = config
        self._accounts = accounts
        self._registration = registration
        self._forwarder = forwarder
        self._commands = CommandTable()
        self._commands.register(REGISTER_COMMAND, self._handle_register, exact=False)
        for token in STATUS_COMMANDS:
            self._commands.register(token, self._handle_status)

    async def handle(self, message: IncomingMessage) -> None:
        try:
            await self._route(message)
        except Exception as e:
            logger.error(
                "message_handler_error",
                message_id=message.message_id,
                error=str(e),
                exc_info=True,
            )

    async def _route(self, message: IncomingMessage) -> None:
        logger.debug(
            "message_received",
            message_id=message.message_id,
            author=message.author_name,
            channel_id=message.channel_id,
            guild_id=message.guild_id or "DM",
        )

        if message.author_is_bot:
            return

        command = self._commands.match(message.text)
        if command is not None:
            await command.run(message)
            return

        if not message.is_direct and not self._config.is_channel_allowed(message.channel_id):
            logger.debug("channel_not_allowed", channel_id=message.channel_id)
            return

        if message.attachments:
            for attachment in message.attachments:
                await self._handle_attachment(message, attachment)
            return

        text = message.text.strip()
        if not text:
            logger.debug("message_without_content", message_id=message.message_id)
            return
        if is_command_like(text):
            logger.info("unknown_command_ignored", command=text.split()[0])
            return

        # no reply for text; the receiver logs it
        await self._forwarder.forward_text(message)

    async def _handle_attachment(self, message: IncomingMessage, attachment: Attachment) -> None:
        if not is_supported_image(attachment.content_type):
            logger.debug(
                "attachment_skipped",
                filename=attachment.filename,
                content_type=attachment.content_type,
            )
            return

        result = await self._forwarder.forward_attachment(message, attachment.url, attachment.filename)

        if result.failure is ForwardFailure.UNREGISTERED:
            await self._adapter.reply(message, REGISTER_PROMPT_REPLY)
        elif message.is_direct:
            await self._adapter.reply(message, IMAGE_RECEIVED_REPLY if result.ok else IMAGE_FAILED_REPLY)

    async def _handle_register(self, message: IncomingMessage, args: str) -> None:
        if args:
            logger.info("register_rejected_arguments", user_id=message.author_id)
            await self._adapter.reply(message, REGISTER_USAGE_REPLY)
            return

        try:
            auth_url = await self._registration.initiate(message.author_id, message.author_name)
        except RegistrationError as e:
            await self._adapter.reply(message, f"❌ Authentication setup failed: {e}")
            return
        except ReceiverError as e:
            logger.error("register_command_error", user_id=message.author_id, error=str(e))
            await self._adapter.reply(message, REGISTER_TECHNICAL_ERROR_REPLY)
            return

        await self._adapter.reply(message, _auth_link_reply(auth_url), suppress_embeds=True)

    async def _handle_status(self, message: IncomingMessage, args: str) -> None:
        try:
            record = await self._accounts.status(message.author_id)
        except ReceiverError as e:
            logger.error("status_command_error", user_id=message.author_id, error=str(e))
            await self._adapter.reply(message, STATUS_ERROR_REPLY)
            return

        if record.email is None:
            await self._adapter.reply(message, STATUS_UNREGISTERED_REPLY)
            return

        registered_at = record.user.registered_at if record.user else None
        await self._adapter.reply(
            message,
            "✅ **Registration Status: ACTIVE**\n"
            f"📧 Email: **{record.email}**\n"
            f"📅 Registered: {registered_at.strftime('%Y-%m-%d') if registered_at else 'Unknown'}",
        )
