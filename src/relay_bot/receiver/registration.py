"""Starts the receiver's OAuth account-linking flow."""

from __future__ import annotations

import aiohttp

from relay_bot.config import ReceiverConfig
from relay_bot.log import get_logger
from relay_bot.receiver.http import SessionFactory, request_json
from relay_bot.receiver.models import OAuthInitiation, parse_record

logger = get_logger(__name__)

# Enforced by the receiver; only quoted to the user.
AUTH_LINK_TTL_MINUTES = 10


class RegistrationError(Exception):
    """The receiver declined to start the OAuth flow."""


class RegistrationInitiator:
    def __init__(self, config: ReceiverConfig, session_factory: SessionFactory = aiohttp.ClientSession):
        self._config = config
        self._session_factory = session_factory

    async def initiate(self, user_id: str, username: str) -> str:
        """Ask the receiver for an authentication link for this Discord user.

        Raises RegistrationError when the receiver answers with a refusal and
        ReceiverError when the exchange itself fails.
        """
        logger.info("oauth_initiate", user_id=user_id)
        async with self._session_factory() as session:
            response = await request_json(
                session,
                "POST",
                self._config.oauth_initiate_url,
                json={"discordId": user_id, "discordUsername": username},
            )

        if not response.ok:
            error = response.body.get("error") if isinstance(response.body, dict) else None
            logger.warning("oauth_initiate_rejected", user_id=user_id, status=response.status, error=error)
            raise RegistrationError(error or "Unknown error")

        result = parse_record(OAuthInitiation, response.body)
        if result.success and result.auth_url:
            logger.info("oauth_url_generated", user_id=user_id)
            return result.auth_url

        logger.warning("oauth_initiate_rejected", user_id=user_id, status=response.status, error=result.error)
        raise RegistrationError(result.error or "Unknown error")
