"""Registration-status lookups against the receiver."""

from __future__ import annotations

import aiohttp

from relay_bot.config import ReceiverConfig
from relay_bot.log import get_logger
from relay_bot.receiver.http import ReceiverError, SessionFactory, request_json
from relay_bot.receiver.models import RegistrationStatus, parse_record

logger = get_logger(__name__)


class AccountLookupClient:
    """Resolves a Discord user id to the email linked on the receiver.

    Nothing is cached: each call costs one round trip.
    """

    def __init__(self, config: ReceiverConfig, session_factory: SessionFactory = aiohttp.ClientSession):
        self._config = config
        self._session_factory = session_factory

    async def status(self, user_id: str) -> RegistrationStatus:
        """Fetch the registration record, raising ReceiverError if it can't be read."""
        async with self._session_factory() as session:
            response = await request_json(
                session, "GET", self._config.status_url, params={"discordId": user_id}
            )
        if not response.ok:
            raise ReceiverError(
                f"Registration check returned HTTP {response.status}",
                status=response.status,
                body=response.body,
            )
        return parse_record(RegistrationStatus, response.body)

    async def lookup(self, user_id: str) -> str | None:
        """Return the linked email, or None.

        None covers both "not registered" and "could not ask"; use status()
        when the difference matters.
        """
        try:
            record = await self.status(user_id)
        except ReceiverError as e:
            logger.warning("account_lookup_failed", user_id=user_id, error=str(e), status=e.status)
            return None

        if record.email is None:
            logger.info("account_not_registered", user_id=user_id)
        return record.email
