"""
Twilio Connector
Sends SMS through the Twilio Messages REST API
"""
import logging
from typing import Dict, Optional

import httpx

from storefront_admin.core.config import settings
from storefront_admin.core.errors import IntegrationError

logger = logging.getLogger(__name__)


class TwilioConnector:

    def __init__(
        self,
        account_sid: str = None,
        auth_token: str = None,
        from_number: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid or settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token or settings.TWILIO_AUTH_TOKEN
        self.from_number = from_number or settings.TWILIO_PHONE_NUMBER

        if not all([self.account_sid, self.auth_token, self.from_number]):
            raise ValueError("Twilio credentials not configured. Set TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_PHONE_NUMBER")

        self.api_url = f"https://api.twilio.com/2010-04-01/Accounts/{self.account_sid}/Messages.json"
        self._transport = transport

    async def send_sms(self, to: str, body: str) -> Dict:
        """
        Send one SMS

        Returns:
            Twilio message resource (sid, status, ...)
        """
        async with httpx.AsyncClient(
            auth=(self.account_sid, self.auth_token),
            timeout=30.0,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    self.api_url,
                    data={'From': self.from_number, 'To': to, 'Body': body},
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(f"Twilio returned {e.response.status_code}: {e.response.text}")
                raise IntegrationError("SMS provider rejected the message", detail=e.response.text)
            except httpx.HTTPError as e:
                logger.error(f"Twilio request failed: {e}")
                raise IntegrationError("SMS provider unreachable", detail=str(e))

        return response.json()
