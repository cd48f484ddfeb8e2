# armoire/services/sms_client.py
from requests import RequestException
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from armoire.utils.retry import http_retry
from armoire.utils.settings import (
    TWILIO_ACCOUNT_SID,
    TWILIO_AUTH_TOKEN,
    TWILIO_PHONE_NUMBER,
)
from armoire.utils.logging import get_logger

logger = get_logger(__name__)


class SmsClient:
    """Twilio Messages API through the official SDK."""

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        client: Client | None = None,
    ):
        self.account_sid = account_sid if account_sid is not None else TWILIO_ACCOUNT_SID
        self.auth_token = auth_token if auth_token is not None else TWILIO_AUTH_TOKEN
        self.from_number = from_number if from_number is not None else TWILIO_PHONE_NUMBER
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    @property
    def client(self) -> Client:
        # Client rzuca bez sid/tokena, wiec tworzony dopiero przy wysylce
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    @http_retry()
    def _send_message(self, to: str, body: str):
        return self.client.messages.create(to=to, from_=self.from_number, body=body)

    def send(self, to: str, body: str) -> bool:
        if not self.configured:
            logger.error("Twilio credentials not configured, SMS not sent")
            return False

        try:
            message = self._send_message(to, body)
        except (TwilioException, RequestException) as e:
            logger.error(f"Failed to send SMS to {to}: {e}")
            return False

        logger.info(f"SMS sent to {to}, message sid {message.sid}")
        return True
