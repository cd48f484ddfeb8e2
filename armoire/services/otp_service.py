# armoire/services/otp_service.py
import hmac
import re
import secrets

from redis.exceptions import RedisError

from armoire.domain.errors import RateLimited, UpstreamGatewayError, ValidationError
from armoire.services.otp_store import OtpStore
from armoire.services.sms_client import SmsClient
from armoire.utils.settings import OTP_MAX_ATTEMPTS
from armoire.utils.logging import get_logger

logger = get_logger(__name__)

_INDIAN_MOBILE = re.compile(r"^\+91[6-9]\d{9}$")

OTP_MESSAGE = "Your Nala Armoire Account verification code is: {otp}. Valid for 5 minutes."


def format_phone_number(phone: str) -> str:
    digits = re.sub(r"\D", "", phone)

    #10 cyfr bez kierunkowego = numer indyjski
    if len(digits) == 10 and not digits.startswith("91"):
        return f"+91{digits}"
    return f"+{digits}"


def validate_phone_number(phone: str) -> bool:
    return bool(_INDIAN_MOBILE.match(phone))


def generate_otp() -> str:
    return str(100000 + secrets.randbelow(900000))


class OtpService:
    def __init__(self, store: OtpStore, sms_client: SmsClient):
        self.store = store
        self.sms_client = sms_client

    def _normalize(self, phone: str) -> str:
        formatted = format_phone_number(phone)
        if not validate_phone_number(formatted):
            raise ValidationError("Invalid phone number")
        return formatted

    def send_otp(self, phone: str) -> str:
        phone = self._normalize(phone)

        try:
            if not self.store.acquire_send_slot(phone):
                raise RateLimited("Please wait before requesting another OTP")

            otp = generate_otp()
            self.store.store_otp(phone, otp)
        except RedisError as e:
            logger.error(f"OTP store unavailable: {e}")
            raise UpstreamGatewayError("Failed to send OTP") from e

        if not self.sms_client.send(phone, OTP_MESSAGE.format(otp=otp)):
            # nic nie wyszlo, wiec nie blokujemy ponownej proby
            self.store.delete_otp(phone)
            self.store.release_send_slot(phone)
            raise UpstreamGatewayError("Failed to send OTP")

        logger.info(f"OTP sent to {phone}")
        return phone

    def verify_otp(self, phone: str, otp: str) -> str:
        phone = self._normalize(phone)

        try:
            attempts = self.store.increment_attempts(phone)
            if attempts > OTP_MAX_ATTEMPTS:
                raise RateLimited("Too many attempts, request a new OTP")

            stored = self.store.get_otp(phone)
            if stored is None:
                raise ValidationError("OTP expired or not found")
            if not hmac.compare_digest(stored, otp):
                raise ValidationError("Invalid OTP")

            self.store.delete_otp(phone)
        except RedisError as e:
            logger.error(f"OTP store unavailable: {e}")
            raise UpstreamGatewayError("Failed to verify OTP") from e

        logger.info(f"OTP verified for {phone}")
        return phone
