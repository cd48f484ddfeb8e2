# armoire/services/otp_store.py
import redis

from armoire.utils.retry import redis_retry
from armoire.utils.settings import REDIS_URL, OTP_EXPIRY_SECONDS, OTP_RATE_LIMIT_SECONDS
from armoire.utils.logging import get_logger

logger = get_logger(__name__)


class OtpStore:
    """
    Klucze w redisie, wszystkie z TTL (nie trzeba recznie czyscic):
    - otp:{phone}            kod, OTP_EXPIRY_SECONDS
    - otp:attempts:{phone}   licznik prob weryfikacji, tyle samo co kod
    - otp:ratelimit:{phone}  blokada ponownej wysylki, OTP_RATE_LIMIT_SECONDS
    """

    def __init__(self, client: redis.Redis | None = None, url: str | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _otp_key(phone: str) -> str:
        return f"otp:{phone}"

    @staticmethod
    def _attempts_key(phone: str) -> str:
        return f"otp:attempts:{phone}"

    @staticmethod
    def _rate_limit_key(phone: str) -> str:
        return f"otp:ratelimit:{phone}"

    @redis_retry()
    def store_otp(self, phone: str, otp: str) -> None:
        self.redis.set(self._otp_key(phone), otp, ex=OTP_EXPIRY_SECONDS)
        self.redis.delete(self._attempts_key(phone))

    @redis_retry()
    def get_otp(self, phone: str) -> str | None:
        return self.redis.get(self._otp_key(phone))

    @redis_retry()
    def delete_otp(self, phone: str) -> None:
        self.redis.delete(self._otp_key(phone), self._attempts_key(phone))

    @redis_retry()
    def acquire_send_slot(self, phone: str) -> bool:
        #SET otp:ratelimit:+91... 1 NX EX 60, None = ktos juz wyslal
        return bool(self.redis.set(self._rate_limit_key(phone), "1", nx=True, ex=OTP_RATE_LIMIT_SECONDS))

    @redis_retry()
    def release_send_slot(self, phone: str) -> None:
        self.redis.delete(self._rate_limit_key(phone))

    @redis_retry()
    def increment_attempts(self, phone: str) -> int:
        key = self._attempts_key(phone)
        attempts = self.redis.incr(key)
        if attempts == 1:
            self.redis.expire(key, OTP_EXPIRY_SECONDS)
        return attempts
