# armoire/api/deps.py
from functools import lru_cache

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from armoire.data.database import get_db
from armoire.domain.context import RequestContext
from armoire.domain.errors import CheckoutError, UpstreamGatewayError
from armoire.repos.user_repo import UserRepo
from armoire.services.gateway import PaymentGateway, build_gateway
from armoire.services.notification_service import NotificationService
from armoire.services.otp_service import OtpService
from armoire.services.otp_store import OtpStore
from armoire.services.sms_client import SmsClient
from armoire.utils.logging import get_logger

logger = get_logger(__name__)


def get_request_context(
    x_user_id: int | None = Header(None),
    db: Session = Depends(get_db),
) -> RequestContext:
    # sesja jest po stronie dostawcy auth, tu dostajemy juz samo user id
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = UserRepo(db).get_user(x_user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return RequestContext(user_id=user.id, role=user.role)


def require_admin(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return ctx


@lru_cache
def get_gateway() -> PaymentGateway:
    return build_gateway()


def get_notification_service() -> NotificationService:
    return NotificationService()


@lru_cache
def get_otp_service() -> OtpService:
    return OtpService(store=OtpStore(), sms_client=SmsClient())


def to_http(e: CheckoutError) -> HTTPException:
    if isinstance(e, UpstreamGatewayError):
        logger.error(f"Upstream failure: {e.message}")
        return HTTPException(status_code=e.status_code, detail=e.public_message)
    return HTTPException(status_code=e.status_code, detail=e.message)
