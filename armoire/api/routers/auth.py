# armoire/api/routers/auth.py
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SchemaError

from armoire.api.deps import get_otp_service
from armoire.domain.errors import CheckoutError, UpstreamGatewayError
from armoire.domain.schemas import OtpOut, SendOtpIn, VerifyOtpIn
from armoire.services.otp_service import OtpService
from armoire.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _field_errors(e: SchemaError) -> dict:
    errors: dict[str, list[str]] = {}
    for err in e.errors():
        field = str(err["loc"][0]) if err["loc"] else "body"
        errors.setdefault(field, []).append(err["msg"])
    return errors


def _failure(message: str, status_code: int, **extra) -> JSONResponse:
    return JSONResponse({"success": False, "message": message, **extra}, status_code=status_code)


@router.post("/send-otp", response_model=OtpOut)
def send_otp(body: dict = Body(...), otp_service: OtpService = Depends(get_otp_service)):
    """
    POST /auth/send-otp {phone} -> {success, message}
    400 przy zlym numerze, 429 przy zbyt czestych prosbach, 500 gdy SMS nie wyszedl.
    """
    try:
        payload = SendOtpIn.model_validate(body)
    except SchemaError as e:
        return _failure("Invalid phone number", 400, errors=_field_errors(e))

    try:
        otp_service.send_otp(payload.phone)
    except UpstreamGatewayError as e:
        logger.error(f"Send OTP error: {e.message}")
        return _failure("Failed to send OTP", 500)
    except CheckoutError as e:
        return _failure(e.message, e.status_code)

    return {"success": True, "message": "OTP sent successfully"}


@router.post("/verify-otp", response_model=OtpOut)
def verify_otp(body: dict = Body(...), otp_service: OtpService = Depends(get_otp_service)):
    try:
        payload = VerifyOtpIn.model_validate(body)
    except SchemaError as e:
        return _failure("Invalid OTP request", 400, errors=_field_errors(e))

    try:
        otp_service.verify_otp(payload.phone, payload.otp)
    except UpstreamGatewayError as e:
        logger.error(f"Verify OTP error: {e.message}")
        return _failure("Failed to verify OTP", 500)
    except CheckoutError as e:
        return _failure(e.message, e.status_code)

    return {"success": True, "message": "OTP verified successfully"}
