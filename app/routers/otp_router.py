# app/routers/otp_router.py
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.core.errors import InternalError, OTPError, ValidationError, error_for_result
from app.schemas.auth.otp import OTPResponse, SendOTPRequest, VerifyOTPRequest
from app.services.auth.audit import audit_log
from app.services.auth.channels import ChannelConfig
from app.services.auth.phone import format_phone, normalize_phone

logger = logging.getLogger(__name__)

INVALID_PHONE_MESSAGE = "Invalid phone number. Please enter a valid 10-digit Indian mobile number."


def _respond(status_code: int, success: bool, message: str, verified: Optional[bool] = None,
             phone: Optional[str] = None) -> JSONResponse:
    body = OTPResponse(success=success, message=message, verified=verified, phone_number=phone)
    return JSONResponse(status_code=status_code, content=body.to_content())


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def build_channel_router(config: ChannelConfig) -> APIRouter:
    """
    Routes for one channel: send-otp, verify-otp and resend-otp.

    The channel's verification strategy is fixed here, once; handlers never
    choose between delegated and local verification themselves.
    """
    router = APIRouter(prefix=config.prefix, tags=[f"OTP ({config.label})"])
    strategy = config.strategy

    def dispatch(payload: SendOTPRequest, request: Request, resend: bool) -> JSONResponse:
        action = "otp_resend" if resend else "otp_send"
        request_id = str(uuid.uuid4())
        phone = None
        try:
            if not payload.phone_number:
                raise ValidationError("Phone number is required")

            phone = normalize_phone(payload.phone_number)
            if phone is None:
                raise ValidationError("Invalid phone number." if resend else INVALID_PHONE_MESSAGE)

            logger.info(f"{'Resending' if resend else 'Sending'} {config.label} OTP to: {phone}")
            strategy.send(phone)

            audit_log(action, phone, config.label, success=True, request_id=request_id,
                      ip_address=_client_ip(request))
            return _respond(200, True, config.resent_message if resend else config.sent_message, phone=phone)

        except OTPError as e:
            if phone:
                audit_log(action, phone, config.label, success=False, request_id=request_id,
                          ip_address=_client_ip(request), details={"error": type(e).__name__})
            logger.warning(f"{config.label} {action} failed: {e.message}")
            return _respond(e.status_code, False, e.message)
        except Exception as e:
            logger.error(f"{config.label} {action} error: {e}", exc_info=True)
            error = InternalError()
            return _respond(error.status_code, False, error.message)

    @router.post("/send-otp", response_model=OTPResponse, response_model_exclude_none=True)
    def send_otp(payload: SendOTPRequest, request: Request):
        """Send a new OTP to the phone number"""
        return dispatch(payload, request, resend=False)

    @router.post("/resend-otp", response_model=OTPResponse, response_model_exclude_none=True)
    def resend_otp(payload: SendOTPRequest, request: Request):
        """Send a fresh OTP, replacing any code still pending for the number"""
        return dispatch(payload, request, resend=True)

    @router.post("/verify-otp", response_model=OTPResponse, response_model_exclude_none=True)
    def verify_otp(payload: VerifyOTPRequest, request: Request):
        """Verify the OTP entered by the user"""
        request_id = str(uuid.uuid4())
        phone = None
        try:
            if not payload.phone_number or not payload.otp:
                raise ValidationError("Phone number and OTP are required")

            phone = normalize_phone(payload.phone_number)
            if phone is None:
                raise ValidationError(INVALID_PHONE_MESSAGE)

            if not config.code_pattern.fullmatch(payload.otp):
                raise ValidationError(config.code_format_message)

            logger.info(f"Verifying {config.label} OTP for: {phone}")
            result = strategy.verify(phone, payload.otp)

            audit_log("otp_verify", phone, config.label, success=result.valid, request_id=request_id,
                      ip_address=_client_ip(request), details={"reason": result.reason})
            if not result.valid:
                raise error_for_result(result)

            return _respond(200, True, "OTP verified successfully! Logging you in...", verified=True, phone=phone)

        except OTPError as e:
            logger.info(f"{config.label} OTP verification failed for {phone or format_phone(payload.phone_number or '')}: {e.message}")
            return _respond(e.status_code, False, e.message, verified=False)
        except Exception as e:
            logger.error(f"{config.label} verify error: {e}", exc_info=True)
            error = InternalError()
            return _respond(error.status_code, False, error.message, verified=False)

    return router
