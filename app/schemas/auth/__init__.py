# Auth schemas
from .otp import OTPResponse, SendOTPRequest, VerifyOTPRequest

__all__ = [
    "OTPResponse",
    "SendOTPRequest",
    "VerifyOTPRequest",
]
