# app/schemas/auth/otp.py
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class SendOTPRequest(BaseModel):
    """Request body for send-otp and resend-otp"""
    model_config = ConfigDict(populate_by_name=True)

    phone_number: Optional[str] = Field(None, alias="phoneNumber", description="10-digit mobile number, +91 prefix allowed")


class VerifyOTPRequest(BaseModel):
    """Request body for verify-otp"""
    model_config = ConfigDict(populate_by_name=True)

    phone_number: Optional[str] = Field(None, alias="phoneNumber", description="Number the OTP was sent to")
    otp: Optional[str] = Field(None, description="Code entered by the user")


class OTPResponse(BaseModel):
    """Response for every OTP endpoint; ``verified`` is only set by verify-otp"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    verified: Optional[bool] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")

    def to_content(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
