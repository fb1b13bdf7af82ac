# app/core/errors.py
"""
Error taxonomy for the OTP flows.

Expected verification outcomes (no pending code, expired, mismatch) are
returned by the store as ``VerifyResult`` values. They only become exceptions
at the request boundary, through ``error_for_result``.
"""
from typing import Optional

from app.db.models.auth.otp import VerifyOutcome, VerifyResult


class OTPError(Exception):
    """Base class for errors reported to the caller as ``{success: false, message}``"""
    status_code = 400
    default_message = "OTP request failed. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(OTPError):
    default_message = "Invalid request."


class NotFoundError(OTPError):
    default_message = VerifyOutcome.NOT_FOUND.message


class ExpiredError(OTPError):
    default_message = VerifyOutcome.EXPIRED.message


class MismatchError(OTPError):
    default_message = VerifyOutcome.MISMATCH.message


class VerificationFailedError(OTPError):
    default_message = VerifyOutcome.FAILED.message


class UpstreamError(OTPError):
    """The delegated provider or a delivery sender failed or could not be reached"""
    default_message = "Unable to connect to the messaging service. Please try again later."

    def __init__(self, message: Optional[str] = None, unreachable: bool = True):
        super().__init__(message)
        self.unreachable = unreachable
        self.status_code = 503 if unreachable else 400


class InternalError(OTPError):
    status_code = 500
    default_message = "Internal server error. Please try again later."


_OUTCOME_ERRORS = {
    VerifyOutcome.NOT_FOUND: NotFoundError,
    VerifyOutcome.EXPIRED: ExpiredError,
    VerifyOutcome.MISMATCH: MismatchError,
    VerifyOutcome.FAILED: VerificationFailedError,
}


def error_for_result(result: VerifyResult) -> OTPError:
    """Translate a failed verification result into its error"""
    if result.valid:
        raise ValueError("A successful verification has no error")
    return _OUTCOME_ERRORS[result.outcome](result.message)
