# app/db/models/auth/otp.py
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class VerifyOutcome(str, Enum):
    VERIFIED = "verified"
    NOT_FOUND = "no pending OTP"
    EXPIRED = "expired"
    MISMATCH = "mismatch"
    # Unrecognised failure reported by a delegated provider
    FAILED = "failed"

    @property
    def message(self) -> str:
        return _OUTCOME_MESSAGES[self]


_OUTCOME_MESSAGES = {
    VerifyOutcome.VERIFIED: "OTP verified successfully!",
    VerifyOutcome.NOT_FOUND: "No OTP was sent to this number. Please request OTP first.",
    VerifyOutcome.EXPIRED: "OTP has expired. Please request a new OTP.",
    VerifyOutcome.MISMATCH: "Invalid OTP. Please check and try again.",
    VerifyOutcome.FAILED: "OTP verification failed. Please try again.",
}


@dataclass(frozen=True)
class OTPRecord:
    """A pending code for one phone number. Replaced, never mutated."""
    phone: str
    code: str
    created_at: datetime
    expires_at: datetime

    def __post_init__(self):
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be later than created_at")

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class VerifyResult:
    outcome: VerifyOutcome

    @property
    def valid(self) -> bool:
        return self.outcome is VerifyOutcome.VERIFIED

    @property
    def reason(self) -> str:
        return self.outcome.value

    @property
    def message(self) -> str:
        return self.outcome.message
