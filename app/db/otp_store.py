# app/db/otp_store.py
import hmac
import logging
import secrets
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from app.db.models.auth.otp import OTPRecord, VerifyOutcome, VerifyResult

logger = logging.getLogger(__name__)

OTP_EXPIRY_MINUTES = 5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_otp() -> str:
    """Generate a random 4-digit OTP (1000-9999, never a leading zero)"""
    return str(1000 + secrets.randbelow(9000))


class OTPStore:
    """
    In-memory store of pending OTPs, keyed by canonical phone number.

    Holds at most one record per phone: ``put`` replaces whatever was there.
    A single lock guards every check-then-delete sequence, so ``verify``,
    ``sweep`` and ``discard`` never race a concurrent ``put`` for the same
    phone. Contents live only as long as the process.
    """

    def __init__(self, ttl: timedelta = timedelta(minutes=OTP_EXPIRY_MINUTES),
                 clock: Callable[[], datetime] = utcnow):
        if ttl <= timedelta(0):
            raise ValueError("OTP TTL must be positive")
        self.ttl = ttl
        self._clock = clock
        self._records: Dict[str, OTPRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, phone: str) -> bool:
        with self._lock:
            return phone in self._records

    def put(self, phone: str, code: str) -> None:
        """Store ``code`` for ``phone``, replacing any pending code"""
        now = self._clock()
        record = OTPRecord(phone=phone, code=code, created_at=now, expires_at=now + self.ttl)
        with self._lock:
            self._records[phone] = record

    def get(self, phone: str) -> Optional[OTPRecord]:
        with self._lock:
            return self._records.get(phone)

    def verify(self, phone: str, code: str) -> VerifyResult:
        """
        Check ``code`` against the pending record for ``phone``.

        Checks run in strict order: existence, expiry, equality. An expired
        or matched record is removed; a mismatch keeps the record so the
        caller can retry until it expires.
        """
        now = self._clock()
        with self._lock:
            record = self._records.get(phone)
            if record is None:
                return VerifyResult(VerifyOutcome.NOT_FOUND)

            if record.is_expired(now):
                del self._records[phone]
                return VerifyResult(VerifyOutcome.EXPIRED)

            if not hmac.compare_digest(record.code.encode(), str(code).encode()):
                return VerifyResult(VerifyOutcome.MISMATCH)

            del self._records[phone]
            return VerifyResult(VerifyOutcome.VERIFIED)

    def discard(self, phone: str, code: Optional[str] = None) -> bool:
        """
        Remove the pending record for ``phone``.

        When ``code`` is given the record is only removed if it still holds
        that code; a newer record written by a concurrent send survives.
        Returns True if a record was removed.
        """
        with self._lock:
            record = self._records.get(phone)
            if record is None:
                return False
            if code is not None and record.code != code:
                return False
            del self._records[phone]
            return True

    def sweep(self) -> int:
        """Remove every expired record; returns how many were removed"""
        now = self._clock()
        with self._lock:
            expired = [phone for phone, record in self._records.items() if record.is_expired(now)]
            for phone in expired:
                del self._records[phone]
        if expired:
            logger.info(f"Swept {len(expired)} expired OTP(s)")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
