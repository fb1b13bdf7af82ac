# app/services/auth/phone.py
import re
from typing import Any, Optional

_SEPARATORS = re.compile(r"[\s\-\(\)]")
# 10-digit Indian mobile number, ASCII digits only
_MOBILE_PATTERN = re.compile(r"[6-9][0-9]{9}")


def format_phone(phone: str) -> str:
    """
    Strip separators and a leading +91 / 91 country code.
    The result is not validated; use ``normalize_phone`` for that.
    """
    phone_clean = _SEPARATORS.sub("", phone)

    if phone_clean.startswith("+91"):
        return phone_clean[3:]
    if phone_clean.startswith("91") and len(phone_clean) > 10:
        return phone_clean[2:]
    return phone_clean


def normalize_phone(phone: Any) -> Optional[str]:
    """Return the canonical 10-digit number, or None if ``phone`` is not a valid mobile number"""
    if not isinstance(phone, str):
        return None
    formatted = format_phone(phone)
    if not _MOBILE_PATTERN.fullmatch(formatted):
        return None
    return formatted
