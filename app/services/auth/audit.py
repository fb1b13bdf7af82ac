# app/services/auth/audit.py
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import hashlib
import json
import logging

logger = logging.getLogger("app.audit")


def hash_phone_number(phone: str) -> str:
    """Hash phone number for logs (one-way hash)"""
    return hashlib.sha256(phone.encode()).hexdigest()


def audit_log(action: str, phone: str, channel: str, success: bool = True,
              request_id: Optional[str] = None, ip_address: Optional[str] = None,
              details: Optional[Dict[str, Any]] = None) -> None:
    audit_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "channel": channel,
        "phone_hash": hash_phone_number(phone),
        "request_id": request_id,
        "ip_address": ip_address,
        "success": success,
        "details": details or {},
    }
    logger.info(f"AUDIT: {json.dumps(audit_entry)}")
