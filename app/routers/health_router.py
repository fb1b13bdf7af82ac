# app/routers/health_router.py
from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health")
def health_check(request: Request):
    """Liveness check with the number of codes awaiting verification"""
    store = request.app.state.otp_store
    return {
        "success": True,
        "message": "Server is running!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "pending_otps": len(store),
    }
