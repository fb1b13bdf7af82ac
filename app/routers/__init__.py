# Routers package
from . import health_router
from . import otp_router

__all__ = [
    "health_router",
    "otp_router",
]
