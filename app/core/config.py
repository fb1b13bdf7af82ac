# app/core/config.py
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=False)

    # Server
    PORT: int = 5000
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # 2Factor SMS (delegated verification)
    API_KEY: str = ""
    SEND_OTP_URL: str = "https://2factor.in/API/R1/"
    VERIFY_OTP_URL: str = "https://2factor.in/API/V1"
    OTP_TEMPLATE: str = "OTP1"

    # WhatsApp template API (locally verified)
    WHATSAPP_API_URL: str = "https://adminapis.backendprod.com/lms_campaign/api/whatsapp/template/09stbyfn12/process"

    # Meta WhatsApp API (locally verified)
    META_WHATSAPP_API_URL: str = ""
    META_WHATSAPP_API_KEY: str = ""
    META_WHATSAPP_TEMPLATE: str = "otp_template1"

    # OTP lifecycle
    OTP_EXPIRY_MINUTES: int = 5
    OTP_SWEEP_INTERVAL_SECONDS: int = 300
    HTTP_TIMEOUT_SECONDS: float = 10

    # Logs generated OTPs; never enable in production
    OTP_DEBUG_LOG: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
