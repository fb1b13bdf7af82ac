# app/services/auth/whatsapp_service.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

import requests

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    error_detail: Optional[str] = None
    unreachable: bool = False


class WhatsAppSender(ABC):
    """
    Base class for WhatsApp OTP senders.

    Neither WhatsApp API can verify a code, so these only deliver a code we
    generated ourselves; verification happens against the local OTP store.
    """
    name = "whatsapp"

    def __init__(self, api_url: Optional[str], timeout: Optional[float] = None):
        self.api_url = api_url
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        if not self.api_url:
            logger.warning(f"{self.name} API URL not configured. WhatsApp OTP sending will fail.")

    @abstractmethod
    def build_payload(self, phone: str, code: str) -> Dict[str, Any]:
        """JSON body for the provider's send endpoint"""

    def headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def is_accepted(self, response: requests.Response, data: Any) -> bool:
        return response.status_code == 200

    def deliver(self, phone: str, code: str) -> DeliveryResult:
        """Send ``code`` to ``phone`` over WhatsApp"""
        if not self.api_url:
            return DeliveryResult(ok=False, error_detail=f"{self.name} API URL not configured")

        logger.info(f"Sending {self.name} OTP to {phone}")
        try:
            response = requests.post(
                self.api_url,
                json=self.build_payload(phone, code),
                headers=self.headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.error(f"Timeout while sending {self.name} OTP to {phone}")
            return DeliveryResult(ok=False, error_detail="timeout", unreachable=True)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error while sending {self.name} OTP: {e}")
            return DeliveryResult(ok=False, error_detail=str(e), unreachable=True)

        try:
            data = response.json()
        except ValueError:
            data = None
        logger.debug(f"{self.name} API response: HTTP {response.status_code} {data}")

        if response.ok and self.is_accepted(response, data):
            logger.info(f"{self.name} OTP accepted for {phone}")
            return DeliveryResult(ok=True)

        detail = data.get("message") if isinstance(data, dict) else None
        detail = detail or f"HTTP {response.status_code}"
        logger.error(f"{self.name} API rejected OTP for {phone}: {detail}")
        return DeliveryResult(ok=False, error_detail=detail, unreachable=response.status_code >= 500)


class WhatsAppTemplateSender(WhatsAppSender):
    """Campaign template API; the code fills template variable "1" """
    name = "WhatsApp"

    def __init__(self, api_url: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__(api_url if api_url is not None else settings.WHATSAPP_API_URL, timeout)

    def build_payload(self, phone: str, code: str) -> Dict[str, Any]:
        return {
            "receiver": f"+91{phone}",
            "values": {"1": code},
        }

    def is_accepted(self, response: requests.Response, data: Any) -> bool:
        if isinstance(data, dict) and data.get("success"):
            return True
        return response.status_code == 200


class MetaWhatsAppSender(WhatsAppSender):
    """WhatsApp Cloud API template message with the code in the body and the copy-code button"""
    name = "Meta WhatsApp"

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        template_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        super().__init__(api_url if api_url is not None else settings.META_WHATSAPP_API_URL, timeout)
        self.api_key = api_key if api_key is not None else settings.META_WHATSAPP_API_KEY
        self.template_name = template_name or settings.META_WHATSAPP_TEMPLATE

    def headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "apikey": self.api_key}

    def build_payload(self, phone: str, code: str) -> Dict[str, Any]:
        return {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            # API adds the country code
            "to": phone,
            "type": "template",
            "template": {
                "name": self.template_name,
                "language": {"code": "en"},
                "components": [
                    {
                        "type": "body",
                        "parameters": [{"type": "text", "text": code}],
                    },
                    {
                        "type": "button",
                        "sub_type": "url",
                        "index": "0",
                        "parameters": [{"type": "payload", "payload": code}],
                    },
                ],
            },
        }

    def is_accepted(self, response: requests.Response, data: Any) -> bool:
        if isinstance(data, dict):
            messages = data.get("messages") or []
            if messages and isinstance(messages[0], dict) and messages[0].get("message_status") == "accepted":
                return True
        # Plain 200 is treated as accepted too
        return response.status_code == 200
