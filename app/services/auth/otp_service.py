# app/services/auth/otp_service.py
from dataclasses import dataclass
from typing import Optional
import logging

import requests

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderResult:
    ok: bool
    reason: Optional[str] = None
    # Provider could not be reached or failed on its side (timeout, connection error, 5xx)
    unreachable: bool = False


class TwoFactorOTPProvider:
    """
    Delegated OTP provider backed by the 2factor.in API
    API Documentation: https://2factor.in/API/DOCS/Docs.html

    2Factor generates the code (AUTOGEN2), delivers it by SMS and later
    checks it through VERIFY3, which is keyed by phone number so no session
    id has to be kept on our side.

    India: SMS delivery requires DLT registration and an approved template.
    Set OTP_TEMPLATE to the 2Factor DLT template name.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        send_url: Optional[str] = None,
        verify_url: Optional[str] = None,
        template: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.API_KEY
        self.send_url = send_url or settings.SEND_OTP_URL
        self.verify_url = (verify_url or settings.VERIFY_OTP_URL).rstrip("/")
        self.template = template if template is not None else settings.OTP_TEMPLATE
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS

        if not self.api_key:
            logger.warning("2Factor API key not configured. SMS OTP sending will fail. Set the API_KEY environment variable.")
        else:
            logger.info("2Factor OTP provider initialized")
            if self.template:
                logger.info(f"Using SMS template: {self.template}")

    def send_code(self, phone: str) -> ProviderResult:
        """
        Ask 2Factor to generate and send an OTP to ``phone``

        Args:
            phone: Canonical 10-digit number; 2Factor adds the country code

        Returns:
            ProviderResult with the provider's Details as reason on failure
        """
        if not self.api_key:
            logger.error("2Factor API key not configured. Please set the API_KEY environment variable.")
            return ProviderResult(ok=False, reason="SMS provider not configured")

        data = {
            "module": "SMS_OTP",
            "apikey": self.api_key,
            "to": phone,
            "otpvalue": "AUTOGEN2",
            "templatename": self.template,
        }

        logger.info(f"Sending SMS OTP via 2factor.in to {phone}")
        try:
            response = requests.post(self.send_url, data=data, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f"Timeout while sending OTP to 2factor.in for phone: {phone}")
            return ProviderResult(ok=False, reason="timeout", unreachable=True)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error while sending OTP via 2factor.in: {e}")
            return ProviderResult(ok=False, reason=str(e), unreachable=True)

        result = self._parse(response)
        if result.ok:
            logger.info(f"SMS OTP sent successfully via 2factor.in to {phone}")
        else:
            logger.error(f"Failed to send OTP via 2factor.in: HTTP {response.status_code}, Details={result.reason}")
        return result

    def check_code(self, phone: str, code: str) -> ProviderResult:
        """
        Verify ``code`` for ``phone`` with 2Factor VERIFY3

        Format: {verify_url}/{api_key}/SMS/VERIFY3/{phone_number}/{otp}
        """
        if not self.api_key:
            logger.error("2Factor API key not configured. Please set the API_KEY environment variable.")
            return ProviderResult(ok=False, reason="SMS provider not configured")

        url = f"{self.verify_url}/{self.api_key}/SMS/VERIFY3/{phone}/{code}"

        logger.info(f"Verifying SMS OTP via 2factor.in for {phone}")
        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f"Timeout while verifying OTP with 2factor.in for phone: {phone}")
            return ProviderResult(ok=False, reason="timeout", unreachable=True)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error while verifying OTP via 2factor.in: {e}")
            return ProviderResult(ok=False, reason=str(e), unreachable=True)

        result = self._parse(response, expected_details="OTP Matched")
        logger.info(f"2factor.in verification for {phone}: {'Success' if result.ok else result.reason}")
        return result

    def _parse(self, response: requests.Response, expected_details: Optional[str] = None) -> ProviderResult:
        if response.status_code >= 500:
            logger.error(f"2factor.in server error: HTTP {response.status_code}")
            return ProviderResult(ok=False, reason=f"HTTP {response.status_code}", unreachable=True)

        # Don't trust the HTTP status alone, 2Factor reports outcome in the body
        try:
            data = response.json()
        except ValueError:
            logger.error(f"Invalid JSON response from 2factor.in: {response.text}")
            return ProviderResult(ok=False, reason="Invalid response from SMS provider")
        if not isinstance(data, dict):
            logger.error(f"Unexpected response from 2factor.in: {data}")
            return ProviderResult(ok=False, reason="Invalid response from SMS provider")

        logger.debug(f"2factor.in response data: {data}")
        details = data.get("Details") or data.get("Message") or ""

        if response.ok and data.get("Status") == "Success":
            if expected_details is None or details == expected_details:
                return ProviderResult(ok=True, reason=details or None)
        return ProviderResult(ok=False, reason=details or None)
