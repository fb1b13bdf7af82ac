# app/services/auth/strategies.py
"""
Verification strategies.

Each channel is bound to exactly one authority for its codes:

* ``DelegatedStrategy`` - the provider generates, delivers and checks the
  code. The local OTP store is never touched.
* ``LocalStoreStrategy`` - we generate the code, keep it in the ``OTPStore``
  and only use the provider to deliver it.

Both report verification as a ``VerifyResult`` and raise ``UpstreamError``
when the provider fails or cannot be reached.
"""
from abc import ABC, abstractmethod
from typing import Callable, Optional, Protocol
import logging

from app.core.errors import UpstreamError
from app.db.models.auth.otp import VerifyOutcome, VerifyResult
from app.db.otp_store import OTPStore, generate_otp
from app.services.auth.otp_service import ProviderResult
from app.services.auth.whatsapp_service import DeliveryResult

logger = logging.getLogger(__name__)


class VerificationProvider(Protocol):
    def send_code(self, phone: str) -> ProviderResult:
        ...

    def check_code(self, phone: str, code: str) -> ProviderResult:
        ...


class DeliverySender(Protocol):
    def deliver(self, phone: str, code: str) -> DeliveryResult:
        ...


# Checked in order; the first fragment found in the provider's reason wins
PROVIDER_REASONS = (
    ("OTP Mismatch", VerifyOutcome.MISMATCH),
    ("OTP not matched", VerifyOutcome.MISMATCH),
    ("OTP Expired", VerifyOutcome.EXPIRED),
    ("No OTP request", VerifyOutcome.NOT_FOUND),
)


def map_provider_reason(reason: Optional[str]) -> VerifyOutcome:
    """Translate a provider failure reason into our outcome vocabulary"""
    if reason:
        for fragment, outcome in PROVIDER_REASONS:
            if fragment in reason:
                return outcome
    return VerifyOutcome.FAILED


class VerificationStrategy(ABC):
    """Who owns the truth about a channel's codes"""

    @abstractmethod
    def send(self, phone: str) -> None:
        """
        Send a fresh code to ``phone``.

        Raises:
            UpstreamError: the provider rejected the request or was unreachable
        """

    @abstractmethod
    def verify(self, phone: str, code: str) -> VerifyResult:
        """
        Check ``code`` for ``phone``.

        Raises:
            UpstreamError: the provider could not be reached
        """


class DelegatedStrategy(VerificationStrategy):
    def __init__(self, provider: VerificationProvider):
        self.provider = provider

    def send(self, phone: str) -> None:
        result = self.provider.send_code(phone)
        if result.ok:
            return
        if result.unreachable:
            raise UpstreamError("Unable to connect to SMS service. Please try again later.")
        raise UpstreamError("Failed to send OTP. Please try again.", unreachable=False)

    def verify(self, phone: str, code: str) -> VerifyResult:
        result = self.provider.check_code(phone, code)
        if result.ok:
            return VerifyResult(VerifyOutcome.VERIFIED)
        if result.unreachable:
            raise UpstreamError("Unable to connect to verification service. Please try again later.")

        outcome = map_provider_reason(result.reason)
        if outcome is VerifyOutcome.FAILED:
            logger.warning(f"Unrecognised verification failure from provider for {phone}: {result.reason}")
        return VerifyResult(outcome)


class LocalStoreStrategy(VerificationStrategy):
    def __init__(
        self,
        store: OTPStore,
        sender: DeliverySender,
        generate: Callable[[], str] = generate_otp,
        debug_log: bool = False,
    ):
        self.store = store
        self.sender = sender
        self.generate = generate
        self.debug_log = debug_log

    def send(self, phone: str) -> None:
        code = self.generate()
        self.store.put(phone, code)
        if self.debug_log:
            logger.warning(f"OTP_DEBUG_LOG: OTP for {phone} is {code} (disable OTP_DEBUG_LOG in production)")

        # Delivery runs outside the store lock; a failed send must not leave a verifiable code behind
        try:
            result = self.sender.deliver(phone, code)
        except Exception:
            self.store.discard(phone, code)
            raise

        if result.ok:
            return

        self.store.discard(phone, code)
        logger.error(f"OTP delivery failed for {phone}, pending code rolled back: {result.error_detail}")
        if result.unreachable:
            raise UpstreamError("Unable to connect to WhatsApp service. Please try again later.")
        raise UpstreamError("Failed to send WhatsApp OTP. Please try again.", unreachable=False)

    def verify(self, phone: str, code: str) -> VerifyResult:
        return self.store.verify(phone, code)
