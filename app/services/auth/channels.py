# app/services/auth/channels.py
from dataclasses import dataclass
from enum import Enum
from typing import Dict
import logging
import re

from app.core.config import Settings
from app.db.otp_store import OTPStore
from app.services.auth.otp_service import TwoFactorOTPProvider
from app.services.auth.strategies import DelegatedStrategy, LocalStoreStrategy, VerificationStrategy
from app.services.auth.whatsapp_service import MetaWhatsAppSender, WhatsAppTemplateSender

logger = logging.getLogger(__name__)


class Channel(str, Enum):
    SMS = "sms"
    WHATSAPP = "whatsapp"
    WHATSAPP_META = "whatsapp-meta"


@dataclass(frozen=True)
class ChannelConfig:
    channel: Channel
    strategy: VerificationStrategy
    prefix: str
    # Applied with fullmatch
    code_pattern: re.Pattern
    code_format_message: str
    sent_message: str
    resent_message: str

    @property
    def label(self) -> str:
        return self.channel.value


def build_channels(settings: Settings, store: OTPStore) -> Dict[Channel, ChannelConfig]:
    """
    Bind every channel to its verification authority.

    SMS is delegated to 2Factor. Both WhatsApp channels can only deliver
    messages, so their codes are generated and checked through ``store``.
    """
    timeout = settings.HTTP_TIMEOUT_SECONDS

    sms = DelegatedStrategy(
        TwoFactorOTPProvider(
            api_key=settings.API_KEY,
            send_url=settings.SEND_OTP_URL,
            verify_url=settings.VERIFY_OTP_URL,
            template=settings.OTP_TEMPLATE,
            timeout=timeout,
        )
    )
    whatsapp = LocalStoreStrategy(
        store,
        WhatsAppTemplateSender(api_url=settings.WHATSAPP_API_URL, timeout=timeout),
        debug_log=settings.OTP_DEBUG_LOG,
    )
    whatsapp_meta = LocalStoreStrategy(
        store,
        MetaWhatsAppSender(
            api_url=settings.META_WHATSAPP_API_URL,
            api_key=settings.META_WHATSAPP_API_KEY,
            template_name=settings.META_WHATSAPP_TEMPLATE,
            timeout=timeout,
        ),
        debug_log=settings.OTP_DEBUG_LOG,
    )
    return configure_channels({
        Channel.SMS: sms,
        Channel.WHATSAPP: whatsapp,
        Channel.WHATSAPP_META: whatsapp_meta,
    })


def configure_channels(strategies: Dict[Channel, VerificationStrategy]) -> Dict[Channel, ChannelConfig]:
    """Attach routing and wording to already-built strategies"""
    channels: Dict[Channel, ChannelConfig] = {}

    if Channel.SMS in strategies:
        channels[Channel.SMS] = ChannelConfig(
            channel=Channel.SMS,
            strategy=strategies[Channel.SMS],
            prefix="/api",
            code_pattern=re.compile(r"[0-9]{4,6}"),
            code_format_message="Invalid OTP format. Please enter a valid OTP.",
            sent_message="OTP sent successfully! Please check your phone.",
            resent_message="New OTP sent successfully!",
        )
    if Channel.WHATSAPP in strategies:
        channels[Channel.WHATSAPP] = ChannelConfig(
            channel=Channel.WHATSAPP,
            strategy=strategies[Channel.WHATSAPP],
            prefix="/api/whatsapp",
            code_pattern=re.compile(r"[0-9]{4,6}"),
            code_format_message="Invalid OTP format. Please enter a valid OTP.",
            sent_message="OTP sent successfully via WhatsApp! Please check your WhatsApp.",
            resent_message="New OTP sent via WhatsApp!",
        )
    if Channel.WHATSAPP_META in strategies:
        channels[Channel.WHATSAPP_META] = ChannelConfig(
            channel=Channel.WHATSAPP_META,
            strategy=strategies[Channel.WHATSAPP_META],
            prefix="/api/whatsapp-meta",
            code_pattern=re.compile(r"[0-9]{4}"),
            code_format_message="Invalid OTP format. Please enter a valid 4-digit OTP.",
            sent_message="OTP sent successfully via WhatsApp! Please check your WhatsApp.",
            resent_message="New OTP sent via WhatsApp!",
        )

    for channel, config in channels.items():
        logger.info(f"OTP channel {channel.value} -> {type(config.strategy).__name__} at {config.prefix}")
    return channels
