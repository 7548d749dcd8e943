from datetime import datetime, timezone

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

import config
from logger import get_logger

logger = get_logger(__name__)

DEMO_SENDER = "+1234567890"

_client = None


class MessagingError(Exception):
    """Raised when the SMS/WhatsApp provider rejects a message."""


def get_client():
    """Twilio client, or None when credentials are not configured (demo mode)."""
    global _client
    if _client is None and config.TWILIO_ACCOUNT_SID and config.TWILIO_AUTH_TOKEN:
        _client = Client(config.TWILIO_ACCOUNT_SID, config.TWILIO_AUTH_TOKEN)
    return _client


def _addresses(channel: str, to: str):
    sender = config.TWILIO_PHONE_NUMBER or DEMO_SENDER
    if channel == "whatsapp":
        return f"whatsapp:{to}", f"whatsapp:{sender}"
    return to, sender


def send_message(channel: str, to: str, body: str) -> dict:
    """Send an SMS or WhatsApp message and return a provider-neutral receipt."""
    if channel not in ("sms", "whatsapp"):
        raise ValueError(f"Unsupported channel: {channel}")
    to_addr, from_addr = _addresses(channel, to)
    client = get_client()

    if client is None:
        now = datetime.now(timezone.utc)
        logger.info("message_sent_demo", channel=channel, to=to_addr)
        return {
            "sid": f"demo_{channel}_{int(now.timestamp() * 1000)}",
            "status": "sent",
            "to": to_addr,
            "from": from_addr,
            "body": body,
            "createdAt": now.isoformat(),
            "provider": "demo",
        }

    try:
        msg = client.messages.create(body=body, from_=from_addr, to=to_addr)
    except TwilioRestException as exc:
        logger.error("message_failed", channel=channel, to=to_addr, status=exc.status, code=exc.code)
        raise MessagingError(exc.msg) from exc

    logger.info("message_sent", channel=channel, to=to_addr, sid=msg.sid)
    return {
        "sid": msg.sid,
        "status": msg.status,
        "to": msg.to,
        "from": msg.from_,
        "body": msg.body,
        "createdAt": msg.date_created.isoformat() if msg.date_created else None,
        "provider": "twilio",
    }
