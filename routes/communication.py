import re
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from database import insert_with_id, list_many, paginate, to_oid
from logger import get_logger
from messaging import MessagingError, send_message
from routes.auth import PHONE_PATTERN
from schemas import Channel, LanguageCode, Message
from security import get_current_farmer

router = APIRouter()
logger = get_logger(__name__)

CHANNEL_LABELS = {"sms": "SMS", "whatsapp": "WhatsApp message"}

TEMPLATES = {
    "advisory": [
        {
            "id": "advisory_response",
            "name": "Advisory Response",
            "message": "Your agricultural advisory query has been processed. Check the app for detailed recommendations.",
            "channels": ["sms", "whatsapp"],
        },
        {
            "id": "urgent_advisory",
            "name": "Urgent Advisory",
            "message": "URGENT: Your crop shows signs of disease. Immediate action required. Check the app for treatment recommendations.",
            "channels": ["sms", "whatsapp"],
        },
    ],
    "practices": [
        {
            "id": "practice_reminder",
            "name": "Practice Reminder",
            "message": "Reminder: Time to implement your adopted sustainable practice. Check the app for step-by-step guidance.",
            "channels": ["sms", "whatsapp"],
        },
        {
            "id": "practice_success",
            "name": "Practice Success",
            "message": "Congratulations! You have successfully implemented a sustainable practice. Keep up the great work!",
            "channels": ["sms", "whatsapp"],
        },
    ],
    "gamification": [
        {
            "id": "level_up",
            "name": "Level Up",
            "message": "Congratulations! You have reached level {level} and earned {xp} XP. Keep farming sustainably!",
            "channels": ["sms", "whatsapp"],
        },
        {
            "id": "badge_earned",
            "name": "Badge Earned",
            "message": "You earned a new badge: {badge_name}! {badge_description}",
            "channels": ["sms", "whatsapp"],
        },
    ],
    "weather": [
        {
            "id": "weather_alert",
            "name": "Weather Alert",
            "message": "Weather Alert: {weather_condition} expected in your area. Take necessary precautions for your crops.",
            "channels": ["sms", "whatsapp"],
        },
        {
            "id": "irrigation_reminder",
            "name": "Irrigation Reminder",
            "message": "Irrigation reminder: Based on weather conditions, your crops may need watering today.",
            "channels": ["sms", "whatsapp"],
        },
    ],
}


class SmsIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    to: str = Field(..., pattern=PHONE_PATTERN)
    message: str = Field(..., min_length=1, max_length=1600)


class WhatsAppIn(SmsIn):
    message: str = Field(..., min_length=1, max_length=4096)


class BroadcastCriteria(BaseModel):
    country: Optional[str] = None
    state: Optional[str] = None
    crop: Optional[str] = None
    language: Optional[LanguageCode] = None


class BroadcastIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(..., min_length=1, max_length=1600)
    channels: List[Channel] = Field(..., min_length=1)
    farmerIds: Optional[List[str]] = None
    criteria: Optional[BroadcastCriteria] = None


def _record(farmer_id: str, channel: str, to: str, body: str, receipt: Optional[dict] = None,
            error: Optional[str] = None, broadcast_id: Optional[str] = None) -> str:
    receipt = receipt or {}
    status = receipt.get("status") or ("failed" if error else "queued")
    message = Message(
        farmerId=farmer_id,
        channel=channel,
        to=to,
        sender=receipt.get("from"),
        body=body,
        sid=receipt.get("sid"),
        status=status if status in ("queued", "sent", "delivered", "failed") else "sent",
        provider=receipt.get("provider", "none"),
        error=error,
        broadcastId=broadcast_id,
    ).model_dump()
    return insert_with_id("message", message)


def _send(channel: str, farmer: dict, to: str, body: str) -> dict:
    if not (farmer.get("preferences") or {}).get("notifications", {}).get(channel):
        label = "SMS" if channel == "sms" else "WhatsApp"
        raise HTTPException(status_code=400, detail=f"{label} notifications are disabled for this account")
    try:
        receipt = send_message(channel, to, body)
    except MessagingError as exc:
        _record(farmer["id"], channel, to, body, error=str(exc))
        raise HTTPException(
            status_code=500,
            detail={"message": f"Failed to send {CHANNEL_LABELS[channel]}", "error": str(exc)},
        )
    _record(farmer["id"], channel, to, body, receipt=receipt)
    return receipt


@router.post("/sms")
def send_sms(body: SmsIn, farmer=Depends(get_current_farmer)):
    receipt = _send("sms", farmer, body.to, body.message)
    suffix = " (demo mode)" if receipt["provider"] == "demo" else ""
    return {"message": f"SMS sent successfully{suffix}", "sms": receipt}


@router.post("/whatsapp")
def send_whatsapp(body: WhatsAppIn, farmer=Depends(get_current_farmer)):
    receipt = _send("whatsapp", farmer, body.to, body.message)
    suffix = " (demo mode)" if receipt["provider"] == "demo" else ""
    return {"message": f"WhatsApp message sent successfully{suffix}", "whatsapp": receipt}


def broadcast_recipients(farmer_ids: Optional[List[str]], criteria: Optional[BroadcastCriteria]) -> list:
    query = {"isActive": True}
    if farmer_ids is not None:
        oids = [oid for oid in (to_oid(f) for f in farmer_ids) if oid]
        query["$or"] = [{"id": {"$in": farmer_ids}}, {"_id": {"$in": oids}}]
    if criteria:
        if criteria.country:
            query["location.country"] = criteria.country
        if criteria.state:
            query["location.state"] = criteria.state
        if criteria.crop:
            query["farmDetails.crops"] = {"$regex": f"^{re.escape(criteria.crop)}$", "$options": "i"}
        if criteria.language:
            query["preferences.language"] = criteria.language
    return list_many("farmer", query)


@router.post("/broadcast")
def broadcast(body: BroadcastIn, farmer=Depends(get_current_farmer)):
    now = datetime.now(timezone.utc)
    broadcast_id = f"broadcast_{int(now.timestamp() * 1000)}"
    recipients = broadcast_recipients(body.farmerIds, body.criteria)
    channels = list(dict.fromkeys(body.channels))

    summary = {c: {"channel": c, "sent": 0, "failed": 0, "pending": 0, "skipped": 0} for c in channels}
    for recipient in recipients:
        notifications = (recipient.get("preferences") or {}).get("notifications", {})
        for channel in channels:
            counts = summary[channel]
            if not notifications.get(channel):
                counts["skipped"] += 1
                continue
            to = recipient.get("email") if channel == "email" else recipient.get("phone")
            if channel == "email":
                # No mail provider is wired in; email is recorded for later delivery
                _record(recipient["id"], channel, to, body.message, broadcast_id=broadcast_id)
                counts["pending"] += 1
                continue
            try:
                receipt = send_message(channel, to, body.message)
            except MessagingError as exc:
                _record(recipient["id"], channel, to, body.message, error=str(exc), broadcast_id=broadcast_id)
                counts["failed"] += 1
                continue
            _record(recipient["id"], channel, to, body.message, receipt=receipt, broadcast_id=broadcast_id)
            counts["sent"] += 1

    logger.info("broadcast_completed", broadcast_id=broadcast_id, sender=farmer["id"], recipients=len(recipients))
    return {
        "message": "Broadcast message queued successfully",
        "results": {
            "totalRecipients": len(recipients),
            "channels": list(summary.values()),
            "messageId": broadcast_id,
            "createdAt": now.isoformat(),
        },
    }


@router.get("/templates")
def message_templates():
    return {"templates": TEMPLATES}


@router.get("/history")
def communication_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    farmer=Depends(get_current_farmer),
):
    items, pagination = paginate("message", {"farmerId": farmer["id"]}, page, limit, sort=[("createdAt", -1)])
    return {"communications": items, "pagination": pagination}
