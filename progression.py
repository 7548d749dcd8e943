"""
XP, level and badge rules for farmer progression.

Level derives from XP as floor(sqrt(xp / 100)) + 1. Badges are one-time
milestones: a badge is granted when the action count reaches its threshold
and the farmer does not hold it yet. The grant is a conditional $push on the
progression document, so two concurrent requests can never both add it.
"""
import math
from datetime import datetime, time, timedelta, timezone

from pymongo import ReturnDocument

from database import as_utc, get_collection, now_utc
from logger import get_logger
from schemas import Gamification

logger = get_logger(__name__)

COLLECTION = "gamification"

BADGE_XP = 50
ACTION_XP = {
    "advisory_query": 10,
    "practice_adopted": 25,
    "daily_active": 5,
}
ACTION_STATS = {
    "advisory_query": "advisoryQueries",
    "practice_adopted": "practicesAdopted",
    "daily_active": "currentStreak",
}

BADGES = {
    "first_query": {
        "badgeId": "first_query",
        "name": "First Question",
        "description": "Asked your first advisory question",
        "icon": "help_outline",
        "category": "knowledge",
    },
    "curious_farmer": {
        "badgeId": "curious_farmer",
        "name": "Curious Farmer",
        "description": "Asked 10 advisory questions",
        "icon": "quiz",
        "category": "knowledge",
    },
    "expert_advisor": {
        "badgeId": "expert_advisor",
        "name": "Expert Advisor",
        "description": "Asked 50 advisory questions",
        "icon": "school",
        "category": "knowledge",
    },
    "first_practice": {
        "badgeId": "first_practice",
        "name": "Sustainable Starter",
        "description": "Adopted your first sustainable practice",
        "icon": "eco",
        "category": "sustainability",
    },
    "green_thumb": {
        "badgeId": "green_thumb",
        "name": "Green Thumb",
        "description": "Adopted 5 sustainable practices",
        "icon": "park",
        "category": "sustainability",
    },
    "sustainability_champion": {
        "badgeId": "sustainability_champion",
        "name": "Sustainability Champion",
        "description": "Adopted 20 sustainable practices",
        "icon": "nature",
        "category": "sustainability",
    },
    "active_member": {
        "badgeId": "active_member",
        "name": "Active Member",
        "description": "Used the platform for 7 consecutive days",
        "icon": "schedule",
        "category": "achievement",
    },
    "dedicated_farmer": {
        "badgeId": "dedicated_farmer",
        "name": "Dedicated Farmer",
        "description": "Used the platform for 30 consecutive days",
        "icon": "calendar_today",
        "category": "achievement",
    },
}

BADGE_THRESHOLDS = {
    "advisory_query": [(1, "first_query"), (10, "curious_farmer"), (50, "expert_advisor")],
    "practice_adopted": [(1, "first_practice"), (5, "green_thumb"), (20, "sustainability_champion")],
    "daily_active": [(7, "active_member"), (30, "dedicated_farmer")],
}


def level_for_xp(xp: int) -> int:
    if xp < 0:
        raise ValueError("xp cannot be negative")
    # isqrt(xp // 100) == floor(sqrt(xp / 100)) for integer xp, without float error
    return math.isqrt(int(xp) // 100) + 1


def xp_for_level(level: int) -> int:
    """Minimum XP at which a farmer reaches `level`."""
    return (level - 1) ** 2 * 100


def level_progress(xp: int, level: int) -> dict:
    current = xp_for_level(level)
    nxt = xp_for_level(level + 1)
    return {
        "xpNeeded": nxt - xp,
        "xpProgress": round((xp - current) / (nxt - current) * 100),
    }


def eligible_badges(action: str, count: int, earned_ids) -> list:
    if action not in BADGE_THRESHOLDS:
        raise ValueError(f"Unknown action: {action}")
    return [
        BADGES[badge_id]
        for threshold, badge_id in BADGE_THRESHOLDS[action]
        if count >= threshold and badge_id not in earned_ids
    ]


def get_or_create(farmer_id: str) -> dict:
    col = get_collection(COLLECTION)
    record = col.find_one({"farmerId": farmer_id})
    if record is None:
        defaults = Gamification(farmerId=farmer_id).model_dump()
        defaults.pop("farmerId")
        col.update_one({"farmerId": farmer_id}, {"$setOnInsert": defaults}, upsert=True)
        record = col.find_one({"farmerId": farmer_id})
    return record


def register_daily_activity(farmer_id: str, today=None):
    """Extend or reset the consecutive-day streak.

    Returns (streak, counted); counted is False when today was already recorded.
    """
    today = today or now_utc().date()
    record = get_or_create(farmer_id)
    stats = record.get("stats") or {}
    last = as_utc(record.get("lastActiveDate"))
    last_day = last.date() if last else None

    if last_day == today:
        return stats.get("currentStreak", 0), False

    streak = stats.get("currentStreak", 0) + 1 if last_day == today - timedelta(days=1) else 1
    # Compare-and-set on the lastActiveDate that was read
    result = get_collection(COLLECTION).update_one(
        {"farmerId": farmer_id, "lastActiveDate": record.get("lastActiveDate")},
        {
            "$set": {
                "stats.currentStreak": streak,
                "lastActiveDate": datetime.combine(today, time(), tzinfo=timezone.utc),
            },
            "$inc": {"stats.daysActive": 1},
        },
    )
    if not result.modified_count:
        return stats.get("currentStreak", 0), False
    return streak, True


def check_and_award_badges(farmer_id: str, action: str, count: int) -> dict:
    if action not in ACTION_XP:
        raise ValueError(f"Unknown action: {action}")

    col = get_collection(COLLECTION)
    record = get_or_create(farmer_id)
    earned_ids = {b["badgeId"] for b in record.get("badges", [])}
    now = now_utc()

    awarded = []
    for badge in eligible_badges(action, count, earned_ids):
        result = col.update_one(
            {"farmerId": farmer_id, "badges.badgeId": {"$ne": badge["badgeId"]}},
            {"$push": {"badges": {**badge, "earnedAt": now}}, "$inc": {"badgeCount": 1}},
        )
        if result.modified_count:
            awarded.append(badge)
            logger.info("badge_awarded", farmer_id=farmer_id, badge=badge["badgeId"])

    xp_gained = ACTION_XP[action] + BADGE_XP * len(awarded)
    updated = col.find_one_and_update(
        {"farmerId": farmer_id},
        {
            "$inc": {"xp": xp_gained},
            "$set": {f"stats.{ACTION_STATS[action]}": count, "lastActivity": now, "updatedAt": now},
        },
        return_document=ReturnDocument.AFTER,
    )

    new_level = level_for_xp(updated["xp"])
    leveled_up = new_level > updated.get("level", 1)
    if leveled_up:
        col.update_one({"farmerId": farmer_id}, {"$max": {"level": new_level}})
        logger.info("level_up", farmer_id=farmer_id, level=new_level, xp=updated["xp"])

    return {
        "leveledUp": leveled_up,
        "newLevel": new_level,
        "xpGained": xp_gained,
        "badgesEarned": awarded,
    }
