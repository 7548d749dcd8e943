from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from database import get_by_id, get_collection, list_many, serialize
from logger import get_logger
from progression import BADGES, check_and_award_badges, get_or_create, level_progress, register_daily_activity
from security import get_current_farmer

router = APIRouter()
logger = get_logger(__name__)

LEADERBOARD_SORTS = {
    "xp": [("xp", -1)],
    "level": [("level", -1), ("xp", -1)],
    "badges": [("badgeCount", -1), ("xp", -1)],
}


class ActionIn(BaseModel):
    action: Optional[str] = None
    metadata: Optional[dict] = None


@router.get("")
def get_progress(farmer=Depends(get_current_farmer)):
    record = serialize(get_or_create(farmer["id"]))
    return {
        "gamification": {
            "xp": record["xp"],
            "level": record["level"],
            "badges": record.get("badges", []),
            "achievements": record.get("achievements", []),
            "stats": record.get("stats", {}),
            **level_progress(record["xp"], record["level"]),
            "lastActivity": record.get("lastActivity"),
        }
    }


@router.post("/action")
def record_action(body: ActionIn, farmer=Depends(get_current_farmer)):
    if not body.action:
        raise HTTPException(status_code=400, detail="Action is required")

    if body.action == "advisory_query":
        count = get_collection("advisory").count_documents({"farmerId": farmer["id"]})
    elif body.action == "practice_adopted":
        count = get_collection("adoption").count_documents({"farmerId": farmer["id"]})
    elif body.action == "daily_active":
        count, counted = register_daily_activity(farmer["id"])
        if not counted:
            record = get_or_create(farmer["id"])
            return {
                "message": "Activity already recorded today",
                "result": {"leveledUp": False, "newLevel": record["level"], "xpGained": 0, "badgesEarned": []},
            }
    else:
        raise HTTPException(status_code=400, detail="Invalid action")

    result = check_and_award_badges(farmer["id"], body.action, count)
    logger.info("action_recorded", farmer_id=farmer["id"], action=body.action, count=count)
    return {"message": "Action recorded successfully", "result": result}


@router.get("/leaderboard")
def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    sortBy: Literal["xp", "level", "badges"] = "xp",
):
    records = list_many("gamification", sort=LEADERBOARD_SORTS[sortBy], limit=limit)
    entries = []
    for item in records:
        farmer = get_by_id("farmer", item["farmerId"]) or {}
        entries.append({
            "rank": len(entries) + 1,
            "farmer": {"name": farmer.get("name"), "location": farmer.get("location")},
            "xp": item.get("xp", 0),
            "level": item.get("level", 1),
            "badgeCount": len(item.get("badges", [])),
            "stats": item.get("stats", {}),
        })
    return {"leaderboard": entries, "sortBy": sortBy}


@router.get("/badges")
def list_badges():
    return {"badges": list(BADGES.values())}
