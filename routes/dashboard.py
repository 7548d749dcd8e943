import random

from fastapi import APIRouter, Depends, Query

from database import as_utc, get_by_id, get_collection, list_many, now_utc
from security import get_current_farmer

router = APIRouter()

IMPACT_FIELDS = ("carbonReduction", "waterConservation", "soilHealth", "biodiversity")


def time_ago(moment, now=None) -> str:
    now = now or now_utc()
    seconds = int((now - as_utc(moment)).total_seconds())
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        minutes = seconds // 60
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    if seconds < 86400:
        hours = seconds // 3600
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    days = seconds // 86400
    return f"{days} day{'s' if days > 1 else ''} ago"


def impact_score(practice: dict) -> float:
    impact = practice.get("environmentalImpact") or {}
    values = [impact[f] for f in IMPACT_FIELDS if impact.get(f) is not None]
    return sum(values) / len(values) if values else 0


def _implemented(farmer_id: str, limit: int = None):
    adoptions = list_many(
        "adoption",
        {"farmerId": farmer_id, "isImplemented": True},
        sort=[("implementationDate", -1)],
        limit=limit,
    )
    for adoption in adoptions:
        adoption["practice"] = get_by_id("practice", adoption["practiceId"]) or {}
    return adoptions


@router.get("/stats")
def stats(farmer=Depends(get_current_farmer)):
    implemented = _implemented(farmer["id"])
    score = 0
    if implemented:
        score = round(sum(impact_score(a["practice"]) for a in implemented) / len(implemented))
    return {
        "totalFarmers": get_collection("farmer").count_documents({"isActive": True}),
        "activePractices": len(implemented),
        "advisoryQueries": get_collection("advisory").count_documents({"farmerId": farmer["id"]}),
        "sustainabilityScore": score,
    }


@router.get("/activities")
def activities(limit: int = Query(10, ge=1, le=50), farmer=Depends(get_current_farmer)):
    events = []
    for advisory in list_many("advisory", {"farmerId": farmer["id"]}, sort=[("createdAt", -1)], limit=limit):
        events.append({
            "id": advisory["id"],
            "type": "advisory",
            "message": f"AI recommendation: {advisory['query'][:50]}...",
            "at": as_utc(advisory["createdAt"]),
            "icon": "Science",
            "color": "#4caf50",
        })
    for adoption in _implemented(farmer["id"], limit=limit):
        events.append({
            "id": adoption["id"],
            "type": "practice",
            "message": f"Implemented: {adoption['practice'].get('title', 'practice')}",
            "at": as_utc(adoption["implementationDate"]),
            "icon": "Eco",
            "color": "#2e7d32",
        })

    events.sort(key=lambda e: e["at"], reverse=True)
    now = now_utc()
    for event in events:
        event["time"] = time_ago(event["at"], now)
    return events[:limit]


@router.get("/weather")
def weather(farmer=Depends(get_current_farmer)):
    # Mock conditions; no forecast provider is wired in
    location = farmer.get("location") or {}
    return {
        "temperature": random.randint(15, 35),
        "humidity": random.randint(40, 70),
        "rainfall": random.randint(0, 20),
        "windSpeed": random.randint(5, 20),
        "condition": random.choice(["Sunny", "Cloudy", "Rainy", "Partly Cloudy"]),
        "location": location.get("city") or "Farm Location",
    }
