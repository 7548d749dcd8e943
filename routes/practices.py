import re
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import (
    flatten_updates,
    get_by_id,
    get_collection,
    id_query,
    insert_with_id,
    list_many,
    now_utc,
    paginate,
    serialize,
)
from logger import get_logger
from progression import check_and_award_badges
from schemas import (
    Adoption,
    ApplicableRegion,
    CostLevel,
    Difficulty,
    EnvironmentalImpact,
    Practice,
    PracticeCategory,
    PracticeResource,
    PracticeStep,
    PracticeVideo,
    normalize_tags,
)
from security import get_current_farmer, get_optional_farmer

router = APIRouter()
logger = get_logger(__name__)

# Heavy fields left out of list views
SUMMARY_EXCLUDES = ("detailedDescription", "steps", "videos", "resources")
SORTS = {
    "rating": [("adoptionStats.averageRating", -1)],
    "adoptions": [("adoptionStats.totalAdoptions", -1)],
}
DEFAULT_SORT = [("createdAt", -1)]


class PracticeIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    detailedDescription: str = Field(..., min_length=1)
    category: PracticeCategory
    difficulty: Difficulty = "beginner"
    estimatedTime: str = Field(..., min_length=1)
    cost: CostLevel
    benefits: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    steps: List[PracticeStep] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    videos: List[PracticeVideo] = Field(default_factory=list)
    resources: List[PracticeResource] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    applicableCrops: List[str] = Field(default_factory=list)
    applicableRegions: List[ApplicableRegion] = Field(default_factory=list)
    environmentalImpact: EnvironmentalImpact = Field(default_factory=EnvironmentalImpact)


class PracticeUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    detailedDescription: Optional[str] = Field(None, min_length=1)
    category: Optional[PracticeCategory] = None
    difficulty: Optional[Difficulty] = None
    estimatedTime: Optional[str] = Field(None, min_length=1)
    cost: Optional[CostLevel] = None
    benefits: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    steps: Optional[List[PracticeStep]] = None
    images: Optional[List[str]] = None
    videos: Optional[List[PracticeVideo]] = None
    resources: Optional[List[PracticeResource]] = None
    tags: Optional[List[str]] = None
    applicableCrops: Optional[List[str]] = None
    applicableRegions: Optional[List[ApplicableRegion]] = None
    environmentalImpact: Optional[EnvironmentalImpact] = None


class RatingIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = Field(None, max_length=500)


class ImplementIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    isImplemented: bool
    progress: Optional[int] = Field(None, ge=0, le=100)
    notes: Optional[str] = Field(None, max_length=1000)
    implementationDate: Optional[datetime] = None


def updated_rating(average: float, count: int, rating: int):
    """Fold one new rating into a running average; returns (average, count)."""
    new_count = count + 1
    return (average * count + rating) / new_count, new_count


def practice_summary(doc: dict) -> dict:
    doc = serialize(doc)
    for field in SUMMARY_EXCLUDES:
        doc.pop(field, None)
    return doc


def _regex(text: str) -> dict:
    return {"$regex": re.escape(text), "$options": "i"}


def _get_active_practice(practice_id: str) -> dict:
    practice = get_by_id("practice", practice_id)
    if not practice or not practice.get("isActive", True):
        raise HTTPException(status_code=404, detail="Practice not found")
    return serialize(practice)


@router.get("")
def list_practices(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    cost: Optional[str] = None,
    crop: Optional[str] = None,
    country: Optional[str] = None,
    search: Optional[str] = None,
    sortBy: Optional[Literal["rating", "adoptions", "newest"]] = None,
    farmer=Depends(get_optional_farmer),
):
    query = {"isActive": True}
    if category:
        query["category"] = category
    if difficulty:
        query["difficulty"] = difficulty
    if cost:
        query["cost"] = cost
    if crop:
        query["applicableCrops"] = _regex(crop)
    if country:
        query["applicableRegions.country"] = _regex(country)
    if search:
        query["$or"] = [
            {"title": _regex(search)},
            {"description": _regex(search)},
            {"detailedDescription": _regex(search)},
            {"tags": _regex(search)},
        ]

    items, pagination = paginate("practice", query, page, limit, sort=SORTS.get(sortBy, DEFAULT_SORT))
    summaries = [practice_summary(p) for p in items]
    if farmer:
        adopted = set(get_collection("adoption").distinct("practiceId", {"farmerId": farmer["id"]}))
        for p in summaries:
            p["isAdopted"] = p["id"] in adopted

    practices = get_collection("practice")
    return {
        "practices": summaries,
        "pagination": pagination,
        "filters": {
            "categories": practices.distinct("category", {"isActive": True}),
            "difficulties": practices.distinct("difficulty", {"isActive": True}),
            "costs": practices.distinct("cost", {"isActive": True}),
        },
    }


@router.get("/featured")
def featured_practices():
    items = list_many(
        "practice",
        {"isActive": True, "isFeatured": True},
        sort=[("adoptionStats.averageRating", -1)],
        limit=6,
    )
    return {"practices": [practice_summary(p) for p in items]}


@router.get("/categories")
def practice_categories():
    rows = get_collection("practice").aggregate([
        {"$match": {"isActive": True}},
        {"$group": {
            "_id": "$category",
            "count": {"$sum": 1},
            "averageRating": {"$avg": "$adoptionStats.averageRating"},
        }},
        {"$sort": {"count": -1}},
    ])
    return {
        "categories": [
            {"category": r["_id"], "count": r["count"], "averageRating": r.get("averageRating") or 0}
            for r in rows
        ]
    }


@router.get("/search/suggestions")
def search_suggestions(q: Optional[str] = None):
    if not q or len(q) < 2:
        return {"suggestions": []}
    pattern = _regex(q)
    suggestions = list_many(
        "practice",
        {"isActive": True, "$or": [{"title": pattern}, {"tags": pattern}, {"applicableCrops": pattern}]},
        projection={"id": 1, "title": 1, "category": 1, "tags": 1, "applicableCrops": 1},
        limit=10,
    )
    return {"suggestions": suggestions}


@router.get("/my-practices")
def my_practices(farmer=Depends(get_current_farmer)):
    return {"practices": list_many("practice", {"createdBy": farmer["id"]}, sort=[("createdAt", -1)])}


@router.get("/adopted")
def adopted_practices(farmer=Depends(get_current_farmer)):
    adoptions = list_many("adoption", {"farmerId": farmer["id"]}, sort=[("adoptedAt", -1)])
    results = []
    for adoption in adoptions:
        practice = get_by_id("practice", adoption["practiceId"])
        adoption["practice"] = practice_summary(practice) if practice else None
        results.append(adoption)
    return {"adoptions": results}


@router.get("/{practice_id}")
def get_practice(practice_id: str, farmer=Depends(get_optional_farmer)):
    practice = _get_active_practice(practice_id)
    result = {"practice": practice}
    if farmer:
        adoption = get_collection("adoption").find_one({"farmerId": farmer["id"], "practiceId": practice["id"]})
        result["adoption"] = serialize(adoption)
    return result


@router.post("", status_code=201)
def create_practice(body: PracticeIn, farmer=Depends(get_current_farmer)):
    practice = Practice(**body.model_dump(), createdBy=farmer["id"]).model_dump()
    practice_id = insert_with_id("practice", practice)
    logger.info("practice_created", practice_id=practice_id, farmer_id=farmer["id"])
    return {"message": "Practice created successfully", "practice": serialize(practice)}


@router.put("/{practice_id}")
def update_practice(practice_id: str, body: PracticeUpdate, farmer=Depends(get_current_farmer)):
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if "tags" in changes:
        changes["tags"] = normalize_tags(changes["tags"])
    # Lists are replaced whole; only nested objects merge field by field
    updates = flatten_updates(changes)
    updates["updatedAt"] = now_utc()
    practice = get_collection("practice").find_one_and_update(
        id_query(practice_id, {"createdBy": farmer["id"]}),
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    if not practice:
        raise HTTPException(status_code=404, detail="Practice not found")
    return {"message": "Practice updated successfully", "practice": serialize(practice)}


@router.delete("/{practice_id}")
def delete_practice(practice_id: str, farmer=Depends(get_current_farmer)):
    practice = get_collection("practice").find_one_and_delete(id_query(practice_id, {"createdBy": farmer["id"]}))
    if not practice:
        raise HTTPException(status_code=404, detail="Practice not found")
    logger.info("practice_deleted", practice_id=practice_id, farmer_id=farmer["id"])
    return {"message": "Practice deleted successfully"}


@router.post("/{practice_id}/adopt")
def adopt_practice(practice_id: str, farmer=Depends(get_current_farmer)):
    practice = _get_active_practice(practice_id)
    adoptions = get_collection("adoption")
    if adoptions.find_one({"farmerId": farmer["id"], "practiceId": practice["id"]}):
        raise HTTPException(status_code=400, detail="Practice already adopted")

    try:
        insert_with_id("adoption", Adoption(farmerId=farmer["id"], practiceId=practice["id"]).model_dump())
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Practice already adopted")

    updated = get_collection("practice").find_one_and_update(
        id_query(practice["id"]),
        {"$inc": {"adoptionStats.totalAdoptions": 1}, "$set": {"updatedAt": now_utc()}},
        return_document=ReturnDocument.AFTER,
    )
    adopted_count = adoptions.count_documents({"farmerId": farmer["id"]})
    progress = check_and_award_badges(farmer["id"], "practice_adopted", adopted_count)

    return {
        "message": "Practice adopted successfully",
        "practice": {
            "id": practice["id"],
            "title": practice["title"],
            "adoptionStats": updated["adoptionStats"],
        },
        "gamification": progress,
    }


@router.post("/{practice_id}/rate")
def rate_practice(practice_id: str, body: RatingIn, farmer=Depends(get_current_farmer)):
    practice = _get_active_practice(practice_id)
    stats = practice.get("adoptionStats") or {}
    average, total = updated_rating(stats.get("averageRating", 0), stats.get("totalRatings", 0), body.rating)

    get_collection("practice").update_one(
        id_query(practice["id"]),
        {"$set": {
            "adoptionStats.averageRating": average,
            "adoptionStats.totalRatings": total,
            "updatedAt": now_utc(),
        }},
    )
    return {
        "message": "Rating submitted successfully",
        "rating": {
            "rating": body.rating,
            "review": body.review,
            "averageRating": average,
            "totalRatings": total,
        },
    }


@router.post("/{practice_id}/implement")
def implement_practice(practice_id: str, body: ImplementIn, farmer=Depends(get_current_farmer)):
    practice = _get_active_practice(practice_id)
    implementation_date = (body.implementationDate or now_utc()) if body.isImplemented else None
    adoption = get_collection("adoption").find_one_and_update(
        {"farmerId": farmer["id"], "practiceId": practice["id"]},
        {"$set": {
            "isImplemented": body.isImplemented,
            "implementationDate": implementation_date,
            "progress": body.progress or 0,
            "notes": body.notes or "",
            "updatedAt": now_utc(),
        }},
        return_document=ReturnDocument.AFTER,
    )
    if not adoption:
        raise HTTPException(status_code=400, detail="Practice has not been adopted")
    return {"message": "Practice implementation updated successfully", "adoption": serialize(adoption)}
