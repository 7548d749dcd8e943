import os
import random
import re
import time
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from pymongo import ReturnDocument

import config
from advisor import RELATED_PRACTICE_CATEGORIES, analyze_image, answer_text_query
from database import get_by_id, get_collection, id_query, insert_with_id, list_many, now_utc, paginate, serialize
from logger import get_logger
from schemas import Advisory, AdvisoryImage, AdvisoryResponse, CropInfo, Feedback
from security import get_current_farmer

router = APIRouter()
logger = get_logger(__name__)

ALLOWED_IMAGE_TYPES = re.compile(r"jpeg|jpg|png|gif|webp")


class TextAdvisoryIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(..., min_length=10, max_length=1000)
    cropInfo: Optional[CropInfo] = None
    priority: Literal["low", "medium", "high", "urgent"] = "medium"


class FeedbackIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rating: int = Field(..., ge=1, le=5)
    helpful: bool
    comments: Optional[str] = Field(None, max_length=500)


def public_advisory(doc: dict) -> dict:
    """Strip on-disk file paths before an advisory leaves the API."""
    doc = serialize(doc)
    for image in doc.get("images") or []:
        image.pop("path", None)
    return doc


def related_practice_ids(category: Optional[str], limit: int = 3) -> list:
    categories = RELATED_PRACTICE_CATEGORIES.get(category)
    if not categories:
        return []
    practices = list_many(
        "practice",
        {"isActive": True, "category": {"$in": categories}},
        sort=[("adoptionStats.averageRating", -1)],
        limit=limit,
    )
    return [p["id"] for p in practices]


def _process(advisory_id: str, farmer_id: str, analyse, failure_text: str, started: float) -> dict:
    """Run the mock model for a stored advisory and record the outcome."""
    advisories = get_collection("advisory")
    try:
        result = analyse()
        response = AdvisoryResponse(
            text=result["text"],
            confidence=result["confidence"],
            recommendations=result["recommendations"],
            relatedPractices=related_practice_ids(result.get("category")),
            aiModel=result.get("aiModel", "keyword-matcher"),
        )
    except Exception as exc:
        logger.error("advisory_failed", advisory_id=advisory_id, farmer_id=farmer_id, error=str(exc))
        advisories.update_one(
            id_query(advisory_id),
            {"$set": {
                "status": "failed",
                "response": AdvisoryResponse(text=failure_text, confidence=0, aiModel="error").model_dump(),
                "updatedAt": now_utc(),
            }},
        )
        raise HTTPException(
            status_code=500,
            detail={"message": "Error processing advisory query", "advisory": {"id": advisory_id, "status": "failed"}},
        )

    processing_time = int((time.monotonic() - started) * 1000)
    updated = advisories.find_one_and_update(
        id_query(advisory_id),
        {"$set": {
            "response": response.model_dump(),
            "category": result.get("category"),
            "status": "completed",
            "processingTime": processing_time,
            "updatedAt": now_utc(),
        }},
        return_document=ReturnDocument.AFTER,
    )
    logger.info("advisory_completed", advisory_id=advisory_id, category=result.get("category"), processing_ms=processing_time)
    return updated


def _summary(advisory: dict) -> dict:
    return {
        "id": advisory["id"],
        "query": advisory["query"],
        "category": advisory.get("category"),
        "response": advisory["response"],
        "status": advisory["status"],
        "processingTime": advisory["processingTime"],
        "createdAt": advisory["createdAt"],
    }


@router.post("/text")
def submit_text_advisory(body: TextAdvisoryIn, farmer=Depends(get_current_farmer)):
    started = time.monotonic()
    advisory = Advisory(
        farmerId=farmer["id"],
        type="text",
        query=body.query,
        cropInfo=body.cropInfo,
        priority=body.priority,
        location=farmer.get("location"),
        status="processing",
    ).model_dump()
    advisory_id = insert_with_id("advisory", advisory)

    updated = _process(
        advisory_id,
        farmer["id"],
        lambda: answer_text_query(body.query, farmer.get("location"), body.cropInfo),
        "Sorry, I encountered an error processing your query. Please try again later.",
        started,
    )
    return {"message": "Advisory query processed successfully", "advisory": _summary(public_advisory(updated))}


def _extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


@router.post("/image")
def submit_image_advisory(
    image: Optional[UploadFile] = File(None),
    query: str = Form("", max_length=500),
    farmer=Depends(get_current_farmer),
):
    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="No image file provided")

    ext = _extension(image.filename)
    if not (ALLOWED_IMAGE_TYPES.search(ext) and ALLOWED_IMAGE_TYPES.search(image.content_type or "")):
        raise HTTPException(status_code=400, detail="Only image files are allowed")

    content = image.file.read(config.MAX_UPLOAD_BYTES + 1)
    if len(content) > config.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="Image exceeds the 10MB upload limit")

    started = time.monotonic()
    upload_dir = os.path.join(config.UPLOAD_DIR, "advisory")
    os.makedirs(upload_dir, exist_ok=True)
    filename = f"image-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"
    path = os.path.join(upload_dir, filename)
    with open(path, "wb") as f:
        f.write(content)

    query = query.strip()
    advisory = Advisory(
        farmerId=farmer["id"],
        type="image",
        query=query,
        images=[AdvisoryImage(
            filename=filename,
            originalName=image.filename,
            path=path,
            size=len(content),
            mimeType=image.content_type,
        )],
        location=farmer.get("location"),
        status="processing",
    ).model_dump()
    advisory_id = insert_with_id("advisory", advisory)

    updated = _process(
        advisory_id,
        farmer["id"],
        lambda: analyze_image(path, query),
        "Sorry, I encountered an error analyzing your image. Please try again with a clearer image.",
        started,
    )
    summary = _summary(public_advisory(updated))
    summary["imageUrl"] = f"/uploads/advisory/{filename}"
    return {"message": "Image advisory query processed successfully", "advisory": summary}


@router.get("/history")
def advisory_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    farmer=Depends(get_current_farmer),
):
    items, pagination = paginate("advisory", {"farmerId": farmer["id"]}, page, limit, sort=[("createdAt", -1)])
    return {"advisories": [public_advisory(a) for a in items], "pagination": pagination}


@router.get("/{advisory_id}")
def get_advisory(advisory_id: str, farmer=Depends(get_current_farmer)):
    advisory = get_by_id("advisory", advisory_id, {"farmerId": farmer["id"]})
    if not advisory:
        raise HTTPException(status_code=404, detail="Advisory not found")
    return {"advisory": public_advisory(advisory)}


@router.post("/{advisory_id}/feedback")
def submit_feedback(advisory_id: str, body: FeedbackIn, farmer=Depends(get_current_farmer)):
    feedback = Feedback(rating=body.rating, helpful=body.helpful, comments=body.comments).model_dump()
    advisory = get_collection("advisory").find_one_and_update(
        id_query(advisory_id, {"farmerId": farmer["id"]}),
        {"$set": {"feedback": feedback, "updatedAt": now_utc()}},
        return_document=ReturnDocument.AFTER,
    )
    if not advisory:
        raise HTTPException(status_code=404, detail="Advisory not found")
    return {"message": "Feedback submitted successfully"}
