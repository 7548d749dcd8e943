from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from database import flatten_updates, get_by_id, get_collection, id_query, now_utc, serialize
from logger import get_logger
from routes.auth import PHONE_PATTERN
from schemas import Coordinates, LandSizeUnit, LanguageCode
from security import farmer_view, get_current_farmer, get_password_hash, verify_password

router = APIRouter()
logger = get_logger(__name__)


class LocationUpdate(BaseModel):
    country: Optional[str] = Field(None, min_length=1)
    state: Optional[str] = Field(None, min_length=1)
    city: Optional[str] = Field(None, min_length=1)
    coordinates: Optional[Coordinates] = None


class FarmDetailsUpdate(BaseModel):
    landSize: Optional[float] = Field(None, ge=0)
    landSizeUnit: Optional[LandSizeUnit] = None
    crops: Optional[List[str]] = None
    farmingExperience: Optional[int] = Field(None, ge=0)


class NotificationsUpdate(BaseModel):
    email: Optional[bool] = None
    sms: Optional[bool] = None
    whatsapp: Optional[bool] = None


class PreferencesUpdate(BaseModel):
    language: Optional[LanguageCode] = None
    notifications: Optional[NotificationsUpdate] = None


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    location: Optional[LocationUpdate] = None
    farmDetails: Optional[FarmDetailsUpdate] = None
    preferences: Optional[PreferencesUpdate] = None


class PasswordUpdate(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=6)


@router.get("")
def get_profile(farmer=Depends(get_current_farmer)):
    return {"farmer": farmer}


@router.put("")
def update_profile(body: ProfileUpdate, farmer=Depends(get_current_farmer)):
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    # Stored coordinates may be null, so they are replaced as a whole
    coordinates = changes.get("location", {}).pop("coordinates", None)
    updates = flatten_updates(changes)
    if coordinates is not None:
        updates["location.coordinates"] = coordinates
    updates["updatedAt"] = now_utc()
    get_collection("farmer").update_one(id_query(farmer["id"]), {"$set": updates})

    updated = get_by_id("farmer", farmer["id"])
    if not updated:
        raise HTTPException(status_code=404, detail="Farmer not found")
    return {"message": "Profile updated successfully", "farmer": farmer_view(serialize(updated))}


@router.put("/password")
def update_password(body: PasswordUpdate, farmer=Depends(get_current_farmer)):
    stored = get_by_id("farmer", farmer["id"])
    if not stored:
        raise HTTPException(status_code=404, detail="Farmer not found")
    if not verify_password(body.currentPassword, stored.get("passwordHash", "")):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    get_collection("farmer").update_one(
        {"_id": stored["_id"]},
        {"$set": {"passwordHash": get_password_hash(body.newPassword), "updatedAt": now_utc()}},
    )
    logger.info("password_changed", farmer_id=farmer["id"])
    return {"message": "Password updated successfully"}


@router.delete("")
def deactivate_account(farmer=Depends(get_current_farmer)):
    get_collection("farmer").update_one(
        id_query(farmer["id"]), {"$set": {"isActive": False, "updatedAt": now_utc()}}
    )
    logger.info("account_deactivated", farmer_id=farmer["id"])
    return {"message": "Account deactivated successfully"}
