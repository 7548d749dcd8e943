from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pymongo.errors import DuplicateKeyError

from database import get_collection, insert_with_id, now_utc, serialize
from logger import get_logger
from schemas import FarmDetails, Farmer, Location, Preferences
from security import create_access_token, farmer_view, get_current_farmer, get_password_hash, verify_password

router = APIRouter()
logger = get_logger(__name__)

PHONE_PATTERN = r"^\+?[0-9][0-9\- ]{6,18}[0-9]$"


class RegisterBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    location: Location
    farmDetails: FarmDetails
    preferences: Optional[Preferences] = None


class LoginBody(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


def _auth_payload(farmer: dict) -> dict:
    return {
        "id": farmer["id"],
        "name": farmer["name"],
        "email": farmer["email"],
        "location": farmer["location"],
        "farmDetails": farmer["farmDetails"],
        "preferences": farmer["preferences"],
    }


@router.post("/register", status_code=201)
def register(body: RegisterBody):
    email = body.email.lower()
    farmers = get_collection("farmer")
    if farmers.find_one({"email": email}):
        raise HTTPException(status_code=400, detail="Farmer already exists with this email")

    farmer = Farmer(
        name=body.name,
        email=email,
        passwordHash=get_password_hash(body.password),
        phone=body.phone,
        location=body.location,
        farmDetails=body.farmDetails,
        preferences=body.preferences or Preferences(),
    ).model_dump()
    try:
        farmer_id = insert_with_id("farmer", farmer)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Farmer already exists with this email")

    logger.info("farmer_registered", farmer_id=farmer_id)
    return {
        "message": "Farmer registered successfully",
        "token": create_access_token(farmer_id),
        "farmer": _auth_payload(serialize(farmer)),
    }


@router.post("/login")
def login(body: LoginBody):
    farmer = get_collection("farmer").find_one({"email": body.email.lower()})
    if not farmer:
        raise HTTPException(status_code=400, detail="Invalid credentials")
    if not farmer.get("isActive", True):
        raise HTTPException(status_code=400, detail="Account is deactivated")
    if not verify_password(body.password, farmer.get("passwordHash", "")):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    now = now_utc()
    get_collection("farmer").update_one({"_id": farmer["_id"]}, {"$set": {"lastLogin": now}})
    farmer = serialize(farmer)
    logger.info("farmer_logged_in", farmer_id=farmer["id"])
    return {
        "message": "Login successful",
        "token": create_access_token(farmer["id"]),
        "farmer": _auth_payload(farmer),
    }


@router.get("/me")
def me(farmer=Depends(get_current_farmer)):
    return {"farmer": farmer_view(farmer)}


@router.post("/refresh")
def refresh(farmer=Depends(get_current_farmer)):
    return {"message": "Token refreshed successfully", "token": create_access_token(farmer["id"])}
