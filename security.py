from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

import config
from database import get_by_id, serialize

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)
# auto_error=False so missing tokens get the API's own 401 message
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

PUBLIC_FARMER_FIELDS = (
    "id", "name", "email", "phone", "location", "farmDetails",
    "preferences", "isActive", "lastLogin", "createdAt", "updatedAt",
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception:
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(farmer_id: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    return jwt.encode({"sub": farmer_id, "exp": expire}, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")


def farmer_view(farmer: dict) -> dict:
    """Public representation of a farmer document; never includes the hash."""
    return {k: farmer.get(k) for k in PUBLIC_FARMER_FIELDS if k in farmer}

# Dependency: get current farmer from token

def get_current_farmer(token: Optional[str] = Depends(oauth2_scheme)) -> dict:
    if not token:
        raise HTTPException(status_code=401, detail="No token provided, authorization denied")
    farmer_id = decode_access_token(token)
    if farmer_id is None:
        raise HTTPException(status_code=401, detail="Token is not valid")
    farmer = get_by_id("farmer", farmer_id)
    if not farmer:
        raise HTTPException(status_code=401, detail="Token is not valid")
    if not farmer.get("isActive", True):
        raise HTTPException(status_code=401, detail="Account is deactivated")
    return farmer_view(serialize(farmer))


def get_optional_farmer(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[dict]:
    if not token:
        return None
    try:
        return get_current_farmer(token)
    except HTTPException:
        return None
