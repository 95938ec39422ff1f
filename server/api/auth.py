"""Registration and token endpoints."""

from __future__ import annotations

import logging
import uuid

import bcrypt
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from models.user import APIKey, User
from schemas.auth import MeResponse, RegisterRequest, RegisterResponse, TokenRequest, TokenResponse
from services.user_settings import create_default_settings

logger = logging.getLogger(__name__)

router = APIRouter()


def _verify_password(stored_hash: str, password: str) -> bool:
    """Verify password against stored bcrypt hash."""
    if not stored_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode(), stored_hash.encode())
    except (ValueError, UnicodeDecodeError):
        return False


@router.post(
    "/register/",
    response_model=RegisterResponse,
    status_code=201,
    responses={409: {"description": "Email already registered"}},
)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="User with this email already exists.")

    user = User(
        name=payload.name,
        email=email,
        password_hash=bcrypt.hashpw(payload.password.encode(), bcrypt.gensalt(12)).decode(),
    )
    db.add(user)
    db.flush()
    create_default_settings(db, user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return {"id": user.id, "name": user.name, "email": user.email, "createdAt": user.created_at}


@router.post("/token/", response_model=TokenResponse, responses={401: {"description": "Invalid credentials"}})
def obtain_token(payload: TokenRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.strip().lower()).first()
    if not user or not _verify_password(user.password_hash, payload.password):
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    api_key = db.query(APIKey).filter(APIKey.user_id == user.id).first()
    if api_key:
        api_key.key = str(uuid.uuid4())
    else:
        api_key = APIKey(user_id=user.id, key=str(uuid.uuid4()))
        db.add(api_key)
    db.commit()
    db.refresh(api_key)
    return {"key": api_key.key}


@router.get("/me/", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return {"id": user.id, "name": user.name, "email": user.email}
