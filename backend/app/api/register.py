"""Handles user registration for the MINIQUARE CRM."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.app.core.security import get_password_hash
from backend.app.db.base import Base
from backend.app.db.session import engine, get_db
from backend.app.models.user import ROLE_ADMIN, ROLE_USER, User
from backend.app.schemas.user import UserCreate, UserRead

Base.metadata.create_all(bind=engine)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRead)
def register_user(user_in: UserCreate, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.email == user_in.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")
    # The very first account administers the workspace.
    role = ROLE_ADMIN if db.query(User).count() == 0 else ROLE_USER
    hashed_password = get_password_hash(user_in.password)
    user = User(email=user_in.email, full_name=user_in.full_name, hashed_password=hashed_password, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s with role %s", user.id, role)
    return user
