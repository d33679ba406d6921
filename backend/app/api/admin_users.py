"""Admin user management endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_password_hash
from backend.app.dependencies.auth import get_current_admin
from backend.app.dependencies.reminders import notify_leads_changed
from backend.app.db.session import get_db
from backend.app.models.lead import Lead
from backend.app.models.user import ROLE_ADMIN, User
from backend.app.schemas.user import AdminUserCreate, AdminUserRead, AdminUserRoleUpdate, AdminUserStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users", tags=["admin"])


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/", response_model=list[AdminUserRead])
async def list_users(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return db.query(User).order_by(User.email.asc()).all()


@router.post("/", response_model=AdminUserRead, status_code=201)
async def create_user(
    user_in: AdminUserCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    if db.query(User).filter(User.email == user_in.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    user = User(
        email=user_in.email,
        full_name=user_in.full_name,
        hashed_password=get_password_hash(user_in.password),
        role=user_in.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Admin %s created user %s as %s", current_admin.id, user.id, user.role)
    return user


@router.get("/{user_id}", response_model=AdminUserRead)
async def get_user(user_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return _get_user(db, user_id)


@router.patch("/{user_id}/role", response_model=AdminUserRead)
async def update_user_role(
    user_id: int,
    update: AdminUserRoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    user = _get_user(db, user_id)
    if user_id == current_admin.id and update.role != ROLE_ADMIN:
        raise HTTPException(status_code=400, detail="Cannot change your own admin role")
    if user.role != update.role:
        user.role = update.role
        db.commit()
        db.refresh(user)
        logger.info("Admin %s set role of user %s to %s", current_admin.id, user.id, user.role)
        # Visibility scope follows the role.
        await notify_leads_changed(request)
    return user


@router.patch("/{user_id}/status", response_model=AdminUserRead)
async def update_user_status(
    user_id: int,
    update: AdminUserStatusUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    user = _get_user(db, user_id)
    if user_id == current_admin.id and update.is_active is False:
        raise HTTPException(status_code=400, detail="Cannot deactivate your own account")
    user.is_active = update.is_active
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}")
async def delete_user(user_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    user = _get_user(db, user_id)
    if user_id == current_admin.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    if db.query(Lead).filter(Lead.owner_id == user_id).count():
        raise HTTPException(status_code=400, detail="User still owns leads")
    db.delete(user)
    db.commit()
    logger.info("Admin %s deleted user %s", current_admin.id, user_id)
    return {"status": "deleted", "id": user_id}
