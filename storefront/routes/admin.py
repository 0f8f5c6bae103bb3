# storefront/routes/admin.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.dependencies import admin_required
from storefront.errors import InvalidInput, NotFound
from storefront.models.users import User
from storefront.schemas.user import AdminFlagUpdate, UserResponse, UsersPage

router = APIRouter(tags=["Admin"])
logger = logging.getLogger(__name__)


# Retrieve a list of users with filtering and pagination (Admin only)
@router.get("/users", response_model=UsersPage)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by email"),
    admins_only: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required)
):
    query = db.query(User)

    if q:
        query = query.filter(User.email.ilike(f"%{q.lower()}%"))
    if admins_only:
        query = query.filter(User.is_admin.is_(True))

    total = query.count()
    users = query.order_by(User.id.asc()).offset((page - 1) * page_size).limit(page_size).all()

    return {"items": users, "total": total, "page": page, "page_size": page_size}


# Grant or revoke the admin flag (Admin only)
@router.put("/users/{user_id}/admin", response_model=UserResponse)
def update_admin_flag(
    user_id: int,
    payload: AdminFlagUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required)
):
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    # Prevent an admin from locking themselves out
    if user.id == current_user.id and not payload.is_admin:
        raise InvalidInput("You cannot revoke your own admin flag")

    user.is_admin = payload.is_admin
    db.commit()
    db.refresh(user)

    logger.info("User %s admin flag set to %s by user_id=%s", user.email, user.is_admin, current_user.id)
    return user
