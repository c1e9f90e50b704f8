# app/utils/authz.py
from __future__ import annotations

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.profile import Profile
from app.utils import messages


def current_profile(request: Request, db: Session) -> Profile | None:
    uid = request.session.get("user_id")
    if not uid:
        return None
    return db.get(Profile, uid)


def require_admin(request: Request, db: Session = Depends(get_db)) -> Profile:
    """
    - If not logged in: 401 (HTML GETs get bounced to /auth/login by main.py)
    - If logged in but not an active admin: 403
    - Otherwise: the admin's profile
    """
    me = current_profile(request, db)
    if me is None:
        raise HTTPException(status_code=401, detail=messages.LOGIN_REQUIRED)
    if not me.is_admin:
        raise HTTPException(status_code=403, detail=messages.FORBIDDEN)
    return me
