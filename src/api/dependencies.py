"""
Shared route dependencies.
"""

from datetime import datetime
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from src.database.database import get_db
from src.models.user import User
from src.services.auth_service import auth_service


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to a user, creating the profile on first sign-in."""
    token = auth_service.extract_bearer_token(authorization)
    identity = auth_service.verify_token(token)
    user = auth_service.get_or_create_user(db, identity)

    user.last_active = datetime.utcnow()
    db.commit()
    return user


def success(data=None, message: Optional[str] = None, **extra) -> dict:
    """Build the success envelope."""
    payload = {"success": True, "data": data}
    if message:
        payload["message"] = message
    payload.update(extra)
    return payload
