"""
Auth API routes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.dependencies import success
from src.database.database import get_db
from src.schemas.user_schemas import GoogleLoginRequest
from src.services.auth_service import auth_service

auth_router = APIRouter()


@auth_router.post("/google")
async def google_login(request: GoogleLoginRequest, db: Session = Depends(get_db)):
    """Exchange a Google ID token for the user profile, creating it on first sign-in."""
    identity = auth_service.verify_token(request.id_token)
    user = auth_service.get_or_create_user(db, identity)
    return success(user.to_dict())
