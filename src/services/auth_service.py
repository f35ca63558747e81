"""
Authentication service: Google ID token verification and lazy user creation.
"""

from typing import Any, Callable, Dict, Optional

from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from sqlalchemy import func
from sqlalchemy.orm import Session

from src.config import settings
from src.errors import UnauthorizedError, UpstreamError
from src.logger import get_logger
from src.models.user import User, UserRole

logger = get_logger("auth")

TEST_TOKEN_PREFIX = "testuser-"
TEST_USERNAMES = ("test1", "test2", "test3")


class AuthService:
    """Verifies bearer credentials and maps them to users."""

    def __init__(self, verifier: Optional[Callable[..., Dict[str, Any]]] = None):
        self._verifier = verifier or id_token.verify_oauth2_token

    def extract_bearer_token(self, authorization: Optional[str]) -> str:
        if not authorization or not authorization.startswith("Bearer "):
            raise UnauthorizedError("No token provided or malformed header")
        token = authorization.split(" ", 1)[1].strip()
        if not token:
            raise UnauthorizedError("No token provided or malformed header")
        return token

    def verify_token(self, token: str) -> Dict[str, Optional[str]]:
        """Return the verified ``{email, name, picture}`` identity for a token."""
        if token.startswith(TEST_TOKEN_PREFIX) and settings.ALLOW_TEST_USERS:
            return self._test_identity(token)

        if not settings.GOOGLE_CLIENT_ID:
            raise UpstreamError("Google sign-in is not configured")

        try:
            payload = self._verifier(token, google_requests.Request(), settings.GOOGLE_CLIENT_ID)
        except ValueError as e:
            logger.warning(f"Token verification failed: {e}")
            raise UnauthorizedError("Invalid or expired token")
        except google_exceptions.GoogleAuthError as e:
            logger.error(f"Google token verification unavailable: {e}")
            raise UpstreamError("Could not verify token with Google")

        email = payload.get("email")
        if not email:
            raise UnauthorizedError("Token does not carry an email address")

        return {
            "email": email.lower(),
            "name": payload.get("name") or " ".join(
                part for part in (payload.get("given_name"), payload.get("family_name")) if part
            ),
            "picture": payload.get("picture")
        }

    def _test_identity(self, token: str) -> Dict[str, Optional[str]]:
        username = token[len(TEST_TOKEN_PREFIX):]
        if username not in TEST_USERNAMES:
            raise UnauthorizedError("Invalid test user token")
        logger.info(f"Test user authenticated: {username}")
        return {"email": f"{username}@test.com", "name": f"Test {username}", "picture": None}

    def get_or_create_user(self, db: Session, identity: Dict[str, Optional[str]]) -> User:
        """Find the user by email, creating a profile on first sign-in."""
        email = identity["email"].lower()
        user = db.query(User).filter(func.lower(User.email) == email).first()
        if user:
            return user

        user = User(
            email=email,
            name=identity.get("name") or email.split("@")[0],
            avatar=identity.get("picture"),
            role=UserRole.PM.value,
            onboarded=False
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Created user profile for {email}")
        return user


# Singleton instance
auth_service = AuthService()
