import logging
from typing import Tuple
from sqlalchemy.orm import Session
from planelog.core.errors import AuthError, ConflictError, ValidationError
from planelog.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_refresh_token,
)
from planelog.models.user import User
from planelog.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


def _issue_tokens(email: str) -> Tuple[str, str]:
    return create_access_token(email), create_refresh_token(email)


class AuthService:
    @staticmethod
    def register(db: Session, username: str, email: str, password: str) -> Tuple[str, str]:
        """Create a user and return (access_token, refresh_token)"""
        if not username or not email or not password:
            raise ValidationError("Username, email and password are required")

        store = CredentialStore(db)
        # Explicit check gives the common case a fast answer; insert still
        # relies on the unique constraint when two registrations race
        if store.find_by_email(email) is not None:
            raise ConflictError()

        store.insert(User(
            email=email,
            username=username,
            hashed_password=get_password_hash(password),
            profile_image="",
            number_of_planes=0,
        ))
        logger.info(f"Registered user {email}")
        return _issue_tokens(email)

    @staticmethod
    def login(db: Session, email: str, password: str) -> Tuple[str, str, str]:
        """Return (access_token, refresh_token, username)"""
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = CredentialStore(db).find_by_email(email)
        # Same error for unknown email and wrong password
        if not user or not verify_password(password, user.hashed_password):
            logger.info("Failed login attempt")
            raise AuthError()

        access_token, refresh_token = _issue_tokens(user.email)
        return access_token, refresh_token, user.username

    @staticmethod
    def refresh_access_token(refresh_token: str | None) -> str:
        """Mint a new access token. The refresh token itself is not rotated."""
        email = verify_refresh_token(refresh_token)
        return create_access_token(email)


auth_service = AuthService()
