"""
Authentication service — password login and bearer tokens.

Tokens are HS256 JWTs signed with ``JWT_SECRET_KEY``; the subject is
the user id.  ``load_user_from_token`` backs Flask-Login's request
loader, so every route sees the bearer as ``current_user``.
"""

import logging
from datetime import datetime, timedelta, timezone

from flask import current_app
from jose import JWTError, jwt
from werkzeug.security import check_password_hash

from weeklyreport.errors import AuthenticationError
from weeklyreport.extensions import db
from weeklyreport.models.user import User
from weeklyreport.services import user_service

logger = logging.getLogger(__name__)


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=current_app.config["JWT_EXPIRES_MINUTES"])
    claims = {
        "sub": str(user.id),
        "role": user.role,
        "type": "access",
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(
        claims,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_token(token: str) -> dict:
    """
    Verify a token and return its claims.

    Raises:
        AuthenticationError: Bad signature, expired, or not an access token.
    """
    try:
        claims = jwt.decode(
            token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
        )
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token.") from exc
    if claims.get("type") != "access" or not claims.get("sub"):
        raise AuthenticationError("Invalid or expired token.")
    return claims


def load_user_from_token(token: str) -> User | None:
    """Active user named by ``token``, or None if it does not verify."""
    try:
        claims = decode_token(token)
    except AuthenticationError:
        logger.debug("Rejected bearer token")
        return None
    try:
        user_id = int(claims["sub"])
    except ValueError:
        return None
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


def authenticate(identifier: str, password: str) -> tuple[User, str]:
    """
    Check credentials and issue a token.

    Args:
        identifier: Employee code or e-mail.
        password:   Plain-text password.

    Returns:
        The user and a fresh access token.

    Raises:
        AuthenticationError: Unknown user, wrong password, or inactive account.
    """
    user = user_service.get_user_by_login(identifier)
    if user is None or not check_password_hash(user.password_hash, password or ""):
        logger.warning("Failed login for %r", identifier)
        raise AuthenticationError("Invalid credentials.")
    if not user.is_active:
        logger.warning("Login attempt by inactive user %d", user.id)
        raise AuthenticationError("Account is deactivated.")

    logger.info("User %d logged in", user.id)
    return user, create_access_token(user)
