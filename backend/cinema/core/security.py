"""
Password hashing (bcrypt) and JWT access tokens (PyJWT).

Tokens carry the user id in `sub` and the normalized email in `email`.
The booking core trusts the resulting Identity as given: the email is the
lock holder, the id owns bookings.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cinema.core.config import get_settings
from cinema.core.exceptions import UnauthorizedError

settings = get_settings()
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    user_id: int
    email: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Identity:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        raise UnauthorizedError("Invalid or expired token")

    sub = payload.get("sub")
    email = payload.get("email")
    if sub is None or not email:
        raise UnauthorizedError("Not logged in")
    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token subject")
    return Identity(user_id=user_id, email=normalize_email(email))


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """FastAPI dependency resolving the caller's (user_id, email)."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not logged in")
    return decode_access_token(credentials.credentials)


async def get_current_user_id(identity: Identity = Depends(get_current_identity)) -> int:
    return identity.user_id
