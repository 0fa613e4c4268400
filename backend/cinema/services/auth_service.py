"""
Authentication service handling user registration and login.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.models.user import User
from cinema.schemas.user import AuthResponse, UserCreate, UserLogin
from cinema.core.exceptions import DomainError, ConflictError, UnauthorizedError
from cinema.core.security import hash_password, verify_password, create_access_token, normalize_email
from cinema.core.logging import get_logger

logger = get_logger(__name__)


def issue_token(user: User) -> AuthResponse:
    token = create_access_token(data={"sub": str(user.id), "email": user.email, "role": user.role})
    return AuthResponse(access_token=token, email=user.email, name=user.name, role=user.role)


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new user with a hashed password.
    Emails are compared and stored normalized; a duplicate raises 409.
    """
    email = normalize_email(user_data.email)
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="email_exists", email=email)
        raise ConflictError("Email already exists")

    user = User(
        name=user_data.name.strip(),
        email=email,
        hashed_password=hash_password(user_data.password),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, email=user.email)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> User:
    """Check credentials. Raises 401 if they are invalid."""
    email = normalize_email(login_data.email)
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=email)
        raise UnauthorizedError("Invalid credentials")

    if not user.is_active:
        raise DomainError("Account is deactivated", status_code=403)

    logger.info("user_logged_in", user_id=user.id)
    return user


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise UnauthorizedError("User not found")
    return user
