"""
Authentication endpoints: register, login and the current user.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core.security import get_current_user_id
from cinema.db.session import get_db
from cinema.schemas.common import ApiResponse
from cinema.schemas.user import AuthResponse, LogoutResponse, UserCreate, UserLogin, UserResponse
from cinema.services.auth_service import authenticate_user, get_user, issue_token, register_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=ApiResponse[AuthResponse], status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new account and log it in."""
    user = await register_user(db, user_data)
    return ApiResponse(data=issue_token(user), message="Registered")


@router.post("/login", response_model=ApiResponse[AuthResponse])
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    user = await authenticate_user(db, login_data)
    return ApiResponse(data=issue_token(user))


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(user_id: int = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    user = await get_user(db, user_id)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.post("/logout", response_model=ApiResponse[LogoutResponse])
async def logout():
    """Tokens are stateless; logging out is the client discarding its JWT."""
    return ApiResponse(data=LogoutResponse())
