"""
Authentication API endpoints
- Registration and login (public)
- Current user (bearer token)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from storefront_admin.core.auth import (
    TokenUser,
    create_access_token,
    get_current_user,
    hash_password,
    verify_password,
)
from storefront_admin.domain.user import UserCreate, LoginRequest
from storefront_admin.repositories.user_repository import UserRepository
from storefront_admin.api.deps import get_user_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    users: UserRepository = Depends(get_user_repository)
):
    """Create a dashboard user and return it with a fresh token"""
    try:
        if users.find_by_email(user_data.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User already exists"
            )

        user = users.insert(user_data.name, user_data.email, hash_password(user_data.password))
        token = create_access_token(user.id, user.email, user.role)

        logger.info(f"User registered: {user.email}")
        return {"success": True, "user": user.to_dict(), "token": token}

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Registration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error during registration"
        )


@router.post("/login")
async def login(
    credentials: LoginRequest,
    users: UserRepository = Depends(get_user_repository)
):
    """Exchange email + password for a bearer token"""
    try:
        found = users.find_by_email(credentials.email)
        if not found or not verify_password(credentials.password, found[1]):
            logger.warning(f"Failed login attempt for {credentials.email}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials"
            )

        user = found[0]
        token = create_access_token(user.id, user.email, user.role)
        return {"success": True, "user": user.to_dict(), "token": token}

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Login error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error during login"
        )


@router.get("/me")
async def get_me(
    current_user: TokenUser = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository)
):
    """Profile of the token holder"""
    user = users.find_by_id(current_user.id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"success": True, "user": user.to_dict()}
