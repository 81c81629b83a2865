# dependencies/auth.py
from fastapi import Depends, HTTPException, status
import jwt
from typing import Annotated

from db.schemas.users_schema import UserInDB
from dependencies.user import get_user_repository
from repos.user_repo import UserRepository
from utils.exceptions import StorageError
from config import (
    oauth2_scheme,
    JWT_SECRET_KEY,
    JWT_ALGORITHM
)
from logger.logger import logger

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    user_repo: UserRepository = Depends(get_user_repository)
) -> UserInDB:
    """Get the current authenticated user from the JWT token.

    Tokens are issued by the accounts service; the ``id`` claim names the user.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
        user_id: str = payload.get("id")

        if user_id is None:
            raise credentials_exception
    except jwt.PyJWTError:
        raise credentials_exception

    try:
        user = await user_repo.get_user_by_id(user_id)
    except StorageError as e:
        logger.error(f"Could not load user {user_id} for authentication: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service unavailable"
        )

    if user is None:
        raise credentials_exception

    return user

async def get_current_active_user(current_user = Depends(get_current_user)) -> UserInDB:
    """Get the current authenticated user and verify they are active."""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user

# Create annotated types for cleaner dependency injection
CurrentUser = Annotated[UserInDB, Depends(get_current_user)]
CurrentActiveUser = Annotated[UserInDB, Depends(get_current_active_user)]
