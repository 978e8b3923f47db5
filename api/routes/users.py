"""
Account endpoints.
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, status

from accounts.models import LoginRequest, RegisterRequest, UpdateProfileRequest, UserProfile
from accounts.service import AccountService
from api.auth import enforce_rate_limit, get_current_user
from api.dependencies import get_account_service
from api.models import success_response
from utilities.errors import BookSwapError, ServerError

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    dependencies=[Depends(enforce_rate_limit)],
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Create an account and return a session token."""
    try:
        user = await accounts.register(payload)
    except BookSwapError:
        raise
    except Exception as e:
        logger.error("Failed to register user", error=str(e))
        raise ServerError() from e

    return success_response(data=user, status_code=status.HTTP_201_CREATED)


@router.post("/login")
async def login(
    payload: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Exchange email and password for a session token."""
    try:
        user = await accounts.login(payload)
    except BookSwapError:
        raise
    except Exception as e:
        logger.error("Failed to log in", error=str(e))
        raise ServerError() from e

    return success_response(data=user)


@router.get("/me")
async def read_me(current_user: Dict[str, Any] = Depends(get_current_user)):
    """Get the caller's own profile."""
    return success_response(data=UserProfile.from_document(current_user))


@router.put("/me")
async def update_me(
    payload: UpdateProfileRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Update the caller's profile.

    - **password**: new password, requires **current_password**
    - **email** / **username**: must not belong to another account
    - **profile**: merged into the existing profile map
    """
    try:
        updated = await accounts.update_profile(current_user, payload)
    except BookSwapError:
        raise
    except Exception as e:
        logger.error("Failed to update profile", user_id=str(current_user["_id"]), error=str(e))
        raise ServerError() from e

    return success_response(data=updated)


@router.delete("/me")
async def delete_me(
    current_user: Dict[str, Any] = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    """Permanently delete the caller's account."""
    try:
        await accounts.delete_self(current_user)
    except BookSwapError:
        raise
    except Exception as e:
        logger.error("Failed to delete account", user_id=str(current_user["_id"]), error=str(e))
        raise ServerError() from e

    return success_response(message="Account deleted successfully")


@router.get("/{user_id}")
async def read_user(
    user_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    """Get another user's public profile."""
    try:
        profile = await accounts.get_public_profile(user_id)
    except BookSwapError:
        raise
    except Exception as e:
        logger.error("Failed to get user", user_id=user_id, error=str(e))
        raise ServerError() from e

    return success_response(data=profile)
