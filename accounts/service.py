"""
Account operations over the ``users`` collection.
"""

import math
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase

from accounts.models import (
    AuthenticatedUser, LoginRequest, RegisterRequest,
    UpdatedProfile, UpdateProfileRequest, UserProfile, UserRole
)
from accounts.security import PasswordHasher, TokenManager
from utilities.config import BookSwapConfig
from utilities.errors import (
    BookSwapError, Conflict, InvalidCredentials, NotAuthorized,
    NotFound, ValidationFailed
)
from utilities.logger import AuthLogger
from utilities.sanitize import sanitize


class AccountLocked(BookSwapError):
    status_code = 429
    code = "ACCOUNT_LOCKED"
    message = "Account locked"


class AccountService:
    """
    Registration, login with lockout, token verification and profile management.

    Uniqueness of username and email is checked before writes. The check and
    the write are separate operations, so two simultaneous registrations can
    still both succeed.
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        config: BookSwapConfig,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.database = database
        self.users_collection = database.users
        self.config = config
        self.clock = clock
        self.hasher = PasswordHasher(rounds=config.salt_rounds)
        self.tokens = TokenManager(
            secret=config.jwt_secret,
            algorithm=config.jwt_algorithm,
            expire_minutes=config.access_token_expire_minutes,
        )
        self.auth_logger = AuthLogger()

    async def register(self, request: RegisterRequest) -> AuthenticatedUser:
        """
        Create an account and issue its first session token.

        Raises:
            Conflict: If the username or email is already taken
        """
        username = sanitize(request.username)
        email = sanitize(request.email)

        existing = await self.users_collection.find_one({
            "$or": [{"username": username}, {"email": email}]
        })
        if existing:
            raise Conflict()

        now = self.clock()
        user = {
            "username": username,
            "email": email,
            "password_hash": await self.hasher.hash(request.password),
            "join_date": now,
            "last_login": None,
            "login_attempts": 0,
            "last_failed_login": None,
            "is_active": True,
            "role": UserRole.USER.value,
            "profile": {},
        }

        result = await self.users_collection.insert_one(user)
        user_id = str(result.inserted_id)
        self.auth_logger.log_registration(user_id, username)

        return AuthenticatedUser(
            id=user_id,
            username=username,
            email=email,
            role=UserRole.USER,
            join_date=now,
            token=self.tokens.create_token(user_id),
        )

    async def login(self, request: LoginRequest) -> AuthenticatedUser:
        """
        Authenticate by email and password.

        Raises:
            InvalidCredentials: Unknown email or wrong password
            AccountLocked: Too many recent failures
        """
        user = await self.users_collection.find_one({"email": sanitize(request.email)})
        if not user:
            self.auth_logger.log_login_failure(None)
            raise InvalidCredentials()

        user_id = str(user["_id"])
        now = self.clock()

        minutes_remaining = self._lockout_minutes_remaining(user, now)
        if minutes_remaining:
            self.auth_logger.log_lockout(user_id, minutes_remaining)
            raise AccountLocked(f"Account locked. Try again in {minutes_remaining} minutes.")

        if not await self.hasher.verify(request.password, user.get("password_hash", "")):
            await self.users_collection.update_one(
                {"_id": user["_id"]},
                {
                    "$inc": {"login_attempts": 1},
                    "$set": {"last_failed_login": now}
                }
            )
            self.auth_logger.log_login_failure(user_id, user.get("login_attempts", 0) + 1)
            raise InvalidCredentials()

        await self.users_collection.update_one(
            {"_id": user["_id"]},
            {"$set": {"login_attempts": 0, "last_login": now}}
        )
        self.auth_logger.log_login_success(user_id)

        profile = UserProfile.from_document(user)
        return AuthenticatedUser(**profile.dict(), token=self.tokens.create_token(user_id))

    def _lockout_minutes_remaining(self, user: Dict[str, Any], now: datetime) -> int:
        """Whole minutes left in the lockout window, 0 when not locked."""
        if user.get("login_attempts", 0) < self.config.max_login_attempts:
            return 0

        # A counter without a timestamp counts as a failure just now
        last_failed = user.get("last_failed_login") or now
        elapsed = now - last_failed
        window = timedelta(minutes=self.config.lockout_window_minutes)
        if elapsed >= window:
            return 0
        return max(1, math.ceil((window - elapsed).total_seconds() / 60))

    async def verify_token(self, token: Optional[str]) -> Dict[str, Any]:
        """
        Resolve a session token to an active user document.

        Raises:
            NotAuthorized: Missing, invalid or expired token, or inactive/deleted user
        """
        if not token:
            raise NotAuthorized()

        payload = self.tokens.decode_token(token)
        user_id = payload.get("id")
        if not isinstance(user_id, str) or not ObjectId.is_valid(user_id):
            raise NotAuthorized()

        user = await self.users_collection.find_one({"_id": ObjectId(user_id), "is_active": True})
        if not user:
            raise NotAuthorized()
        return user

    async def get_public_profile(self, user_id: str) -> UserProfile:
        """
        Read another user's public fields.

        Raises:
            ValidationFailed: Malformed id
            NotFound: Missing or inactive user
        """
        try:
            object_id = ObjectId(user_id)
        except (InvalidId, TypeError):
            raise ValidationFailed("Invalid user ID", code="INVALID_ID")

        user = await self.users_collection.find_one({"_id": object_id, "is_active": True})
        if not user:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        return UserProfile.from_document(user)

    async def update_profile(self, user: Dict[str, Any], request: UpdateProfileRequest) -> UpdatedProfile:
        """
        Change password, email, username and/or merge profile fields.

        Raises:
            InvalidCredentials: Wrong current password (code INVALID_PASSWORD)
            Conflict: Email or username used by another account
            ValidationFailed: Nothing to change (code NO_UPDATES)
        """
        user_id = user["_id"]
        updates: Dict[str, Any] = {}

        if request.password:
            if not await self.hasher.verify(request.current_password or "", user.get("password_hash", "")):
                raise InvalidCredentials("Current password is incorrect", code="INVALID_PASSWORD")
            updates["password_hash"] = await self.hasher.hash(request.password)

        if request.email and request.email != user.get("email"):
            email = sanitize(request.email)
            taken = await self.users_collection.find_one({"email": email, "_id": {"$ne": user_id}})
            if taken:
                raise Conflict("Email already in use", code="EMAIL_IN_USE")
            updates["email"] = email

        if request.username and request.username != user.get("username"):
            username = sanitize(request.username)
            taken = await self.users_collection.find_one({"username": username, "_id": {"$ne": user_id}})
            if taken:
                raise Conflict("Username already in use", code="USERNAME_IN_USE")
            updates["username"] = username

        if request.profile is not None:
            updates["profile"] = {**(user.get("profile") or {}), **sanitize(request.profile)}

        if not updates:
            raise ValidationFailed("No updates provided", code="NO_UPDATES")

        updates["updated_at"] = self.clock()
        await self.users_collection.update_one({"_id": user_id}, {"$set": updates})
        self.auth_logger.log_account_change(
            str(user_id), "update", [f for f in updates if f not in ("password_hash", "updated_at")]
        )

        updated = await self.users_collection.find_one({"_id": user_id})
        if not updated:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        return UpdatedProfile.from_document(updated)

    async def delete_self(self, user: Dict[str, Any]) -> None:
        """
        Permanently delete the caller's account.

        Raises:
            NotFound: Account already gone
        """
        result = await self.users_collection.delete_one({"_id": user["_id"]})
        if result.deleted_count == 0:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        self.auth_logger.log_account_change(str(user["_id"]), "delete")
