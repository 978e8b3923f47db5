"""
Password hashing and session tokens.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Dict

import bcrypt
from jose import JWTError, jwt

from accounts.models import MAX_PASSWORD_BYTES
from utilities.errors import NotAuthorized


class PasswordHasher:
    """bcrypt hashing with a configurable cost factor, run off the event loop."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash_sync(self, password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify_sync(self, password: str, password_hash: str) -> bool:
        password_bytes = password.encode("utf-8")
        if not password_hash or len(password_bytes) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(password_bytes, password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False

    async def hash(self, password: str) -> str:
        return await asyncio.to_thread(self.hash_sync, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self.verify_sync, password, password_hash)


class TokenManager:
    """
    Issues and validates signed session tokens.

    The payload carries the user id under ``id`` plus ``iat``/``exp``.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24 * 7):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_token(self, user_id: str) -> str:
        now = datetime.utcnow()
        payload = {
            "id": user_id,
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and verify a token.

        Raises:
            NotAuthorized: If the token is malformed, badly signed or expired
        """
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise NotAuthorized() from e
