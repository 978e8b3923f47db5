"""
Bearer-token authentication and rate limiting for the FastAPI API.
"""

import time
from typing import Any, Dict, List, Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from accounts.service import AccountService
from api.dependencies import get_account_service
from utilities.errors import TooManyRequests

logger = structlog.get_logger(__name__)

# auto_error is off so a missing header yields our own 401 envelope
security = HTTPBearer(auto_error=False)


class RateLimiter:
    """
    Sliding-window request counter per client.

    State lives in process memory, so each worker process keeps its own
    windows.
    """

    def __init__(self, max_requests: int = 100, window_seconds: int = 15 * 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: Dict[str, List[float]] = {}
        self._cleanup_interval = min(window_seconds, 300)
        self._last_cleanup: Optional[float] = None

    def _prune(self, client_id: str, current_time: float) -> List[float]:
        recent = [
            req_time for req_time in self._requests.get(client_id, [])
            if current_time - req_time < self.window_seconds
        ]
        if recent:
            self._requests[client_id] = recent
        else:
            self._requests.pop(client_id, None)
        return recent

    def _cleanup_expired(self, current_time: float) -> None:
        """Drop clients whose whole window has expired."""
        if self._last_cleanup is not None and current_time - self._last_cleanup < self._cleanup_interval:
            return

        expired = [
            client_id for client_id, times in self._requests.items()
            if not times or current_time - times[-1] >= self.window_seconds
        ]
        for client_id in expired:
            del self._requests[client_id]

        self._last_cleanup = current_time
        if expired:
            logger.debug("Cleaned up expired rate limit windows", clients=len(expired))

    def check_rate_limit(self, client_id: str) -> bool:
        """
        Record a request and report whether it is within the limit.
        
        Args:
            client_id: Client identifier (remote address)
            
        Returns:
            True if within limit, False if exceeded
        """
        current_time = time.time()
        self._cleanup_expired(current_time)
        recent = self._prune(client_id, current_time)

        if len(recent) < self.max_requests:
            self._requests[client_id] = recent + [current_time]
            return True
        return False

    def get_rate_limit_info(self, client_id: str) -> Dict[str, Any]:
        """
        Get rate limit information for a client.
        
        Args:
            client_id: Client identifier
            
        Returns:
            Dictionary with rate limit information
        """
        current_time = time.time()
        recent = self._prune(client_id, current_time)
        reset_time = (recent[0] if recent else current_time) + self.window_seconds

        return {
            "requests_used": len(recent),
            "requests_remaining": max(0, self.max_requests - len(recent)),
            "rate_limit": self.max_requests,
            "reset_time": reset_time
        }

    def get_rate_limit_headers(self, client_id: str) -> Dict[str, str]:
        """Headers describing the client's current window."""
        rate_info = self.get_rate_limit_info(client_id)
        return {
            "X-RateLimit-Limit": str(rate_info['rate_limit']),
            "X-RateLimit-Remaining": str(rate_info['requests_remaining']),
            "X-RateLimit-Reset": str(int(rate_info['reset_time']))
        }


def client_identifier(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def enforce_rate_limit(request: Request) -> None:
    """
    Reject the request once the client exhausts its window.

    Raises:
        TooManyRequests: Limit exceeded
    """
    limiter: RateLimiter = request.app.state.rate_limiter
    client_id = client_identifier(request)

    if not limiter.check_rate_limit(client_id):
        logger.warning("Rate limit exceeded", client=client_id, path=request.url.path)
        raise TooManyRequests(headers=limiter.get_rate_limit_headers(client_id))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    accounts: AccountService = Depends(get_account_service),
) -> Dict[str, Any]:
    """
    Resolve the bearer token to the active user document.
    
    Raises:
        NotAuthorized: Missing, invalid or expired token, or inactive user
    """
    token = credentials.credentials if credentials else None
    return await accounts.verify_token(token)
