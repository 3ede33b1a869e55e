"""
Organizer authentication and join throttling
"""

import secrets
import time
from collections import deque
from typing import Callable, Deque, Dict

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings

bearer = HTTPBearer()

def verify_admin_token(credentials: HTTPAuthorizationCredentials = Depends(bearer)) -> str:
    """Only the organizer holds ADMIN_TOKEN"""
    if not secrets.compare_digest(credentials.credentials, settings.ADMIN_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token"
        )
    return credentials.credentials

class SlidingWindowLimiter:
    """At most `limit` hits per client within the last `window` seconds.

    Clients whose window has emptied are forgotten, so memory is bounded by the
    clients seen in the last window.
    """

    def __init__(self, limit: int, window: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window = window
        self.clock = clock
        self.hits: Dict[str, Deque[float]] = {}

    def _prune(self, now: float):
        cutoff = now - self.window
        for client in list(self.hits):
            recent = self.hits[client]
            while recent and recent[0] <= cutoff:
                recent.popleft()
            if not recent:
                del self.hits[client]

    def allow(self, client: str) -> bool:
        now = self.clock()
        self._prune(now)
        recent = self.hits.setdefault(client, deque())
        if len(recent) >= self.limit:
            return False
        recent.append(now)
        return True

    def reset(self):
        self.hits.clear()

# Joining is the only unauthenticated write that creates rows
join_limiter = SlidingWindowLimiter(settings.RATE_LIMIT_PER_MINUTE)

def get_client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For when behind a proxy"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or (request.client.host if request.client else "unknown")
