"""In-memory registry of kitchen sessions, keyed by session cookie."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from app.config import settings
from app.services.kitchen_session import KitchenSession

logger = logging.getLogger(__name__)


@dataclass
class StoredSession:
    session: KitchenSession
    expires_at: datetime


class SessionStore:
    """
    Holds KitchenSession instances until their cookie would have expired.

    Expired entries are dropped on lookup, and swept whenever a new session
    is created.
    """

    def __init__(self, max_age: int = settings.session_max_age):
        self.max_age = max_age
        self._sessions: dict[str, StoredSession] = {}

    def get(self, session_id: Optional[str]) -> Optional[KitchenSession]:
        if not session_id:
            return None
        stored = self._sessions.get(session_id)
        if stored is None:
            return None
        if stored.expires_at <= datetime.now(timezone.utc):
            del self._sessions[session_id]
            return None
        return stored.session

    def create(self, factory: Callable[[], KitchenSession]) -> tuple[str, KitchenSession]:
        """Create and register a new session. Returns (session_id, session)."""
        self.purge_expired()

        session_id = secrets.token_urlsafe(32)
        session = factory()
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=self.max_age)
        self._sessions[session_id] = StoredSession(session=session, expires_at=expires_at)
        return session_id, session

    def purge_expired(self) -> int:
        """Drop every expired session. Returns how many were removed."""
        now = datetime.now(timezone.utc)
        expired = [
            session_id
            for session_id, stored in self._sessions.items()
            if stored.expires_at <= now
        ]
        for session_id in expired:
            del self._sessions[session_id]

        if expired:
            logger.info("Purged %d expired kitchen sessions", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


# Singleton instance
session_store = SessionStore()
