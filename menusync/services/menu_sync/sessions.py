"""
In-process registry of editing sessions.

Each session wraps one DirtyChangeTracker for a menu group so edits can be
staged over several HTTP calls before a save. Sessions live in memory only;
a restart drops every unsaved edit.
"""
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from menusync.core.config import settings
from .errors import NotFoundError
from .overrides import ConfigOverrideStore
from .tracker import DirtyChangeTracker, EditState

logger = logging.getLogger(__name__)


@dataclass
class EditSession:
    id: str
    tenant_id: str
    tracker: DirtyChangeTracker
    created_at: datetime = field(default_factory=datetime.utcnow)
    last_used_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def menu_group_id(self) -> int:
        return self.tracker.menu_group_id


class EditSessionRegistry:
    """sessions idle longer than the ttl are dropped, unsaved edits included."""

    def __init__(self, ttl_minutes: Optional[int] = None):
        self.ttl = timedelta(minutes=ttl_minutes or settings.EDIT_SESSION_TTL_MINUTES)
        self._sessions: Dict[str, EditSession] = {}
        self._lock = threading.Lock()

    def _expire_idle(self, now: datetime) -> None:
        # caller holds the lock
        stale = [
            sid for sid, s in self._sessions.items()
            if now - s.last_used_at > self.ttl and s.tracker.state is not EditState.COMMITTING
        ]
        for sid in stale:
            session = self._sessions.pop(sid)
            logger.warning(
                "expired idle edit session %s on menu group %s (%d unsaved change(s))",
                sid, session.menu_group_id, len(session.tracker.pending),
            )

    def open(self, store: ConfigOverrideStore, tenant_id: str, menu_group_id: int) -> EditSession:
        session = EditSession(
            id=uuid.uuid4().hex,
            tenant_id=tenant_id,
            tracker=DirtyChangeTracker.load(store, menu_group_id),
        )
        with self._lock:
            self._expire_idle(session.created_at)
            self._sessions[session.id] = session
        logger.info("opened edit session %s on menu group %s", session.id, menu_group_id)
        return session

    def get(self, session_id: str) -> EditSession:
        now = datetime.utcnow()
        with self._lock:
            self._expire_idle(now)
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_used_at = now
        if session is None:
            raise NotFoundError(f"edit session {session_id} not found")
        return session

    def list(self, menu_group_id: Optional[int] = None) -> List[EditSession]:
        with self._lock:
            self._expire_idle(datetime.utcnow())
            sessions = list(self._sessions.values())
        if menu_group_id is not None:
            sessions = [s for s in sessions if s.menu_group_id == menu_group_id]
        return sessions

    def close(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise NotFoundError(f"edit session {session_id} not found")
        if session.tracker.pending:
            logger.warning("closing edit session %s with %d unsaved change(s)", session_id, len(session.tracker.pending))

    def drop_menu_group(self, menu_group_id: int) -> int:
        """close every session editing a menu group, e.g. after the group was deleted."""
        with self._lock:
            dropped = [sid for sid, s in self._sessions.items() if s.menu_group_id == menu_group_id]
            for sid in dropped:
                del self._sessions[sid]
        if dropped:
            logger.info("dropped %d edit session(s) of menu group %s", len(dropped), menu_group_id)
        return len(dropped)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


# global registry instance
edit_sessions = EditSessionRegistry()
