import secrets
import threading
from collections import deque
from typing import Deque, Dict, Optional

from breathpacer.config import settings
from breathpacer.engine import COMPLETED, PlaybackEngine
from breathpacer.logger import get_logger
from breathpacer.utils.models import BoundaryEvent

logger = get_logger(__name__)


class PacerSession:
    """
    A playback engine plus the boundary events it has fired so far. The
    engine is not reentrant; callers hold `lock` around every use of it.
    """

    def __init__(self, session_id: str, engine: PlaybackEngine):
        self.session_id = session_id
        self.engine = engine
        self.lock = threading.Lock()
        self.events: Deque[BoundaryEvent] = deque(maxlen=settings.EVENT_HISTORY_SIZE)
        engine.subscribe(self._record)

    def _record(self, elapsed_ms, regime):
        self.events.append(BoundaryEvent(elapsed_ms=elapsed_ms, regime=regime))


# Insertion ordered, so the first entry is the oldest session
sessions: Dict[str, PacerSession] = {}
_sessions_lock = threading.Lock()

def _evict(limit: int) -> None:
    """Drops completed sessions first, then the oldest ones, until fewer than `limit` remain."""
    if len(sessions) < limit:
        return
    completed = [sid for sid, s in sessions.items() if s.engine.state == COMPLETED]
    for session_id in completed + list(sessions):
        if len(sessions) < limit:
            break
        if sessions.pop(session_id, None) is not None:
            logger.info(f"Evicted session {session_id}.")

def store_session(engine: PlaybackEngine) -> PacerSession:
    session = PacerSession(secrets.token_urlsafe(8), engine)
    with _sessions_lock:
        _evict(settings.MAX_SESSIONS)
        sessions[session.session_id] = session
    return session

def get_session(session_id: str) -> Optional[PacerSession]:
    return sessions.get(session_id)

def drop_session(session_id: str) -> bool:
    with _sessions_lock:
        return sessions.pop(session_id, None) is not None
