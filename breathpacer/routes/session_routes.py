from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from breathpacer.adapters.clock_adapter import MonotonicClock
from breathpacer.errors import PlaybackStateError, RegimeValidationError
from breathpacer.engine import PlaybackEngine
from breathpacer.logger import get_logger
from breathpacer.routes.regime_routes import compile_response, rng_factory_for, validation_http_error
from breathpacer.utils.memory import PacerSession, drop_session, get_session, store_session
from breathpacer.utils.models import (
    BoundaryEvent, CompileRequest, CompileResponse, Guide, SessionCreated, SessionStatus, TickRequest,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/sessions", tags=["Pacing Sessions"])

#-------- Helper functions--------
def require_session(session_id: str) -> PacerSession:
    """Dependency that resolves a session id or fails with 404."""
    session = get_session(session_id)
    if session is None:
        logger.warning(f"Unknown session {session_id}.")
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found.")
    return session

def _status(session: PacerSession) -> SessionStatus:
    engine = session.engine
    return SessionStatus(
        session_id=session.session_id,
        state=engine.state,
        elapsed_ms=engine.elapsed_ms,
        pending_boundaries=len(engine.pending_boundaries),
        guide=engine.guide(),
    )

#-------- Routes--------
@router.post("", response_model=SessionCreated, status_code=201)
def create_session(data: CompileRequest):
    """
    Compiles the regimes into a new, idle pacing session driven by the
    server's monotonic clock unless ticks carry their own instants.
    """
    engine = PlaybackEngine(clock=MonotonicClock(), rng_factory=rng_factory_for(data.seed))
    try:
        compiled = engine.set_regimes(data.regimes)
    except RegimeValidationError as e:
        raise validation_http_error(e)

    session = store_session(engine)
    logger.info(f"Created session {session.session_id} with {len(data.regimes)} regimes.")
    response = compile_response(compiled)
    return SessionCreated(
        session_id=session.session_id,
        duration_ms=response.duration_ms,
        points=response.points,
        boundaries=response.boundaries,
    )

@router.get("/{session_id}", response_model=SessionStatus)
def get_session_status(session: PacerSession = Depends(require_session)):
    with session.lock:
        return _status(session)

@router.get("/{session_id}/track", response_model=CompileResponse)
def get_session_track(session: PacerSession = Depends(require_session)):
    with session.lock:
        return compile_response(session.engine.track)

@router.put("/{session_id}/regimes", response_model=CompileResponse)
def replace_session_regimes(data: CompileRequest, session: PacerSession = Depends(require_session)):
    """
    Hot-swaps the session's regime program. Playback time is not reset;
    call /start to replay the new program from the beginning.
    """
    with session.lock:
        if data.seed is not None:
            session.engine.rng_factory = rng_factory_for(data.seed)
        try:
            compiled = session.engine.set_regimes(data.regimes)
        except RegimeValidationError as e:
            raise validation_http_error(e)
    return compile_response(compiled)

@router.post("/{session_id}/start", response_model=SessionStatus)
def start_session(session: PacerSession = Depends(require_session)):
    with session.lock:
        try:
            session.engine.start()
        except PlaybackStateError as e:
            logger.error(f"Could not start session {session.session_id}: {e}")
            raise HTTPException(status_code=409, detail=str(e))
        session.events.clear()
        return _status(session)

@router.post("/{session_id}/pause", response_model=SessionStatus)
def pause_session(session: PacerSession = Depends(require_session)):
    with session.lock:
        session.engine.pause()
        return _status(session)

@router.post("/{session_id}/resume", response_model=SessionStatus)
def resume_session(session: PacerSession = Depends(require_session)):
    with session.lock:
        session.engine.resume()
        return _status(session)

@router.post("/{session_id}/tick", response_model=Guide)
def tick_session(data: Optional[TickRequest] = None, session: PacerSession = Depends(require_session)):
    """
    Advances the session to the given instant (ms), or to the server clock's
    current reading when none is given, and returns the guide.
    """
    instant = data.instant if data else None
    with session.lock:
        try:
            return session.engine.tick(instant)
        except PlaybackStateError as e:
            logger.error(f"Could not tick session {session.session_id}: {e}")
            raise HTTPException(status_code=409, detail=str(e))

@router.get("/{session_id}/events", response_model=List[BoundaryEvent])
def get_session_events(session: PacerSession = Depends(require_session)):
    with session.lock:
        return list(session.events)

@router.delete("/{session_id}", status_code=204)
def delete_session(session_id: str):
    if not drop_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found.")
    logger.info(f"Dropped session {session_id}.")
