# careerguide/orchestrator.py
# Turn handling: restore -> guard -> transition -> persist -> response.

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from . import engine, llm
from .errors import SessionBusyError
from .memory import get_store
from .schemas import RoadmapHandoff, Session, SessionResponse, Stage, StepResult

logger = logging.getLogger(__name__)

_store = get_store()

class _SessionLock:
    __slots__ = ("lock", "refs")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.refs = 0  # callers holding or trying this entry


_locks: Dict[str, _SessionLock] = {}
_locks_guard = threading.Lock()


@contextmanager
def _single_flight(session_id: str) -> Iterator[None]:
    """
    Reject a second concurrent operation on the same session instead of interleaving it.
    An entry is dropped once nobody references it, so the map only holds in-flight ids.
    """
    with _locks_guard:
        entry = _locks.setdefault(session_id, _SessionLock())
        entry.refs += 1
    try:
        if not entry.lock.acquire(blocking=False):
            raise SessionBusyError(f"session {session_id} is busy")
        try:
            yield
        finally:
            entry.lock.release()
    finally:
        with _locks_guard:
            entry.refs -= 1
            if entry.refs == 0:
                _locks.pop(session_id, None)


def _generate(prompt: str) -> str:
    # Resolved per call so tests can monkeypatch llm.generate
    return llm.generate(prompt)


def _respond(result: StepResult) -> SessionResponse:
    return SessionResponse(
        session=result.session,
        current_question=engine.current_question(result.session),
        question_count=engine.QUESTION_COUNT,
        notice=result.notice,
    )


def _commit(result: StepResult) -> SessionResponse:
    engine.persist(_store, result.session)
    return _respond(result)


def get_session(session_id: str) -> SessionResponse:
    return _respond(StepResult(session=engine.restore(_store, session_id)))


def start_session(session_id: Optional[str] = None) -> SessionResponse:
    """
    Resume a known session, or start the assessment. An unknown or missing id
    gets a brand-new one.
    """
    if session_id:
        with _single_flight(session_id):
            session = engine.restore(_store, session_id)
            if session.stage != Stage.WELCOME:
                return _respond(StepResult(session=session))
            return _commit(engine.start(session))
    return _commit(engine.start(Session()))


def answer(session_id: str, text: str) -> SessionResponse:
    with _single_flight(session_id):
        session = engine.restore(_store, session_id)
        return _commit(engine.submit_answer(session, text, _generate))


def show_recommendations(session_id: str) -> SessionResponse:
    with _single_flight(session_id):
        session = engine.restore(_store, session_id)
        return _commit(engine.show_recommendations(session))


def retry_recommendations(session_id: str) -> SessionResponse:
    with _single_flight(session_id):
        session = engine.restore(_store, session_id)
        return _commit(engine.retry_recommendations(session, _generate))


def select_recommendation(session_id: str, recommendation_id: str) -> SessionResponse:
    with _single_flight(session_id):
        session = engine.restore(_store, session_id)
        return _commit(engine.select_recommendation(session, recommendation_id, _generate))


def chat(session_id: str, text: str) -> SessionResponse:
    with _single_flight(session_id):
        session = engine.restore(_store, session_id)
        return _commit(engine.send_freeform_message(session, text, _generate))


def accept_roadmap(session_id: str) -> RoadmapHandoff:
    session = engine.restore(_store, session_id)
    handoff = engine.accept_roadmap(session)
    logger.info("Session %s accepted roadmap for %s", session_id, handoff.career_path)
    return handoff


def reset(session_id: str) -> SessionResponse:
    with _single_flight(session_id):
        session = engine.restore(_store, session_id)
        engine.discard(_store, session_id)
        return _respond(engine.reset(session))
