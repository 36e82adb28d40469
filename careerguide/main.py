# careerguide/main.py
# FastAPI entrypoint: health, question list, and the assessment session routes.

import logging

from fastapi import FastAPI, HTTPException

from . import orchestrator
from .engine import QUESTIONS
from .errors import GenerationError, SessionBusyError, StageError, ValidationError
from .logging_config import configure_logging
from .schemas import (
    AnswerRequest,
    MessageRequest,
    RoadmapHandoff,
    SelectRequest,
    SessionResponse,
    StartRequest,
)

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Career Guide Assistant", version="1.0.0")


def _call(fn, *args):
    """Run an orchestrator call and map flow errors onto HTTP status codes."""
    try:
        return fn(*args)
    except StageError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except GenerationError as e:
        logger.warning("Generation failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Career coach is unavailable, please retry: {e}")


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/questions")
def questions():
    return {"questions": QUESTIONS, "count": len(QUESTIONS)}


@app.post("/sessions", response_model=SessionResponse)
def start_session(req: StartRequest):
    return _call(orchestrator.start_session, req.session_id)


@app.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str):
    return _call(orchestrator.get_session, session_id)


@app.post("/sessions/{session_id}/answers", response_model=SessionResponse)
def answer(session_id: str, req: AnswerRequest):
    return _call(orchestrator.answer, session_id, req.text)


@app.post("/sessions/{session_id}/recommendations", response_model=SessionResponse)
def show_recommendations(session_id: str):
    return _call(orchestrator.show_recommendations, session_id)


@app.post("/sessions/{session_id}/recommendations/retry", response_model=SessionResponse)
def retry_recommendations(session_id: str):
    return _call(orchestrator.retry_recommendations, session_id)


@app.post("/sessions/{session_id}/select", response_model=SessionResponse)
def select_recommendation(session_id: str, req: SelectRequest):
    return _call(orchestrator.select_recommendation, session_id, req.recommendation_id)


@app.post("/sessions/{session_id}/messages", response_model=SessionResponse)
def chat(session_id: str, req: MessageRequest):
    return _call(orchestrator.chat, session_id, req.text)


@app.post("/sessions/{session_id}/accept", response_model=RoadmapHandoff)
def accept_roadmap(session_id: str):
    return _call(orchestrator.accept_roadmap, session_id)


@app.post("/sessions/{session_id}/reset", response_model=SessionResponse)
def reset(session_id: str):
    return _call(orchestrator.reset, session_id)
