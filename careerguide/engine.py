# careerguide/engine.py
# Assessment conversation state machine:
#   welcome -> assessment -> chat -> recommendations -> roadmap, reset from anywhere.
# Transitions are pure functions over Session: they work on a deep copy and return it,
# so an exception leaves the caller's session exactly as it was.

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pydantic import ValidationError as SchemaError

from . import config
from .errors import GenerationError, NotFoundError, PersistenceError, StageError, ValidationError
from .llm import build_assessment_prompt, build_chat_prompt, build_roadmap_prompt
from .schemas import AssessmentQuestion, Message, Recommendation, Roadmap, RoadmapHandoff, Session, Stage, StepResult
from .utils import normalize_answer, parse_recommendations, parse_roadmap

logger = logging.getLogger(__name__)

Generator = Callable[[str], str]

QUESTIONS = [
    AssessmentQuestion(
        text="What is your current education level?",
        options=["10th Standard", "12th Standard", "Diploma", "Bachelor's Degree", "Master's Degree"],
    ),
    AssessmentQuestion(
        text="Which school subjects or topics do you enjoy the most?",
        options=["Mathematics", "Science", "Computers", "Arts & Design", "Business", "Languages"],
        max_choices=3,
    ),
    AssessmentQuestion(
        text="How much programming or technical experience do you have?",
        options=["No Experience", "Beginner (< 1 year)", "Intermediate (1-3 years)", "Advanced (3+ years)"],
    ),
    AssessmentQuestion(
        text="Which skills are you most comfortable with right now?",
        options=[
            "Frontend Development", "Backend Development", "Mobile Development", "UI/UX Design",
            "Data Analysis", "AI/Machine Learning", "DevOps/Cloud", "None Yet",
        ],
        max_choices=3,
    ),
    AssessmentQuestion(
        text="Do you prefer working independently or in a team?",
        options=["Independently", "In a Team", "A Mix of Both"],
    ),
    AssessmentQuestion(
        text="What kind of work environment do you want: office, remote, or a mix?",
        options=["Office-based", "Fully Remote", "Hybrid"],
    ),
    AssessmentQuestion(
        text="How do you prefer to learn new skills?",
        options=["Structured Courses", "Hands-on Projects", "With a Mentor", "Self-paced Learning"],
    ),
    AssessmentQuestion(
        text="What is your main career goal for the next two years?",
        options=[
            "Develop Technical Skills", "Maximize Earning Potential", "Gain Diverse Experience",
            "Create Impact", "Build Own Startup",
        ],
    ),
]
QUESTION_COUNT = len(QUESTIONS)

COMPLETION_MESSAGE = (
    "Thanks for answering! I found {count} career paths that fit you. "
    "Ask me anything, or open your recommendations when you're ready."
)
DEGRADED_MESSAGE = (
    "Thanks for answering! I couldn't put your recommendations together just now. "
    "You can keep chatting with me and try again in a moment."
)
ROADMAP_MESSAGE = "Here is your roadmap to becoming a {career}."


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require(session: Session, *stages: Stage) -> None:
    if session.stage not in stages:
        allowed = ", ".join(s.value for s in stages)
        raise StageError(f"not allowed in stage '{session.stage.value}' (expected {allowed})")


def _working_copy(session: Session) -> Session:
    s = session.model_copy(deep=True)
    s.updated_at = _now()
    return s


def _say(s: Session, role: str, text: str) -> None:
    s.messages.append(Message(role=role, text=text))


def current_question(session: Session) -> Optional[AssessmentQuestion]:
    """The question waiting for an answer, if the session is mid-assessment."""
    if session.stage == Stage.ASSESSMENT and session.question_index < QUESTION_COUNT:
        return QUESTIONS[session.question_index]
    return None


def start(session: Optional[Session] = None) -> StepResult:
    session = session or Session()
    _require(session, Stage.WELCOME)
    s = Session(session_id=session.session_id or uuid.uuid4().hex)
    s.stage = Stage.ASSESSMENT
    _say(s, "agent", QUESTIONS[0].text)
    logger.info("Session %s started", s.session_id)
    return StepResult(session=s)


def request_recommendations(session: Session, generate: Generator) -> List[Recommendation]:
    """One generator call over all question/answer pairs. Raises GenerationError."""
    prompt = build_assessment_prompt([q.text for q in QUESTIONS], session.answers)
    return parse_recommendations(generate(prompt))


def submit_answer(session: Session, text: str, generate: Generator) -> StepResult:
    _require(session, Stage.ASSESSMENT)
    answer = normalize_answer(text)
    if not answer:
        raise ValidationError("answer must not be empty")

    s = _working_copy(session)
    _say(s, "user", answer)
    s.answers.append(answer)
    s.question_index += 1

    if s.question_index < QUESTION_COUNT:
        _say(s, "agent", QUESTIONS[s.question_index].text)
        return StepResult(session=s)

    notice = None
    try:
        s.recommendations = request_recommendations(s, generate)
        _say(s, "agent", COMPLETION_MESSAGE.format(count=len(s.recommendations)))
    except GenerationError as e:
        # Not fatal: the student can still chat and retry later
        logger.warning("Recommendation generation failed for %s: %s", s.session_id, e)
        s.recommendations = []
        notice = str(e)
        _say(s, "agent", DEGRADED_MESSAGE)
    s.stage = Stage.CHAT
    logger.info("Session %s finished assessment with %d recommendation(s)", s.session_id, len(s.recommendations))
    return StepResult(session=s, notice=notice)


def retry_recommendations(session: Session, generate: Generator) -> StepResult:
    _require(session, Stage.CHAT)
    if session.recommendations:
        raise StageError("recommendations are already available")
    if len(session.answers) < QUESTION_COUNT:
        raise StageError("assessment is incomplete")

    recs = request_recommendations(session, generate)
    s = _working_copy(session)
    s.recommendations = recs
    _say(s, "agent", COMPLETION_MESSAGE.format(count=len(recs)))
    return StepResult(session=s)


def show_recommendations(session: Session) -> StepResult:
    _require(session, Stage.CHAT)
    if not session.recommendations:
        raise StageError("no recommendations to show yet")
    s = _working_copy(session)
    s.stage = Stage.RECOMMENDATIONS
    return StepResult(session=s)


def request_roadmap(session: Session, recommendation: Recommendation, generate: Generator) -> Roadmap:
    prompt = build_roadmap_prompt(recommendation.title, [q.text for q in QUESTIONS], session.answers)
    return parse_roadmap(generate(prompt))


def select_recommendation(session: Session, rec_id: str, generate: Generator) -> StepResult:
    """
    Expand one recommendation into a roadmap. Nothing is committed unless the
    roadmap is generated and validated; on GenerationError the caller may retry.
    """
    _require(session, Stage.CHAT, Stage.RECOMMENDATIONS)
    rec = session.find_recommendation(rec_id)
    if rec is None:
        raise ValidationError(f"unknown recommendation '{rec_id}'")

    roadmap = request_roadmap(session, rec, generate)
    s = _working_copy(session)
    s.selected_recommendation = rec.id
    s.roadmap = roadmap
    s.stage = Stage.ROADMAP
    _say(s, "agent", ROADMAP_MESSAGE.format(career=roadmap.career_path))
    logger.info("Session %s generated roadmap for %s", s.session_id, rec.title)
    return StepResult(session=s)


def send_freeform_message(session: Session, text: str, generate: Generator) -> StepResult:
    _require(session, Stage.CHAT, Stage.ROADMAP)
    msg = normalize_answer(text)
    if not msg:
        raise ValidationError("message must not be empty")

    window = session.messages[-config.CHAT_HISTORY_WINDOW:] if config.CHAT_HISTORY_WINDOW > 0 else []
    career = session.roadmap.career_path if session.roadmap else None
    reply = generate(build_chat_prompt(window, msg, career))
    if not reply or not reply.strip():
        raise GenerationError("generator returned an empty reply")

    s = _working_copy(session)
    _say(s, "user", msg)
    _say(s, "agent", reply.strip())
    return StepResult(session=s)


def accept_roadmap(session: Session) -> RoadmapHandoff:
    _require(session, Stage.ROADMAP)
    if session.roadmap is None:
        raise StageError("no roadmap to accept")
    return RoadmapHandoff(career_path=session.roadmap.career_path, roadmap=session.roadmap)


def reset(session: Optional[Session] = None) -> StepResult:
    """Back to a blank welcome session. The old session id is dropped."""
    if session is not None and session.session_id:
        logger.info("Session %s reset", session.session_id)
    return StepResult(session=Session())


def _repair(s: Session) -> Session:
    """Pull a loaded snapshot back to the most conservative stage its data supports."""
    if s.stage == Stage.WELCOME:
        return Session(session_id=s.session_id, created_at=s.created_at)

    s.answers = s.answers[:QUESTION_COUNT]
    s.question_index = len(s.answers)

    if s.stage != Stage.ASSESSMENT and len(s.answers) < QUESTION_COUNT:
        s.stage = Stage.ASSESSMENT
    if s.stage == Stage.ASSESSMENT:
        s.recommendations = []
        s.selected_recommendation = None
        s.roadmap = None
        if len(s.answers) == QUESTION_COUNT:
            # All answers but no recommendations yet: chat lets the student retry
            s.stage = Stage.CHAT
        return s

    if s.selected_recommendation and s.find_recommendation(s.selected_recommendation) is None:
        s.selected_recommendation = None
    if s.stage == Stage.ROADMAP and s.roadmap is None:
        s.stage = Stage.RECOMMENDATIONS
    if s.stage == Stage.RECOMMENDATIONS and not s.recommendations:
        s.stage = Stage.CHAT
    return s


def restore(store, session_id: str) -> Session:
    """
    Load a persisted session. Never raises: an unknown id, a failed read or a
    snapshot that does not validate all give a fresh welcome session.
    """
    try:
        snapshot = store.get(session_id)
    except NotFoundError:
        logger.info("Session %s not found; starting fresh", session_id)
        return Session()
    except PersistenceError as e:
        logger.warning("Could not load session %s: %s", session_id, e)
        return Session()

    if not isinstance(snapshot, dict):
        logger.warning("Session %s snapshot is not an object; starting fresh", session_id)
        return Session()
    try:
        s = Session.model_validate({**snapshot, "session_id": session_id})
    except SchemaError as e:
        logger.warning("Session %s snapshot is invalid (%d error(s)); starting fresh", session_id, e.error_count())
        return Session()
    return _repair(s)


def persist(store, session: Session) -> bool:
    """Best-effort full overwrite of the snapshot. Returns False if it was not written."""
    if not session.session_id:
        return False
    try:
        store.put(session.session_id, session.model_dump(mode="json"))
    except PersistenceError as e:
        logger.warning("Could not persist session %s: %s", session.session_id, e)
        return False
    return True


def discard(store, session_id: Optional[str]) -> None:
    if not session_id:
        return
    try:
        store.delete(session_id)
    except PersistenceError as e:
        logger.warning("Could not delete session %s: %s", session_id, e)
