# tests/test_orchestrator.py
# Turn handling with a stubbed generator and a fresh store per test (no external calls).

import json
import threading

import pytest

from careerguide import orchestrator as orch
from careerguide.engine import QUESTIONS
from careerguide.errors import GenerationError, SessionBusyError, StageError
from careerguide.memory import InMemorySessionStore
from careerguide.schemas import Stage

ANSWERS = [f"answer {i}" for i in range(1, 9)]


def _stub_generate(prompt: str) -> str:
    """Fixed replies keyed on the task line of the prompt."""
    if "TASK: career_assessment_analysis" in prompt:
        return json.dumps({"recommendations": [
            {"title": "Cloud Engineer", "match_score": 90, "difficulty": "Advanced", "demand": "High"},
            {"title": "Technical Writer", "match_score": 65, "difficulty": "Beginner", "demand": "Low"},
        ]})
    if "TASK: roadmap_generation" in prompt:
        return json.dumps({"career_path": "Cloud Engineer", "phases": [{"name": "Linux"}]})
    return "Keep going!"


@pytest.fixture(autouse=True)
def fresh_store(monkeypatch: pytest.MonkeyPatch):
    store = InMemorySessionStore()
    monkeypatch.setattr(orch, "_store", store)
    monkeypatch.setattr("careerguide.llm.generate", _stub_generate)
    return store


def _complete(session_id: str):
    resp = None
    for a in ANSWERS:
        resp = orch.answer(session_id, a)
    return resp


def test_start_persists_new_session(fresh_store):
    resp = orch.start_session()
    sid = resp.session.session_id
    assert resp.current_question == QUESTIONS[0]
    assert resp.question_count == 8
    assert fresh_store.get(sid)["stage"] == "assessment"


def test_start_with_known_id_resumes(fresh_store):
    sid = orch.start_session().session.session_id
    orch.answer(sid, "Math and puzzles")
    resp = orch.start_session(sid)
    assert resp.session.session_id == sid
    assert resp.session.question_index == 1
    assert resp.current_question == QUESTIONS[1]


def test_start_with_unknown_id_gets_fresh_id():
    resp = orch.start_session("ghost")
    assert resp.session.stage == Stage.ASSESSMENT
    assert resp.session.session_id and resp.session.session_id != "ghost"


def test_end_to_end_flow():
    sid = orch.start_session().session.session_id
    resp = _complete(sid)
    assert resp.session.stage == Stage.CHAT
    assert resp.current_question is None
    assert len(resp.session.recommendations) == 2

    resp = orch.show_recommendations(sid)
    assert resp.session.stage == Stage.RECOMMENDATIONS

    resp = orch.select_recommendation(sid, "rec-1")
    assert resp.session.stage == Stage.ROADMAP
    assert resp.session.roadmap.career_path == "Cloud Engineer"

    resp = orch.chat(sid, "How long will this take?")
    assert resp.session.messages[-1].text == "Keep going!"

    handoff = orch.accept_roadmap(sid)
    assert handoff.career_path == "Cloud Engineer"

    # a reload sees the same state
    assert orch.get_session(sid).session == resp.session


def test_recommendation_failure_surfaces_notice(monkeypatch: pytest.MonkeyPatch):
    def _broken(prompt: str) -> str:
        raise GenerationError("model overloaded")

    monkeypatch.setattr("careerguide.llm.generate", _broken)
    sid = orch.start_session().session.session_id
    resp = _complete(sid)
    assert resp.session.stage == Stage.CHAT
    assert resp.session.recommendations == []
    assert "overloaded" in resp.notice

    monkeypatch.setattr("careerguide.llm.generate", _stub_generate)
    resp = orch.retry_recommendations(sid)
    assert len(resp.session.recommendations) == 2


def test_reset_forgets_session(fresh_store):
    sid = orch.start_session().session.session_id
    orch.answer(sid, "something")
    resp = orch.reset(sid)
    assert resp.session.stage == Stage.WELCOME
    assert resp.session.session_id is None
    assert orch.get_session(sid).session.stage == Stage.WELCOME
    # resetting again is harmless
    assert orch.reset(sid).session.stage == Stage.WELCOME


def test_operation_on_unknown_session_is_stage_error():
    with pytest.raises(StageError):
        orch.answer("ghost", "hello")


def test_concurrent_operation_on_same_session_is_rejected(monkeypatch: pytest.MonkeyPatch):
    sid = orch.start_session().session.session_id
    for a in ANSWERS[:-1]:
        orch.answer(sid, a)

    entered = threading.Event()
    release = threading.Event()

    def _slow(prompt: str) -> str:
        entered.set()
        release.wait(5)
        return _stub_generate(prompt)

    monkeypatch.setattr("careerguide.llm.generate", _slow)
    results = {}
    worker = threading.Thread(target=lambda: results.update(resp=orch.answer(sid, ANSWERS[-1])))
    worker.start()
    assert entered.wait(5)
    try:
        with pytest.raises(SessionBusyError):
            orch.answer(sid, "second answer")
    finally:
        release.set()
        worker.join(5)

    assert results["resp"].session.stage == Stage.CHAT
    assert len(results["resp"].session.answers) == 8


def test_lock_map_does_not_grow_with_finished_or_unknown_sessions(monkeypatch: pytest.MonkeyPatch):
    baseline = len(orch._locks)
    for i in range(50):
        with pytest.raises(StageError):
            orch.answer(f"ghost-{i}", "hello")
    sid = orch.start_session().session.session_id
    _complete(sid)
    orch.show_recommendations(sid)
    orch.reset(sid)
    orch.reset(sid)
    assert len(orch._locks) == baseline

    entered = threading.Event()
    release = threading.Event()

    def _slow(prompt: str) -> str:
        entered.set()
        release.wait(5)
        return _stub_generate(prompt)

    monkeypatch.setattr("careerguide.llm.generate", _slow)
    sid = orch.start_session().session.session_id
    for a in ANSWERS[:-1]:
        orch.answer(sid, a)
    worker = threading.Thread(target=orch.answer, args=(sid, ANSWERS[-1]))
    worker.start()
    assert entered.wait(5)
    try:
        assert sid in orch._locks
        # a rejected caller must not drop the entry the running one still holds
        with pytest.raises(SessionBusyError):
            orch.reset(sid)
        assert sid in orch._locks
    finally:
        release.set()
        worker.join(5)
    assert len(orch._locks) == baseline
