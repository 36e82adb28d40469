# tests/test_api.py
# HTTP surface: status codes and payload shapes through FastAPI's TestClient.

import pytest
from fastapi.testclient import TestClient

from careerguide import orchestrator as orch
from careerguide.errors import GenerationError
from careerguide.main import app
from careerguide.memory import InMemorySessionStore

client = TestClient(app)


@pytest.fixture(autouse=True)
def fresh_store(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(orch, "_store", InMemorySessionStore())
    # Scripted coach regardless of what a local .env configured
    monkeypatch.setattr("careerguide.llm.client", None)


def _start() -> str:
    r = client.post("/sessions", json={})
    assert r.status_code == 200
    return r.json()["session"]["session_id"]


def _complete(sid: str) -> dict:
    data = {}
    for i in range(8):
        r = client.post(f"/sessions/{sid}/answers", json={"text": f"answer {i}"})
        assert r.status_code == 200
        data = r.json()
    return data


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_questions():
    data = client.get("/questions").json()
    assert data["count"] == 8
    assert len(data["questions"]) == 8
    first = data["questions"][0]
    assert first["text"] == "What is your current education level?"
    assert "Master's Degree" in first["options"]
    assert first["max_choices"] == 1
    assert data["questions"][1]["max_choices"] == 3


def test_start_exposes_current_question_options():
    r = client.post("/sessions", json={})
    question = r.json()["current_question"]
    assert question["text"] == "What is your current education level?"
    assert len(question["options"]) == 5

    sid = r.json()["session"]["session_id"]
    r = client.post(f"/sessions/{sid}/answers", json={"text": "Somewhere in between"})
    assert r.status_code == 200
    assert "Computers" in r.json()["current_question"]["options"]


def test_full_flow_with_scripted_coach():
    sid = _start()
    data = _complete(sid)
    assert data["session"]["stage"] == "chat"
    recs = data["session"]["recommendations"]
    assert [r["id"] for r in recs] == ["rec-1", "rec-2", "rec-3"]
    assert recs[0]["title"] == "Frontend Developer"

    r = client.post(f"/sessions/{sid}/recommendations")
    assert r.json()["session"]["stage"] == "recommendations"

    r = client.post(f"/sessions/{sid}/select", json={"recommendation_id": "rec-2"})
    assert r.status_code == 200
    roadmap = r.json()["session"]["roadmap"]
    assert roadmap["career_path"] == "Data Analyst"
    assert len(roadmap["phases"]) == 4

    r = client.post(f"/sessions/{sid}/messages", json={"text": "Any project ideas?"})
    assert r.status_code == 200
    assert r.json()["session"]["messages"][-1]["role"] == "agent"

    r = client.post(f"/sessions/{sid}/accept")
    assert r.status_code == 200
    assert r.json()["career_path"] == "Data Analyst"

    r = client.get(f"/sessions/{sid}")
    assert r.json()["session"]["stage"] == "roadmap"


def test_blank_answer_is_400():
    sid = _start()
    r = client.post(f"/sessions/{sid}/answers", json={"text": "   "})
    assert r.status_code == 400
    assert client.get(f"/sessions/{sid}").json()["session"]["question_index"] == 0


def test_wrong_stage_is_409():
    sid = _start()
    r = client.post(f"/sessions/{sid}/select", json={"recommendation_id": "rec-1"})
    assert r.status_code == 409


def test_roadmap_generation_failure_is_502(monkeypatch: pytest.MonkeyPatch):
    sid = _start()
    _complete(sid)

    def _down(prompt: str) -> str:
        raise GenerationError("upstream timeout")

    monkeypatch.setattr("careerguide.llm.generate", _down)
    r = client.post(f"/sessions/{sid}/select", json={"recommendation_id": "rec-1"})
    assert r.status_code == 502
    assert client.get(f"/sessions/{sid}").json()["session"]["stage"] == "chat"


def test_unknown_session_restores_to_welcome():
    r = client.get("/sessions/never-seen")
    assert r.status_code == 200
    assert r.json()["session"]["stage"] == "welcome"


def test_reset():
    sid = _start()
    r = client.post(f"/sessions/{sid}/reset")
    assert r.status_code == 200
    body = r.json()["session"]
    assert body["stage"] == "welcome"
    assert body["answers"] == [] and body["messages"] == []
