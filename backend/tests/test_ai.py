"""AI 태스크 생성 API와 응답 파싱을 검증하는 테스트입니다."""

from unittest.mock import patch, MagicMock

from app.config import settings
from app.services.task_ai_service import _parse_json_array
from tests.conftest import auth_headers


def _mock_client(MockClient, raw):
    mock_instance = MagicMock()
    mock_instance.invoke.return_value = raw
    MockClient.return_value = mock_instance
    return mock_instance


def test_parse_json_array_variants():
    assert _parse_json_array('[{"title": "A"}]') == [{"title": "A"}]
    assert _parse_json_array('Here you go:\n```json\n[{"title": "B"}]\n```') == [{"title": "B"}]
    assert _parse_json_array('Sure! [{"title": "C"}] Good luck.') == [{"title": "C"}]
    assert _parse_json_array('{"title": "not a list"}') is None
    assert _parse_json_array("no json here") is None
    assert _parse_json_array("") is None


def test_generate_tasks_mocked(client, seed_users):
    with patch("app.services.task_ai_service.AIClient") as MockClient:
        mock_instance = _mock_client(
            MockClient,
            '```json\n[{"title": "Write outline", "priority": "high"}, {"title": "Review"}]\n```',
        )
        resp = client.post(
            "/api/tasks/generate",
            json={"prompt": "Prepare the quarterly report", "date": "2024-03-01T00:00:00"},
            headers=auth_headers(client, "owner@example.com"),
        )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert [t["title"] for t in body["data"]] == ["Write outline", "Review"]
    prompt = mock_instance.invoke.call_args[0][0]
    assert "2024-03-01" in prompt
    assert MockClient.call_args.kwargs["user_id"] == seed_users["owner"].id


def test_generate_tasks_rejects_non_array(client, seed_users):
    with patch("app.services.task_ai_service.AIClient") as MockClient:
        _mock_client(MockClient, '{"title": "single object"}')
        resp = client.post(
            "/api/tasks/generate",
            json={"prompt": "Plan my day"},
            headers=auth_headers(client, "owner@example.com"),
        )
    assert resp.status_code == 400
    assert resp.json() == {"message": "AI response is not a valid task list", "success": False}


def test_generate_tasks_requires_prompt(client, seed_users):
    resp = client.post("/api/tasks/generate", json={"prompt": "   "}, headers=auth_headers(client, "owner@example.com"))
    assert resp.status_code == 400
    assert resp.json()["message"] == "Prompt is required"


def test_generate_tasks_upstream_failure(client, seed_users):
    with patch("app.services.task_ai_service.AIClient") as MockClient:
        mock_instance = _mock_client(MockClient, "")
        mock_instance.invoke.side_effect = RuntimeError("AI model call failed (gpt-4o-mini): timeout")
        resp = client.post(
            "/api/tasks/generate",
            json={"prompt": "Plan my day"},
            headers=auth_headers(client, "owner@example.com"),
        )
    assert resp.status_code == 503
    assert resp.json()["message"].startswith("AI service error")


def test_generate_tasks_disabled(client, seed_users, monkeypatch):
    monkeypatch.setattr(settings, "AI_FEATURES_ENABLED", False)
    resp = client.post("/api/tasks/generate", json={"prompt": "Plan my day"}, headers=auth_headers(client, "owner@example.com"))
    assert resp.status_code == 503


def test_generate_tasks_requires_session(client, seed_users):
    assert client.post("/api/tasks/generate", json={"prompt": "Plan my day"}).status_code == 401
