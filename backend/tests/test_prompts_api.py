"""
HTTP tests for /api/prompts and /api/generate.
The prompt service runs over an in-memory store and the model client is a
MagicMock, so no Supabase or LLM connection is required.
"""
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, patch
from app.main import app
from app.core.exceptions import GenerationError
from app.services.ai import AIService, get_ai_service
from app.services.prompt_service import PromptService, get_prompt_service
from app.services.prompt_store import InMemoryPromptStore

client = TestClient(app)


@pytest.fixture
def service():
    svc = PromptService(InMemoryPromptStore())
    app.dependency_overrides[get_prompt_service] = lambda: svc
    yield svc
    app.dependency_overrides.clear()


@pytest.fixture
def ai():
    mock = MagicMock(spec=AIService)
    mock.generate.return_value = {"passages": [{"title": "Why?"}]}
    app.dependency_overrides[get_ai_service] = lambda: mock
    yield mock
    app.dependency_overrides.pop(get_ai_service, None)


@pytest.fixture
def no_admin_secret():
    with patch("app.api.prompts.get_settings", return_value=MagicMock(admin_secret="", debug=True)):
        yield


# ---------------------------------------------------------------------------
# /api/prompts
# ---------------------------------------------------------------------------

class TestPromptRoutes:

    def test_list_falls_back_to_defaults(self, service):
        response = client.get("/api/prompts")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["is_from_database"] is False
        assert body["data"][0]["category"] == "passage"

    def test_initialize_then_list(self, service, no_admin_secret):
        response = client.post("/api/prompts/initialize", json={"forceReset": False})
        assert response.status_code == 200
        assert response.json()["count"] == len(service.registry)
        assert client.get("/api/prompts").json()["is_from_database"] is True

    def test_update_returns_new_version(self, service, no_admin_secret):
        client.post("/api/prompts/initialize", json={})
        response = client.post("/api/prompts/update", json={
            "promptId": "area-physics",
            "promptText": "new physics",
            "changedBy": "alice",
        })
        assert response.status_code == 200
        assert response.json()["newVersion"] == 2

    def test_update_empty_text_is_400(self, service, no_admin_secret):
        response = client.post("/api/prompts/update", json={"promptId": "area-physics", "promptText": "  "})
        assert response.status_code == 400

    def test_update_unknown_prompt_is_404(self, service, no_admin_secret):
        response = client.post("/api/prompts/update", json={"promptId": "nope", "promptText": "x"})
        assert response.status_code == 404

    def test_reset_unknown_prompt_is_404(self, service, no_admin_secret):
        response = client.post("/api/prompts/reset", json={"promptId": "nope"})
        assert response.status_code == 404

    def test_reset(self, service, no_admin_secret):
        response = client.post("/api/prompts/reset", json={"promptId": "passage-system-base"})
        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_migrate_without_legacy_reader_is_500(self, service, no_admin_secret):
        response = client.post("/api/prompts/migrate-legacy", json={"force": False})
        assert response.status_code == 500

    def test_download_csv(self, service, no_admin_secret):
        client.post("/api/prompts/initialize", json={})
        response = client.get("/api/prompts/download")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        assert "passage-system-base" in response.text

    def test_preview(self, service):
        response = client.post("/api/prompts/preview", json={
            "category": "vocabulary",
            "subCategory": "vocabularySystem",
            "key": "system_base",
            "variables": {"termName": "friction"},
        })
        assert response.status_code == 200
        body = response.json()
        assert "**Term**: friction" in body["text"]
        assert body["provenance"] == "default-fallback"
        assert "termName" not in body["unresolved_placeholders"]
        assert "passage" in body["unresolved_placeholders"]

    def test_preview_unknown_template_is_404(self, service):
        response = client.post("/api/prompts/preview", json={
            "category": "passage", "subCategory": "system", "key": "missing",
        })
        assert response.status_code == 404


class TestAdminSecret:

    def test_no_secret_outside_debug_is_403(self, service):
        with patch("app.api.prompts.get_settings", return_value=MagicMock(admin_secret="", debug=False)):
            response = client.post("/api/prompts/initialize", json={})
        assert response.status_code == 403

    def test_missing_secret_is_403(self, service):
        with patch("app.api.prompts.get_settings", return_value=MagicMock(admin_secret="s3cret")):
            response = client.post("/api/prompts/initialize", json={})
        assert response.status_code == 403

    def test_wrong_secret_is_403(self, service):
        with patch("app.api.prompts.get_settings", return_value=MagicMock(admin_secret="s3cret")):
            response = client.post("/api/prompts/reset", json={"promptId": "area-physics"},
                                   headers={"X-Admin-Secret": "guess"})
        assert response.status_code == 403

    def test_correct_secret(self, service):
        with patch("app.api.prompts.get_settings", return_value=MagicMock(admin_secret="s3cret")):
            response = client.post("/api/prompts/reset", json={"promptId": "area-physics"},
                                   headers={"X-Admin-Secret": "s3cret"})
        assert response.status_code == 200

    def test_listing_needs_no_secret(self, service):
        with patch("app.api.prompts.get_settings", return_value=MagicMock(admin_secret="s3cret")):
            response = client.get("/api/prompts")
        assert response.status_code == 200


# ---------------------------------------------------------------------------
# /api/generate
# ---------------------------------------------------------------------------

PASSAGE_BODY = {
    "division": "middle",
    "length": "10_5",
    "subject": "science",
    "grade": "Grade 8",
    "area": "physics",
    "maintopic": "Energy",
    "subtopic": "Energy conversion",
    "keyword": "kinetic energy",
}


class TestGenerationRoutes:

    def test_passage(self, service, ai):
        response = client.post("/api/generate/passage", json=dict(PASSAGE_BODY, model="gpt-5"))
        assert response.status_code == 200
        body = response.json()
        assert "Energy conversion" in body["prompt"]
        assert body["result"] == {"passages": [{"title": "Why?"}]}
        prompt, model = ai.generate.call_args[0]
        assert model == "gpt-5"
        assert prompt == body["prompt"]

    def test_unknown_model_rejected(self, service, ai):
        response = client.post("/api/generate/passage", json=dict(PASSAGE_BODY, model="gpt-2"))
        assert response.status_code == 422
        ai.generate.assert_not_called()

    def test_missing_template_is_404_and_model_not_called(self, service, ai):
        response = client.post("/api/generate/passage", json=dict(PASSAGE_BODY, area="astrology"))
        assert response.status_code == 404
        ai.generate.assert_not_called()

    def test_model_failure_is_502(self, service, ai):
        ai.generate.side_effect = GenerationError("gpt-4.1", RuntimeError("timeout"))
        response = client.post("/api/generate/passage", json=PASSAGE_BODY)
        assert response.status_code == 502

    def test_vocabulary(self, service, ai):
        response = client.post("/api/generate/vocabulary", json={
            "termName": "friction", "termDescription": "a resisting force",
            "passage": "text", "division": "elem_high", "model": "gemini-2.5-flash",
        })
        assert response.status_code == 200
        assert "**Term**: friction" in response.json()["prompt"]

    def test_paragraph(self, service, ai):
        response = client.post("/api/generate/paragraph", json={
            "title": "Rivers", "paragraphText": "Rivers erode.", "division": "middle",
            "questionType": "ox",
        })
        assert response.status_code == 200
        assert "True or false" in response.json()["prompt"]

    def test_comprehensive(self, service, ai):
        response = client.post("/api/generate/comprehensive", json={
            "passage": "p", "division": "middle", "questionType": "keyword", "questionCount": 2,
        })
        assert response.status_code == 200
        assert "write 2 questions" in response.json()["prompt"]
