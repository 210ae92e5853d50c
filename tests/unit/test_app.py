"""Unit tests for the FastAPI application (model and storage replaced by fakes)."""

import json
import logging

import pytest
from fastapi.testclient import TestClient

from taste_predictor.accounts.repository import InMemoryUserRepository
from taste_predictor.api.app import create_app
from taste_predictor.llm.gemini import CompletionResult
from taste_predictor.models.models import RecipeResult
from taste_predictor.pipeline.pipeline import TastePipeline
from taste_predictor.prompts.prompts import PROMPT_VERSION


PREDICTION_REPLY = '{"prediction":"like","confidence":0.81,"suggestions":["add basil"]}'
RECIPE_REPLY = json.dumps(
    {
        "name": "Tofu Chili Lime Bowl",
        "prepTime": "10 minutes",
        "cookTime": "15 minutes",
        "serves": 2,
        "ingredients": ["tofu (200g)", "chili (1)", "lime (1)"],
        "instructions": ["Press the tofu", "Fry the tofu", "Finish with lime"],
        "tips": [],
    }
)


class ScriptedCompletionClient:
    """Answers prediction prompts and recipe prompts with fixed replies."""

    def __init__(self, failed=False):
        self.failed = failed
        self.prompts = []
        self.before_reply = None

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if self.before_reply:
            self.before_reply()
        if self.failed:
            return CompletionResult.failure("model unavailable")
        if "food critic" in prompt:
            return CompletionResult(text=PREDICTION_REPLY)
        return CompletionResult(text=RECIPE_REPLY)


@pytest.fixture
def completion_client():
    return ScriptedCompletionClient()


@pytest.fixture
def client(completion_client):
    app = create_app(repository=InMemoryUserRepository(), pipeline=TastePipeline(completion_client))
    with TestClient(app) as test_client:
        yield test_client


def register(client, email="cook@example.com", password="secret1"):
    response = client.post("/api/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def auth_headers(client):
    token = register(client)["token"]
    return {"Authorization": f"Bearer {token}"}


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["storage"] == "memory"
        assert body["promptVersion"] == PROMPT_VERSION

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_is_generated(self, client):
        assert client.get("/health").headers["X-Request-ID"]


class TestAuth:
    def test_register_returns_token_and_public_account(self, client):
        body = register(client, email="New@Example.com")

        assert body["token"]
        assert body["tokenType"] == "bearer"
        assert body["account"]["email"] == "new@example.com"
        assert "passwordHash" not in body["account"]
        assert "password_hash" not in body["account"]

    def test_duplicate_registration_conflicts(self, client):
        register(client)

        response = client.post("/api/auth/register", json={"email": "COOK@example.com", "password": "secret1"})

        assert response.status_code == 409

    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "not-an-email", "password": "secret1"},
            {"email": "cook@example.com", "password": "123"},
            {"email": "cook@example.com"},
        ],
    )
    def test_invalid_registration(self, client, payload):
        assert client.post("/api/auth/register", json=payload).status_code == 422

    def test_login(self, client):
        register(client)

        response = client.post("/api/auth/login", json={"email": "cook@example.com", "password": "secret1"})

        assert response.status_code == 200
        token = response.json()["token"]
        me = client.get("/api/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == "cook@example.com"

    def test_login_with_wrong_password(self, client):
        register(client)

        response = client.post("/api/auth/login", json={"email": "cook@example.com", "password": "wrong-pass"})

        assert response.status_code == 401

    def test_login_with_unknown_email(self, client):
        response = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret1"})

        assert response.status_code == 401

    def test_protected_routes_require_token(self, client):
        assert client.get("/api/me").status_code == 401
        assert client.post("/api/predict", json={"ingredients": "tofu"}).status_code == 401

    def test_invalid_token_is_rejected(self, client):
        response = client.get("/api/me", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"


class TestPreferences:
    def test_update_preferences(self, client, auth_headers):
        response = client.put("/api/me/preferences", json={"vegan": True, "glutenFree": True}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["glutenFree"] is True
        assert client.get("/api/me", headers=auth_headers).json()["preferences"]["vegan"] is True


class TestPredict:
    def test_predict_returns_model_result(self, client, auth_headers):
        response = client.post("/api/predict", json={"ingredients": "tofu, chili, lime"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"prediction": "like", "confidence": 0.81, "suggestions": ["add basil"]}

    def test_predict_records_history(self, client, auth_headers):
        client.post("/api/predict", json={"ingredients": "tofu, chili, lime"}, headers=auth_headers)

        history = client.get("/api/history", headers=auth_headers).json()

        assert len(history) == 1
        assert history[0]["ingredients"] == "tofu, chili, lime"
        assert history[0]["prediction"] == "like"

    @pytest.mark.parametrize("payload", [{"ingredients": ""}, {"ingredients": "   "}, {}])
    def test_predict_rejects_empty_ingredients(self, client, auth_headers, completion_client, payload):
        response = client.post("/api/predict", json=payload, headers=auth_headers)

        assert response.status_code == 422
        assert completion_client.prompts == []

    def test_predict_falls_back_when_model_fails(self, client, auth_headers, completion_client):
        completion_client.failed = True

        response = client.post("/api/predict", json={"ingredients": "tofu"}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["prediction"] in ("like", "dislike")
        assert 0.6 <= body["confidence"] <= 0.9

    def test_recipe_saved_during_model_call_survives(self, client, auth_headers, completion_client):
        accounts = client.app.state.accounts
        account_id = client.get("/api/me", headers=auth_headers).json()["id"]

        def save_meanwhile():
            current = accounts.repository.find_by_id(account_id)
            accounts.save_recipe(current, RecipeResult.model_validate_json(RECIPE_REPLY))

        completion_client.before_reply = save_meanwhile
        client.post("/api/predict", json={"ingredients": "tofu"}, headers=auth_headers)

        assert len(client.get("/api/recipes", headers=auth_headers).json()) == 1
        assert len(client.get("/api/history", headers=auth_headers).json()) == 1

    def test_prediction_log_carries_request_and_account(self, client, auth_headers, caplog):
        caplog.set_level(logging.INFO, logger="taste_predictor")
        account_id = client.get("/api/me", headers=auth_headers).json()["id"]

        client.post("/api/predict", json={"ingredients": "tofu"}, headers={**auth_headers, "X-Request-ID": "req-7"})

        records = [r for r in caplog.records if r.getMessage().startswith("Prediction ready")]
        assert len(records) == 1
        assert records[0].request_id == "req-7"
        assert records[0].account_id == account_id


class TestGenerateRecipe:
    def test_generate_recipe(self, client, auth_headers, completion_client):
        response = client.post(
            "/api/generate-recipe",
            json={"ingredients": "tofu, chili, lime", "priorPrediction": "like"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == json.loads(RECIPE_REPLY)
        assert "was: like." in completion_client.prompts[-1]

    def test_generate_recipe_uses_preferences(self, client, auth_headers, completion_client):
        client.put("/api/me/preferences", json={"vegetarian": True}, headers=auth_headers)

        client.post("/api/generate-recipe", json={"ingredients": "tofu"}, headers=auth_headers)

        assert "dietary preferences: vegetarian" in completion_client.prompts[-1]
        assert "was: unknown." in completion_client.prompts[-1]

    def test_generate_recipe_falls_back_when_model_fails(self, client, auth_headers, completion_client):
        completion_client.failed = True

        response = client.post(
            "/api/generate-recipe", json={"ingredients": "chicken, rice, soy sauce"}, headers=auth_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert "chicken" in body["name"]
        assert 2 <= body["serves"] <= 4
        assert len(body["instructions"]) >= 6
        assert {"prepTime", "cookTime", "tips"} <= set(body)

    def test_generate_recipe_rejects_empty_ingredients(self, client, auth_headers):
        response = client.post("/api/generate-recipe", json={"ingredients": " "}, headers=auth_headers)

        assert response.status_code == 422


class TestHistory:
    def test_summary_and_delete(self, client, auth_headers):
        client.post("/api/predict", json={"ingredients": "tofu"}, headers=auth_headers)
        client.post("/api/predict", json={"ingredients": "lime"}, headers=auth_headers)

        summary = client.get("/api/history/summary", headers=auth_headers).json()
        assert summary["total"] == 2
        assert summary["likes"] == 2

        entry_id = client.get("/api/history", headers=auth_headers).json()[0]["id"]
        assert client.delete(f"/api/history/{entry_id}", headers=auth_headers).status_code == 204
        assert len(client.get("/api/history", headers=auth_headers).json()) == 1

    def test_delete_unknown_entry(self, client, auth_headers):
        assert client.delete("/api/history/missing", headers=auth_headers).status_code == 404

    def test_history_is_per_account(self, client, auth_headers):
        client.post("/api/predict", json={"ingredients": "tofu"}, headers=auth_headers)
        other_token = register(client, email="other@example.com")["token"]

        history = client.get("/api/history", headers={"Authorization": f"Bearer {other_token}"}).json()

        assert history == []


class TestSavedRecipes:
    def test_save_list_delete(self, client, auth_headers):
        saved = client.post("/api/recipes", json=json.loads(RECIPE_REPLY), headers=auth_headers)

        assert saved.status_code == 201
        recipe_id = saved.json()["id"]
        assert "savedAt" in saved.json()

        listed = client.get("/api/recipes", headers=auth_headers).json()
        assert [recipe["id"] for recipe in listed] == [recipe_id]

        assert client.delete(f"/api/recipes/{recipe_id}", headers=auth_headers).status_code == 204
        assert client.get("/api/recipes", headers=auth_headers).json() == []

    def test_save_invalid_recipe(self, client, auth_headers):
        response = client.post("/api/recipes", json={"name": "Nothing"}, headers=auth_headers)

        assert response.status_code == 422

    def test_delete_unknown_recipe(self, client, auth_headers):
        assert client.delete("/api/recipes/missing", headers=auth_headers).status_code == 404
