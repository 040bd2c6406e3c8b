"""
API tests for the learning-material routes and error mapping.
"""
import pytest
from fastapi.testclient import TestClient

from conftest import ScriptedClient, fake_model
from api.errors import status_for
from api.main import app
from api.routes.materials import get_pipeline
from core.exceptions import EmptyInputError, PromptTooLargeError, TextTooLongError
from core.llm_client import RemoteServiceError
from core.pipeline import LearningMaterialPipeline

PREFIX = "/api/v1/materials"
SENTENCES = [
    {"id": 1, "text": "Hello world."},
    {"id": 2, "text": "This is great!"},
    {"id": 3, "text": "Are you sure?"},
]


@pytest.fixture
def api_client(fast_config):
    """Test client whose pipeline talks to the given responder."""
    def factory(responder=fake_model):
        service = LearningMaterialPipeline(client=ScriptedClient(responder=responder), config=fast_config)
        app.dependency_overrides[get_pipeline] = lambda: service
        return TestClient(app)

    yield factory
    app.dependency_overrides.clear()


def failing(error):
    return lambda system_prompt, user_text: error


class TestMaterialRoutes:
    """Test successful requests."""

    def test_split_sentences(self, api_client):
        response = api_client().post(f"{PREFIX}/sentences", json={"text": "Hello world. This is great! Are you sure?"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["sentences"][0] == {"id": 1, "text": "Hello world.", "explanation": None}

    def test_paragraphs(self, api_client):
        response = api_client().post(
            f"{PREFIX}/paragraphs", json={"sentences": SENTENCES, "english_level": "CET-6"}
        )

        assert response.status_code == 200
        paragraph = response.json()["paragraphs"][0]
        assert paragraph["title"] == "Reading Section"
        assert [s["id"] for s in paragraph["sentences"]] == [1, 2, 3]

    def test_explanations_with_batch_size(self, api_client):
        response = api_client().post(
            f"{PREFIX}/explanations", json={"sentences": SENTENCES, "batch_size": 2}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["sentences"][1]["explanation"] == "Explanation of: This is great!"

    def test_vocabulary(self, api_client):
        response = api_client().post(
            f"{PREFIX}/vocabulary", json={"text": "Photosynthesis converts sunlight.", "english_level": "TOEFL"}
        )

        assert response.status_code == 200
        assert [v["term"] for v in response.json()["vocabulary"]] == ["Photosynthesis", "converts", "sunlight"]

    def test_process_document(self, api_client):
        response = api_client().post(
            f"{PREFIX}/process",
            json={"content": "Hello world. This is great! Are you sure about vocabulary?", "source_type": "txt"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total_paragraphs"] == 1
        assert data["total_sentences"] == 3
        assert data["vocabulary"][0]["term"] == "vocabulary"

    def test_health(self):
        client = TestClient(app)

        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/").status_code == 200


class TestValidationErrors:
    """Test request rejection before any model call."""

    def test_empty_text(self, api_client):
        response = api_client().post(f"{PREFIX}/sentences", json={"text": "   "})

        assert response.status_code == 400
        assert response.json()["code"] == "EMPTY_INPUT"

    def test_unknown_level(self, api_client):
        response = api_client().post(
            f"{PREFIX}/paragraphs", json={"sentences": SENTENCES, "english_level": "A1"}
        )

        assert response.status_code == 400

    def test_unknown_source_type(self, api_client):
        response = api_client().post(f"{PREFIX}/process", json={"content": "Text.", "source_type": "pdf"})

        assert response.status_code == 400

    def test_batch_size_bounds(self, api_client):
        response = api_client().post(
            f"{PREFIX}/explanations", json={"sentences": SENTENCES, "batch_size": 50}
        )

        assert response.status_code == 422


class TestRemoteFailures:
    """Test differentiated statuses for remote failures."""

    def test_authentication_failure(self, api_client):
        client = api_client(failing(RemoteServiceError("HTTP 401: invalid key", status_code=401)))

        response = client.post(f"{PREFIX}/sentences", json={"text": "Hello world. This is great!"})

        assert response.status_code == 401
        data = response.json()
        assert data["code"] == "AUTHENTICATION_ERROR"
        assert data["error_type"] == "AUTHENTICATION_ERROR"
        assert data["suggestion"] == "The API key is invalid or has expired."
        assert data["action"]

    def test_rate_limit(self, api_client):
        client = api_client(failing(RemoteServiceError("HTTP 429: slow down", status_code=429)))

        response = client.post(f"{PREFIX}/sentences", json={"text": "Hello world. This is great!"})

        assert response.status_code == 429
        assert response.json()["code"] == "RATE_LIMIT_EXCEEDED"

    def test_timeout(self, api_client):
        client = api_client(failing(RemoteServiceError("Request timeout after 120s", code="ETIMEDOUT")))

        response = client.post(
            f"{PREFIX}/explanations", json={"sentences": SENTENCES}
        )

        assert response.status_code == 504
        assert response.json()["code"] == "GATEWAY_TIMEOUT"

    def test_malformed_reply(self, api_client):
        client = api_client(lambda system_prompt, user_text: "I cannot answer in JSON today.")

        response = client.post(f"{PREFIX}/vocabulary", json={"text": "Some text here."})

        assert response.status_code == 502
        assert response.json()["code"] == "BAD_GATEWAY"


class TestStatusMapping:
    """Test the error type to status table."""

    @pytest.mark.parametrize("error, expected", [
        (EmptyInputError("empty"), (400, "EMPTY_INPUT")),
        (TextTooLongError("too long", depth=5, max_depth=5), (413, "TEXT_TOO_LONG")),
        (PromptTooLargeError("big", prompt_length=20000, limit=12000, remaining_sentences=4), (413, "PROMPT_TOO_LARGE")),
    ])
    def test_known_types(self, error, expected):
        assert status_for(error) == expected
