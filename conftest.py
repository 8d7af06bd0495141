import json

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.ai import gemini
from apps.common.ratelimit import InMemoryRateLimiter, set_rate_limiter

User = get_user_model()


VALID_EVALUATION = {
    "extracted_question": "Discuss the role of the Finance Commission in fiscal federalism.",
    "marks_allocated": 15,
    "word_limit": 250,
    "actual_word_count": 240,
    "score": 6.5,
    "structure": "Clear introduction, body lacks sub-headings.",
    "content_quality": "Covers devolution but misses recent commission data.",
    "presentation": "Readable and well organised.",
    "adherence_to_word_limit": "Within limit",
    "key_strengths": ["Good introduction"],
    "key_weaknesses": ["No data"],
    "suggestions": ["Quote the 15th Finance Commission devolution share"],
}


def make_questions(n=3):
    return [
        {
            "question": f"Which article of the Constitution deals with topic {i}?",
            "options": {"a": "Article 1", "b": "Article 2", "c": "Article 3", "d": "Article 4"},
            "correct_answer": "abcd"[i % 4],
            "explanation": f"Explanation {i}",
        }
        for i in range(n)
    ]


class FakeGeminiClient:
    """Stands in for ``GeminiClient``; replays queued responses and records calls."""

    def __init__(self):
        self.responses = []
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def generate_text(self, prompt, parts=None, **kwargs):
        self.calls.append({"prompt": prompt, "parts": list(parts or []), **kwargs})
        response = self.responses.pop(0) if self.responses else "ok"
        if isinstance(response, Exception):
            raise response
        if not isinstance(response, str):
            response = json.dumps(response)
        return response

    def generate_json(self, prompt, parts=None, **kwargs):
        return gemini.parse_json_text(self.generate_text(prompt, parts=parts, json_mode=True, **kwargs))


@pytest.fixture
def fake_gemini(monkeypatch):
    client = FakeGeminiClient()
    monkeypatch.setattr(gemini, "get_client", lambda **kwargs: client)
    return client


@pytest.fixture(autouse=True)
def fresh_rate_limiter():
    limiter = InMemoryRateLimiter()
    set_rate_limiter(limiter)
    yield limiter
    set_rate_limiter(None)


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path / "media")
    settings.EVALUATION_DISPATCH_MODE = "queue"
    return tmp_path / "media"


@pytest.fixture
def user(db):
    return User.objects.create_user(username="aspirant", email="aspirant@example.com", password="pass12345")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="other", email="other@example.com", password="pass12345")


@pytest.fixture
def admin_user(db):
    admin = User.objects.create_user(username="mentor", email="mentor@example.com", password="pass12345")
    admin.profile.is_admin = True
    admin.profile.save()
    return admin


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def questions_factory():
    return make_questions


@pytest.fixture
def valid_evaluation():
    return dict(VALID_EVALUATION)
