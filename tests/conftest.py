import json
from types import SimpleNamespace

import pytest

from app import create_app
from safepay.services import FraudAnalyzer


CRITICAL_REPLY = {
    "riskScore": 92,
    "status": "CRITICAL",
    "detectedAnomalies": [
        "Amount is 75x the user's average",
        "Unregistered device",
        "Location 5000 km from home",
    ],
    "recommendation": "Block",
    "reasoning": "Large cash-out from an unknown device far from the user's home city.",
    "mlConfidence": 0.94,
    "modelInsights": {
        "isolationForestScore": 97,
        "xgBoostProbability": 91,
        "lstmSequenceScore": 88,
    },
}

SAFE_REPLY = {
    "riskScore": 8,
    "status": "SAFE",
    "detectedAnomalies": [],
    "recommendation": "Approve",
    "reasoning": "Amount, device and location all match the reference profile.",
    "mlConfidence": 0.9,
    "modelInsights": {
        "isolationForestScore": 5,
        "xgBoostProbability": 7,
        "lstmSequenceScore": 10,
    },
}


class StubModels:
    """Stands in for `genai.Client().models`; replays replies in order, repeating the last."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(text=reply)


class StubClient:
    def __init__(self, *replies):
        self.models = StubModels(replies)


@pytest.fixture
def stub_client():
    return StubClient(json.dumps(CRITICAL_REPLY))


@pytest.fixture
def app(tmp_path, stub_client):
    analyzer = FraudAnalyzer(client=stub_client, max_attempts=1)
    return create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "SAFEPAY_DATABASE": str(tmp_path / "transactions.db"),
        },
        analyzer=analyzer,
    )


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def logged_in(client):
    client.post("/login", data={"name": "Asha Rao", "email": "asha@example.com"})
    return client
