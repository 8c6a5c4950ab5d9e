import json
import threading
import time

import pytest

from mediareader.errors import InferenceError
from mediareader.models import RunConfig


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeSession:
    """Records posts and replays queued responses (or raises queued exceptions)."""

    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = []
        self.closed = False

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        outcome = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self):
        self.closed = True


def completion(text):
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": text}}]}


class EchoClient:
    """Stand-in for InferenceClient answering with the media URL, optionally delayed or failing."""

    def __init__(self, delays=None, failing=()):
        self.delays = delays or {}
        self.failing = set(failing)
        self.calls = []
        self.closed = False
        self._lock = threading.Lock()

    def complete(self, prompt, payload, config):
        with self._lock:
            self.calls.append(payload.content)
        delay = self.delays.get(payload.content, 0.0)
        if delay:
            time.sleep(delay)
        if payload.content in self.failing:
            raise InferenceError("HTTP error 500: boom", status_code=500)
        return f"{prompt}:{payload.content}"

    def close(self):
        self.closed = True


@pytest.fixture
def run_config():
    return RunConfig(api_key="sk-test-1234", model="glm-4v-plus", temperature=0.5, max_tokens=64, prompt_text="describe")
