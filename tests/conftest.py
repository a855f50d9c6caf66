import json
from concurrent.futures import Future
from types import SimpleNamespace

import pytest
from langchain_core.messages import AIMessageChunk

from stubro.ai_service import StudyAI


class FakeResponse:
    def __init__(self, text=None, image=None, blocked=False):
        self._text = text
        self._blocked = blocked
        if image is None:
            self.candidates = []
        else:
            part = SimpleNamespace(inline_data=SimpleNamespace(data=image))
            self.candidates = [SimpleNamespace(content=SimpleNamespace(parts=[part]))]

    @property
    def text(self):
        if self._blocked:
            raise ValueError("response was blocked")
        return self._text


class FakeGemini:
    """Stands in for ``genai.GenerativeModel`` and the google-genai client.

    Replies are queued per call.
    """

    def __init__(self):
        self.replies = []
        self.calls = []
        self.models = _FakeClientModels(self)

    def reply(self, payload):
        if isinstance(payload, (dict, list)):
            payload = FakeResponse(json.dumps(payload))
        elif isinstance(payload, str):
            payload = FakeResponse(payload)
        self.replies.append(payload)

    def __call__(self, model_name):
        return _FakeModel(self, model_name)

    @property
    def last(self):
        return self.calls[-1]

    def next_reply(self):
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class _FakeModel:
    def __init__(self, gemini, model_name):
        self.gemini = gemini
        self.model_name = model_name

    def generate_content(self, contents, **kwargs):
        self.gemini.calls.append(SimpleNamespace(model=self.model_name, contents=contents, **kwargs))
        return self.gemini.next_reply()


class _FakeClientModels:
    def __init__(self, gemini):
        self.gemini = gemini

    def generate_content(self, model, contents, config=None):
        self.gemini.calls.append(SimpleNamespace(model=model, contents=contents, config=config))
        return self.gemini.next_reply()


class FakeChatModel:
    def __init__(self, chunks=("Hello", " there")):
        self.chunks = list(chunks)
        self.seen = []

    def stream(self, messages):
        self.seen.append(list(messages))
        for chunk in self.chunks:
            yield AIMessageChunk(content=chunk)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class ManualExecutor:
    """Hands back futures the test completes by hand."""

    def __init__(self):
        self.submitted = []

    def submit(self, fn):
        future = Future()
        self.submitted.append((fn, future))
        return future


@pytest.fixture
def gemini():
    return FakeGemini()


@pytest.fixture
def chat_model():
    return FakeChatModel()


@pytest.fixture
def ai(gemini, chat_model):
    return StudyAI(api_key="AI-test-key", model_factory=gemini, chat_factory=lambda name: chat_model,
                   flash_model="flash", pro_model="pro", image_model="image", search_client=gemini)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def executor():
    return ManualExecutor()
