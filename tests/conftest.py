"""Pytest configuration and shared fixtures.

Run with:
    pytest tests/                         # Run all tests
    pytest tests/test_streaming.py -v     # Run specific test file

Nothing here talks to AWS or Slack: the Bedrock transports and the Slack Web
API client are replaced by in-memory fakes that record their calls.
"""

import json

import pytest

from acorn_bot.slack_bot import alerting
from acorn_bot.slack_bot.ai_service import AIService


class FakeSlackClient:
    """Async stand-in for slack_sdk's AsyncWebClient (chat methods only)."""

    def __init__(self, fail_post=False, fail_update=False):
        self.posts = []
        self.updates = []
        self.fail_post = fail_post
        self.fail_update = fail_update
        self._counter = 0

    async def chat_postMessage(self, **kwargs):
        if self.fail_post:
            raise RuntimeError("post failed")
        self._counter += 1
        self.posts.append(kwargs)
        return {"ok": True, "ts": f"1700000000.{self._counter:06d}", "channel": kwargs.get("channel")}

    async def chat_update(self, **kwargs):
        if self.fail_update:
            raise RuntimeError("update failed")
        self.updates.append(kwargs)
        return {"ok": True, "ts": kwargs.get("ts")}

    @property
    def last_text(self):
        """Text currently shown in the most recently touched message."""
        if self.updates:
            return self.updates[-1]["text"]
        return self.posts[-1]["text"] if self.posts else None


class FakeAgentTransport:
    """Records invoke_agent calls and replays canned completion events.

    Args:
        events: completion events returned for every call, or a list of
            per-call event lists when ``per_call`` is True
        error: exception raised by invoke_agent instead
    """

    def __init__(self, events=None, error=None, per_call=False):
        self.events = events or []
        self.error = error
        self.per_call = per_call
        self.calls = []

    def invoke_agent(self, agent_id, alias_id, session_id, input_text, enable_trace=False):
        self.calls.append(
            {
                "agent_id": agent_id,
                "alias_id": alias_id,
                "session_id": session_id,
                "input_text": input_text,
                "enable_trace": enable_trace,
            }
        )
        if self.per_call:
            outcome = self.events[len(self.calls) - 1]
            if isinstance(outcome, Exception):
                raise outcome
            return list(outcome)
        if self.error:
            raise self.error
        return list(self.events)


class FakeModelTransport:
    """Records model calls; returns canned text or a canned delta stream."""

    def __init__(self, text="model answer", deltas=None, error=None):
        self.text = text
        self.deltas = deltas if deltas is not None else ["model ", "answer"]
        self.error = error
        self.generate_calls = []
        self.stream_calls = []

    def generate(self, messages, temperature=0.7, max_tokens=1500):
        self.generate_calls.append(messages)
        if self.error:
            raise self.error
        return self.text

    def stream(self, messages, temperature=0.7, max_tokens=1500):
        self.stream_calls.append(messages)
        if self.error:
            raise self.error
        return iter(self.deltas)


def agent_event(text=None, citations=None):
    """Build one invoke_agent completion event."""
    chunk = {}
    if text is not None:
        chunk["bytes"] = text.encode("utf-8")
    if citations is not None:
        chunk["attribution"] = {"citations": citations}
    return {"chunk": chunk}


def s3_citation(uri, title=None, text="retrieved passage"):
    """Build one attribution citation with a single S3 reference."""
    reference = {"content": {"text": text}, "location": {"type": "S3", "s3Location": {"uri": uri}}}
    if title:
        reference["metadata"] = {"title": title}
    return {"generatedResponsePart": {"textResponsePart": {"text": "part"}}, "retrievedReferences": [reference]}


async def async_chunks(items):
    for item in items:
        yield item


def bedrock_stream_event(payload: dict) -> dict:
    """One invoke_model_with_response_stream event carrying ``payload``."""
    return {"chunk": {"bytes": json.dumps(payload).encode("utf-8")}}


@pytest.fixture(autouse=True)
def no_alert_client():
    """Alerts only log unless a test installs a client."""
    alerting.set_slack_client(None)
    yield
    alerting.set_slack_client(None)


@pytest.fixture
def slack_client():
    return FakeSlackClient()


@pytest.fixture
def model_transport():
    return FakeModelTransport()


@pytest.fixture
def agent_transport():
    return FakeAgentTransport(events=[agent_event("agent answer")])


@pytest.fixture
def ai_service(agent_transport, model_transport):
    """AIService with both backends configured against fakes."""
    return AIService(
        model_id="test-model",
        agent_id="AGENT123",
        agent_alias_id="ALIAS123",
        region="us-east-1",
        knowledge_base_ids=["KB1111111111", "KB2222222222"],
        enable_trace=False,
        agent_transport=agent_transport,
        model_transport=model_transport,
    )


@pytest.fixture
def model_only_service(model_transport):
    """AIService without an agent."""
    return AIService(
        model_id="test-model",
        agent_id="",
        knowledge_base_ids=[],
        model_transport=model_transport,
    )
