"""Bedrock transports used by the AI service.

Both transports are thin, blocking wrappers over boto3. The AI service runs
their methods in worker threads and never touches boto3 directly, which keeps
the backend selection logic testable with in-memory fakes.
"""

import json

from acorn_bot.slack_bot.bedrock_client import get_agent_client, get_bedrock_client

ANTHROPIC_VERSION = "bedrock-2023-05-31"


def decode_bytes(data) -> str:
    if isinstance(data, (bytes, bytearray)):
        return data.decode("utf-8", errors="replace")
    return data if isinstance(data, str) else ""


class BedrockAgentTransport:
    """Invokes a Bedrock Agent and exposes its completion event stream."""

    def __init__(self, client=None):
        self.client = client or get_agent_client()

    def invoke_agent(
        self,
        agent_id: str,
        alias_id: str,
        session_id: str,
        input_text: str,
        enable_trace: bool = False,
    ):
        """Start an agent invocation.

        Returns:
            Iterable of completion events. Each event may carry
            ``chunk.bytes`` and/or ``chunk.attribution.citations``.
        """
        response = self.client.invoke_agent(
            agentId=agent_id,
            agentAliasId=alias_id,
            sessionId=session_id,
            inputText=input_text,
            enableTrace=enable_trace,
        )
        return response.get("completion") or []


class BedrockModelTransport:
    """Invokes an Anthropic model on Bedrock, whole or streamed."""

    def __init__(self, model_id: str, client=None):
        self.model_id = model_id
        self.client = client or get_bedrock_client()

    def _build_body(self, messages: list, temperature: float, max_tokens: int) -> str:
        # Anthropic takes the system prompt as a top-level field
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        body = {
            "anthropic_version": ANTHROPIC_VERSION,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages if m["role"] != "system"],
        }
        if system:
            body["system"] = system
        return json.dumps(body)

    def generate(self, messages: list, temperature: float = 0.7, max_tokens: int = 1500) -> str:
        """Return the full completion text for ``messages``."""
        response = self.client.invoke_model(
            modelId=self.model_id,
            body=self._build_body(messages, temperature, max_tokens),
        )
        result = json.loads(response["body"].read())
        return "".join(block.get("text", "") for block in result.get("content", []) if block.get("type") == "text")

    def stream(self, messages: list, temperature: float = 0.7, max_tokens: int = 1500):
        """Start a streamed completion and return an iterator of text deltas.

        The request is sent before this returns, so connection and validation
        errors surface here rather than on the first read.
        """
        response = self.client.invoke_model_with_response_stream(
            modelId=self.model_id,
            body=self._build_body(messages, temperature, max_tokens),
        )
        return self._iter_text(response["body"])

    @staticmethod
    def _iter_text(event_stream):
        try:
            for event in event_stream:
                chunk = event.get("chunk")
                if not chunk:
                    continue
                payload = json.loads(decode_bytes(chunk.get("bytes")))
                if payload.get("type") != "content_block_delta":
                    continue
                delta = payload.get("delta", {})
                if delta.get("type") == "text_delta" and delta.get("text"):
                    yield delta["text"]
        finally:
            close = getattr(event_stream, "close", None)
            if callable(close):
                close()
