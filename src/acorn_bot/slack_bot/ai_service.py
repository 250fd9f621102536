"""AI service for Acorn.

Chooses between the Bedrock Agent (knowledge-base backed, returns citations)
and the direct Bedrock model, falls back from agent to model once when the
agent fails, and always returns a structured result instead of raising.

Two entry points share that selection logic:
- query(): single-shot, the whole answer in one BackendResponse
- stream(): returns a StreamHandle for the stream accumulator to drain
"""

import asyncio
import time
from contextlib import aclosing
from dataclasses import dataclass, field

from botocore.exceptions import BotoCoreError

from acorn_bot.lib.utils import config
from acorn_bot.slack_bot.alerting import alert_error
from acorn_bot.slack_bot.bedrock_client import iterate_in_thread
from acorn_bot.slack_bot.chunks import citations_chunk, complete_chunk, text_chunk
from acorn_bot.slack_bot.citations import extract_citations, merge_citations
from acorn_bot.slack_bot.formatters import format_sources
from acorn_bot.slack_bot.metrics import get_metrics
from acorn_bot.slack_bot.responses import (
    AGENT_EMPTY_RESPONSE,
    MODEL_ERROR_RESPONSE,
    MODEL_NOT_CONFIGURED_RESPONSE,
    STREAM_ERROR_RESPONSE,
    build_system_prompt,
)
from acorn_bot.slack_bot.transports import BedrockAgentTransport, BedrockModelTransport, decode_bytes

AGENT = "agent"
MODEL = "model"

SESSION_ID_MAX_LENGTH = 100
TEMPERATURE = 0.7
MAX_TOKENS = 1500


@dataclass(frozen=True)
class Query:
    question_text: str
    user_id: str
    channel_id: str
    knowledge_base_id: str | None = None


@dataclass(frozen=True)
class BackendResponse:
    success: bool
    response_text: str
    source_backend: str | None = None
    citations: list = field(default_factory=list)
    error_message: str | None = None


@dataclass(frozen=True)
class StreamHandle:
    """An open, single-consumer stream of raw chunks.

    ``chunks`` is an async iterator. It can be read once, front to back.
    """

    source_backend: str
    chunks: object
    fell_back: bool = False


@dataclass(frozen=True)
class StreamResult:
    success: bool
    handle: StreamHandle | None = None
    response_text: str = ""
    error_message: str | None = None


def build_session_id(user_id: str, channel_id: str, now_ms: int | None = None) -> str:
    """Agent session id for one query, capped at Bedrock's 100 characters."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"slack-{user_id}-{channel_id}-{now_ms}"[:SESSION_ID_MAX_LENGTH]


class AIService:
    """Front door to the Bedrock backends.

    Transports can be injected (tests, alternate clients). When they aren't,
    they're created on first use from the shared boto3 clients.
    """

    def __init__(
        self,
        model_id: str | None = None,
        agent_id: str | None = None,
        agent_alias_id: str | None = None,
        region: str | None = None,
        knowledge_base_ids: list | None = None,
        enable_trace: bool | None = None,
        agent_transport=None,
        model_transport=None,
    ):
        self.model_id = model_id or config.BEDROCK_MODEL_ID
        self.agent_id = config.BEDROCK_AGENT_ID if agent_id is None else agent_id
        self.agent_alias_id = agent_alias_id or config.BEDROCK_AGENT_ALIAS_ID
        self.region = region or config.AWS_REGION
        self.knowledge_base_ids = list(
            config.BEDROCK_KNOWLEDGE_BASE_IDS if knowledge_base_ids is None else knowledge_base_ids
        )
        self.enable_trace = config.BEDROCK_ENABLE_TRACE if enable_trace is None else enable_trace
        self._agent_transport = agent_transport
        self._model_transport = model_transport
        self.initialized = False

    def initialize(self):
        """Create missing transports. Safe to call repeatedly.

        A transport that can't be created is left unset and its backend is
        reported as not configured.
        """
        if self.initialized:
            return

        if self._model_transport is None:
            try:
                self._model_transport = BedrockModelTransport(self.model_id)
            except BotoCoreError as e:
                print(f"[AIService] Model client unavailable: {e}")

        if self.agent_id and self._agent_transport is None:
            try:
                self._agent_transport = BedrockAgentTransport()
            except BotoCoreError as e:
                print(f"[AIService] Agent client unavailable: {e}")

        self.initialized = True
        print(
            f"[AIService] Initialized - Model: {self.model_id}, "
            f"Agent: {'Yes' if self.agent_configured else 'No'}, "
            f"Knowledge bases: {len(self.knowledge_base_ids)}"
        )

    @property
    def agent_configured(self) -> bool:
        return bool(self.agent_id) and self._agent_transport is not None

    @property
    def model_configured(self) -> bool:
        return self._model_transport is not None

    def get_knowledge_base_id(self, index: int):
        """Get a knowledge base id by its 1-based position, or None."""
        if index < 1 or index > len(self.knowledge_base_ids):
            return None
        return self.knowledge_base_ids[index - 1]

    def get_status(self) -> dict:
        return {
            "initialized": self.initialized,
            "model_configured": self.model_configured,
            "agent_configured": self.agent_configured,
            "model_id": self.model_id,
            "retrieve_and_generate": "Available" if self.agent_configured else "Not configured",
            "region": self.region,
            "knowledge_bases": len(self.knowledge_base_ids),
        }

    # ------------------------------------------------------------------
    # Single-shot queries
    # ------------------------------------------------------------------

    async def query(self, query: Query, force_direct_model: bool = False) -> BackendResponse:
        """Answer a question in one shot, preferring the agent when configured."""
        self.initialize()
        start_time = time.time()
        print(f'[AIService] Query from {query.user_id}: "{query.question_text[:100]}"')
        print(f"[AIService] KB: {query.knowledge_base_id or 'none'}")

        use_agent = self.agent_configured and not force_direct_model
        if use_agent:
            print(f"[AIService] Using Bedrock Agent ({self.agent_id})")
            result = await self._query_agent(query)
        else:
            reason = "direct model requested" if self.agent_configured else "no agent configured"
            print(f"[AIService] Using direct model ({reason})")
            result = await self._query_model(query)

        self._record(start_time, result.source_backend, len(result.citations), use_agent, not result.success)
        return result

    async def query_knowledge_bases(
        self,
        question: str,
        user_id: str,
        channel_id: str,
        knowledge_base_ids: list | None = None,
    ) -> BackendResponse:
        """Try each knowledge base in order and return the first real answer.

        The first knowledge base that produces non-empty text wins; later
        ones are never queried. If none answers, fall back to an unscoped
        query().
        """
        self.initialize()
        kb_ids = self.knowledge_base_ids if knowledge_base_ids is None else list(knowledge_base_ids)

        if not self.agent_configured:
            print("[AIService] No agent configured, skipping knowledge base search")
        else:
            for position, kb_id in enumerate(kb_ids, start=1):
                start_time = time.time()
                scoped = Query(question, user_id, channel_id, knowledge_base_id=kb_id)
                try:
                    text, citations = await asyncio.to_thread(self._run_agent, scoped)
                except Exception as e:
                    print(f"[AIService] Knowledge base #{position} ({kb_id}) failed: {e}")
                    continue

                if text.strip():
                    print(f"[AIService] Knowledge base #{position} ({kb_id}) answered with {len(citations)} citations")
                    self._record(start_time, AGENT, len(citations), True, False)
                    return BackendResponse(
                        success=True,
                        response_text=text.strip() + format_sources(citations),
                        source_backend=AGENT,
                        citations=citations,
                    )
                print(f"[AIService] Knowledge base #{position} ({kb_id}) returned nothing")

        return await self.query(Query(question, user_id, channel_id))

    async def _query_agent(self, query: Query) -> BackendResponse:
        try:
            text, citations = await asyncio.to_thread(self._run_agent, query)
        except Exception as e:
            print(f"[AIService] Agent query failed: {e}")
            print("[AIService] Falling back to direct model query")
            return await self._query_model(query)

        response_text = text.strip() or AGENT_EMPTY_RESPONSE
        if citations:
            print(f"[AIService] Found {len(citations)} citations in agent response")
            response_text += format_sources(citations)
        else:
            print("[AIService] No citations found in agent response")

        return BackendResponse(success=True, response_text=response_text, source_backend=AGENT, citations=citations)

    def _run_agent(self, query: Query) -> tuple:
        """Invoke the agent and drain its completion. Blocking; run in a thread.

        Returns:
            (text, citations)
        """
        session_id = build_session_id(query.user_id, query.channel_id)
        print(f"[AIService] Agent session: {session_id}")
        completion = self._agent_transport.invoke_agent(
            self.agent_id,
            self.agent_alias_id,
            session_id,
            self._agent_input(query),
            self.enable_trace,
        )

        parts = []
        citations = []
        for event in completion:
            chunk = event.get("chunk") or {}
            if chunk.get("bytes"):
                parts.append(decode_bytes(chunk["bytes"]))
            attribution = chunk.get("attribution")
            if attribution:
                citations = merge_citations(citations, extract_citations(attribution))
        return "".join(parts), citations

    async def _query_model(self, query: Query) -> BackendResponse:
        if not self.model_configured:
            return BackendResponse(
                success=False,
                response_text=MODEL_NOT_CONFIGURED_RESPONSE,
                source_backend=MODEL,
                error_message="Model backend not configured",
            )

        print(f"[AIService] Sending request to model {self.model_id}")
        try:
            text = await asyncio.to_thread(
                self._model_transport.generate,
                self._build_messages(query, streaming=False),
                TEMPERATURE,
                MAX_TOKENS,
            )
        except Exception as e:
            print(f"[AIService] Model query failed: {e}")
            await alert_error(
                "Model Error",
                f"Query failed: {str(e)[:200]}",
                {"user": query.user_id, "question_preview": query.question_text[:100]},
            )
            return BackendResponse(
                success=False,
                response_text=MODEL_ERROR_RESPONSE,
                source_backend=MODEL,
                error_message=str(e),
            )

        print(f"[AIService] Model query successful ({len(text)} chars)")
        return BackendResponse(success=True, response_text=text, source_backend=MODEL)

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def stream(self, query: Query, force_direct_model: bool = False) -> StreamResult:
        """Open a response stream, preferring the agent when configured."""
        self.initialize()
        print(f'[AIService] Stream for {query.user_id}: "{query.question_text[:100]}"')
        print(
            f"[AIService] KB: {query.knowledge_base_id or 'auto'}, "
            f"mode={'agent+model' if self.agent_configured else 'model-only'}"
        )

        if self.agent_configured and not force_direct_model:
            return await self._stream_agent(query)

        reason = "direct model requested" if self.agent_configured else "no agent configured"
        print(f"[AIService] Using direct model streaming ({reason})")
        return await self._stream_model(query)

    async def _stream_agent(self, query: Query) -> StreamResult:
        session_id = build_session_id(query.user_id, query.channel_id)
        print(f"[AIService] Starting agent stream - agent {self.agent_id}, alias {self.agent_alias_id}, session {session_id}")
        try:
            completion = await asyncio.to_thread(
                self._agent_transport.invoke_agent,
                self.agent_id,
                self.agent_alias_id,
                session_id,
                self._agent_input(query),
                self.enable_trace,
            )
        except Exception as e:
            print(f"[AIService] Agent stream failed: {e}")
            print("[AIService] Falling back to direct model stream")
            return await self._stream_model(query, fell_back=True)

        return StreamResult(success=True, handle=StreamHandle(AGENT, self._agent_chunks(completion)))

    async def _agent_chunks(self, completion):
        """Translate agent completion events into tagged raw chunks."""
        full_text = ""
        async with aclosing(iterate_in_thread(completion)) as events:
            async for event in events:
                chunk = event.get("chunk") or {}
                if chunk.get("bytes"):
                    text = decode_bytes(chunk["bytes"])
                    full_text += text
                    yield text_chunk(text)

                attribution = chunk.get("attribution")
                if isinstance(attribution, dict) and attribution.get("citations"):
                    print("[AIService] Chunk carries attribution citations")
                    yield citations_chunk(attribution)

        yield complete_chunk(full_text)

    async def _stream_model(self, query: Query, fell_back: bool = False) -> StreamResult:
        if not self.model_configured:
            return StreamResult(
                success=False,
                response_text=MODEL_NOT_CONFIGURED_RESPONSE,
                error_message="Model backend not configured",
            )

        print(f"[AIService] Starting model stream ({self.model_id})")
        try:
            text_stream = await asyncio.to_thread(
                self._model_transport.stream,
                self._build_messages(query, streaming=True),
                TEMPERATURE,
                MAX_TOKENS,
            )
        except Exception as e:
            print(f"[AIService] Model stream failed: {e}")
            await alert_error(
                "Model Stream Error",
                f"Stream failed: {str(e)[:200]}",
                {"user": query.user_id, "question_preview": query.question_text[:100]},
            )
            return StreamResult(success=False, response_text=STREAM_ERROR_RESPONSE, error_message=str(e))

        return StreamResult(
            success=True,
            handle=StreamHandle(MODEL, iterate_in_thread(text_stream), fell_back=fell_back),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _agent_input(query: Query) -> str:
        if query.knowledge_base_id:
            return f"Using knowledge base {query.knowledge_base_id}: {query.question_text}"
        return query.question_text

    @staticmethod
    def _build_messages(query: Query, streaming: bool) -> list:
        return [
            {"role": "system", "content": build_system_prompt(query.knowledge_base_id, streaming=streaming)},
            {"role": "user", "content": query.question_text},
        ]

    @staticmethod
    def _record(start_time: float, source_backend: str, citations: int, tried_agent: bool, error: bool):
        metrics = get_metrics()
        metrics.record_request(
            (time.time() - start_time) * 1000,
            source_backend=source_backend,
            citations=citations,
            fell_back=tried_agent and source_backend == MODEL,
            error=error,
        )
        metrics.maybe_log_summary()


# Shared service instance
_ai_service = None


def get_ai_service() -> AIService:
    """Get the process-wide AI service."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service
