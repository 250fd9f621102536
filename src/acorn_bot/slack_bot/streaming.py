"""Streaming responses for Acorn.

Slack has no token streaming for bot messages, so a stream is shown by
posting a placeholder and editing it every few seconds as text arrives:

1. post a placeholder in the thread
2. open a stream via the AI service (agent first, model fallback)
3. drain it with a StreamAccumulator, editing the placeholder periodically
4. replace the placeholder with the final text plus any sources

Every failure ends up as an edit of the placeholder; nothing is raised.
"""

import time
import traceback
from dataclasses import dataclass, field

from acorn_bot.slack_bot.ai_service import AGENT, Query
from acorn_bot.slack_bot.chunks import CITATIONS, TEXT, classify_chunk
from acorn_bot.slack_bot.citations import merge_citations
from acorn_bot.slack_bot.formatters import format_sources
from acorn_bot.slack_bot.messaging import post_message, update_message
from acorn_bot.slack_bot.metrics import get_metrics
from acorn_bot.slack_bot.responses import error_text, placeholder_text

PROGRESS_MARKER = "..."

# Skip progress edits when the Lambda has less than this left
MIN_REMAINING_MS = 1000


@dataclass(frozen=True)
class UpdatePolicy:
    """How often progress edits may be pushed to Slack."""

    interval_seconds: float
    min_chars: int = 0


# Socket mode: the user is watching, update often
INTERACTIVE = UpdatePolicy(interval_seconds=2.0)
# HTTP / Lambda: fewer, larger edits
BACKGROUND = UpdatePolicy(interval_seconds=3.0, min_chars=50)


@dataclass
class AccumulationState:
    full_text: str = ""
    citations: list = field(default_factory=list)
    last_update_timestamp: float = 0.0


class StreamAccumulator:
    """Folds one response stream into text + citations and mirrors it to Slack.

    One instance per response. Not reusable.
    """

    def __init__(
        self,
        client,
        channel: str,
        message_ts: str,
        prefix: str = "",
        policy: UpdatePolicy = INTERACTIVE,
        remaining_time_ms=None,
        clock=time.monotonic,
    ):
        self.client = client
        self.channel = channel
        self.message_ts = message_ts
        self.prefix = prefix
        self.policy = policy
        self.remaining_time_ms = remaining_time_ms
        self.clock = clock
        self.state = AccumulationState()
        self.progress_updates = 0

    async def consume(self, handle) -> AccumulationState:
        """Read the handle until it's exhausted or a completion marker arrives.

        Exceptions from the stream propagate; run() turns them into an error
        message.
        """
        self.state = AccumulationState(last_update_timestamp=self.clock())
        chunks = handle.chunks
        try:
            async for chunk in chunks:
                event = classify_chunk(chunk)
                if event.kind == TEXT:
                    self.state.full_text += event.text_delta
                elif event.kind == CITATIONS:
                    self.state.citations = merge_citations(self.state.citations, event.citation_batch)
                    print(f"[Stream] Received {len(event.citation_batch)} citations ({len(self.state.citations)} total)")
                elif event.is_terminal:
                    break

                await self._maybe_push_progress()
        finally:
            # Stop the producer if we left early (completion marker or error)
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                await aclose()
        return self.state

    def final_text(self) -> str:
        return f"{self.prefix}{self.state.full_text}{format_sources(self.state.citations)}"

    async def run(self, handle, user_id: str | None = None) -> bool:
        """Drain the stream and leave the final answer (or an error) in Slack.

        Returns:
            True if the stream completed and the final text was pushed.
        """
        try:
            await self.consume(handle)
        except Exception as e:
            print(f"[Stream] Error during streaming: {e}")
            traceback.print_exc()
            await self._push(error_text(f"Error during streaming: {e}", user_id))
            return False

        if self.state.citations:
            print(f"[Stream] Added {len(self.state.citations)} citations to streaming response")
        return await self._push(self.final_text())

    async def _maybe_push_progress(self):
        now = self.clock()
        if now - self.state.last_update_timestamp <= self.policy.interval_seconds:
            return
        if len(self.state.full_text) <= self.policy.min_chars:
            return
        if self.remaining_time_ms is not None and self.remaining_time_ms() < MIN_REMAINING_MS:
            print("[Stream] Not enough time left for a progress update, skipping")
            return

        if await self._push(f"{self.prefix}{self.state.full_text}{PROGRESS_MARKER}"):
            self.progress_updates += 1
        # Reset even on failure so a broken Slack call isn't retried per chunk
        self.state.last_update_timestamp = self.clock()

    async def _push(self, text: str) -> bool:
        return await update_message(self.client, self.channel, self.message_ts, text)


async def handle_streaming_response(
    client,
    ai_service,
    question: str,
    channel: str,
    thread_ts: str,
    user_id: str,
    prefix: str = "",
    knowledge_base_id: str | None = None,
    policy: UpdatePolicy = INTERACTIVE,
    remaining_time_ms=None,
    force_direct_model: bool = False,
) -> bool:
    """Answer ``question`` in ``channel`` as a live-updating thread reply.

    Returns:
        True if a final answer was delivered.
    """
    start_time = time.time()
    metrics = get_metrics()

    message_ts = await post_message(client, channel, placeholder_text(prefix), thread_ts)
    if not message_ts:
        print(f"[Stream] Could not post placeholder in {channel}, giving up")
        return False

    query = Query(question, user_id, channel, knowledge_base_id=knowledge_base_id)
    result = await ai_service.stream(query, force_direct_model=force_direct_model)

    if not result.success:
        await update_message(client, channel, message_ts, error_text(result.response_text, user_id))
        metrics.record_request((time.time() - start_time) * 1000, error=True)
        metrics.maybe_log_summary()
        return False

    handle = result.handle
    accumulator = StreamAccumulator(
        client,
        channel,
        message_ts,
        prefix=prefix,
        policy=policy,
        remaining_time_ms=remaining_time_ms,
    )
    delivered = await accumulator.run(handle, user_id)

    state = accumulator.state
    source_info = " (with knowledge base)" if handle.source_backend == AGENT else " (direct model)"
    print(
        f"[Stream] Stream for {user_id}: {len(state.full_text)} chars{source_info}, "
        f"{len(state.citations)} citations, {accumulator.progress_updates} progress updates"
    )
    metrics.record_request(
        (time.time() - start_time) * 1000,
        source_backend=handle.source_backend,
        citations=len(state.citations),
        fell_back=handle.fell_back,
        error=not delivered,
    )
    metrics.maybe_log_summary()
    return delivered
