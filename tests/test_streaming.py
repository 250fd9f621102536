"""Tests for the stream accumulator and the streaming response flow."""

from acorn_bot.slack_bot import streaming
from acorn_bot.slack_bot.ai_service import AGENT, MODEL, AIService, StreamHandle
from acorn_bot.slack_bot.chunks import citations_chunk, complete_chunk, text_chunk
from acorn_bot.slack_bot.metrics import SUMMARY_EVERY, AcornMetrics
from acorn_bot.slack_bot.responses import STREAM_ERROR_RESPONSE, placeholder_text
from acorn_bot.slack_bot.streaming import (
    BACKGROUND,
    INTERACTIVE,
    PROGRESS_MARKER,
    StreamAccumulator,
    UpdatePolicy,
    handle_streaming_response,
)
from conftest import FakeModelTransport, FakeSlackClient, s3_citation


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def ticking(clock, items, step=1.0, closed=None):
    """Async chunk source that advances ``clock`` by ``step`` before each item."""

    async def gen():
        try:
            for item in items:
                clock.now += step
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            if closed is not None:
                closed.append(True)

    return gen()


def accumulator(client, clock, policy=INTERACTIVE, prefix="", remaining_time_ms=None):
    return StreamAccumulator(
        client,
        "C1",
        "1700000000.000001",
        prefix=prefix,
        policy=policy,
        remaining_time_ms=remaining_time_ms,
        clock=clock,
    )


class TestStreamAccumulator:
    async def test_progress_updates_only_grow(self, slack_client) -> None:
        clock = FakeClock()
        acc = accumulator(slack_client, clock, prefix="> ")
        handle = StreamHandle(MODEL, ticking(clock, ["Squirrels ", "bury ", "nuts ", "everywhere."], step=3.0))

        delivered = await acc.run(handle, "U1")

        assert delivered
        texts = [u["text"] for u in slack_client.updates]
        progress = [t[: -len(PROGRESS_MARKER)] for t in texts[:-1]]
        assert all(t.endswith(PROGRESS_MARKER) for t in texts[:-1])
        for earlier, later in zip(progress, progress[1:]):
            assert later.startswith(earlier)
        assert texts[-1] == "> Squirrels bury nuts everywhere."

    async def test_stops_at_completion_marker(self, slack_client) -> None:
        clock = FakeClock()
        closed = []
        chunks = [text_chunk("Done."), complete_chunk("Done."), text_chunk(" never read")]
        handle = StreamHandle(AGENT, ticking(clock, chunks, step=0.1, closed=closed))

        acc = accumulator(slack_client, clock)
        await acc.run(handle, "U1")

        assert acc.state.full_text == "Done."
        assert slack_client.last_text == "Done."
        assert closed == [True]

    async def test_progress_cadence(self, slack_client) -> None:
        clock = FakeClock()
        handle = StreamHandle(MODEL, ticking(clock, ["a"] * 6, step=1.0))

        acc = accumulator(slack_client, clock, policy=UpdatePolicy(interval_seconds=2.0))
        await acc.consume(handle)

        # Pushes at t=3 and t=6: strictly more than 2s since the previous one
        assert acc.progress_updates == 2
        assert [u["text"] for u in slack_client.updates] == ["aaa...", "aaaaaa..."]

    async def test_background_policy_waits_for_enough_text(self, slack_client) -> None:
        clock = FakeClock()
        handle = StreamHandle(MODEL, ticking(clock, ["short"] * 5, step=10.0))

        acc = accumulator(slack_client, clock, policy=BACKGROUND)
        await acc.consume(handle)

        assert acc.progress_updates == 0
        assert slack_client.updates == []

    async def test_failed_update_does_not_abort(self) -> None:
        client = FakeSlackClient(fail_update=True)
        clock = FakeClock()
        handle = StreamHandle(MODEL, ticking(clock, ["one ", "two ", "three"], step=5.0))

        acc = accumulator(client, clock)
        delivered = await acc.run(handle, "U1")

        assert acc.state.full_text == "one two three"
        assert acc.progress_updates == 0
        assert delivered is False

    async def test_stream_error_replaces_partial_text(self, slack_client) -> None:
        clock = FakeClock()
        handle = StreamHandle(MODEL, ticking(clock, ["partial ", RuntimeError("connection reset")], step=0.1))

        acc = accumulator(slack_client, clock, prefix="prefix ")
        delivered = await acc.run(handle, "U1")

        assert delivered is False
        assert slack_client.last_text == "❌ <@U1> Error during streaming: connection reset"

    async def test_sources_appended_once_at_end(self, slack_client) -> None:
        clock = FakeClock()
        citation = s3_citation("s3://kb/acorns.pdf", title="Acorn guide")
        chunks = [
            text_chunk("Oak trees."),
            citations_chunk({"citations": [citation]}),
            citations_chunk({"citations": [citation]}),
            complete_chunk("Oak trees."),
        ]
        handle = StreamHandle(AGENT, ticking(clock, chunks, step=0.1))

        acc = accumulator(slack_client, clock)
        await acc.run(handle, "U1")

        assert len(acc.state.citations) == 1
        assert slack_client.last_text == "Oak trees.\n\n📚 *Sources:*\n1. 📄 Acorn guide\n   s3://kb/acorns.pdf\n"

    async def test_malformed_reference_keeps_answer(self, slack_client) -> None:
        clock = FakeClock()
        bad_reference = {"content": {"text": 12345}, "location": {"s3Location": {"uri": "s3://kb/odd.pdf"}}}
        chunks = [
            text_chunk("Good answer."),
            citations_chunk({"citations": [{"retrievedReferences": [bad_reference]}]}),
            text_chunk(7),
            complete_chunk("Good answer."),
        ]
        handle = StreamHandle(AGENT, ticking(clock, chunks, step=0.1))

        acc = accumulator(slack_client, clock)
        delivered = await acc.run(handle, "U1")

        assert delivered is True
        assert slack_client.last_text.startswith("Good answer.")
        assert "Source document" in slack_client.last_text
        assert "s3://kb/odd.pdf" in slack_client.last_text

    async def test_low_time_budget_skips_progress_edits(self, slack_client) -> None:
        clock = FakeClock()
        handle = StreamHandle(MODEL, ticking(clock, ["x" * 100, "y"], step=5.0))

        acc = accumulator(slack_client, clock, remaining_time_ms=lambda: 500)
        delivered = await acc.run(handle, "U1")

        assert delivered is True
        assert acc.progress_updates == 0
        assert [u["text"] for u in slack_client.updates] == ["x" * 100 + "y"]
        assert acc.state.full_text == "x" * 100 + "y"


class TestHandleStreamingResponse:
    async def test_answer_is_streamed_into_thread(self, slack_client, ai_service) -> None:
        delivered = await handle_streaming_response(
            slack_client, ai_service, "Where are my nuts?", "C1", "1699.0001", "U1", prefix="P: "
        )

        assert delivered
        assert slack_client.posts[0] == {"channel": "C1", "text": placeholder_text("P: "), "thread_ts": "1699.0001"}
        assert slack_client.last_text == "P: agent answer"

    async def test_backend_failure_is_shown_to_user(self, slack_client) -> None:
        service = AIService(
            model_id="m",
            agent_id="",
            knowledge_base_ids=[],
            model_transport=FakeModelTransport(error=RuntimeError("boom")),
        )

        delivered = await handle_streaming_response(slack_client, service, "q", "C1", None, "U1")

        assert delivered is False
        assert slack_client.last_text == f"❌ <@U1> {STREAM_ERROR_RESPONSE}"

    async def test_placeholder_failure_skips_backend(self, model_only_service, model_transport) -> None:
        client = FakeSlackClient(fail_post=True)

        delivered = await handle_streaming_response(client, model_only_service, "q", "C1", None, "U1")

        assert delivered is False
        assert model_transport.stream_calls == []

    async def test_streamed_requests_log_periodic_summary(
        self, monkeypatch, capsys, slack_client, model_only_service
    ) -> None:
        metrics = AcornMetrics()
        monkeypatch.setattr(streaming, "get_metrics", lambda: metrics)

        for _ in range(SUMMARY_EVERY):
            await handle_streaming_response(slack_client, model_only_service, "q", "C1", None, "U1")

        assert metrics.total_requests == SUMMARY_EVERY
        assert f"[Acorn Metrics] Requests: {SUMMARY_EVERY} (model={SUMMARY_EVERY})" in capsys.readouterr().out
