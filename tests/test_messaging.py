"""Tests for the Slack messaging surface and error alerting."""

from slack_sdk.errors import SlackApiError

from acorn_bot.slack_bot import alerting
from acorn_bot.slack_bot.messaging import post_message, update_message
from conftest import FakeSlackClient


class RejectingClient:
    """Client whose calls fail the way slack_sdk reports API errors."""

    async def chat_postMessage(self, **kwargs):
        raise SlackApiError("channel_not_found", {"ok": False, "error": "channel_not_found"})

    async def chat_update(self, **kwargs):
        raise SlackApiError("message_not_found", {"ok": False, "error": "message_not_found"})


class TestPostMessage:
    async def test_returns_ts(self, slack_client) -> None:
        ts = await post_message(slack_client, "C1", "hi", "1700.1")

        assert ts == "1700000000.000001"
        assert slack_client.posts == [{"channel": "C1", "text": "hi", "thread_ts": "1700.1"}]

    async def test_top_level_post_has_no_thread(self, slack_client) -> None:
        await post_message(slack_client, "C1", "hi")

        assert "thread_ts" not in slack_client.posts[0]

    async def test_api_error_returns_none(self) -> None:
        assert await post_message(RejectingClient(), "C1", "hi") is None

    async def test_other_errors_return_none(self) -> None:
        assert await post_message(FakeSlackClient(fail_post=True), "C1", "hi") is None


class TestUpdateMessage:
    async def test_success(self, slack_client) -> None:
        assert await update_message(slack_client, "C1", "1.1", "new") is True
        assert slack_client.updates == [{"channel": "C1", "ts": "1.1", "text": "new"}]

    async def test_missing_ts(self, slack_client) -> None:
        assert await update_message(slack_client, "C1", None, "new") is False
        assert slack_client.updates == []

    async def test_api_error_returns_false(self) -> None:
        assert await update_message(RejectingClient(), "C1", "1.1", "new") is False


class TestAlertError:
    async def test_without_client_only_logs(self, capsys) -> None:
        await alerting.alert_error("Model Error", "boom", channel="C-ALERTS")

        assert "[Acorn Alert] Model Error: boom (no alert channel)" in capsys.readouterr().out

    async def test_posts_blocks_to_channel(self, slack_client) -> None:
        alerting.set_slack_client(slack_client)

        await alerting.alert_error("Model Error", "boom", {"user": "U1"}, channel="C-ALERTS")

        post = slack_client.posts[0]
        assert post["channel"] == "C-ALERTS"
        assert post["text"] == "⚠️ Acorn Error: Model Error - boom"
        assert "• *user*: `U1`" in post["blocks"][1]["text"]["text"]

    async def test_never_raises(self) -> None:
        alerting.set_slack_client(RejectingClient())

        await alerting.alert_error("Model Error", "boom", channel="C-ALERTS")

    async def test_long_detail_values_are_truncated(self, slack_client) -> None:
        alerting.set_slack_client(slack_client)

        await alerting.alert_error("Agent Failure", "boom", {"trace": "x" * 1000}, channel="C-ALERTS")

        detail_text = slack_client.posts[0]["blocks"][1]["text"]["text"]
        assert detail_text == f"• *trace*: `{'x' * alerting.MAX_DETAIL_CHARS}...`"
