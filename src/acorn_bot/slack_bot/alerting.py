"""Error alerting for the Acorn Slack bot.

Agent failures, model errors and Slack delivery problems are posted to the
channel named by ACORN_ALERT_CHANNEL. Without a client or channel the alert is
only printed.
"""

from slack_sdk.errors import SlackApiError

from acorn_bot.lib.utils.config import ACORN_ALERT_CHANNEL

MAX_DETAIL_CHARS = 300

# Async Slack client shared by alerts; installed by SlackBot or the Lambda handler
_slack_client = None


def set_slack_client(client):
    global _slack_client
    _slack_client = client


def get_slack_client():
    return _slack_client


def build_alert_blocks(error_type: str, message: str, details: dict | None = None) -> list:
    """Header section plus an optional bullet list of details (values truncated)."""
    blocks = [
        {"type": "section", "text": {"type": "mrkdwn", "text": f"⚠️ *Acorn Error: {error_type}*\n{message}"}},
    ]
    if details:
        lines = []
        for key, value in details.items():
            value = str(value)
            if len(value) > MAX_DETAIL_CHARS:
                value = value[:MAX_DETAIL_CHARS] + "..."
            lines.append(f"• *{key}*: `{value}`")
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": "\n".join(lines)}})
    return blocks


async def alert_error(error_type: str, message: str, details: dict | None = None, channel: str | None = None):
    """Post an error alert. Never raises, so a failed alert can't mask the original error.

    Args:
        error_type: Short error type (e.g., "Agent Failure", "Model Error")
        message: Human-readable error message
        details: Optional context such as user, channel or backend
        channel: Alert channel, defaults to ACORN_ALERT_CHANNEL
    """
    channel = channel or ACORN_ALERT_CHANNEL
    if _slack_client is None or not channel:
        print(f"[Acorn Alert] {error_type}: {message} (no alert channel)")
        return

    try:
        await _slack_client.chat_postMessage(
            channel=channel,
            text=f"⚠️ Acorn Error: {error_type} - {message}",
            blocks=build_alert_blocks(error_type, message, details),
        )
    except SlackApiError as e:
        print(f"[Acorn Alert] Slack rejected alert for {error_type}: {e.response.get('error', e)}")
    except Exception as e:
        print(f"[Acorn Alert] Could not deliver alert for {error_type}: {e}")
