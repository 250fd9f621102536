"""Slack messaging surface for Acorn.

Thin wrappers around chat.postMessage / chat.update on an async Slack Web API
client. Failures are logged and reported through the return value; they are
never raised, so a flaky Slack call can't take down a response in progress.
"""

from slack_sdk.errors import SlackApiError


async def post_message(client, channel: str, text: str, thread_ts: str | None = None):
    """Post a message, optionally in a thread.

    Returns:
        The new message's ts, or None if the post failed.
    """
    try:
        kwargs = {"channel": channel, "text": text}
        if thread_ts:
            kwargs["thread_ts"] = thread_ts
        response = await client.chat_postMessage(**kwargs)
        return response.get("ts")
    except SlackApiError as e:
        print(f"[Messaging] Failed to post message to {channel}: {e.response.get('error', e)}")
    except Exception as e:
        print(f"[Messaging] Failed to post message to {channel}: {e}")
    return None


async def update_message(client, channel: str, ts: str, text: str) -> bool:
    """Replace the text of an existing message in place.

    Returns:
        True if Slack accepted the update.
    """
    if not ts:
        print(f"[Messaging] No message ts to update in {channel}")
        return False
    try:
        await client.chat_update(channel=channel, ts=ts, text=text)
        return True
    except SlackApiError as e:
        print(f"[Messaging] Failed to update message {ts}: {e.response.get('error', e)}")
    except Exception as e:
        print(f"[Messaging] Failed to update message {ts}: {e}")
    return False
