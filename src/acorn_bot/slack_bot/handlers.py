"""Slack event handlers for Acorn.

Shared by the socket-mode bot and the HTTP (Lambda) entry point. Each handler
takes the raw Slack event and an async Web API client, routes the text
through the intent router, and either replies with a canned response or
streams an AI answer into the thread.
"""

import platform
import time
import traceback

from acorn_bot.slack_bot import responses, router
from acorn_bot.slack_bot.ai_service import get_ai_service
from acorn_bot.slack_bot.formatters import format_kb_list, format_uptime
from acorn_bot.slack_bot.messaging import post_message
from acorn_bot.slack_bot.streaming import INTERACTIVE, handle_streaming_response

# Skip edits, deletions and other bots (including ourselves)
IGNORED_SUBTYPES = {"bot_message", "message_changed", "message_deleted"}

SQUIRREL_REACTIONS = {"chipmunk", "chestnut", "peanuts", "squirrel", "🐿️", "🌰", "🥜"}

_STARTED_AT = time.time()


def _canned_reply(intent: router.Intent, user: str, ai_service):
    """Text for intents that don't need a backend, or None."""
    kind = intent.kind
    if kind == router.EMPTY:
        return responses.get_empty_mention_response(user)
    if kind == router.GREET:
        return responses.get_random_greeting(user)
    if kind == router.HELP_REQUEST:
        return responses.get_help_response(user)
    if kind == router.THANK:
        return responses.get_random_thank_you(user)
    if kind == router.HELLO:
        return responses.get_hello_response(user)
    if kind == router.HELP_HINT:
        return responses.MESSAGE_HELP_RESPONSE
    if kind == router.STATUS_CHECK:
        ai_service.initialize()
        uptime = format_uptime(time.time() - _STARTED_AT)
        return responses.get_status_response(user, ai_service.get_status(), uptime, platform.python_version())
    if kind == router.INFO_REQUEST:
        ai_service.initialize()
        kb_list = format_kb_list(ai_service.knowledge_base_ids)
        return responses.get_info_response(user, ai_service.get_status(), kb_list)
    if kind == router.ASK_QUERY and not intent.question:
        return responses.ASK_EMPTY_RESPONSE
    if kind == router.KB_QUERY:
        if not ai_service.get_knowledge_base_id(intent.kb_index):
            return responses.kb_not_found_response(intent.kb_index, len(ai_service.knowledge_base_ids))
        if not intent.question:
            return responses.kb_empty_question_response(intent.kb_index)
    return None


async def _answer(
    intent: router.Intent,
    client,
    ai_service,
    channel: str,
    thread_ts: str,
    user: str,
    prefix: str,
    policy,
    remaining_time_ms,
):
    """Reply to one classified intent: canned text or a streamed answer."""
    reply = _canned_reply(intent, user, ai_service)
    if reply:
        await post_message(client, channel, reply, thread_ts)
        return

    if intent.kind == router.KB_QUERY:
        await handle_streaming_response(
            client,
            ai_service,
            intent.question,
            channel,
            thread_ts,
            user,
            prefix=responses.kb_thinking_prefix(intent.kb_index),
            knowledge_base_id=ai_service.get_knowledge_base_id(intent.kb_index),
            policy=policy,
            remaining_time_ms=remaining_time_ms,
        )
        print(f'[SlackBot] KB{intent.kb_index} query from {user}: "{intent.question[:100]}" - streamed')
        return

    await handle_streaming_response(
        client,
        ai_service,
        intent.question,
        channel,
        thread_ts,
        user,
        prefix=prefix,
        policy=policy,
        remaining_time_ms=remaining_time_ms,
    )
    print(f'[SlackBot] {intent.kind} from {user}: "{intent.question[:100]}" - streamed')


async def handle_mention(event: dict, client, ai_service=None, policy=INTERACTIVE, remaining_time_ms=None):
    """Handle @mentions of the bot."""
    ai_service = ai_service or get_ai_service()
    channel = event.get("channel", "")
    user = event.get("user", "")
    thread_ts = event.get("thread_ts") or event.get("ts")

    intent = router.classify_mention(event.get("text", ""))
    print(f"[SlackBot] Mention from {user} in {channel}: {intent.kind}")

    try:
        await _answer(
            intent,
            client,
            ai_service,
            channel,
            thread_ts,
            user,
            prefix=responses.get_random_thinking_prefix(user),
            policy=policy,
            remaining_time_ms=remaining_time_ms,
        )
    except Exception as e:
        print(f"[SlackBot] Error handling mention: {e}")
        traceback.print_exc()
        await post_message(client, channel, f"<@{user}> {responses.GENERIC_ERROR_RESPONSE}", thread_ts)


async def handle_message(
    event: dict,
    client,
    ai_service=None,
    bot_user_id: str | None = None,
    policy=INTERACTIVE,
    remaining_time_ms=None,
):
    """Handle plain messages: ask:/ask kbN: patterns, DM greetings and hints."""
    if event.get("bot_id") or event.get("subtype") in IGNORED_SUBTYPES:
        return

    text = event.get("text") or ""
    user = event.get("user", "")
    if not user or (bot_user_id and user == bot_user_id):
        return

    # Mentions are handled by handle_mention
    if bot_user_id and f"<@{bot_user_id}>" in text:
        return

    intent = router.classify_message(text, is_direct_message=event.get("channel_type") == "im")
    if intent.kind == router.IGNORE:
        return

    ai_service = ai_service or get_ai_service()
    channel = event.get("channel", "")
    thread_ts = event.get("thread_ts") or event.get("ts")
    print(f"[SlackBot] Message from {user} in {channel}: {intent.kind}")

    try:
        await _answer(
            intent,
            client,
            ai_service,
            channel,
            thread_ts,
            user,
            prefix=responses.ask_success_prefix(True),
            policy=policy,
            remaining_time_ms=remaining_time_ms,
        )
    except Exception as e:
        print(f"[SlackBot] Error handling message: {e}")
        traceback.print_exc()
        await post_message(client, channel, responses.GENERIC_ERROR_RESPONSE, thread_ts)


async def handle_member_joined(event: dict, client):
    """Welcome new channel members."""
    user = event.get("user", "")
    channel = event.get("channel", "")
    if await post_message(client, channel, responses.get_member_joined_response(user)):
        print(f"[SlackBot] New member joined {channel}: {user}")


async def handle_reaction(event: dict):
    """Log reactions; squirrel-themed ones get called out."""
    reaction = event.get("reaction", "")
    user = event.get("user", "")
    print(f"[SlackBot] Reaction added: {reaction} by {user}")
    if reaction in SQUIRREL_REACTIONS:
        print("[SlackBot] Squirrel reaction detected")


def ask_command_ack_text(command: dict) -> str:
    """Text for acknowledging /acorn-ask within Slack's 3 second window."""
    question = (command.get("text") or "").strip()
    if not question:
        return responses.ASK_EMPTY_RESPONSE
    return f'{responses.ASK_THINKING_RESPONSE} Processing your question: "{question}"'


async def handle_ask_command(command: dict, client, ai_service=None, policy=INTERACTIVE, remaining_time_ms=None) -> bool:
    """Stream an answer for the /acorn-ask slash command.

    The caller acknowledges the command first (see ask_command_ack_text).
    Empty questions never reach a backend.

    Returns:
        True if an answer was delivered.
    """
    question = (command.get("text") or "").strip()
    if not question:
        return False

    ai_service = ai_service or get_ai_service()
    user = command.get("user_id", "")
    channel = command.get("channel_id", "")
    print(f'[SlackBot] /acorn-ask from {user}: "{question[:100]}"')

    try:
        return await handle_streaming_response(
            client,
            ai_service,
            question,
            channel,
            None,
            user,
            prefix=responses.ask_success_prefix(True),
            policy=policy,
            remaining_time_ms=remaining_time_ms,
        )
    except Exception as e:
        print(f"[SlackBot] Error handling /acorn-ask: {e}")
        traceback.print_exc()
        await post_message(client, channel, f"<@{user}> Sorry, I encountered an error while processing your command.")
        return False


async def dispatch_event(
    event: dict,
    client,
    ai_service=None,
    bot_user_id: str | None = None,
    policy=INTERACTIVE,
    remaining_time_ms=None,
):
    """Route one Events API event to its handler."""
    event_type = event.get("type")
    if event_type == "app_mention":
        await handle_mention(event, client, ai_service, policy=policy, remaining_time_ms=remaining_time_ms)
    elif event_type == "message":
        await handle_message(
            event,
            client,
            ai_service,
            bot_user_id=bot_user_id,
            policy=policy,
            remaining_time_ms=remaining_time_ms,
        )
    elif event_type == "member_joined_channel":
        await handle_member_joined(event, client)
    elif event_type == "reaction_added":
        await handle_reaction(event)
    else:
        print(f"[SlackBot] Unhandled event type: {event_type}")
