"""AWS Lambda entry points for the Slack Events API.

`handler` receives API Gateway proxy events from Slack, verifies the request
signature, answers the url_verification challenge and runs event callbacks
through the same handlers the socket-mode bot uses. Form-encoded /acorn-ask
slash commands are answered the same way. `health_handler` reports
configuration for the health check endpoint.

Every handled callback returns 200 so Slack does not retry.
"""

import asyncio
import base64
import json
import os
import platform
import time
import traceback
from urllib.parse import parse_qs

from slack_sdk.signature import Clock, SignatureVerifier
from slack_sdk.web.async_client import AsyncWebClient

from acorn_bot import __version__
from acorn_bot.lib.utils import config
from acorn_bot.lib.utils.secrets import get_secret
from acorn_bot.slack_bot.ai_service import get_ai_service
from acorn_bot.slack_bot.alerting import set_slack_client
from acorn_bot.slack_bot.handlers import ask_command_ack_text, dispatch_event, handle_ask_command
from acorn_bot.slack_bot.streaming import BACKGROUND

ASK_COMMAND = "/acorn-ask"
SLASH_COMMAND_ERROR = "Sorry, I encountered an error while processing your command."

REQUIRED_SECRETS = ["SLACK_BOT_TOKEN", "SLACK_SIGNING_SECRET"]
OPTIONAL_SETTINGS = ["SLACK_APP_TOKEN", "BEDROCK_MODEL_ID", "BEDROCK_AGENT_ID", "BEDROCK_KNOWLEDGE_BASE_IDS"]

_STARTED_AT = time.time()


def create_response(status_code: int, body) -> dict:
    """Build an API Gateway proxy response with a JSON body."""
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token",
            "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
        },
        "body": body if isinstance(body, str) else json.dumps(body),
    }


def get_header(headers: dict, name: str) -> str:
    """Case-insensitive header lookup (API Gateway keeps the client's casing)."""
    name = name.lower()
    for key, value in (headers or {}).items():
        if key.lower() == name:
            return value
    return None


def get_raw_body(event: dict) -> str:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body).decode("utf-8")
    return body


def parse_request_body(body: str, content_type: str | None = None) -> dict:
    """Parse a JSON or form-encoded Slack request body.

    Form bodies (slash commands, interactivity) are flattened to single values,
    and a `payload` field holding JSON is decoded.

    Raises:
        ValueError: If the body is not valid for its content type.
    """
    if not body:
        return {}

    if content_type and "application/x-www-form-urlencoded" in content_type:
        result = {key: values[0] for key, values in parse_qs(body, keep_blank_values=True).items()}
        if "payload" in result:
            result["payload"] = json.loads(result["payload"])
        return result

    return json.loads(body)


def verify_request(headers: dict, body: str, signing_secret: str | None = None, now: float | None = None) -> bool:
    """Check the X-Slack-Signature HMAC and reject requests older than 5 minutes."""
    signing_secret = signing_secret or get_secret("SLACK_SIGNING_SECRET")
    if not signing_secret:
        print("[Lambda] SLACK_SIGNING_SECRET not configured")
        return False

    signature = get_header(headers, "X-Slack-Signature")
    timestamp = get_header(headers, "X-Slack-Request-Timestamp")
    if not signature or not timestamp:
        return False

    if now is None:
        verifier = SignatureVerifier(signing_secret)
    else:
        verifier = SignatureVerifier(signing_secret, clock=_FixedClock(now))
    return verifier.is_valid(body=body, timestamp=timestamp, signature=signature)


class _FixedClock(Clock):
    """Clock for SignatureVerifier pinned to a given time."""

    def __init__(self, now: float):
        self._now = now

    def now(self) -> float:
        return self._now


async def process_event_callback(payload: dict, context=None, client=None, ai_service=None):
    """Run one event_callback envelope through the shared handlers."""
    event = payload.get("event") or {}
    client = client or AsyncWebClient(token=get_secret("SLACK_BOT_TOKEN"))
    set_slack_client(client)

    remaining_time_ms = getattr(context, "get_remaining_time_in_millis", None)
    bot_user_id = None
    authorizations = payload.get("authorizations") or []
    if authorizations:
        bot_user_id = authorizations[0].get("user_id")

    print(f"[Lambda] Processing Slack event: {event.get('type')} user={event.get('user')} channel={event.get('channel')}")
    await dispatch_event(
        event,
        client,
        ai_service or get_ai_service(),
        bot_user_id=bot_user_id,
        policy=BACKGROUND,
        remaining_time_ms=remaining_time_ms,
    )


async def process_slash_command(payload: dict, context=None, client=None, ai_service=None) -> dict:
    """Answer a form-encoded slash command and return the body Slack shows the caller.

    An empty /acorn-ask only gets the ephemeral hint. A real question is
    streamed into the channel before the in-channel acknowledgement is returned.
    """
    command = payload.get("command")
    print(f"[Lambda] Slash command: {command} user={payload.get('user_id')} channel={payload.get('channel_id')}")
    if command != ASK_COMMAND:
        return {"ok": True}

    ack_text = ask_command_ack_text(payload)
    if not (payload.get("text") or "").strip():
        return {"response_type": "ephemeral", "text": ack_text}

    try:
        client = client or AsyncWebClient(token=get_secret("SLACK_BOT_TOKEN"))
        set_slack_client(client)
        await handle_ask_command(
            payload,
            client,
            ai_service or get_ai_service(),
            policy=BACKGROUND,
            remaining_time_ms=getattr(context, "get_remaining_time_in_millis", None),
        )
    except Exception as e:
        print(f"[Lambda] Error handling {command}: {e}")
        traceback.print_exc()
        return {"response_type": "ephemeral", "text": SLASH_COMMAND_ERROR}

    return {"response_type": "in_channel", "text": ack_text}


def handler(event: dict, context=None) -> dict:
    """Lambda handler for the Slack Events API."""
    headers = event.get("headers") or {}
    method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method") or "POST"
    print(f"[Lambda] Slack Events API request: {method} {event.get('path', '')}")

    try:
        if method == "OPTIONS":
            return create_response(200, "OK")
        if method != "POST":
            print(f"[Lambda] Invalid method: {method}")
            return create_response(405, {"error": "Method not allowed"})

        raw_body = get_raw_body(event)
        try:
            payload = parse_request_body(raw_body, get_header(headers, "Content-Type"))
        except ValueError as e:
            print(f"[Lambda] Failed to parse request body: {e}")
            return create_response(400, {"error": "Invalid request body"})

        if not verify_request(headers, raw_body):
            print("[Lambda] Invalid Slack signature")
            return create_response(401, {"error": "Unauthorized"})

        if payload.get("type") == "url_verification" and payload.get("challenge"):
            return create_response(200, {"challenge": payload["challenge"]})

        # A retry means the first delivery is still being answered
        if get_header(headers, "X-Slack-Retry-Num"):
            print("[Lambda] Detected a Slack retry, skipping")
            return create_response(200, {"ok": True})

        if payload.get("type") == "event_callback" and payload.get("event"):
            try:
                asyncio.run(process_event_callback(payload, context))
            except Exception as e:
                # Still 200, a retry would answer the question twice
                print(f"[Lambda] Error processing event: {e}")
                traceback.print_exc()
        elif payload.get("command"):
            return create_response(200, asyncio.run(process_slash_command(payload, context)))
        else:
            print(f"[Lambda] Ignoring payload type: {payload.get('type')}")

        return create_response(200, {"ok": True})
    except Exception as e:
        print(f"[Lambda] Unexpected error: {e}")
        traceback.print_exc()
        return create_response(500, {"error": "Internal server error"})


def check_configuration() -> dict:
    missing = [key for key in REQUIRED_SECRETS if not get_secret(key)]
    return {
        "status": "pass" if not missing else "fail",
        "missingVariables": missing,
        "optionalVariables": {key: bool(os.environ.get(key)) for key in OPTIONAL_SETTINGS},
    }


def health_handler(event: dict, context=None) -> dict:
    """Lambda handler for the health check endpoint."""
    try:
        if (event or {}).get("httpMethod") == "OPTIONS":
            return create_response(200, "OK")

        status = {
            "status": "healthy",
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "service": "acorn-slack-bot",
            "version": __version__,
            "functionName": getattr(context, "function_name", None),
            "requestId": getattr(context, "aws_request_id", None),
            "region": config.AWS_REGION,
            "uptime": round(time.time() - _STARTED_AT, 3),
            "pythonVersion": platform.python_version(),
            "ai": get_ai_service().get_status(),
            "checks": {"environment": check_configuration()},
        }
        if context is not None and hasattr(context, "get_remaining_time_in_millis"):
            status["remainingTime"] = context.get_remaining_time_in_millis()
        return create_response(200, status)
    except Exception as e:
        print(f"[Lambda] Health check failed: {e}")
        return create_response(503, {"status": "unhealthy", "error": str(e)})
