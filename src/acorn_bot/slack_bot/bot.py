"""Socket Mode runner for Acorn.

Wires the shared Slack handlers into an async Bolt app and keeps the
websocket connection open (no public endpoint needed). The HTTP Events API
path in acorn_bot.lambda_handler shares the same handlers.
"""

import asyncio
import threading

from acorn_bot.lib.utils.secrets import get_secret
from acorn_bot.slack_bot.ai_service import get_ai_service
from acorn_bot.slack_bot.alerting import set_slack_client
from acorn_bot.slack_bot.handlers import (
    ask_command_ack_text,
    handle_ask_command,
    handle_member_joined,
    handle_mention,
    handle_message,
    handle_reaction,
)


class SlackBot:
    """Slack bot that answers mentions and ask: messages with Bedrock.

    - @mentions: greetings/help/status/info get canned replies, anything else
      is streamed from the AI backend into the thread
    - `ask: ...` and `ask kbN: ...` messages stream answers in any channel
    - `/acorn-ask` slash command streams an answer into the channel
    """

    def __init__(self, bot_token: str | None = None, app_token: str | None = None, ai_service=None):
        """Tokens default to SLACK_BOT_TOKEN / SLACK_APP_TOKEN from env or Secrets Manager."""
        self.bot_token = bot_token or get_secret("SLACK_BOT_TOKEN")
        self.app_token = app_token or get_secret("SLACK_APP_TOKEN")
        self.ai_service = ai_service or get_ai_service()
        self.app = None
        self.handler = None
        self._thread = None

    def is_configured(self) -> bool:
        """Socket Mode needs both the xoxb bot token and the xapp app token."""
        return bool(self.bot_token and self.app_token)

    def _setup_app(self):
        """Build the AsyncApp, register listeners and create the socket handler."""
        from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
        from slack_bolt.async_app import AsyncApp

        self.app = AsyncApp(token=self.bot_token)

        # Alerts go out through the bot's own client
        set_slack_client(self.app.client)

        @self.app.event("app_mention")
        async def on_mention(event, client):
            await handle_mention(event, client, self.ai_service)

        @self.app.event("message")
        async def on_message(event, client, context):
            await handle_message(event, client, self.ai_service, bot_user_id=context.bot_user_id)

        @self.app.event("member_joined_channel")
        async def on_member_joined(event, client):
            await handle_member_joined(event, client)

        @self.app.event("reaction_added")
        async def on_reaction(event):
            await handle_reaction(event)

        @self.app.command("/acorn-ask")
        async def on_ask_command(ack, command, client):
            await ack(ask_command_ack_text(command))
            await handle_ask_command(command, client, self.ai_service)

        self.handler = AsyncSocketModeHandler(self.app, self.app_token)

    async def start_async(self):
        """Connect over Socket Mode and serve events until cancelled."""
        self._setup_app()
        print("[SlackBot] Connecting over Socket Mode...")
        await self.handler.start_async()

    def start(self, blocking: bool = False):
        """Run the bot in the foreground (blocking) or on a daemon thread with its own event loop."""
        if not self.is_configured():
            print("[SlackBot] Slack tokens not configured, skipping bot startup")
            return

        if blocking:
            print("[SlackBot] Starting in foreground...")
            asyncio.run(self.start_async())
        else:
            print("[SlackBot] Starting in background thread...")
            self._thread = threading.Thread(target=asyncio.run, args=(self.start_async(),), daemon=True)
            self._thread.start()

    async def stop(self):
        """Close the Socket Mode connection if one was opened."""
        if self.handler:
            await self.handler.close_async()
