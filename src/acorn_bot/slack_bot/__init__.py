"""Slack Bot package for the Acorn assistant.

This package contains the modular components of the Slack bot:
- citations: Normalizing Bedrock attribution into Citation records
- chunks: Classifying backend stream chunks
- transports: Bedrock agent and model invocation wrappers
- ai_service: Backend selection, fallback and multi-KB queries
- streaming: Accumulating streamed answers into a Slack message
- router: Intent classification for mentions and messages
- handlers: Slack event handlers shared by socket mode and HTTP
- metrics: Request tracking and statistics
- alerting: Error alerting to dev channel
- formatters: Response formatting for Slack
- bot: Main SlackBot class
"""

from acorn_bot.slack_bot.ai_service import AIService, BackendResponse, Query, StreamHandle, StreamResult, get_ai_service
from acorn_bot.slack_bot.alerting import alert_error, get_slack_client, set_slack_client
from acorn_bot.slack_bot.bot import SlackBot
from acorn_bot.slack_bot.chunks import NormalizedEvent, classify_chunk
from acorn_bot.slack_bot.citations import Citation, extract_citations, merge_citations
from acorn_bot.slack_bot.formatters import format_sources
from acorn_bot.slack_bot.handlers import dispatch_event
from acorn_bot.slack_bot.metrics import AcornMetrics, get_metrics
from acorn_bot.slack_bot.router import Intent, classify_mention, classify_message
from acorn_bot.slack_bot.streaming import BACKGROUND, INTERACTIVE, StreamAccumulator, handle_streaming_response

__all__ = [
    # Main classes
    "SlackBot",
    "AIService",
    "AcornMetrics",
    "StreamAccumulator",
    # Data types
    "Query",
    "BackendResponse",
    "StreamHandle",
    "StreamResult",
    "Citation",
    "NormalizedEvent",
    "Intent",
    # Core functions
    "get_ai_service",
    "handle_streaming_response",
    "dispatch_event",
    "get_metrics",
    # Citations and chunks
    "extract_citations",
    "merge_citations",
    "classify_chunk",
    "format_sources",
    # Routing
    "classify_mention",
    "classify_message",
    # Update policies
    "INTERACTIVE",
    "BACKGROUND",
    # Alerting
    "alert_error",
    "get_slack_client",
    "set_slack_client",
]
