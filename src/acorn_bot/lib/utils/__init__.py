"""Shared utilities for AWS, config and secrets."""

from .aws import get_bedrock_agent_runtime, get_bedrock_runtime, get_client, get_secrets_manager, get_session
from .config import (
    ACORN_ALERT_CHANNEL,
    AWS_PROFILE,
    AWS_REGION,
    BEDROCK_AGENT_ALIAS_ID,
    BEDROCK_AGENT_ID,
    BEDROCK_ENABLE_TRACE,
    BEDROCK_KNOWLEDGE_BASE_IDS,
    BEDROCK_MODEL_ID,
    SECRETS_NAME,
)
from .secrets import SLACK_SECRET_KEYS, clear_secrets_cache, get_secret, get_secrets, get_slack_credentials

__all__ = [
    # AWS clients
    "get_session",
    "get_client",
    "get_bedrock_runtime",
    "get_bedrock_agent_runtime",
    "get_secrets_manager",
    # Config
    "AWS_REGION",
    "AWS_PROFILE",
    "BEDROCK_MODEL_ID",
    "BEDROCK_AGENT_ID",
    "BEDROCK_AGENT_ALIAS_ID",
    "BEDROCK_ENABLE_TRACE",
    "BEDROCK_KNOWLEDGE_BASE_IDS",
    "ACORN_ALERT_CHANNEL",
    "SECRETS_NAME",
    # Secrets
    "get_secrets",
    "get_secret",
    "get_slack_credentials",
    "SLACK_SECRET_KEYS",
    "clear_secrets_cache",
]
