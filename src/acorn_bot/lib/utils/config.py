"""
Shared configuration for the bot and its AI backends.
Centralizes environment variable access and defaults.
"""

import os

# AWS Configuration
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
AWS_PROFILE = os.environ.get("AWS_PROFILE", "")

# Bedrock model (direct model backend)
BEDROCK_MODEL_ID = os.environ.get("BEDROCK_MODEL_ID", "anthropic.claude-3-sonnet-20240229-v1:0")

# Bedrock Agent (retrieval-augmented backend) - optional
BEDROCK_AGENT_ID = os.environ.get("BEDROCK_AGENT_ID", "")
BEDROCK_AGENT_ALIAS_ID = os.environ.get("BEDROCK_AGENT_ALIAS_ID", "TSTALIASID")
BEDROCK_ENABLE_TRACE = os.environ.get("BEDROCK_ENABLE_TRACE", "") == "true"

# Knowledge bases, addressed as kb1, kb2, ... in the order listed
BEDROCK_KNOWLEDGE_BASE_IDS = [
    kb_id.strip() for kb_id in os.environ.get("BEDROCK_KNOWLEDGE_BASE_IDS", "").split(",") if kb_id.strip()
]

# Channel for error alerts (empty disables Slack alerts, errors are still logged)
ACORN_ALERT_CHANNEL = os.environ.get("ACORN_ALERT_CHANNEL", "")

# Secrets Manager
SECRETS_NAME = os.environ.get("SECRETS_NAME", "acorn-bot/secrets")
