"""Slack credentials and other secrets for Acorn.

Values come from the environment when set (local runs, Lambda env vars) and
otherwise from one JSON secret in AWS Secrets Manager, read once per process.
"""

import json
import os

from botocore.exceptions import BotoCoreError, ClientError

from .config import SECRETS_NAME

SLACK_SECRET_KEYS = ("SLACK_BOT_TOKEN", "SLACK_APP_TOKEN", "SLACK_SIGNING_SECRET")

# Secrets Manager blob; {} once a read has failed
_secrets_cache = None


def _fetch_secret_blob() -> dict:
    # Import here to avoid circular imports
    from .aws import get_secrets_manager

    response = get_secrets_manager().get_secret_value(SecretId=SECRETS_NAME)
    blob = json.loads(response["SecretString"])
    if not isinstance(blob, dict):
        raise ValueError(f"{SECRETS_NAME} is not a JSON object")
    return blob


def get_secrets() -> dict:
    """Return the Secrets Manager blob, loading it on first use.

    Returns:
        dict: Secret keys and values, or an empty dict if the secret can't be read.
    """
    global _secrets_cache

    if _secrets_cache is None:
        try:
            _secrets_cache = _fetch_secret_blob()
            print(f"[Secrets] Loaded {len(_secrets_cache)} keys from {SECRETS_NAME}")
        except (BotoCoreError, ClientError, KeyError, ValueError) as e:
            print(f"[Secrets] Could not read {SECRETS_NAME}, using environment only: {e}")
            _secrets_cache = {}
    return _secrets_cache


def get_secret(key: str, default: str = "") -> str:
    """Look up one secret. A non-empty environment variable wins."""
    return os.environ.get(key) or get_secrets().get(key, default)


def get_slack_credentials() -> dict:
    """Bot token, app token and signing secret ("" for any that are missing)."""
    return {key: get_secret(key) for key in SLACK_SECRET_KEYS}


def clear_secrets_cache():
    """Forget the loaded blob so the next lookup reads Secrets Manager again."""
    global _secrets_cache
    _secrets_cache = None
