"""boto3 session and client factories for the services Acorn talks to."""

import boto3
from botocore.config import Config

from .config import AWS_PROFILE, AWS_REGION

# (connect_timeout, read_timeout, max_attempts) per service
CLIENT_TIMEOUTS = {
    "bedrock-runtime": (30, 60, 2),
    # Agents plan and retrieve before the first chunk arrives
    "bedrock-agent-runtime": (10, 120, 1),
    "secretsmanager": (5, 5, 1),
}


def get_session():
    """boto3 session in AWS_REGION, using AWS_PROFILE when one is set."""
    if AWS_PROFILE:
        return boto3.Session(profile_name=AWS_PROFILE, region_name=AWS_REGION)
    return boto3.Session(region_name=AWS_REGION)


def get_client(service_name: str):
    """Create a client with the timeouts listed in CLIENT_TIMEOUTS (botocore defaults otherwise)."""
    timeouts = CLIENT_TIMEOUTS.get(service_name)
    if timeouts is None:
        return get_session().client(service_name)
    connect_timeout, read_timeout, max_attempts = timeouts
    config = Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": max_attempts},
    )
    return get_session().client(service_name, config=config)


def get_bedrock_runtime():
    return get_client("bedrock-runtime")


def get_bedrock_agent_runtime():
    return get_client("bedrock-agent-runtime")


def get_secrets_manager():
    return get_client("secretsmanager")
