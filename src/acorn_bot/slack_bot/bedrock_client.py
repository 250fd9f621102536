"""AWS Bedrock client wrappers for Acorn.

Provides singleton Bedrock clients (model runtime and agent runtime) and an
adapter that walks a blocking boto3 event stream from asyncio code.
"""

import asyncio

from acorn_bot.lib.utils.aws import get_bedrock_agent_runtime, get_bedrock_runtime

# Bedrock clients (reused across calls). Creation is idempotent and the
# assignment is the last step, so a race on first use only costs a client.
_bedrock_client = None
_agent_client = None

_EXHAUSTED = object()


def get_bedrock_client():
    """Get or create Bedrock runtime client.

    Returns:
        boto3 bedrock-runtime client
    """
    global _bedrock_client
    if _bedrock_client is None:
        _bedrock_client = get_bedrock_runtime()
    return _bedrock_client


def get_agent_client():
    """Get or create Bedrock Agent runtime client.

    Returns:
        boto3 bedrock-agent-runtime client
    """
    global _agent_client
    if _agent_client is None:
        _agent_client = get_bedrock_agent_runtime()
    return _agent_client


async def iterate_in_thread(iterable):
    """Yield items from a blocking iterable without blocking the event loop.

    Each ``next()`` runs in the default executor, so a slow Bedrock stream
    only suspends the task that reads it. Closing the generator closes the
    underlying stream (boto3 EventStream.close) when it has a close method.
    """
    iterator = iter(iterable)
    try:
        while True:
            item = await asyncio.to_thread(next, iterator, _EXHAUSTED)
            if item is _EXHAUSTED:
                return
            yield item
    finally:
        close = getattr(iterable, "close", None)
        if callable(close):
            close()
