"""Acorn - a Slack bot that answers questions with Amazon Bedrock."""

__version__ = "1.0.0"
