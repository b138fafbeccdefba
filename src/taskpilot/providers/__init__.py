"""Completion providers."""

from taskpilot.providers.base import CompletionProvider, CompletionStream
from taskpilot.providers.echo import EchoProvider
from taskpilot.providers.mock import MockProvider
from taskpilot.providers.registry import create_provider

__all__ = [
    "CompletionProvider",
    "CompletionStream",
    "EchoProvider",
    "MockProvider",
    "create_provider",
]
