"""Provider lookup by name or import path."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Sequence
from typing import Any

from taskpilot.errors import ConfigurationError
from taskpilot.providers.base import CompletionProvider
from taskpilot.tools.base import ToolDefinition

logger = logging.getLogger(__name__)

BUILTIN_PROVIDERS = ("echo", "mock")


def _load_factory(path: str) -> Any:
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(f"Provider path must look like 'package.module:factory', got '{path}'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import provider module '{module_name}': {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ConfigurationError(f"Module '{module_name}' has no attribute '{attr}'") from None


def create_provider(
    name: str,
    *,
    model: str | None = None,
    system_prompt: str = "",
    tools: Sequence[ToolDefinition] = (),
    **kwargs: Any,
) -> CompletionProvider:
    """Create a provider by built-in name or ``module:factory`` path.

    External factories are called with ``model``, ``system_prompt`` and
    ``tools`` keyword arguments plus anything in ``kwargs``.
    """
    if name == "mock":
        from taskpilot.providers.mock import MockProvider
        return MockProvider()
    if name == "echo":
        from taskpilot.providers.echo import EchoProvider
        return EchoProvider(**kwargs)

    if ":" not in name:
        raise ConfigurationError(
            f"Unknown provider: {name}. Use one of {', '.join(BUILTIN_PROVIDERS)} "
            "or a 'package.module:factory' path."
        )
    factory = _load_factory(name)
    logger.info("Creating provider from %s (model %s)", name, model)
    provider = factory(model=model, system_prompt=system_prompt, tools=list(tools), **kwargs)
    if not isinstance(provider, CompletionProvider):
        raise ConfigurationError(f"'{name}' did not return a completion provider")
    return provider
