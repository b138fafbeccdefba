"""Shared test helpers."""

from tests.helpers.agent import ENVIRONMENT, AgentHarness, AnyParams, make_tool

__all__ = ["ENVIRONMENT", "AgentHarness", "AnyParams", "make_tool"]
