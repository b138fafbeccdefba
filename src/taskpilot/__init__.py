"""Taskpilot - autonomous coding agent backend."""

__version__ = "0.1.0"
