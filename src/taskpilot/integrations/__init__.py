"""Integrations: persistence and shared utilities."""
