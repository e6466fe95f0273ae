"""Outbound API clients (Torn)."""
