"""Shared helpers for HTTP transport and structured logging."""
