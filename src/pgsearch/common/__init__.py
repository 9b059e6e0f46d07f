"""Shared building blocks for pgsearch."""
