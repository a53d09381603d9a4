"""Shared utilities: errors, logging, token counting, concurrency."""
