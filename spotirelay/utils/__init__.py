"""Shared utilities for SpotiRelay."""
