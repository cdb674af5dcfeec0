"""Deterministic clock values shared across tests."""

from __future__ import annotations

from datetime import UTC, datetime

FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


def fixed_now() -> datetime:
    return FIXED_NOW
