"""Aggregation and mapping defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta

from .env import env_flag, env_float, env_int

DEFAULT_RESUBSCRIBE_DELAY_SECONDS = 5.0
DEFAULT_DUE_OFFSET_DAYS = 7
DEFAULT_PROJECT_END_OFFSET_DAYS = 30


@dataclass(frozen=True, slots=True)
class AggregationConfig:
    deep_scan: bool = True
    # None disables re-opening failed subscriptions
    resubscribe_delay_seconds: float | None = DEFAULT_RESUBSCRIBE_DELAY_SECONDS
    due_offset_days: int = DEFAULT_DUE_OFFSET_DAYS
    project_end_offset_days: int = DEFAULT_PROJECT_END_OFFSET_DAYS
    # None queues every result set until the consumer reads it
    max_pending: int | None = None

    @property
    def due_offset(self) -> timedelta:
        return timedelta(days=self.due_offset_days)

    @property
    def project_end_offset(self) -> timedelta:
        return timedelta(days=self.project_end_offset_days)


def get_aggregation_config() -> AggregationConfig:
    delay_name = "WORKLENS_RESUBSCRIBE_DELAY_SECONDS"
    raw_delay = os.getenv(delay_name, "")
    if raw_delay.strip().lower() == "off":
        delay: float | None = None
    else:
        delay = env_float(delay_name, default=DEFAULT_RESUBSCRIBE_DELAY_SECONDS)

    return AggregationConfig(
        deep_scan=env_flag("WORKLENS_DEEP_SCAN", default=True),
        resubscribe_delay_seconds=delay,
        due_offset_days=env_int("WORKLENS_DUE_OFFSET_DAYS", default=DEFAULT_DUE_OFFSET_DAYS),
        project_end_offset_days=env_int(
            "WORKLENS_PROJECT_END_OFFSET_DAYS", default=DEFAULT_PROJECT_END_OFFSET_DAYS
        ),
        max_pending=env_int("WORKLENS_MAX_PENDING", default=0) or None,
    )
