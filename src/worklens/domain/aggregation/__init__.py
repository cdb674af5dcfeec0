"""Live aggregation of many subscriptions into one deduplicated result stream."""

from __future__ import annotations

from .aggregator import (
    AggregateResultSet,
    AggregationError,
    AggregationHandle,
    AggregatorState,
    LiveQueryAggregator,
)
from .dedup import Deduplicator, SourceContribution, content_key, store_key
from .lookup import fetch_owned_once
from .plan import (
    DEFAULT_COLLECTIONS,
    PlanStrategy,
    SubscriptionDescriptor,
    SubscriptionPlanner,
    plan_subscriptions,
)

__all__ = [
    "DEFAULT_COLLECTIONS",
    "AggregateResultSet",
    "AggregationError",
    "AggregationHandle",
    "AggregatorState",
    "Deduplicator",
    "LiveQueryAggregator",
    "PlanStrategy",
    "SourceContribution",
    "SubscriptionDescriptor",
    "SubscriptionPlanner",
    "content_key",
    "fetch_owned_once",
    "plan_subscriptions",
    "store_key",
]
