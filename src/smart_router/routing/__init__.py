"""Complexity-based model routing.

- Weighted lexical scoring of the latest message (scorer)
- Rule shortcut for formal reasoning prompts
- Cheapest-model-per-tier selection from a static catalog
- 100% local: no external calls are made to decide a route

Most requests don't need the most expensive model. Routing each one to
the cheapest model of the tier it needs is where the savings come from.
"""

from smart_router.routing.catalog import (
    DEFAULT_CATALOG,
    ModelCatalog,
    ModelDescriptor,
    Provider,
    Tier,
)
from smart_router.routing.router import Message, RoutingDecision, RoutingMethod, SmartRouter
from smart_router.routing.scorer import (
    DEFAULT_SCORING_CONFIG,
    RequestScorer,
    ScoringConfig,
    ScoringResult,
    ScoringThresholds,
    SignalKeywords,
    SignalWeights,
)

__all__ = [
    "DEFAULT_CATALOG",
    "ModelCatalog",
    "ModelDescriptor",
    "Provider",
    "Tier",
    "Message",
    "RoutingDecision",
    "RoutingMethod",
    "SmartRouter",
    "DEFAULT_SCORING_CONFIG",
    "RequestScorer",
    "ScoringConfig",
    "ScoringResult",
    "ScoringThresholds",
    "SignalKeywords",
    "SignalWeights",
]
