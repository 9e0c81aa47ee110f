"""Smart Router - complexity-based LLM routing with cost tracking.

Modules:
    - routing: Model catalog, request scoring and the tier router
    - ledger: Durable per-tier/per-provider spend accounting
    - bridge: Route, dispatch and account one completion request
    - config: YAML settings and provider API keys
"""

__version__ = "0.1.0"

from smart_router.errors import (
    CatalogError,
    InvalidInput,
    PersistenceWarning,
    ProviderNotConfigured,
    SmartRouterError,
    UnknownModel,
    UnknownProvider,
)
from smart_router.ledger import CostLedger, CostStats, TokenCounts, get_cost_ledger
from smart_router.routing import (
    DEFAULT_CATALOG,
    Message,
    ModelCatalog,
    ModelDescriptor,
    Provider,
    RoutingDecision,
    RoutingMethod,
    SmartRouter,
    Tier,
)

__all__ = [
    "__version__",
    "CatalogError",
    "CostLedger",
    "CostStats",
    "DEFAULT_CATALOG",
    "InvalidInput",
    "Message",
    "ModelCatalog",
    "ModelDescriptor",
    "PersistenceWarning",
    "Provider",
    "ProviderNotConfigured",
    "RoutingDecision",
    "RoutingMethod",
    "SmartRouter",
    "SmartRouterError",
    "Tier",
    "TokenCounts",
    "UnknownModel",
    "UnknownProvider",
    "get_cost_ledger",
]
