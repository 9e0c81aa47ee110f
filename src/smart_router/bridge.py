"""Completion bridge between callers, the router and the cost ledger.

The actual provider HTTP clients live outside this package. They plug in
as a CompletionBackend: a callable that takes the messages and the chosen
model and returns the generated text with its token usage.

Flow for one request:
    model reference -> SmartRouter.select -> provider key check
    -> backend call -> CostLedger.track_usage -> CompletionResponse
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence

from smart_router.config import PROVIDERS, RouterSettings, get_api_key, get_catalog, get_settings
from smart_router.errors import ProviderNotConfigured
from smart_router.ledger import CostLedger, get_cost_ledger
from smart_router.routing.catalog import ModelDescriptor, Provider, Tier
from smart_router.routing.router import (
    AUTO_MODEL,
    Message,
    RoutingDecision,
    SmartRouter,
    normalize_model_ref,
)

logger = logging.getLogger(__name__)


@dataclass
class BackendResult:
    """What a provider client reports back for one completion."""
    content: str
    input_tokens: int
    output_tokens: int


class CompletionBackend(Protocol):
    def __call__(
        self,
        messages: Sequence[Message | Mapping[str, Any]],
        model: ModelDescriptor,
    ) -> BackendResult: ...


@dataclass
class Usage:
    input_tokens: int
    output_tokens: int
    cost: float


@dataclass
class CompletionResponse:
    """A completed, accounted request."""
    content: str
    model: ModelDescriptor
    tier: Tier
    decision: RoutingDecision
    usage: Usage
    duration_ms: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "model": self.model.id,
            "tier": self.tier.value,
            "usage": {
                "input_tokens": self.usage.input_tokens,
                "output_tokens": self.usage.output_tokens,
                "cost": self.usage.cost,
            },
            "duration_ms": round(self.duration_ms, 1),
        }


class CompletionBridge:
    """Routes, dispatches and accounts completion requests.

    Usage:
        bridge = CompletionBridge(backend=my_client)
        response = bridge.complete([Message("user", "Explain CAP")])
        # response.usage.cost is already in the ledger
    """

    def __init__(
        self,
        backend: CompletionBackend,
        router: SmartRouter | None = None,
        ledger: CostLedger | None = None,
        settings: RouterSettings | None = None,
        api_keys: Mapping[Provider | str, str] | None = None,
    ):
        self.backend = backend
        self.settings = settings or get_settings()
        self.router = router or SmartRouter(get_catalog(self.settings))
        if self.settings.cost_tracking:
            self.ledger = ledger or get_cost_ledger()
        else:
            self.ledger = None
        self._api_keys = (
            {Provider.parse(p): key for p, key in api_keys.items() if key}
            if api_keys is not None else None
        )

    def has_provider(self, provider: Provider | str) -> bool:
        """Whether an API key is available for the provider."""
        provider = Provider.parse(provider)
        if self._api_keys is not None:
            return provider in self._api_keys
        return get_api_key(provider, self.settings) is not None

    def complete(
        self,
        messages: Sequence[Message | Mapping[str, Any]],
        model_ref: str | None = AUTO_MODEL,
    ) -> CompletionResponse:
        """Route, call the backend and account one request.

        Args:
            messages: Conversation, last message is the request.
            model_ref: ``auto``, a tier name or a catalog model id.

        Raises:
            InvalidInput: empty conversation.
            UnknownModel: model_ref is not routable.
            ProviderNotConfigured: no API key for the chosen model's provider.
        """
        decision = self.router.select(
            model_ref, messages, self.settings.default_tier)
        model = decision.model

        if self.settings.enable_logging:
            if normalize_model_ref(model_ref) == AUTO_MODEL:
                logger.info("\n" + self.router.explain(decision))
            else:
                logger.info(f"Using {decision.tier.name} tier: {model.display_name}")

        if not self.has_provider(model.provider):
            env_var = PROVIDERS[model.provider]["env_var"]
            raise ProviderNotConfigured(
                f"Provider {model.provider.value} not configured. "
                f"Please set {env_var}.",
                context={"provider": model.provider.value, "model": model.id},
            )

        start = time.monotonic()
        result = self.backend(messages, model)
        duration_ms = (time.monotonic() - start) * 1000

        if self.ledger is not None:
            cost = self.ledger.track_usage(
                model, result.input_tokens, result.output_tokens)
        else:
            cost = model.calculate_cost(
                result.input_tokens, result.output_tokens)

        if self.settings.enable_logging:
            logger.info(
                f"Completed in {duration_ms:.0f}ms - tokens: "
                f"{result.input_tokens} in, {result.output_tokens} out - "
                f"cost: ${cost:.6f}"
            )

        return CompletionResponse(
            content=result.content,
            model=model,
            tier=decision.tier,
            decision=decision,
            usage=Usage(
                input_tokens=result.input_tokens,
                output_tokens=result.output_tokens,
                cost=cost,
            ),
            duration_ms=duration_ms,
        )
