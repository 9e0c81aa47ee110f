"""Smart model router.

Picks the cheapest catalog model whose tier matches the estimated
complexity of the latest message:

1. Rule shortcut - two or more reasoning markers go straight to the
   REASONING tier at fixed confidence.
2. Weighted signal scoring (see scorer.py).
3. Threshold-based tier decision with a caller-supplied default tier
   for ambiguous prompts.
4. Cheapest model of the decided tier.

The router holds no mutable state. The same conversation, default tier,
catalog and scoring config always produce the same decision.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence

from smart_router.errors import InvalidInput
from smart_router.routing.catalog import DEFAULT_CATALOG, ModelCatalog, ModelDescriptor, Tier
from smart_router.routing.scorer import RequestScorer, ScoringConfig, ScoringResult

logger = logging.getLogger(__name__)

# Model reference that asks the router to decide
AUTO_MODEL = "auto"
MODEL_PREFIX = "smart-router/"


class RoutingMethod(str, Enum):
    """How a decision was reached."""
    RULES = "rules"            # Rule shortcut or explicit request
    HEURISTICS = "heuristics"  # Scored with high confidence
    FALLBACK = "fallback"      # Scored with low confidence or default tier


@dataclass
class Message:
    """A conversation message."""
    role: str  # user, assistant, system
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class RoutingDecision:
    """The result of routing one request."""
    model: ModelDescriptor
    tier: Tier
    confidence: float
    method: RoutingMethod
    reasoning: str
    scoring: ScoringResult | None = None  # None when no scoring ran

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "model": self.model.id,
            "model_name": self.model.display_name,
            "provider": self.model.provider.value,
            "tier": self.tier.value,
            "confidence": self.confidence,
            "method": self.method.value,
            "reasoning": self.reasoning,
        }
        if self.scoring is not None:
            d["score"] = self.scoring.total
            d["signals"] = dict(self.scoring.scores)
        return d


def message_text(message: Message | Mapping[str, Any]) -> str:
    """Content of a Message or a {"role", "content"} dict."""
    if isinstance(message, Mapping):
        content = message.get("content")
    else:
        content = message.content
    return content or ""


def normalize_model_ref(model_ref: str | None) -> str:
    """Strip our own prefix, or keep the last segment of vendor/model refs."""
    ref = (model_ref or AUTO_MODEL).strip()
    if ref.startswith(MODEL_PREFIX):
        return ref[len(MODEL_PREFIX):]
    if "/" in ref:
        return ref.rsplit("/", 1)[-1]
    return ref


class SmartRouter:
    """Routes requests to the cheapest adequate model.

    Usage:
        router = SmartRouter()
        decision = router.route([Message("user", "What is 2+2?")])
        # decision.tier == Tier.SIMPLE
        # decision.model.id == "gemini-1.5-flash-latest"
    """

    def __init__(
        self,
        catalog: ModelCatalog | None = None,
        scoring: ScoringConfig | None = None,
    ):
        self.catalog = catalog or DEFAULT_CATALOG
        self.scorer = RequestScorer(scoring)

    @property
    def thresholds(self):
        return self.scorer.config.thresholds

    def route(
        self,
        conversation: Sequence[Message | Mapping[str, Any]],
        default_tier: Tier | str = Tier.MEDIUM,
    ) -> RoutingDecision:
        """Route a conversation based on its last message.

        Args:
            conversation: Messages in order. Only the last one is scored.
            default_tier: Tier used when the score is ambiguous.

        Returns:
            RoutingDecision with the chosen model and justification.

        Raises:
            InvalidInput: conversation is empty or default_tier is unknown.
            CatalogError: the decided tier has no models.
        """
        if not conversation:
            raise InvalidInput("Cannot route an empty conversation")
        default_tier = Tier.parse(default_tier)
        prompt = message_text(conversation[-1])
        th = self.thresholds

        # Rule shortcut: high-precision reasoning detection
        reasoning_count = self.scorer.reasoning_matches(prompt)
        if reasoning_count >= th.rules_min_reasoning_matches:
            decision = RoutingDecision(
                model=self.catalog.cheapest_in_tier(Tier.REASONING),
                tier=Tier.REASONING,
                confidence=th.rules_confidence,
                method=RoutingMethod.RULES,
                reasoning=(
                    f"Detected {reasoning_count} reasoning markers - "
                    "requires deep logical thinking"
                ),
            )
            logger.debug(
                f"Rule route: {decision.model.id} ({reasoning_count} reasoning markers)")
            return decision

        scoring = self.scorer.score(prompt)
        tier, reasoning = self._classify(scoring, default_tier)
        method = (
            RoutingMethod.HEURISTICS
            if scoring.confidence > th.heuristics_confidence
            else RoutingMethod.FALLBACK
        )

        decision = RoutingDecision(
            model=self.catalog.cheapest_in_tier(tier),
            tier=tier,
            confidence=scoring.confidence,
            method=method,
            reasoning=reasoning,
            scoring=scoring,
        )
        logger.debug(
            f"Scored route: {decision.model.id} tier={tier.value} "
            f"score={scoring.total:.3f} method={method.value}")
        return decision

    def _classify(
        self,
        scoring: ScoringResult,
        default_tier: Tier,
    ) -> tuple[Tier, str]:
        """Map a score to a tier. First matching rule wins."""
        th = self.thresholds
        if scoring.total > th.complex_above:
            return Tier.COMPLEX, (
                "High complexity detected: technical terms, "
                "multi-step reasoning, or code"
            )
        if scoring.total > th.medium_above:
            return Tier.MEDIUM, (
                "Moderate complexity: balanced task requiring decent capability"
            )
        if scoring.simple_score > 0 or scoring.tokens < th.short_prompt_tokens:
            return Tier.SIMPLE, "Simple task: basic question or short prompt"
        return default_tier, (
            f"Ambiguous complexity - defaulting to {default_tier.name} tier"
        )

    def select(
        self,
        model_ref: str | None,
        conversation: Sequence[Message | Mapping[str, Any]],
        default_tier: Tier | str = Tier.MEDIUM,
    ) -> RoutingDecision:
        """Resolve a requested model reference into a decision.

        ``auto`` routes the conversation, a tier name picks the cheapest
        model of that tier, anything else must be a catalog id. A
        ``smart-router/`` prefix is stripped; other ``vendor/model``
        references keep only their last segment.

        Raises:
            UnknownModel: the reference is not auto, a tier or a known id.
        """
        ref = normalize_model_ref(model_ref)
        if ref == AUTO_MODEL:
            return self.route(conversation, default_tier)

        if ref.lower() in {t.value for t in Tier}:
            tier = Tier.parse(ref)
            return RoutingDecision(
                model=self.catalog.cheapest_in_tier(tier),
                tier=tier,
                confidence=1.0,
                method=RoutingMethod.RULES,
                reasoning=f"Tier {tier.name} requested explicitly",
            )

        model = self.catalog.get(ref)
        return RoutingDecision(
            model=model,
            tier=model.tier,
            confidence=1.0,
            method=RoutingMethod.RULES,
            reasoning=f"Model {model.id} requested explicitly",
        )

    def explain(self, decision: RoutingDecision) -> str:
        """Human-readable summary of a decision, including savings."""
        model = decision.model
        priciest = self.catalog.most_expensive()
        if priciest.average_price > 0:
            savings = (1 - model.average_price / priciest.average_price) * 100
        else:
            savings = 0.0

        return "\n".join([
            "Routing Decision:",
            f"   Model: {model.display_name}",
            f"   Tier: {decision.tier.name}",
            f"   Confidence: {decision.confidence * 100:.0f}%",
            f"   Method: {decision.method.value}",
            f"   Reason: {decision.reasoning}",
            f"   Cost: ${model.input_price_per_million:.2f}/"
            f"${model.output_price_per_million:.2f} per 1M tokens",
            f"   Savings vs {priciest.display_name}: ~{savings:.0f}%",
        ])
