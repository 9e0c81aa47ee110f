"""Static model catalog.

Defines the capability tiers, the known providers and the single embedded
table of backend models. Everything that needs a model (router, CLI,
completion bridge) goes through a ModelCatalog, so the price table exists
exactly once.

Lookups are order-preserving: the catalog is a tuple, duplicate ids are
allowed (the same model can serve several tiers) and the first match wins.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Iterator

import yaml

from smart_router.errors import CatalogError, InvalidInput, UnknownModel, UnknownProvider


class Tier(str, Enum):
    """Capability tiers, ordered SIMPLE < MEDIUM < COMPLEX < REASONING."""
    SIMPLE = "simple"        # Short factual questions, lookups
    MEDIUM = "medium"        # Standard tasks, small pieces of code
    COMPLEX = "complex"      # Multi-step, technical, larger builds
    REASONING = "reasoning"  # Proofs, derivations, formal verification

    @property
    def level(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.level < other.level

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.level <= other.level

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.level > other.level

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.level >= other.level

    @classmethod
    def parse(cls, value: "Tier | str") -> "Tier":
        """Accept a Tier or a case-insensitive tier name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ", ".join(t.name for t in cls)
            raise InvalidInput(
                f"Unknown tier {value!r} (expected one of {names})",
                context={"tier": value},
            ) from None


class Provider(str, Enum):
    """Backend vendors a model can belong to."""
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    GROQ = "groq"
    OPENAI = "openai"

    @classmethod
    def parse(cls, value: "Provider | str") -> "Provider":
        """Accept a Provider or a case-insensitive provider name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownProvider(
                f"Unknown provider: {value}",
                context={"provider": value},
            ) from None


INPUT_KINDS = frozenset({"text", "image"})


@dataclass(frozen=True)
class ModelDescriptor:
    """A backend model with its pricing and tier membership."""
    id: str
    display_name: str
    provider: Provider
    input_price_per_million: float
    output_price_per_million: float
    context_window: int
    tier: Tier
    supports_reasoning: bool = False
    input_kinds: frozenset[str] = field(
        default_factory=lambda: frozenset({"text"}))
    max_output_tokens: int | None = None

    def __post_init__(self) -> None:
        if self.input_price_per_million < 0 or self.output_price_per_million < 0:
            raise CatalogError(f"Model {self.id}: prices must be non-negative")
        if self.context_window <= 0:
            raise CatalogError(
                f"Model {self.id}: context window must be positive")
        unknown = set(self.input_kinds) - INPUT_KINDS
        if unknown:
            raise CatalogError(
                f"Model {self.id}: unsupported input kinds {sorted(unknown)}")

    @property
    def average_price(self) -> float:
        """Mean of input and output price per million tokens."""
        return (self.input_price_per_million + self.output_price_per_million) / 2

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """Cost in USD for the given token usage."""
        input_cost = (input_tokens / 1_000_000) * self.input_price_per_million
        output_cost = (output_tokens / 1_000_000) * \
            self.output_price_per_million
        return input_cost + output_cost

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "provider": self.provider.value,
            "input_price_per_million": self.input_price_per_million,
            "output_price_per_million": self.output_price_per_million,
            "context_window": self.context_window,
            "tier": self.tier.value,
            "supports_reasoning": self.supports_reasoning,
            "input_kinds": sorted(self.input_kinds),
            "max_output_tokens": self.max_output_tokens,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "ModelDescriptor":
        try:
            return cls(
                id=str(d["id"]),
                display_name=str(d.get("display_name", d["id"])),
                provider=Provider.parse(d["provider"]),
                input_price_per_million=float(d["input_price_per_million"]),
                output_price_per_million=float(d["output_price_per_million"]),
                context_window=int(d["context_window"]),
                tier=Tier.parse(d["tier"]),
                supports_reasoning=bool(d.get("supports_reasoning", False)),
                input_kinds=frozenset(d.get("input_kinds") or ["text"]),
                max_output_tokens=d.get("max_output_tokens"),
            )
        except KeyError as e:
            raise CatalogError(f"Model entry missing field {e}") from e
        except (InvalidInput, UnknownProvider, TypeError, ValueError) as e:
            raise CatalogError(
                f"Invalid model entry {d.get('id', '?')}: {e}") from e


class ModelCatalog:
    """Read-only, ordered collection of model descriptors."""

    def __init__(
        self,
        models: Iterable[ModelDescriptor],
        primary: dict[tuple[Tier, Provider], str] | None = None,
    ):
        self._models: tuple[ModelDescriptor, ...] = tuple(models)
        self._primary = dict(primary or {})

    @property
    def models(self) -> tuple[ModelDescriptor, ...]:
        return self._models

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def list_by_tier(self, tier: Tier | str) -> list[ModelDescriptor]:
        """Models of a tier in catalog order.

        An empty tier is a configuration error, not something to fall
        back from.
        """
        tier = Tier.parse(tier)
        models = [m for m in self._models if m.tier == tier]
        if not models:
            raise CatalogError(
                f"No models configured for tier {tier.name}",
                context={"tier": tier.value},
            )
        return models

    def find_by_id(self, model_id: str) -> ModelDescriptor | None:
        """First model with this id, or None."""
        for model in self._models:
            if model.id == model_id:
                return model
        return None

    def get(self, model_id: str) -> ModelDescriptor:
        """Like find_by_id, but raises UnknownModel."""
        model = self.find_by_id(model_id)
        if model is None:
            raise UnknownModel(
                f"Unknown model: {model_id}", context={"model": model_id})
        return model

    def cheapest_in_tier(self, tier: Tier | str) -> ModelDescriptor:
        """Lowest average price in the tier; ties go to the earlier entry."""
        models = self.list_by_tier(tier)
        cheapest = models[0]
        for model in models[1:]:
            if model.average_price < cheapest.average_price:
                cheapest = model
        return cheapest

    def most_expensive(self) -> ModelDescriptor:
        """Highest average price in the whole catalog."""
        if not self._models:
            raise CatalogError("Catalog is empty")
        priciest = self._models[0]
        for model in self._models[1:]:
            if model.average_price > priciest.average_price:
                priciest = model
        return priciest

    def primary(self, tier: Tier | str, provider: Provider | str) -> ModelDescriptor:
        """The designated model of a provider within a tier.

        Uses the catalog's primary table when it names a model of that
        tier, otherwise the provider's cheapest model in the tier.

        Raises:
            CatalogError: the provider has no model in the tier.
        """
        tier = Tier.parse(tier)
        provider = Provider.parse(provider)
        candidates = [m for m in self.list_by_tier(tier) if m.provider == provider]
        if not candidates:
            raise CatalogError(
                f"No {provider.value} model configured for tier {tier.name}",
                context={"tier": tier.value, "provider": provider.value},
            )

        model_id = self._primary.get((tier, provider))
        for model in candidates:
            if model.id == model_id:
                return model

        cheapest = candidates[0]
        for model in candidates[1:]:
            if model.average_price < cheapest.average_price:
                cheapest = model
        return cheapest

    def providers(self) -> list[Provider]:
        """Providers in first-seen order."""
        seen: list[Provider] = []
        for model in self._models:
            if model.provider not in seen:
                seen.append(model.provider)
        return seen

    def validate(self) -> None:
        """Raise CatalogError unless every tier has at least one model."""
        for tier in Tier:
            self.list_by_tier(tier)

    @classmethod
    def from_dicts(cls, rows: Iterable[dict[str, Any]]) -> "ModelCatalog":
        return cls(ModelDescriptor.from_dict(row) for row in rows)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "ModelCatalog":
        """Load a catalog from a YAML file.

        The file is either a list of model rows or a mapping with a
        ``models`` key holding that list.
        """
        path = Path(path)
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise CatalogError(f"Cannot read catalog {path}: {e}") from e

        if isinstance(data, dict):
            data = data.get("models")
        if not isinstance(data, list):
            raise CatalogError(f"Catalog {path} has no model list")
        return cls.from_dicts(data)


# Default catalog, prices in USD per 1M tokens
DEFAULT_MODELS: list[ModelDescriptor] = [
    # SIMPLE - cheapest, for basic tasks
    ModelDescriptor(
        id="llama-3.1-70b-versatile", display_name="Llama 3.1 70B (Groq)",
        provider=Provider.GROQ, input_price_per_million=0.59,
        output_price_per_million=0.79, context_window=128_000,
        tier=Tier.SIMPLE, max_output_tokens=4096,
    ),
    ModelDescriptor(
        id="gemini-1.5-flash-latest", display_name="Gemini 1.5 Flash",
        provider=Provider.GOOGLE, input_price_per_million=0.075,
        output_price_per_million=0.30, context_window=1_000_000,
        tier=Tier.SIMPLE, input_kinds=frozenset({"text", "image"}),
        max_output_tokens=8192,
    ),
    ModelDescriptor(
        id="gemini-2.0-flash-exp", display_name="Gemini 2.0 Flash",
        provider=Provider.GOOGLE, input_price_per_million=0.10,
        output_price_per_million=0.40, context_window=1_000_000,
        tier=Tier.SIMPLE, input_kinds=frozenset({"text", "image"}),
        max_output_tokens=8192,
    ),
    # MEDIUM - balanced cost/performance
    ModelDescriptor(
        id="gpt-4o-mini", display_name="GPT-4o Mini",
        provider=Provider.OPENAI, input_price_per_million=0.15,
        output_price_per_million=0.60, context_window=128_000,
        tier=Tier.MEDIUM, input_kinds=frozenset({"text", "image"}),
        max_output_tokens=16384,
    ),
    ModelDescriptor(
        id="claude-haiku-4.5", display_name="Claude Haiku 4.5",
        provider=Provider.ANTHROPIC, input_price_per_million=1.00,
        output_price_per_million=5.00, context_window=200_000,
        tier=Tier.MEDIUM, input_kinds=frozenset({"text", "image"}),
        max_output_tokens=4096,
    ),
    ModelDescriptor(
        id="gemini-1.5-pro-latest", display_name="Gemini 1.5 Pro",
        provider=Provider.GOOGLE, input_price_per_million=3.50,
        output_price_per_million=10.50, context_window=1_000_000,
        tier=Tier.MEDIUM, input_kinds=frozenset({"text", "image"}),
        max_output_tokens=8192,
    ),
    # COMPLEX - high quality for difficult tasks
    ModelDescriptor(
        id="claude-sonnet-4.5", display_name="Claude Sonnet 4.5",
        provider=Provider.ANTHROPIC, input_price_per_million=3.00,
        output_price_per_million=15.00, context_window=200_000,
        tier=Tier.COMPLEX, input_kinds=frozenset({"text", "image"}),
        max_output_tokens=8192,
    ),
    ModelDescriptor(
        id="gpt-4o", display_name="GPT-4o",
        provider=Provider.OPENAI, input_price_per_million=2.50,
        output_price_per_million=10.00, context_window=128_000,
        tier=Tier.COMPLEX, input_kinds=frozenset({"text", "image"}),
        max_output_tokens=16384,
    ),
    ModelDescriptor(
        id="gemini-1.5-pro-latest", display_name="Gemini 1.5 Pro",
        provider=Provider.GOOGLE, input_price_per_million=3.50,
        output_price_per_million=10.50, context_window=2_000_000,
        tier=Tier.COMPLEX, input_kinds=frozenset({"text", "image"}),
        max_output_tokens=8192,
    ),
    # REASONING - maximum capability for hard problems
    ModelDescriptor(
        id="claude-opus-4.5", display_name="Claude Opus 4.5",
        provider=Provider.ANTHROPIC, input_price_per_million=15.00,
        output_price_per_million=75.00, context_window=200_000,
        tier=Tier.REASONING, max_output_tokens=4096,
    ),
    ModelDescriptor(
        id="o3-mini", display_name="OpenAI o3-mini",
        provider=Provider.OPENAI, input_price_per_million=1.10,
        output_price_per_million=4.40, context_window=128_000,
        tier=Tier.REASONING, supports_reasoning=True,
        max_output_tokens=65536,
    ),
    ModelDescriptor(
        id="deepseek-reasoner", display_name="DeepSeek Reasoner",
        provider=Provider.GROQ, input_price_per_million=0.55,
        output_price_per_million=2.19, context_window=128_000,
        tier=Tier.REASONING, supports_reasoning=True,
        max_output_tokens=4096,
    ),
]

# Designated model per tier and provider
PRIMARY_MODEL_IDS: dict[tuple[Tier, Provider], str] = {
    (Tier.SIMPLE, Provider.GROQ): "llama-3.1-70b-versatile",
    (Tier.SIMPLE, Provider.GOOGLE): "gemini-2.0-flash-exp",
    (Tier.MEDIUM, Provider.GOOGLE): "gemini-1.5-pro-latest",
    (Tier.MEDIUM, Provider.OPENAI): "gpt-4o-mini",
    (Tier.MEDIUM, Provider.ANTHROPIC): "claude-haiku-4.5",
    (Tier.COMPLEX, Provider.ANTHROPIC): "claude-sonnet-4.5",
    (Tier.COMPLEX, Provider.OPENAI): "gpt-4o",
    (Tier.COMPLEX, Provider.GOOGLE): "gemini-1.5-pro-latest",
    (Tier.REASONING, Provider.ANTHROPIC): "claude-opus-4.5",
    (Tier.REASONING, Provider.OPENAI): "o3-mini",
    (Tier.REASONING, Provider.GROQ): "deepseek-reasoner",
}

DEFAULT_CATALOG = ModelCatalog(DEFAULT_MODELS, PRIMARY_MODEL_IDS)
