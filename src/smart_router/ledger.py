"""Cost ledger: cumulative spend per tier and provider.

Keeps a single aggregate of every accounted request:
- Total request count and total cost
- Cost per tier and per provider
- Input/output tokens per tier

The whole aggregate is saved to one JSON file after every mutation, so
spend history survives restarts. Saving is atomic (temp file + rename):
a crash mid-write leaves the previous state on disk, never a torn file.

Persistence failures are reported as PersistenceWarning and logged; they
never propagate. The in-memory state stays authoritative for the life of
the process.
"""

import copy
import json
import logging
import math
import os
import tempfile
import threading
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from smart_router.errors import InvalidInput, PersistenceWarning
from smart_router.routing.catalog import ModelDescriptor, Provider, Tier

logger = logging.getLogger(__name__)


def default_ledger_path() -> Path:
    return Path.home() / ".smart-router" / "ledger.json"


@dataclass
class TokenCounts:
    """Input/output token counters for one tier."""
    input: int = 0
    output: int = 0

    @property
    def total(self) -> int:
        return self.input + self.output

    def to_dict(self) -> dict[str, int]:
        return {"input": self.input, "output": self.output}


def _zero_tiers() -> dict[Tier, float]:
    return {tier: 0.0 for tier in Tier}


def _zero_providers() -> dict[Provider, float]:
    return {provider: 0.0 for provider in Provider}


def _zero_tokens() -> dict[Tier, TokenCounts]:
    return {tier: TokenCounts() for tier in Tier}


def _bucket(record: dict[str, Any], key: str) -> dict[str, Any]:
    """A breakdown mapping from a ledger record; absent or null means empty."""
    value = record.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"Ledger field {key} must be an object, got {type(value).__name__}")
    return value


@dataclass
class CostStats:
    """Aggregate spend. Same shape as the durable ledger record.

    Invariant: total_cost == sum(cost_by_tier) == sum(cost_by_provider),
    up to floating-point rounding.
    """
    total_requests: int = 0
    total_cost: float = 0.0
    cost_by_tier: dict[Tier, float] = field(default_factory=_zero_tiers)
    cost_by_provider: dict[Provider, float] = field(
        default_factory=_zero_providers)
    tokens_by_tier: dict[Tier, TokenCounts] = field(
        default_factory=_zero_tokens)

    @classmethod
    def zero(cls) -> "CostStats":
        return cls()

    @property
    def total_tokens(self) -> int:
        return sum(t.total for t in self.tokens_by_tier.values())

    def copy(self) -> "CostStats":
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "total_cost": self.total_cost,
            "cost_by_tier": {t.value: c for t, c in self.cost_by_tier.items()},
            "cost_by_provider": {
                p.value: c for p, c in self.cost_by_provider.items()
            },
            "tokens_by_tier": {
                t.value: counts.to_dict()
                for t, counts in self.tokens_by_tier.items()
            },
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "CostStats":
        """Rebuild stats from a ledger record.

        Buckets missing from the record start at zero. Raises ValueError,
        TypeError or KeyError (or their subclasses) on a malformed record,
        including one whose tier or provider costs do not sum to total_cost.
        """
        if not isinstance(d, dict):
            raise TypeError(f"Ledger record must be an object, got {type(d).__name__}")

        stats = cls(
            total_requests=int(d.get("total_requests", 0)),
            total_cost=float(d.get("total_cost", 0.0)),
        )
        for name, cost in _bucket(d, "cost_by_tier").items():
            stats.cost_by_tier[Tier.parse(name)] = float(cost)
        for name, cost in _bucket(d, "cost_by_provider").items():
            stats.cost_by_provider[Provider.parse(name)] = float(cost)
        for name, counts in _bucket(d, "tokens_by_tier").items():
            stats.tokens_by_tier[Tier.parse(name)] = TokenCounts(
                input=int(counts["input"]),
                output=int(counts["output"]),
            )

        # A record whose breakdowns disagree with its total is corrupt
        tier_sum = sum(stats.cost_by_tier.values())
        provider_sum = sum(stats.cost_by_provider.values())
        for label, value in (("tier", tier_sum), ("provider", provider_sum)):
            if not math.isclose(value, stats.total_cost, rel_tol=1e-9, abs_tol=1e-9):
                raise ValueError(
                    f"Ledger total_cost {stats.total_cost} does not match "
                    f"the {label} breakdown sum {value}"
                )
        return stats


class CostLedger:
    """Durable, thread-safe spend accumulator.

    Every read and write of the aggregate happens under one lock, so
    track_request/reset are serialised and a snapshot never sees a
    half-applied request.
    """

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path else default_ledger_path()
        self._lock = threading.RLock()
        self._stats = self._load()

    # ─── Persistence ──────────────────────────────────────────────

    def _warn(self, message: str) -> None:
        logger.warning(message)
        warnings.warn(message, PersistenceWarning, stacklevel=3)

    def _load(self) -> CostStats:
        """Load the ledger file, or start from zero."""
        if not self.path.exists():
            logger.debug(f"No ledger at {self.path}, starting fresh")
            return CostStats.zero()

        try:
            with open(self.path) as f:
                data = json.load(f)
            return CostStats.from_dict(data)
        except (OSError, ValueError, TypeError, KeyError) as e:
            self._warn(
                f"Failed to load ledger from {self.path}, starting fresh: {e}")
            return CostStats.zero()

    def save(self) -> bool:
        """Write the full state to disk. Returns False if the write failed."""
        with self._lock:
            data = self._stats.to_dict()
            tmp_name = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
                with os.fdopen(fd, "w") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_name, self.path)
                return True
            except OSError as e:
                if tmp_name and os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                self._warn(f"Failed to save ledger to {self.path}: {e}")
                return False

    # ─── Accounting ───────────────────────────────────────────────

    def track_request(
        self,
        tier: Tier | str,
        provider: Provider | str,
        input_tokens: int,
        output_tokens: int,
        input_price_per_million: float,
        output_price_per_million: float,
    ) -> float:
        """Account one completed backend call.

        Args:
            tier: Tier the request was routed to.
            provider: Provider that served it.
            input_tokens: Prompt tokens reported by the backend.
            output_tokens: Completion tokens reported by the backend.
            input_price_per_million: USD per 1M input tokens.
            output_price_per_million: USD per 1M output tokens.

        Returns:
            Cost of this request in USD.

        Raises:
            InvalidInput: unknown tier or a negative token count/price.
            UnknownProvider: provider is not a known vendor.
        """
        tier = Tier.parse(tier)
        provider = Provider.parse(provider)
        values = {
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "input_price_per_million": input_price_per_million,
            "output_price_per_million": output_price_per_million,
        }
        negative = [name for name, value in values.items() if value < 0]
        if negative:
            raise InvalidInput(
                f"Usage values must be non-negative: {', '.join(negative)}",
                context=values,
            )

        cost = (
            (input_tokens / 1_000_000) * input_price_per_million
            + (output_tokens / 1_000_000) * output_price_per_million
        )

        with self._lock:
            stats = self._stats
            stats.total_requests += 1
            stats.total_cost += cost
            stats.cost_by_tier[tier] += cost
            stats.cost_by_provider[provider] += cost
            stats.tokens_by_tier[tier].input += input_tokens
            stats.tokens_by_tier[tier].output += output_tokens
            self.save()

        return cost

    def track_usage(
        self,
        model: ModelDescriptor,
        input_tokens: int,
        output_tokens: int,
    ) -> float:
        """Account a call using the model's own tier, provider and prices."""
        return self.track_request(
            model.tier,
            model.provider,
            input_tokens,
            output_tokens,
            model.input_price_per_million,
            model.output_price_per_million,
        )

    def reset(self) -> None:
        """Zero all counters and persist immediately."""
        with self._lock:
            self._stats = CostStats.zero()
            self.save()

    # ─── Reporting ────────────────────────────────────────────────

    def snapshot(self) -> CostStats:
        """Independent copy of the current aggregate."""
        with self._lock:
            return self._stats.copy()

    def summarize(self) -> str:
        """Plain-text report of totals and tier/provider breakdowns."""
        stats = self.snapshot()

        def pct(cost: float) -> str:
            if stats.total_cost > 0:
                return f"{cost / stats.total_cost * 100:.1f}%"
            return "0.0%"

        avg = (
            f"${stats.total_cost / stats.total_requests:.4f}"
            if stats.total_requests > 0 else "$0"
        )

        lines = [
            "Smart Router Statistics:",
            "",
            f"Total Requests: {stats.total_requests}",
            f"Total Cost:     ${stats.total_cost:.4f}",
            f"Total Tokens:   {stats.total_tokens:,}",
            f"Avg Cost/Req:   {avg}",
            "",
            "By Tier:",
        ]
        for tier, cost in stats.cost_by_tier.items():
            lines.append(f"   {tier.name:<10} ${cost:.4f} ({pct(cost)})")
        lines += ["", "By Provider:"]
        for provider, cost in stats.cost_by_provider.items():
            lines.append(f"   {provider.value:<10} ${cost:.4f} ({pct(cost)})")
        return "\n".join(lines)


# ─── Global instance ──────────────────────────────────────────────

_ledger: CostLedger | None = None
_ledger_lock = threading.Lock()


def get_cost_ledger() -> CostLedger:
    """Get the process-wide cost ledger, honouring the configured path.

    Creation is serialised so concurrent first callers share one instance.
    """
    global _ledger
    if _ledger is None:
        with _ledger_lock:
            if _ledger is None:
                from smart_router.config import get_settings
                _ledger = CostLedger(get_settings().ledger_path)
    return _ledger
