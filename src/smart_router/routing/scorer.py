"""Request scoring for smart routing.

Scores a message against weighted lexical signals. Everything is local
substring counting - no LLM calls are needed to make a routing decision.

Signals:
1. Reasoning markers (prove, derive, verify)
2. Code markers (function, class, language names)
3. Simple-question indicators (what is, define) - subtracted
4. Multi-step patterns (first, then, finally)
5. Technical domain terms (distributed, latency, api)
6. Creative-writing markers (story, poem)
7. Imperative verbs (build, refactor, fix)
8. Token length (short prompts pull down, long prompts push up)
9. Question complexity (more than one question mark)
10. Constraint density (at most, O(n))
11. Output format (json, yaml, schema)

Weights and keyword lists are hand-tuned constants held in immutable
config objects, so tests can swap them without touching the algorithm.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable


@dataclass(frozen=True)
class SignalWeights:
    """Per-signal weights. They sum to roughly 1.0."""
    reasoning_markers: float = 0.18
    code_presence: float = 0.15
    simple_indicators: float = 0.12
    multi_step_patterns: float = 0.12
    technical_terms: float = 0.10
    token_count: float = 0.08
    creative_markers: float = 0.05
    question_complexity: float = 0.05
    constraint_count: float = 0.04
    imperative_verbs: float = 0.03
    output_format: float = 0.03


@dataclass(frozen=True)
class SignalKeywords:
    """Keyword lists, matched as case-insensitive substrings."""
    reasoning: tuple[str, ...] = (
        "prove", "theorem", "proof", "step by step", "reasoning",
        "derive", "demonstrate", "verify", "validate", "formal",
        "mathematical induction", "contradiction", "lemma",
    )
    code: tuple[str, ...] = (
        "function", "class", "async", "await", "import", "export",
        "const", "let", "var", "return", "```", "component",
        "method", "algorithm", "implementation",
        "typescript", "javascript", "python", "react", "sql", "regex",
    )
    simple: tuple[str, ...] = (
        "what is", "define", "translate", "summarize", "list",
        "who is", "when did", "where is", "how many",
    )
    multi_step: tuple[str, ...] = (
        "first", "then", "next", "finally", "step 1", "step 2",
        "process", "workflow", "procedure", "sequence",
    )
    technical: tuple[str, ...] = (
        "algorithm", "kubernetes", "distributed", "architecture",
        "optimization", "performance", "scalability", "latency",
        "database", "api", "microservices", "blockchain",
        "integration", "state management", "authentication",
        "concurrency", "caching",
    )
    creative: tuple[str, ...] = (
        "story", "poem", "creative", "imagine", "brainstorm",
        "ideas", "innovative", "unique", "original",
    )
    imperative: tuple[str, ...] = (
        "build", "create", "implement", "develop", "design",
        "refactor", "optimize", "debug", "fix", "improve",
    )
    constraints: tuple[str, ...] = (
        "at most", "at least", "maximum", "minimum", "o(n)", "big o",
    )
    output_format: tuple[str, ...] = (
        "json", "yaml", "xml", "csv", "schema", "format",
    )


@dataclass(frozen=True)
class ScoringThresholds:
    """Fixed decision thresholds used by the scorer and the router."""
    rules_min_reasoning_matches: int = 2
    rules_confidence: float = 0.97
    complex_above: float = 0.3
    medium_above: float = 0.15
    short_prompt_tokens: int = 50
    long_prompt_tokens: int = 500
    heuristics_confidence: float = 0.8
    chars_per_token: int = 4


@dataclass(frozen=True)
class ScoringConfig:
    weights: SignalWeights = field(default_factory=SignalWeights)
    keywords: SignalKeywords = field(default_factory=SignalKeywords)
    thresholds: ScoringThresholds = field(default_factory=ScoringThresholds)


DEFAULT_SCORING_CONFIG = ScoringConfig()


@dataclass(frozen=True)
class ScoringResult:
    """Signed weighted score of a message plus the signals behind it."""
    total: float
    confidence: float  # sigmoid(total * 2), display value only
    tokens: int
    reasoning_matches: int
    scores: dict[str, float] = field(default_factory=dict)

    @property
    def simple_score(self) -> float:
        return self.scores.get("simple", 0.0)

    def top_signals(self, limit: int = 3) -> list[tuple[str, float]]:
        """Strongest non-zero signals by absolute contribution."""
        ranked = sorted(self.scores.items(),
                        key=lambda x: abs(x[1]), reverse=True)
        return [(k, v) for k, v in ranked if v != 0][:limit]


def count_matches(text: str, keywords: Iterable[str]) -> int:
    """Number of keywords occurring in text (case-insensitive, once each)."""
    lower = text.lower()
    return sum(1 for kw in keywords if kw.lower() in lower)


def estimate_tokens(text: str, chars_per_token: int = 4) -> int:
    """Rough token estimate: one token per four characters."""
    return math.ceil(len(text) / chars_per_token)


def sigmoid(x: float) -> float:
    return 1 / (1 + math.exp(-x))


class RequestScorer:
    """Scores message text across the weighted signals.

    Stateless apart from its immutable config, so one instance can be
    shared freely.
    """

    def __init__(self, config: ScoringConfig | None = None):
        self.config = config or DEFAULT_SCORING_CONFIG

    def reasoning_matches(self, text: str) -> int:
        return count_matches(text, self.config.keywords.reasoning)

    def score(self, text: str) -> ScoringResult:
        """Compute every signal and the combined total for a message."""
        w = self.config.weights
        kw = self.config.keywords
        th = self.config.thresholds

        reasoning_matches = self.reasoning_matches(text)
        scores: dict[str, float] = {
            "reasoning": reasoning_matches * w.reasoning_markers,
            "code": count_matches(text, kw.code) * w.code_presence,
            "simple": count_matches(text, kw.simple) * w.simple_indicators,
            "multi_step": count_matches(text, kw.multi_step) * w.multi_step_patterns,
            "technical": count_matches(text, kw.technical) * w.technical_terms,
            "creative": count_matches(text, kw.creative) * w.creative_markers,
            "imperative": count_matches(text, kw.imperative) * w.imperative_verbs,
        }

        tokens = estimate_tokens(text, th.chars_per_token)
        if tokens < th.short_prompt_tokens:
            scores["tokens"] = -w.token_count
        elif tokens > th.long_prompt_tokens:
            scores["tokens"] = w.token_count
        else:
            scores["tokens"] = 0.0

        scores["questions"] = w.question_complexity if text.count("?") > 1 else 0.0
        scores["constraints"] = count_matches(
            text, kw.constraints) * w.constraint_count
        scores["format"] = count_matches(
            text, kw.output_format) * w.output_format

        # Simple indicators pull the total toward SIMPLE
        total = sum(v for k, v in scores.items() if k != "simple") - scores["simple"]

        return ScoringResult(
            total=total,
            confidence=sigmoid(total * 2),
            tokens=tokens,
            reasoning_matches=reasoning_matches,
            scores=scores,
        )
