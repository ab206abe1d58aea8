"""
Discovery ranker.

Ranks the catalogued systems likely to hold a data subject's data for a
privacy request.

Scoring formula per matching rule:
    base weight       = rule weight (1-100)
    identifier boost  = +15 per matching identifier type (capped at +30)
    confidence boost  = system confidence score / 10, rounded
    out-of-scope      = -100 if the system is not in scope for DSARs

    score = clamp(base + boosts - penalty, 0, 100)

Rules for the same system compete rather than add up: each system keeps its
best-scoring rule. Systems scoring 0 are dropped and the rest are returned
by score, highest first.

Note: the out-of-scope penalty is additive, so a heavily boosted rule can
still leave an out-of-scope system with a positive score.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping

import structlog

from subjectlens.discovery.models import (
    DiscoveryInput,
    DiscoveryRule,
    DiscoverySuggestion,
    SystemInfo,
    enum_value,
)

logger = structlog.get_logger()

IDENTIFIER_BOOST = 15
IDENTIFIER_BOOST_CAP = 30
OUT_OF_SCOPE_PENALTY = 100
MIN_SCORE = 0
MAX_SCORE = 100


@dataclass
class _RuleScore:
    """Score and explanation for one rule/system match."""

    system_id: str
    score: int = 0
    reasons: list[str] = field(default_factory=list)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _skip_reason(
    rule: DiscoveryRule,
    discovery_input: DiscoveryInput,
    systems: Mapping[str, SystemInfo],
) -> str | None:
    """Return why a rule does not apply, or None if it does."""
    if not rule.active:
        return "inactive"
    if not rule.matches_dsar_type(discovery_input.dsar_type):
        return "dsar_type"
    if (
        rule.data_subject_types
        and discovery_input.data_subject_type
        and discovery_input.data_subject_type not in rule.data_subject_types
    ):
        return "data_subject_type"
    if rule.system_id not in systems:
        return "unknown_system"
    return None


def score_rule(
    rule: DiscoveryRule,
    system: SystemInfo,
    discovery_input: DiscoveryInput,
) -> tuple[int, list[str]]:
    """
    Score a single applicable rule against its system.

    Every contributing factor appends exactly one reason.

    Returns:
        Tuple of (clamped score, reasons)
    """
    reasons = [f'Rule "{rule.id}" matched (weight: {rule.weight})']
    score = rule.weight

    identifier_boost = 0
    matched: list[str] = []
    for id_type in discovery_input.identifier_types:
        if id_type in system.identifier_types or id_type in rule.identifier_types:
            identifier_boost += IDENTIFIER_BOOST
            matched.append(id_type)
    identifier_boost = min(identifier_boost, IDENTIFIER_BOOST_CAP)
    if identifier_boost > 0:
        score += identifier_boost
        reasons.append(f"Identifier match: {', '.join(matched)} (+{identifier_boost})")

    confidence_boost = _round_half_up(system.confidence_score / 10)
    if confidence_boost != 0:
        score += confidence_boost
        reasons.append(f"System confidence: {system.confidence_score}% (+{confidence_boost})")

    if not system.in_scope_for_dsar:
        score -= OUT_OF_SCOPE_PENALTY
        reasons.append(f"System marked out of scope for DSAR (-{OUT_OF_SCOPE_PENALTY})")

    return max(MIN_SCORE, min(MAX_SCORE, score)), reasons


def run_discovery(
    discovery_input: DiscoveryInput,
    rules: Iterable[DiscoveryRule],
    systems: Mapping[str, SystemInfo],
) -> list[DiscoverySuggestion]:
    """
    Rank systems likely to hold the subject's data.

    Args:
        discovery_input: Request type, subject type and identifier types
        rules: Full rule catalogue; inactive rules are skipped
        systems: Catalogued systems by id

    Returns:
        Suggestions sorted by score descending; equal scores keep the order
        in which their systems were first matched
    """
    best: dict[str, _RuleScore] = {}

    for rule in rules:
        skip = _skip_reason(rule, discovery_input, systems)
        if skip is not None:
            logger.debug("discovery_rule_skipped", rule_id=rule.id, reason=skip)
            continue

        score, reasons = score_rule(rule, systems[rule.system_id], discovery_input)

        existing = best.get(rule.system_id)
        if existing is None or score > existing.score:
            best[rule.system_id] = _RuleScore(
                system_id=rule.system_id, score=score, reasons=reasons
            )

    suggestions = [
        DiscoverySuggestion(
            system_id=match.system_id,
            system_name=systems[match.system_id].name or "Unknown",
            score=match.score,
            reasons=tuple(match.reasons),
        )
        for match in best.values()
        if match.score > 0
    ]
    suggestions.sort(key=lambda s: s.score, reverse=True)

    logger.debug(
        "discovery_completed",
        dsar_type=enum_value(discovery_input.dsar_type),
        candidates=len(best),
        suggested=len(suggestions),
    )
    return suggestions
