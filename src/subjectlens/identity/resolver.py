"""
Identity resolver for data subjects.

Builds and incrementally merges the identity graph of a data subject from
case data and connector findings, and derives the identifier set used to
query target systems.

Every function here is pure: graphs are immutable values and each
operation returns a new graph.
"""

from __future__ import annotations

import dataclasses
from typing import Iterable, Sequence

import structlog

from subjectlens.discovery.models import DiscoveryInput
from subjectlens.identity.models import (
    IdentifierType,
    IdentityEntry,
    IdentityGraph,
    ResolvedSystem,
    SubjectIdentifier,
    SubjectIdentifiers,
    SubjectRecord,
    clamp_confidence,
)
from subjectlens.identity.normalizer import (
    CASE_DATA_SOURCE,
    extract_extra_identifiers,
    identifier_key,
    system_key,
)

logger = structlog.get_logger()

# Entries below this confidence never enter the graph
MIN_CONFIDENCE_THRESHOLD = 0.1

# Same fact confirmed by a different source
CORROBORATION_MIN_CONFIDENCE = 0.5
CORROBORATION_BONUS = 0.05

# Each resolved system beyond the first
SYSTEM_CORROBORATION_STEP = 0.05
SYSTEM_CORROBORATION_CAP = 0.15

# Weight of each identifier type in the aggregate confidence
TYPE_WEIGHTS: dict[str, float] = {
    IdentifierType.EMAIL.value: 1.0,
    IdentifierType.UPN.value: 1.0,
    IdentifierType.OBJECT_ID.value: 0.9,
    IdentifierType.EMPLOYEE_ID.value: 0.85,
    IdentifierType.PHONE.value: 0.7,
    IdentifierType.NAME.value: 0.5,
    IdentifierType.CUSTOM.value: 0.4,
}
DEFAULT_TYPE_WEIGHT = 0.4

# Preferred order when choosing the primary query identifier
IDENTIFIER_PRIORITY: tuple[str, ...] = (
    IdentifierType.EMAIL.value,
    IdentifierType.UPN.value,
    IdentifierType.OBJECT_ID.value,
    IdentifierType.EMPLOYEE_ID.value,
    IdentifierType.PHONE.value,
    IdentifierType.NAME.value,
    IdentifierType.CUSTOM.value,
)


def _priority(type_: str) -> int:
    try:
        return IDENTIFIER_PRIORITY.index(type_)
    except ValueError:
        return len(IDENTIFIER_PRIORITY)


def _clean(value: str | None) -> str:
    return value.strip() if value else ""


def calculate_confidence(
    identifiers: Iterable[IdentityEntry],
    resolved_system_count: int = 0,
) -> float:
    """
    Calculate the aggregate confidence of an identity graph.

    Algorithm:
    1. Weighted average of identifier confidences, where strong identifier
       types (email, upn) carry more weight than weak ones (name, custom)
    2. +0.05 per resolved system beyond the first, capped at +0.15
    3. Clamp to 0.0 - 1.0

    Args:
        identifiers: All identifiers in the graph
        resolved_system_count: Number of accounts located in target systems

    Returns:
        Aggregate confidence; 0.0 when there are no identifiers
    """
    weighted_sum = 0.0
    total_weight = 0.0

    for entry in identifiers:
        weight = TYPE_WEIGHTS.get(entry.type, DEFAULT_TYPE_WEIGHT)
        weighted_sum += entry.confidence * weight
        total_weight += weight

    if total_weight == 0:
        return 0.0

    base = weighted_sum / total_weight
    corroboration = min(
        SYSTEM_CORROBORATION_CAP,
        max(0, resolved_system_count - 1) * SYSTEM_CORROBORATION_STEP,
    )
    return clamp_confidence(base + corroboration)


def build_initial_identity_graph(subject: SubjectRecord) -> IdentityGraph:
    """
    Build the initial identity graph for a case from its subject record.

    Name, email and phone become case-data identifiers at full confidence,
    followed by any extra identifiers not already present.

    Args:
        subject: The data subject recorded on the case

    Returns:
        A new IdentityGraph with no resolved systems
    """
    identifiers: list[IdentityEntry] = []

    for type_, raw in (
        (IdentifierType.NAME, subject.full_name),
        (IdentifierType.EMAIL, subject.email),
        (IdentifierType.PHONE, subject.phone),
    ):
        value = _clean(raw)
        if value:
            identifiers.append(
                IdentityEntry(
                    type=type_.value,
                    value=value,
                    source=CASE_DATA_SOURCE,
                    confidence=1.0,
                )
            )

    seen = {identifier_key(e.type, e.value) for e in identifiers}
    for entry in extract_extra_identifiers(subject.identifiers or {}):
        key = identifier_key(entry.type, entry.value)
        if key in seen:
            continue
        seen.add(key)
        identifiers.append(entry)

    return IdentityGraph(
        primary_email=_clean(subject.email) or None,
        primary_name=_clean(subject.full_name) or None,
        identifiers=tuple(identifiers),
        resolved_systems=(),
        confidence=calculate_confidence(identifiers, 0),
    )


def _best_value(identifiers: Sequence[IdentityEntry], type_: IdentifierType) -> str | None:
    candidates = [e for e in identifiers if e.type == type_.value]
    if not candidates:
        return None
    # max() keeps the first entry among equal confidences
    return max(candidates, key=lambda e: e.confidence).value


def merge_identifiers(
    graph: IdentityGraph,
    new_entries: Iterable[IdentityEntry],
    default_source: str,
) -> IdentityGraph:
    """
    Merge newly discovered identifiers into a graph.

    Deduplication rules:
    - Entries below MIN_CONFIDENCE_THRESHOLD are dropped
    - A fact already in the graph keeps the higher confidence; confirmation
      from a different source at >= 0.5 adds a 0.05 corroboration bonus
    - Attribution moves to the new source only if it is more confident
    - New facts are appended unchanged

    Args:
        graph: Existing identity graph (left unmodified)
        new_entries: Facts returned by a connector run
        default_source: Source label for entries without one

    Returns:
        A new IdentityGraph with merged identifiers and recomputed confidence
    """
    merged: list[IdentityEntry] = list(graph.identifiers)
    index = {identifier_key(e.type, e.value): i for i, e in enumerate(merged)}

    for raw in new_entries:
        entry = dataclasses.replace(
            raw,
            source=raw.source or default_source,
            confidence=clamp_confidence(raw.confidence),
        )

        if entry.confidence < MIN_CONFIDENCE_THRESHOLD:
            logger.debug(
                "identifier_rejected",
                type=entry.type,
                source=entry.source,
                confidence=entry.confidence,
            )
            continue

        key = identifier_key(entry.type, entry.value)
        position = index.get(key)

        if position is None:
            index[key] = len(merged)
            merged.append(entry)
            continue

        existing = merged[position]
        confidence = max(existing.confidence, entry.confidence)

        if existing.source != entry.source and entry.confidence >= CORROBORATION_MIN_CONFIDENCE:
            confidence = clamp_confidence(confidence + CORROBORATION_BONUS)
            logger.debug(
                "identifier_corroborated",
                type=entry.type,
                existing_source=existing.source,
                new_source=entry.source,
                confidence=confidence,
            )

        merged[position] = dataclasses.replace(
            existing,
            confidence=confidence,
            source=entry.source if raw.confidence > existing.confidence else existing.source,
        )

    primary_email = graph.primary_email or _best_value(merged, IdentifierType.EMAIL)
    primary_name = graph.primary_name or _best_value(merged, IdentifierType.NAME)

    return dataclasses.replace(
        graph,
        primary_email=primary_email,
        primary_name=primary_name,
        identifiers=tuple(merged),
        confidence=calculate_confidence(merged, len(graph.resolved_systems)),
    )


def add_resolved_system(graph: IdentityGraph, system: ResolvedSystem) -> IdentityGraph:
    """
    Register an account located for the subject in a target system.

    A repeat sighting of the same provider/account refreshes display_name
    and last_seen but never blanks out previously known values.

    Returns:
        A new IdentityGraph with recomputed confidence
    """
    systems = list(graph.resolved_systems)
    key = system_key(system.provider, system.account_id)

    for i, existing in enumerate(systems):
        if system_key(existing.provider, existing.account_id) != key:
            continue

        systems[i] = dataclasses.replace(
            existing,
            display_name=system.display_name or existing.display_name,
            last_seen=system.last_seen if system.last_seen is not None else existing.last_seen,
        )
        logger.debug(
            "resolved_system_refreshed",
            provider=existing.provider,
            account_id=existing.account_id,
        )
        break
    else:
        systems.append(system)

    return dataclasses.replace(
        graph,
        resolved_systems=tuple(systems),
        confidence=calculate_confidence(graph.identifiers, len(systems)),
    )


def _rank_key(entry: IdentityEntry) -> tuple[int, float]:
    return (_priority(entry.type), -entry.confidence)


def build_subject_identifiers(graph: IdentityGraph) -> SubjectIdentifiers:
    """
    Build the connector query specification from an identity graph.

    The primary identifier is chosen by type priority (email, upn, objectId,
    employeeId, phone, name, custom), then by confidence. Remaining
    identifiers above the threshold become alternatives, most confident first.

    An empty graph yields an empty email primary; callers should check
    SubjectIdentifiers.is_queryable rather than expect an error.
    """
    if not graph.identifiers:
        return SubjectIdentifiers(
            primary=SubjectIdentifier(type=IdentifierType.EMAIL.value, value=""),
            alternatives=(),
        )

    ranked = sorted(graph.identifiers, key=_rank_key)
    top, rest = ranked[0], ranked[1:]

    alternatives = sorted(
        (e for e in rest if e.confidence >= MIN_CONFIDENCE_THRESHOLD),
        key=lambda e: e.confidence,
        reverse=True,
    )

    return SubjectIdentifiers(
        primary=SubjectIdentifier(type=top.type, value=top.value),
        alternatives=tuple(SubjectIdentifier(type=e.type, value=e.value) for e in alternatives),
    )


def identifier_types(graph: IdentityGraph) -> tuple[str, ...]:
    """Distinct identifier types present in the graph, in priority order."""
    present = {e.type for e in graph.identifiers}
    return tuple(sorted(present, key=lambda t: (_priority(t), t)))


def build_discovery_input(
    graph: IdentityGraph,
    dsar_type: str,
    data_subject_type: str | None = None,
) -> DiscoveryInput:
    """Derive the discovery ranker input from a subject's identity graph."""
    return DiscoveryInput(
        dsar_type=dsar_type,
        data_subject_type=data_subject_type,
        identifier_types=identifier_types(graph),
    )
