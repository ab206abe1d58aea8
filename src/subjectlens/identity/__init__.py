"""
Identity resolution for data subjects.

Builds an identity graph of a privacy-request subject from case data and
connector findings, and derives the identifiers used to query systems.
"""

from subjectlens.identity.models import (
    IdentifierType,
    IdentityEntry,
    IdentityGraph,
    ResolvedSystem,
    SubjectIdentifier,
    SubjectIdentifiers,
    SubjectRecord,
    clamp_confidence,
    from_percent,
    to_percent,
)
from subjectlens.identity.normalizer import (
    CASE_DATA_SOURCE,
    EXTRA_IDENTIFIER_KEYS,
    extract_extra_identifiers,
    identifier_type_for_key,
    normalize_value,
)
from subjectlens.identity.resolver import (
    IDENTIFIER_PRIORITY,
    MIN_CONFIDENCE_THRESHOLD,
    TYPE_WEIGHTS,
    add_resolved_system,
    build_discovery_input,
    build_initial_identity_graph,
    build_subject_identifiers,
    calculate_confidence,
    identifier_types,
    merge_identifiers,
)

__all__ = [
    # Models
    "IdentifierType",
    "IdentityEntry",
    "ResolvedSystem",
    "IdentityGraph",
    "SubjectRecord",
    "SubjectIdentifier",
    "SubjectIdentifiers",
    "clamp_confidence",
    "to_percent",
    "from_percent",
    # Normalizer
    "CASE_DATA_SOURCE",
    "EXTRA_IDENTIFIER_KEYS",
    "normalize_value",
    "identifier_type_for_key",
    "extract_extra_identifiers",
    # Resolver
    "MIN_CONFIDENCE_THRESHOLD",
    "TYPE_WEIGHTS",
    "IDENTIFIER_PRIORITY",
    "calculate_confidence",
    "build_initial_identity_graph",
    "merge_identifiers",
    "add_resolved_system",
    "build_subject_identifiers",
    "identifier_types",
    "build_discovery_input",
]
