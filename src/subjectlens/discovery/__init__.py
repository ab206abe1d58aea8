"""
System discovery for privacy requests.

Ranks catalogued backend systems by how likely they are to hold a data
subject's data, with an explanation for every score.
"""

from subjectlens.discovery.catalog import (
    DiscoveryCatalog,
    create_demo_catalog,
    load_catalog,
    parse_catalog,
)
from subjectlens.discovery.models import (
    DiscoveryInput,
    DiscoveryRule,
    DiscoverySuggestion,
    DsarType,
    SystemInfo,
)
from subjectlens.discovery.ranker import (
    IDENTIFIER_BOOST,
    IDENTIFIER_BOOST_CAP,
    OUT_OF_SCOPE_PENALTY,
    run_discovery,
    score_rule,
)

__all__ = [
    # Models
    "DsarType",
    "DiscoveryInput",
    "DiscoveryRule",
    "SystemInfo",
    "DiscoverySuggestion",
    # Ranker
    "run_discovery",
    "score_rule",
    "IDENTIFIER_BOOST",
    "IDENTIFIER_BOOST_CAP",
    "OUT_OF_SCOPE_PENALTY",
    # Catalogue
    "DiscoveryCatalog",
    "parse_catalog",
    "load_catalog",
    "create_demo_catalog",
]
