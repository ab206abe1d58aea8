"""
Discovery models.

Data models for the rule catalogue, the system catalogue, and the ranked
suggestions produced for a privacy request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DsarType(str, Enum):
    """Kinds of data subject access requests."""

    ACCESS = "ACCESS"
    ERASURE = "ERASURE"
    RECTIFICATION = "RECTIFICATION"
    RESTRICTION = "RESTRICTION"
    PORTABILITY = "PORTABILITY"
    OBJECTION = "OBJECTION"


def enum_value(item: Any) -> str:
    """Plain string value of an enum member or a string."""
    return item.value if isinstance(item, Enum) else str(item)


@dataclass(frozen=True)
class DiscoveryInput:
    """Request profile used to rank candidate systems."""

    dsar_type: str
    data_subject_type: str | None = None  # customer, employee, applicant, visitor
    identifier_types: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "dsarType": enum_value(self.dsar_type),
            "dataSubjectType": self.data_subject_type,
            "identifierTypes": list(self.identifier_types),
        }


@dataclass(frozen=True)
class DiscoveryRule:
    """One row of the matching catalogue."""

    id: str
    system_id: str
    dsar_types: frozenset[str] = frozenset()
    data_subject_types: frozenset[str] = frozenset()  # Empty = any subject type
    identifier_types: frozenset[str] = frozenset()
    weight: int = 50  # 1 - 100
    active: bool = True
    # Provider-specific extras, not used for scoring
    conditions: dict[str, Any] | None = field(default=None, compare=False)

    def matches_dsar_type(self, dsar_type: Any) -> bool:
        """Whether this rule applies to the given request type."""
        wanted = enum_value(dsar_type)
        return any(enum_value(t) == wanted for t in self.dsar_types)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "systemId": self.system_id,
            "dsarTypes": sorted(enum_value(t) for t in self.dsar_types),
            "dataSubjectTypes": sorted(self.data_subject_types),
            "identifierTypes": sorted(self.identifier_types),
            "weight": self.weight,
            "active": self.active,
            "conditions": self.conditions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiscoveryRule:
        return cls(
            id=str(data["id"]),
            system_id=str(data["systemId"]),
            dsar_types=frozenset(str(t) for t in data.get("dsarTypes") or []),
            data_subject_types=frozenset(str(t) for t in data.get("dataSubjectTypes") or []),
            identifier_types=frozenset(str(t) for t in data.get("identifierTypes") or []),
            weight=int(data.get("weight", 50)),
            active=bool(data.get("active", True)),
            conditions=data.get("conditions"),
        )


@dataclass(frozen=True)
class SystemInfo:
    """A catalogued backend system."""

    id: str
    name: str
    in_scope_for_dsar: bool = True  # Governance flag
    confidence_score: int = 0  # 0 - 100, pre-computed
    identifier_types: frozenset[str] = frozenset()  # Identifier types the system indexes on

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "inScopeForDsar": self.in_scope_for_dsar,
            "confidenceScore": self.confidence_score,
            "identifierTypes": sorted(self.identifier_types),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SystemInfo:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            in_scope_for_dsar=bool(data.get("inScopeForDsar", True)),
            confidence_score=int(data.get("confidenceScore", 0)),
            identifier_types=frozenset(str(t) for t in data.get("identifierTypes") or []),
        )


@dataclass(frozen=True)
class DiscoverySuggestion:
    """A system ranked as likely to hold the subject's data."""

    system_id: str
    system_name: str
    score: int  # 0 - 100
    reasons: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "systemId": self.system_id,
            "systemName": self.system_name,
            "score": self.score,
            "reasons": list(self.reasons),
        }
