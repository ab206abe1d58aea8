"""
Identity models for data subject resolution.

Provides the immutable identity profile of a data subject: the identifiers
known about them, the accounts located in target systems, and the query
specification handed to connectors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class IdentifierType(str, Enum):
    """Kinds of facts known about a data subject."""

    EMAIL = "email"
    UPN = "upn"  # User principal name
    OBJECT_ID = "objectId"  # Directory object id
    EMPLOYEE_ID = "employeeId"
    PHONE = "phone"
    NAME = "name"
    CUSTOM = "custom"


def clamp_confidence(value: float) -> float:
    """Clamp a confidence value to the 0.0 - 1.0 range."""
    return min(1.0, max(0.0, value))


def to_percent(confidence: float) -> int:
    """Convert a 0-1 confidence to the 0-100 scale used by stored profiles."""
    return int(round(clamp_confidence(confidence) * 100))


def from_percent(value: float) -> float:
    """Convert a 0-100 stored confidence back to the 0-1 scale."""
    return clamp_confidence(value / 100)


@dataclass(frozen=True)
class IdentityEntry:
    """One known fact about the data subject."""

    type: str  # IdentifierType value; unknown connector types are kept as-is
    value: str
    source: str = ""  # "case_data" or a connector/provider name
    confidence: float = 1.0  # 0.0 - 1.0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "type": self.type,
            "value": self.value,
            "source": self.source,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IdentityEntry:
        """Create an entry from a connector or stored dictionary."""
        return cls(
            type=str(data.get("type", IdentifierType.CUSTOM.value)),
            value=str(data.get("value", "")),
            source=str(data.get("source") or ""),
            confidence=float(data.get("confidence", 1.0)),
        )


@dataclass(frozen=True)
class ResolvedSystem:
    """An account located for the subject in a target system."""

    provider: str
    account_id: str
    display_name: str = ""
    last_seen: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "provider": self.provider,
            "accountId": self.account_id,
            "displayName": self.display_name,
            "lastSeen": self.last_seen.isoformat() if self.last_seen else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResolvedSystem:
        last_seen = data.get("lastSeen")
        if isinstance(last_seen, str):
            last_seen = datetime.fromisoformat(last_seen)
        return cls(
            provider=str(data["provider"]),
            account_id=str(data["accountId"]),
            display_name=str(data.get("displayName") or ""),
            last_seen=last_seen,
        )


@dataclass(frozen=True)
class IdentityGraph:
    """
    Accumulated identity profile of one data subject.

    primary_email and primary_name are cached conveniences; identifiers is
    the authoritative record. Every operation on a graph returns a new graph.
    """

    primary_email: str | None = None
    primary_name: str | None = None
    identifiers: tuple[IdentityEntry, ...] = ()
    resolved_systems: tuple[ResolvedSystem, ...] = ()
    confidence: float = 0.0

    @property
    def confidence_percent(self) -> int:
        """Aggregate confidence on the 0-100 scale."""
        return to_percent(self.confidence)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "primaryEmail": self.primary_email,
            "primaryName": self.primary_name,
            "identifiers": [entry.to_dict() for entry in self.identifiers],
            "resolvedSystems": [system.to_dict() for system in self.resolved_systems],
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IdentityGraph:
        """Restore a graph previously produced by to_dict()."""
        return cls(
            primary_email=data.get("primaryEmail"),
            primary_name=data.get("primaryName"),
            identifiers=tuple(IdentityEntry.from_dict(e) for e in data.get("identifiers", [])),
            resolved_systems=tuple(
                ResolvedSystem.from_dict(s) for s in data.get("resolvedSystems", [])
            ),
            confidence=clamp_confidence(float(data.get("confidence", 0.0))),
        )


@dataclass(frozen=True)
class SubjectRecord:
    """Data subject as recorded on a privacy-request case."""

    full_name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    # Open-ended extra identifiers, e.g. {"upn": "jane@corp.example", "staffId": 4411}
    identifiers: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "identifiers": dict(self.identifiers),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubjectRecord:
        return cls(
            full_name=str(data.get("fullName") or ""),
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
            identifiers=dict(data.get("identifiers") or {}),
        )


@dataclass(frozen=True)
class SubjectIdentifier:
    """A type/value pair used to query a target system."""

    type: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "value": self.value}


@dataclass(frozen=True)
class SubjectIdentifiers:
    """Query specification handed to connectors."""

    primary: SubjectIdentifier
    alternatives: tuple[SubjectIdentifier, ...] = ()

    @property
    def is_queryable(self) -> bool:
        """Whether there is enough data to query a system at all."""
        return bool(self.primary.value)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "primary": self.primary.to_dict(),
            "alternatives": [alt.to_dict() for alt in self.alternatives],
        }
