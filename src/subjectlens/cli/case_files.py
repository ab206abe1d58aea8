"""
Case and findings file loading for CLI commands.

Case file:
    dsarType: ACCESS
    dataSubjectType: employee
    subject:
      fullName: Jane Doe
      email: jane@example.com
      identifiers:
        upn: jane.doe@corp.example

Findings file (one batch per connector run):
    findings:
      - source: M365
        identifiers:
          - {type: email, value: jane@example.com, confidence: 0.9}
        systems:
          - {provider: M365, accountId: "abc-123", displayName: Jane Doe}
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from subjectlens.core.errors import ValidationError
from subjectlens.identity.models import IdentityEntry, ResolvedSystem, SubjectRecord


@dataclass(frozen=True)
class CaseFile:
    """A privacy-request case as read from disk."""

    subject: SubjectRecord
    dsar_type: str | None = None
    data_subject_type: str | None = None


@dataclass(frozen=True)
class FindingBatch:
    """Identifiers and accounts returned by one connector run."""

    source: str
    identifiers: tuple[IdentityEntry, ...] = ()
    systems: tuple[ResolvedSystem, ...] = ()


def _read_yaml(path: str | Path) -> Any:
    path = Path(path)
    if not path.exists():
        raise ValidationError("File not found", {"path": str(path)})
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except UnicodeDecodeError as e:
        raise ValidationError(f"File is not UTF-8: {e}", {"path": str(path)}) from e
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML: {e}", {"path": str(path)}) from e


def parse_case(data: dict[str, Any]) -> CaseFile:
    """Parse a case mapping; the subject must have a full name."""
    subject = data.get("subject") if isinstance(data, dict) else None
    if not isinstance(subject, dict) or not str(subject.get("fullName") or "").strip():
        raise ValidationError("Case file needs a subject with a fullName")

    return CaseFile(
        subject=SubjectRecord.from_dict(subject),
        dsar_type=data.get("dsarType"),
        data_subject_type=data.get("dataSubjectType"),
    )


def parse_findings(data: dict[str, Any]) -> list[FindingBatch]:
    """Parse connector finding batches."""
    batches: list[FindingBatch] = []

    for position, item in enumerate((data or {}).get("findings") or []):
        if not isinstance(item, dict):
            raise ValidationError("Finding batch must be a mapping", {"position": position})
        source = str(item.get("source") or "")
        try:
            identifiers = tuple(IdentityEntry.from_dict(e) for e in item.get("identifiers") or [])
            systems = tuple(ResolvedSystem.from_dict(s) for s in item.get("systems") or [])
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid finding batch: {e}", {"source": source}) from e
        batches.append(FindingBatch(source=source, identifiers=identifiers, systems=systems))

    return batches


def load_case(path: str | Path) -> CaseFile:
    """Load a case file from YAML."""
    return parse_case(_read_yaml(path))


def load_findings(path: str | Path) -> list[FindingBatch]:
    """Load connector finding batches from YAML."""
    return parse_findings(_read_yaml(path))
