"""
Discovery catalogue loading.

Loads the tenant's discovery rules and catalogued systems from a YAML
document and validates them before they reach the ranker.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import structlog
import yaml

from subjectlens.core.errors import CatalogError
from subjectlens.discovery.models import DiscoveryRule, DsarType, SystemInfo

logger = structlog.get_logger()


@dataclass(frozen=True)
class DiscoveryCatalog:
    """Rule and system catalogue for one tenant."""

    rules: tuple[DiscoveryRule, ...] = ()
    systems: Mapping[str, SystemInfo] = field(default_factory=dict, compare=False)

    def active_rules(self) -> list[DiscoveryRule]:
        """Rules that take part in ranking."""
        return [rule for rule in self.rules if rule.active]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "systems": [system.to_dict() for system in self.systems.values()],
            "rules": [rule.to_dict() for rule in self.rules],
        }


LIST_FIELDS = ("dsarTypes", "dataSubjectTypes", "identifierTypes")


def _check_lists(item: dict[str, Any], context: dict[str, Any]) -> None:
    """Reject scalar values where a list of strings is expected."""
    for key in LIST_FIELDS:
        value = item.get(key)
        if value is not None and not isinstance(value, list):
            raise CatalogError(f"{key} must be a list", {**context, key: value})


def _parse_system(item: Any, position: int) -> SystemInfo:
    if not isinstance(item, dict) or not item.get("id"):
        raise CatalogError("System entry is missing an id", {"position": position})
    _check_lists(item, {"system": item["id"]})
    try:
        system = SystemInfo.from_dict(item)
    except (TypeError, ValueError) as e:
        raise CatalogError(f"Invalid system entry: {e}", {"system": item["id"]}) from e
    if not 0 <= system.confidence_score <= 100:
        raise CatalogError(
            "confidenceScore must be between 0 and 100",
            {"system": system.id, "confidenceScore": system.confidence_score},
        )
    return system


def _parse_rule(item: Any, position: int) -> DiscoveryRule:
    if not isinstance(item, dict) or not item.get("id"):
        raise CatalogError("Rule entry is missing an id", {"position": position})
    if not item.get("systemId"):
        raise CatalogError("Rule entry is missing a systemId", {"rule": item["id"]})
    _check_lists(item, {"rule": item["id"]})
    try:
        rule = DiscoveryRule.from_dict(item)
    except (TypeError, ValueError) as e:
        raise CatalogError(f"Invalid rule entry: {e}", {"rule": item["id"]}) from e
    if not 1 <= rule.weight <= 100:
        raise CatalogError(
            "weight must be between 1 and 100",
            {"rule": rule.id, "weight": rule.weight},
        )
    return rule


def parse_catalog(data: dict[str, Any]) -> DiscoveryCatalog:
    """
    Build a catalogue from its dictionary form.

    Rules may reference systems missing from the catalogue; the ranker
    skips them.

    Raises:
        CatalogError: If an entry is malformed
    """
    if not isinstance(data, dict):
        raise CatalogError("Catalogue must be a mapping with 'systems' and 'rules'")

    systems: dict[str, SystemInfo] = {}
    for position, item in enumerate(data.get("systems") or []):
        system = _parse_system(item, position)
        systems[system.id] = system

    rules = tuple(_parse_rule(item, position) for position, item in enumerate(data.get("rules") or []))

    return DiscoveryCatalog(rules=rules, systems=systems)


def load_catalog(path: str | Path) -> DiscoveryCatalog:
    """
    Load a discovery catalogue from a YAML file.

    Raises:
        CatalogError: If the file is missing, not valid YAML, or malformed
    """
    path = Path(path)
    if not path.exists():
        raise CatalogError("Catalogue file not found", {"path": str(path)})

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except UnicodeDecodeError as e:
        raise CatalogError(f"Catalogue is not UTF-8: {e}", {"path": str(path)}) from e
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML: {e}", {"path": str(path)}) from e

    catalog = parse_catalog(data)
    logger.info(
        "catalog_loaded",
        path=str(path),
        systems=len(catalog.systems),
        rules=len(catalog.rules),
    )
    return catalog


def create_demo_catalog() -> DiscoveryCatalog:
    """Create a demo catalogue with sample systems and rules."""
    all_types = frozenset(t.value for t in DsarType)

    systems = [
        SystemInfo(
            id="sys-m365",
            name="Microsoft 365",
            in_scope_for_dsar=True,
            confidence_score=90,
            identifier_types=frozenset({"email", "upn", "objectId"}),
        ),
        SystemInfo(
            id="sys-exchange",
            name="Exchange Online",
            in_scope_for_dsar=True,
            confidence_score=85,
            identifier_types=frozenset({"email", "upn"}),
        ),
        SystemInfo(
            id="sys-hr",
            name="HR-CRM",
            in_scope_for_dsar=True,
            confidence_score=70,
            identifier_types=frozenset({"employeeId", "email", "phone"}),
        ),
        SystemInfo(
            id="sys-fileserver",
            name="Fileserver",
            in_scope_for_dsar=True,
            confidence_score=40,
            identifier_types=frozenset({"name"}),
        ),
        SystemInfo(
            id="sys-archive",
            name="Legacy Archive",
            in_scope_for_dsar=False,
            confidence_score=60,
            identifier_types=frozenset({"email"}),
        ),
    ]

    rules = [
        DiscoveryRule(
            id="rule-m365-all",
            system_id="sys-m365",
            dsar_types=all_types,
            weight=60,
        ),
        DiscoveryRule(
            id="rule-exchange-access",
            system_id="sys-exchange",
            dsar_types=frozenset({"ACCESS", "PORTABILITY"}),
            weight=50,
        ),
        DiscoveryRule(
            id="rule-exchange-erasure",
            system_id="sys-exchange",
            dsar_types=frozenset({"ERASURE"}),
            weight=40,
        ),
        DiscoveryRule(
            id="rule-hr-employees",
            system_id="sys-hr",
            dsar_types=all_types,
            data_subject_types=frozenset({"employee", "applicant"}),
            identifier_types=frozenset({"employeeId"}),
            weight=70,
        ),
        DiscoveryRule(
            id="rule-fileserver",
            system_id="sys-fileserver",
            dsar_types=frozenset({"ACCESS"}),
            identifier_types=frozenset({"name"}),
            weight=20,
        ),
        DiscoveryRule(
            id="rule-archive",
            system_id="sys-archive",
            dsar_types=frozenset({"ACCESS", "ERASURE"}),
            weight=50,
        ),
        DiscoveryRule(
            id="rule-crm-retired",
            system_id="sys-crm",
            dsar_types=all_types,
            weight=80,
            active=False,
        ),
    ]

    return DiscoveryCatalog(rules=tuple(rules), systems={s.id: s for s in systems})
