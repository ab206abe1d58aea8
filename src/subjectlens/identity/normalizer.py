"""
Identifier normalization for identity resolution.

Normalizes identifier values for duplicate detection and maps the
open-ended identifiers map of a case to typed identity entries.
"""

from __future__ import annotations

from typing import Any

from subjectlens.identity.models import IdentifierType, IdentityEntry

CASE_DATA_SOURCE = "case_data"

# Known key spellings in a subject's extra identifiers map
# Anything not listed here becomes IdentifierType.CUSTOM
EXTRA_IDENTIFIER_KEYS: dict[str, IdentifierType] = {
    # User principal name
    "upn": IdentifierType.UPN,
    "userPrincipalName": IdentifierType.UPN,
    "user_principal_name": IdentifierType.UPN,
    # Directory object id
    "objectId": IdentifierType.OBJECT_ID,
    "object_id": IdentifierType.OBJECT_ID,
    "entraId": IdentifierType.OBJECT_ID,
    "azureObjectId": IdentifierType.OBJECT_ID,
    # Staff / employee id
    "employeeId": IdentifierType.EMPLOYEE_ID,
    "employee_id": IdentifierType.EMPLOYEE_ID,
    "staffId": IdentifierType.EMPLOYEE_ID,
    "staff_id": IdentifierType.EMPLOYEE_ID,
    # Alternate email
    "email": IdentifierType.EMAIL,
    "secondaryEmail": IdentifierType.EMAIL,
    "alternateEmail": IdentifierType.EMAIL,
    "alternate_email": IdentifierType.EMAIL,
    # Alternate phone
    "phone": IdentifierType.PHONE,
    "mobile": IdentifierType.PHONE,
    "mobilePhone": IdentifierType.PHONE,
    "alternatePhone": IdentifierType.PHONE,
}


def normalize_value(value: str) -> str:
    """
    Normalize an identifier value for comparison.

    Examples:
        "  Jane@Example.COM " → "jane@example.com"
    """
    return value.strip().lower()


def identifier_key(type_: str, value: str) -> tuple[str, str]:
    """Dedup key for an identifier: its type plus normalized value."""
    return (type_, normalize_value(value))


def system_key(provider: str, account_id: str) -> tuple[str, str]:
    """Dedup key for a resolved system account."""
    return (normalize_value(provider), normalize_value(account_id))


def identifier_type_for_key(key: str) -> str:
    """Map an extra-identifier key spelling to an identifier type value."""
    return EXTRA_IDENTIFIER_KEYS.get(key, IdentifierType.CUSTOM).value


def extract_extra_identifiers(identifiers: dict[str, Any]) -> list[IdentityEntry]:
    """
    Convert a case's open-ended identifiers map into identity entries.

    Values are coerced to trimmed strings; None and empty values are skipped.

    Args:
        identifiers: Arbitrary key -> value map from the subject record

    Returns:
        Case-data entries at full confidence, in map order
    """
    entries: list[IdentityEntry] = []

    for key, raw in identifiers.items():
        if raw is None:
            continue

        value = str(raw).strip()
        if not value:
            continue

        entries.append(
            IdentityEntry(
                type=identifier_type_for_key(key),
                value=value,
                source=CASE_DATA_SOURCE,
                confidence=1.0,
            )
        )

    return entries
