"""Outbound user representations.

Raw Keycloak records carry far more than callers may see (credentials,
access maps, internal attributes). Projection keeps the identifier plus the
public schema fields, and for single-record reads replaces the facet fields
with values derived from live group membership.
"""
from __future__ import annotations
from typing import Any, Iterable, Optional

from .group_catalog import FacetConfig, derive_facets
from .validators import USER_SCHEMA, FieldRule, public_fields

FACET_KEYS = ("association", "type", "profiles")

# Never returned, whatever the schema says
SENSITIVE_FIELDS = ("credentials", "password", "secret", "_tempPassword")


def _filter(record: dict[str, Any], schema: tuple[FieldRule, ...]) -> dict[str, Any]:
    visible = [name for name in public_fields(schema) if name not in SENSITIVE_FIELDS]
    projected = {"id": record.get("id")} if "id" in record else {}
    for name in visible:
        if name in record:
            projected[name] = record[name]
    return projected


def project_user(
    record: dict[str, Any],
    groups: Optional[Iterable[dict]],
    facets: FacetConfig,
    schema: tuple[FieldRule, ...] = USER_SCHEMA,
) -> dict[str, Any]:
    """Project a single user, deriving facets from its memberships.

    Args:
        record: Raw Keycloak user representation
        groups: The user's live group memberships
        facets: Facet naming conventions

    Returns:
        Public representation with association/type/profiles from ``groups``
    """
    projected = _filter(record, schema)
    for key in FACET_KEYS:
        projected.pop(key, None)
    projected.update(derive_facets(groups or [], facets))
    return projected


def project_users(records: Iterable[dict[str, Any]], schema: tuple[FieldRule, ...] = USER_SCHEMA) -> list[dict]:
    """Project a listing; facets are not derived for collections."""
    return [_filter(record, schema) for record in records]
