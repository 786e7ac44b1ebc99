"""Schema-driven validation for inbound user payloads.

The schema is an ordered table of ``FieldRule`` descriptors. Rules are data:
checks are referenced by name and looked up in ``CHECKS`` when a payload is
validated, so the table can be inspected and tested on its own.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import ValidationError
from .group_catalog import FacetConfig

CREATE = "create"
UPDATE = "update"

EMAIL_MAX_LENGTH = 254

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s.]{2,}$")
ALPHANUMERIC_PATTERN = re.compile(r"^[A-Za-z0-9]+$")
# Letter runs joined by single hyphens or spaces ("Anne-Marie", "van Dijk")
PERSON_NAME_PATTERN = re.compile(r"^[^\W\d_]+(?:[- ][^\W\d_]+)*$")


@dataclass(frozen=True)
class FieldRule:
    """Validation and visibility rules for one user field.

    Attributes:
        name: Field name as sent by callers and stored in Keycloak
        required: Must be present when creating a user
        check: Key into CHECKS, or None when any value is accepted
        default: Value applied when the caller leaves the field out
        protected: Never accepted from callers, never returned to them
        internal: Accepted, but never returned to callers
    """
    name: str
    required: bool = False
    check: Optional[str] = None
    default: Any = None
    protected: bool = False
    internal: bool = False


USER_SCHEMA: tuple[FieldRule, ...] = (
    FieldRule("email", required=True, check="email"),
    FieldRule("username", required=True, check="alphanumeric"),
    FieldRule("firstName", required=True, check="person_name"),
    FieldRule("lastName", required=True, check="person_name"),
    FieldRule("association", required=True, check="association"),
    FieldRule("type", required=True, check="type"),
    FieldRule("enabled", check="boolean", default=True),
    FieldRule("profiles", check="profile_list"),
    FieldRule("credentials", protected=True),
    FieldRule("auth_data", internal=True),
)


def is_email(value, facets: FacetConfig) -> bool:
    return isinstance(value, str) and len(value) <= EMAIL_MAX_LENGTH and bool(EMAIL_PATTERN.match(value))


def is_alphanumeric(value, facets: FacetConfig) -> bool:
    return isinstance(value, str) and bool(ALPHANUMERIC_PATTERN.match(value))


def is_person_name(value, facets: FacetConfig) -> bool:
    return isinstance(value, str) and bool(PERSON_NAME_PATTERN.match(value))


def is_association(value, facets: FacetConfig) -> bool:
    return value in facets.associations


def is_type(value, facets: FacetConfig) -> bool:
    return value in facets.types


def is_boolean(value, facets: FacetConfig) -> bool:
    return isinstance(value, bool)


def is_profile_list(value, facets: FacetConfig) -> bool:
    return isinstance(value, list) and all(facets.is_profile_name(name) for name in value)


CHECKS: dict[str, Callable[[Any, FacetConfig], bool]] = {
    "email": is_email,
    "alphanumeric": is_alphanumeric,
    "person_name": is_person_name,
    "association": is_association,
    "type": is_type,
    "boolean": is_boolean,
    "profile_list": is_profile_list,
}


def _is_present(value) -> bool:
    return value is not None and value != ""


def validate_user(
    payload,
    mode: str,
    facets: FacetConfig,
    schema: tuple[FieldRule, ...] = USER_SCHEMA,
) -> dict:
    """Normalize a user payload against the schema.

    Unknown and protected fields are dropped, defaults filled in, required
    fields enforced (create mode only) and every present field checked. All
    violations are collected before failing.

    Args:
        payload: Caller-supplied JSON object (left untouched)
        mode: CREATE or UPDATE
        facets: Facet enumerations used by the association/type/profile checks
        schema: Field table to validate against

    Returns:
        New dict holding only accepted fields

    Raises:
        ValidationError: With one code per violation, e.g. ["email_invalid", "type_missing"]
    """
    if not isinstance(payload, dict):
        raise ValidationError(["no_data"])

    rules = {rule.name: rule for rule in schema}
    data = {
        key: value
        for key, value in payload.items()
        if key in rules and not rules[key].protected
    }

    errors = []
    for rule in schema:
        if rule.protected:
            continue
        if rule.default is not None and rule.name not in data:
            data[rule.name] = rule.default
        value = data.get(rule.name)
        if rule.required and mode == CREATE and not _is_present(value):
            errors.append(f"{rule.name}_missing")
        if rule.check and _is_present(value) and not CHECKS[rule.check](value, facets):
            errors.append(f"{rule.name}_invalid")

    if errors:
        raise ValidationError(errors)
    return data


def public_fields(schema: tuple[FieldRule, ...] = USER_SCHEMA) -> tuple[str, ...]:
    """Names of the fields callers may see in responses."""
    return tuple(rule.name for rule in schema if not (rule.protected or rule.internal))
