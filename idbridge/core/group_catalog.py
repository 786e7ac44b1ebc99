"""Group facets and the per-request group catalog.

Groups are classified by name into exactly one facet:

    association   name is in the configured association enumeration
    type          name is in the configured type enumeration
    profile       name starts with the configured profile prefix
    unclassified  anything else

Association and type memberships are exclusive (at most one per user),
profile memberships are multi-valued.
"""
from __future__ import annotations
import enum
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .keycloak import GroupService


class Facet(str, enum.Enum):
    ASSOCIATION = "association"
    TYPE = "type"
    PROFILE = "profile"
    UNCLASSIFIED = "unclassified"


EXCLUSIVE_FACETS = (Facet.ASSOCIATION, Facet.TYPE)


@dataclass(frozen=True)
class FacetConfig:
    """Deployment-specific naming conventions for group facets.

    Attributes:
        associations: Group names denoting an organizational affiliation
        types: Group names denoting a role category
        profile_prefix: Prefix that marks a group as a profile
        type_role_aliases: Type names rewritten when building role keys
    """
    associations: tuple[str, ...] = ("hsm", "hst", "hfgg", "hfgo", "kisd", "ext")
    types: tuple[str, ...] = ("staff", "student", "management")
    profile_prefix: str = "gpu-"
    type_role_aliases: dict[str, str] = field(default_factory=lambda: {"management": "staff"})

    def __post_init__(self):
        if not self.profile_prefix:
            raise ValueError("profile_prefix must not be empty")
        overlap = set(self.associations) & set(self.types)
        if overlap:
            raise ValueError(f"Names cannot be both association and type: {sorted(overlap)}")
        prefixed = [name for name in (*self.associations, *self.types) if name.startswith(self.profile_prefix)]
        if prefixed:
            raise ValueError(f"Enumerated names must not carry the profile prefix: {prefixed}")

    def classify(self, name: str) -> Facet:
        if name in self.associations:
            return Facet.ASSOCIATION
        if name in self.types:
            return Facet.TYPE
        if name.startswith(self.profile_prefix):
            return Facet.PROFILE
        return Facet.UNCLASSIFIED

    def is_profile_name(self, name) -> bool:
        return isinstance(name, str) and name.startswith(self.profile_prefix)

    def role_type_name(self, type_name: str) -> str:
        return self.type_role_aliases.get(type_name, type_name)


def filter_facet(groups: Iterable[dict], facet: Facet, facets: FacetConfig) -> list[dict]:
    """Keep the groups whose name classifies into ``facet``, preserving order."""
    return [group for group in groups if facets.classify(group.get("name", "")) == facet]


def derive_facets(groups: Iterable[dict], facets: FacetConfig) -> dict:
    """Compute association/type/profiles from a user's live memberships.

    Each facet is detected on its own; a user without an association still
    reports a type when they have one.
    """
    groups = list(groups)
    association = next(iter(filter_facet(groups, Facet.ASSOCIATION, facets)), None)
    user_type = next(iter(filter_facet(groups, Facet.TYPE, facets)), None)
    derived = {"profiles": [group["name"] for group in filter_facet(groups, Facet.PROFILE, facets)]}
    if association:
        derived["association"] = association["name"]
    if user_type:
        derived["type"] = user_type["name"]
    return derived


class GroupCatalog:
    """Snapshot of the realm's groups, classified into facets.

    Fetched once per request and never cached across requests; a concurrent
    change to group definitions is only seen by the next request.
    """

    def __init__(self, groups: list[dict], facets: FacetConfig):
        self.groups = list(groups)
        self.facets = facets
        self._by_name = {}
        for group in self.groups:
            self._by_name.setdefault(group.get("name"), group)

    @classmethod
    def fetch(cls, group_service: GroupService, facets: FacetConfig) -> "GroupCatalog":
        return cls(group_service.list_groups(), facets)

    def find(self, name: Optional[str]) -> Optional[dict]:
        """Exact-name lookup; ``None`` when the name is absent or empty."""
        if not name:
            return None
        return self._by_name.get(name)

    def find_in_facet(self, name: Optional[str], facet: Facet) -> Optional[dict]:
        group = self.find(name)
        if group and self.facets.classify(group["name"]) == facet:
            return group
        return None

    def by_facet(self, facet: Facet) -> list[dict]:
        return filter_facet(self.groups, facet, self.facets)

    def names(self, facet: Facet) -> list[str]:
        return [group["name"] for group in self.by_facet(facet)]
