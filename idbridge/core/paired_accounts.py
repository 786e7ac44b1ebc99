"""Best-effort creation of the Directus account paired with a Keycloak user.

The Directus role comes from the role-mapping collection, keyed by
``<association>-<type>`` where the type may be aliased (``management`` maps
to ``staff`` by default). Whatever goes wrong here is logged and reported as
an outcome; it never fails the request that created the Keycloak user.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from .group_catalog import FacetConfig

logger = logging.getLogger(__name__)

ATTACHED = "attached"
SKIPPED = "skipped"
FAILED = "failed"

DEFAULT_MAPPING_COLLECTION = "role_group_mapping"
DEFAULT_PROVIDER = "keycloak"


@dataclass(frozen=True)
class SecondaryOutcome:
    status: str
    account_id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def attached(cls, account_id: str) -> "SecondaryOutcome":
        return cls(ATTACHED, account_id=account_id)

    @classmethod
    def skipped(cls, reason: str) -> "SecondaryOutcome":
        return cls(SKIPPED, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "SecondaryOutcome":
        return cls(FAILED, reason=reason)


def role_key(association_name: str, type_name: str, facets: FacetConfig) -> str:
    """Build the role-mapping key, e.g. ("hsm", "management") -> "hsm-staff"."""
    return f"{association_name}-{facets.role_type_name(type_name)}"


class PairedAccountProvisioner:
    """Create the Directus user linked to a freshly created Keycloak identity."""

    def __init__(
        self,
        store,
        facets: FacetConfig,
        mapping_collection: str = DEFAULT_MAPPING_COLLECTION,
        provider: str = DEFAULT_PROVIDER,
    ):
        self.store = store
        self.facets = facets
        self.mapping_collection = mapping_collection
        self.provider = provider

    def lookup_role(self, key: str) -> Optional[str]:
        rows = self.store.read_by_query(self.mapping_collection, {"groupId": {"_eq": key}})
        return next((row["roleId"] for row in rows if row.get("roleId")), None)

    def provision(
        self,
        user_id: str,
        user: dict,
        association: Optional[dict],
        user_type: Optional[dict],
    ) -> SecondaryOutcome:
        """Attempt to create the paired account; never raises.

        Args:
            user_id: Keycloak ID, stored as the Directus external identifier
            user: Normalized user fields (firstName, lastName, email)
            association: Resolved association group, or None
            user_type: Resolved type group, or None
        """
        try:
            if association is None or user_type is None:
                raise LookupError("association or type did not resolve to a group")
            key = role_key(association["name"], user_type["name"], self.facets)
            role_id = self.lookup_role(key)
            if not role_id:
                raise LookupError(f"no role mapped to '{key}'")
            account_id = self.store.create_user({
                "provider": self.provider,
                "first_name": user.get("firstName"),
                "last_name": user.get("lastName"),
                "email": user.get("email"),
                "external_identifier": user_id,
                "role": role_id,
            })
        except Exception as exc:
            logger.error("[paired] Failed to create Directus user for %s: %s", user_id, exc)
            return SecondaryOutcome.failed(str(exc))

        logger.info("[paired] Created Directus user %s for Keycloak user %s", account_id, user_id)
        return SecondaryOutcome.attached(account_id)
