"""
Provisioning Service Layer: joiner workflow

Creates a Keycloak identity from a caller payload and brings it to its
initial state:

    validated -> created -> facets assigned -> credential set -> [paired account]

Architecture:
    HTTP API (/users) ──┐
                        ├──> provisioning_service.py ──> idbridge.core.keycloak ──> Keycloak
    CLI (idbridge)  ────┘                           └──> paired_accounts.py ──> Directus

Failure semantics:
    - Validation errors are raised before any remote call.
    - A failed user creation leaves nothing behind.
    - A failure after creation (memberships, credential) is NOT rolled back;
      IncompleteOperationError reports the user ID and what was applied.
    - The paired account step never fails the workflow.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional

from .errors import REMOTE_ERRORS, IncompleteOperationError
from .group_catalog import Facet, FacetConfig, GroupCatalog
from .keycloak import GroupService, UserService
from .memberships import MembershipBatch, MembershipWriter
from .paired_accounts import PairedAccountProvisioner, SecondaryOutcome
from .passwords import DEFAULT_TEMP_PASSWORD_LENGTH, generate_temp_password
from .validators import CREATE, public_fields, validate_user

logger = logging.getLogger(__name__)

# Request-only flag, read before validation since it is not a schema field
SKIP_SECONDARY_FLAG = "skipSecondaryAccount"


@dataclass
class ProvisioningResult:
    """Everything the joiner workflow produced.

    Attributes:
        user_id: Keycloak ID of the new identity
        temporary_password: One-time password set on the identity
        user: Normalized fields sent to Keycloak (facet fields removed)
        memberships: Membership calls issued and names that did not resolve
        secondary: Outcome of the paired Directus account step
    """
    user_id: str
    temporary_password: str
    user: dict
    memberships: MembershipBatch = field(default_factory=MembershipBatch)
    secondary: SecondaryOutcome = field(default_factory=lambda: SecondaryOutcome.skipped("not_attempted"))

    def to_response(self) -> dict:
        body = {"id": self.user_id}
        if self.secondary.account_id:
            body["secondaryAccountId"] = self.secondary.account_id
        body["temporaryPassword"] = self.temporary_password
        visible = public_fields()
        body.update({key: value for key, value in self.user.items() if key in visible})
        return body


def _unique(names) -> list[str]:
    seen = []
    for name in names:
        if name not in seen:
            seen.append(name)
    return seen


def provision_user(
    payload,
    *,
    users: UserService,
    groups: GroupService,
    facets: FacetConfig,
    paired: Optional[PairedAccountProvisioner] = None,
    password_length: int = DEFAULT_TEMP_PASSWORD_LENGTH,
) -> ProvisioningResult:
    """Create a user with its facets, temporary password and paired account.

    Args:
        payload: Caller payload (email, username, firstName, lastName,
            association, type, profiles, skipSecondaryAccount). Only a JSON
            `true` in skipSecondaryAccount suppresses the paired account.
        users: User service bound to the target realm
        groups: Group service bound to the target realm
        facets: Facet naming conventions
        paired: Paired-account provisioner, or None when no store is configured
        password_length: Length of the temporary password

    Returns:
        ProvisioningResult

    Raises:
        ValidationError: Payload rejected; nothing was sent to Keycloak
        KeycloakAPIError: Group listing or user creation failed; nothing was created
        IncompleteOperationError: A call after user creation failed
    """
    skip_secondary = isinstance(payload, dict) and payload.get(SKIP_SECONDARY_FLAG) is True
    data = validate_user(payload, CREATE, facets)

    association_name = data.pop("association", None)
    type_name = data.pop("type", None)
    profile_names = _unique(data.pop("profiles", None) or [])
    data["enabled"] = True

    catalog = GroupCatalog.fetch(groups, facets)
    profiles = []
    unresolved_profiles = []
    for name in profile_names:
        group = catalog.find_in_facet(name, Facet.PROFILE)
        if group:
            profiles.append(group)
        else:
            unresolved_profiles.append(name)

    user_id = users.create_user(data)

    writer = MembershipWriter(groups, user_id)
    association = catalog.find_in_facet(association_name, Facet.ASSOCIATION)
    user_type = catalog.find_in_facet(type_name, Facet.TYPE)
    try:
        for requested, group in ((association_name, association), (type_name, user_type)):
            if group:
                writer.add(group)
            elif requested:
                writer.skip(requested)
        for group in profiles:
            writer.add(group)
        for name in unresolved_profiles:
            writer.skip(name)
    except REMOTE_ERRORS as exc:
        logger.error("[joiner] Membership assignment failed for %s: %s", user_id, exc)
        raise IncompleteOperationError(user_id, "memberships", writer.batch, exc) from exc

    temporary_password = generate_temp_password(password_length)
    try:
        users.reset_password(user_id, temporary_password, temporary=True)
    except REMOTE_ERRORS as exc:
        logger.error("[joiner] Temporary password could not be set for %s: %s", user_id, exc)
        raise IncompleteOperationError(user_id, "credential", writer.batch, exc) from exc
    logger.info("[joiner] Temporary password set for %s", user_id)

    if skip_secondary:
        secondary = SecondaryOutcome.skipped("suppressed_by_caller")
    elif paired is None:
        secondary = SecondaryOutcome.skipped("not_configured")
    else:
        secondary = paired.provision(user_id, data, association, user_type)

    return ProvisioningResult(
        user_id=user_id,
        temporary_password=temporary_password,
        user=data,
        memberships=writer.batch,
        secondary=secondary,
    )


def reset_temporary_password(
    users: UserService,
    user_id: str,
    length: int = DEFAULT_TEMP_PASSWORD_LENGTH,
) -> str:
    """Replace the user's password with a fresh temporary one and return it."""
    temporary_password = generate_temp_password(length)
    users.reset_password(user_id, temporary_password, temporary=True)
    logger.info("[password] Temporary password reset for %s", user_id)
    return temporary_password
