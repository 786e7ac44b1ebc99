"""Mover workflow: reconcile a user's facet memberships with a partial update.

Only the difference between the requested facets and the user's live
memberships is sent to Keycloak. Exclusive facets (association, type) are
swapped remove-then-add; profiles get one add per missing name and one remove
per surplus membership. Calls are issued one by one and are not rolled back
when a later call fails.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field

from .errors import REMOTE_ERRORS, IncompleteOperationError
from .group_catalog import EXCLUSIVE_FACETS, Facet, FacetConfig, GroupCatalog, filter_facet
from .keycloak import GroupService, UserService
from .memberships import ADD, REMOVE, MembershipBatch, MembershipWriter
from .validators import UPDATE, validate_user

logger = logging.getLogger(__name__)

FACET_FIELDS = {Facet.ASSOCIATION: "association", Facet.TYPE: "type", Facet.PROFILE: "profiles"}


@dataclass
class MembershipPlan:
    """Ordered membership changes plus requested names missing from the catalog."""
    steps: list[tuple[str, dict]] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)

    def extend(self, other: "MembershipPlan") -> None:
        self.steps.extend(other.steps)
        self.unresolved.extend(other.unresolved)


@dataclass
class ReconciliationResult:
    user_id: str
    memberships: MembershipBatch
    updated_fields: dict


def plan_exclusive(
    current_groups: list[dict],
    requested: str,
    facet: Facet,
    catalog: GroupCatalog,
) -> MembershipPlan:
    """Plan the swap of an exclusive facet (association or type)."""
    plan = MembershipPlan()
    current = next(iter(filter_facet(current_groups, facet, catalog.facets)), None)
    if current is not None and current.get("name") == requested:
        return plan
    if current is not None:
        plan.steps.append((REMOVE, current))
    target = catalog.find_in_facet(requested, facet)
    if target is not None:
        plan.steps.append((ADD, target))
    else:
        plan.unresolved.append(requested)
    return plan


def plan_profiles(current_groups: list[dict], requested: list[str], catalog: GroupCatalog) -> MembershipPlan:
    """Plan the minimal profile delta: add missing names, remove surplus ones."""
    plan = MembershipPlan()
    current = filter_facet(current_groups, Facet.PROFILE, catalog.facets)
    current_names = {group["name"] for group in current}
    wanted = []
    for name in requested:
        if name not in wanted:
            wanted.append(name)

    for name in wanted:
        if name in current_names:
            continue
        group = catalog.find_in_facet(name, Facet.PROFILE)
        if group is not None:
            plan.steps.append((ADD, group))
        else:
            plan.unresolved.append(name)
    for group in current:
        if group["name"] not in wanted:
            plan.steps.append((REMOVE, group))
    return plan


def plan_memberships(requested: dict, current_groups: list[dict], catalog: GroupCatalog) -> MembershipPlan:
    """Combine the plans for every facet present in ``requested``.

    Args:
        requested: Facet field values keyed by "association", "type", "profiles"
        current_groups: User's live group memberships
        catalog: Realm group catalog
    """
    plan = MembershipPlan()
    for facet in EXCLUSIVE_FACETS:
        name = requested.get(FACET_FIELDS[facet])
        if name:
            plan.extend(plan_exclusive(current_groups, name, facet, catalog))
    profiles = requested.get(FACET_FIELDS[Facet.PROFILE])
    if profiles is not None:
        plan.extend(plan_profiles(current_groups, profiles, catalog))
    return plan


def update_user(
    user_id: str,
    payload,
    *,
    users: UserService,
    groups: GroupService,
    facets: FacetConfig,
) -> ReconciliationResult:
    """Apply a partial update: facet deltas first, then the remaining fields.

    Raises:
        ValidationError: Payload rejected; nothing was sent to Keycloak
        KeycloakAPIError: Reading the user's state failed, or the field update
            failed before any membership changed
        IncompleteOperationError: A call failed after earlier changes were applied
    """
    data = validate_user(payload, UPDATE, facets)
    requested = {name: data.pop(name) for name in FACET_FIELDS.values() if name in data}

    writer = MembershipWriter(groups, user_id)
    if any(value is not None and value != "" for value in requested.values()):
        catalog = GroupCatalog.fetch(groups, facets)
        current_groups = users.get_user_groups(user_id)
        plan = plan_memberships(requested, current_groups, catalog)
        try:
            for action, group in plan.steps:
                if action == REMOVE:
                    writer.remove(group)
                else:
                    writer.add(group)
        except REMOTE_ERRORS as exc:
            logger.error("[mover] Membership update failed for %s: %s", user_id, exc)
            raise IncompleteOperationError(user_id, "memberships", writer.batch, exc) from exc
        for name in plan.unresolved:
            writer.skip(name)

    try:
        users.update_user(user_id, data)
    except REMOTE_ERRORS as exc:
        if not writer.batch.operations:
            raise
        logger.error("[mover] Field update failed for %s after membership changes: %s", user_id, exc)
        raise IncompleteOperationError(user_id, "update", writer.batch, exc) from exc

    logger.info(
        "[mover] Updated user %s (added=%s, removed=%s)",
        user_id, writer.batch.added, writer.batch.removed,
    )
    return ReconciliationResult(user_id=user_id, memberships=writer.batch, updated_fields=data)

