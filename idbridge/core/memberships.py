"""Membership batches: sequential add/remove calls with per-call outcomes."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional

from .keycloak import GroupService

logger = logging.getLogger(__name__)

ADD = "add"
REMOVE = "remove"


@dataclass
class MembershipOperation:
    action: str
    group_name: str
    group_id: str
    ok: bool = True
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"action": self.action, "group": self.group_name, "ok": self.ok}
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class MembershipBatch:
    """Outcome of every membership call issued for one user.

    Attributes:
        operations: Calls in the order they were issued
        unresolved: Requested group names missing from the catalog (skipped)
    """
    operations: list[MembershipOperation] = field(default_factory=list)
    unresolved: list[str] = field(default_factory=list)

    @property
    def added(self) -> list[str]:
        return [op.group_name for op in self.operations if op.action == ADD and op.ok]

    @property
    def removed(self) -> list[str]:
        return [op.group_name for op in self.operations if op.action == REMOVE and op.ok]

    @property
    def failed(self) -> list[MembershipOperation]:
        return [op for op in self.operations if not op.ok]

    def to_list(self) -> list[dict]:
        return [op.to_dict() for op in self.operations]


class MembershipWriter:
    """Issue membership calls one at a time, recording each in a batch.

    A failing call is recorded with its error and then re-raised, so the
    batch always reflects exactly what reached the directory.
    """

    def __init__(self, groups: GroupService, user_id: str, batch: Optional[MembershipBatch] = None):
        self.groups = groups
        self.user_id = user_id
        self.batch = batch if batch is not None else MembershipBatch()

    def add(self, group: dict) -> None:
        self._apply(ADD, group, self.groups.add_user_to_group)

    def remove(self, group: dict) -> None:
        self._apply(REMOVE, group, self.groups.remove_user_from_group)

    def skip(self, name: str) -> None:
        logger.info("[membership] Group '%s' not found in catalog, skipped for user %s", name, self.user_id)
        self.batch.unresolved.append(name)

    def _apply(self, action: str, group: dict, call) -> None:
        operation = MembershipOperation(action, group["name"], group["id"])
        self.batch.operations.append(operation)
        try:
            call(self.user_id, group["id"])
        except Exception as exc:
            operation.ok = False
            operation.error = str(exc)
            raise
        logger.info("[membership] %s user %s %s group '%s'", action, self.user_id,
                    "to" if action == ADD else "from", group["name"])
