"""Domain errors raised by the provisioning and reconciliation workflows."""
from __future__ import annotations
from typing import TYPE_CHECKING

import requests

from .keycloak import KeycloakError

if TYPE_CHECKING:
    from .memberships import MembershipBatch

# Failures of a single remote call, as opposed to programming errors
REMOTE_ERRORS = (KeycloakError, requests.RequestException)


class ValidationError(Exception):
    """Payload rejected by the field schema.

    Attributes:
        errors: Every violation found, as ``<field>_missing`` / ``<field>_invalid``
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(",".join(self.errors))


class IncompleteOperationError(Exception):
    """A remote call failed after earlier calls of the same operation succeeded.

    Nothing is rolled back: the identity keeps every membership, credential
    or field change applied before ``cause`` was raised.

    Attributes:
        user_id: Identity the operation was working on
        stage: Step that failed ("memberships", "credential", "update")
        batch: Membership operations attempted so far, including the failed one
        cause: Original exception
    """

    def __init__(self, user_id: str, stage: str, batch: "MembershipBatch", cause: Exception):
        self.user_id = user_id
        self.stage = stage
        self.batch = batch
        self.cause = cause
        super().__init__(f"{stage} failed for user {user_id}: {cause}")

    def to_dict(self) -> dict:
        return {
            "message": "api_errors.operation_incomplete",
            "errorMessage": str(self.cause),
            "id": self.user_id,
            "stage": self.stage,
            "operations": self.batch.to_list(),
        }
