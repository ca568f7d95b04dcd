"""Access grant mixin for CDK stacks."""

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

from aws_cdk import (
    aws_dynamodb as dynamodb,
    aws_iam as iam,
    aws_secretsmanager as secretsmanager
)

logger = logging.getLogger(__name__)

PERMISSION_READ = "read"
PERMISSION_READ_WRITE = "read_write"


@dataclass(frozen=True)
class AccessGrant:
    """An authorization statement: principal may perform permission on resource."""
    principal: str
    resource: str
    permission: str


class AccessGrantMixin:
    """
    Mixin class issuing idempotent access grants.

    Every grant is recorded in a ledger keyed by (principal, resource,
    permission). Issuing a grant that is already in the ledger does nothing,
    so composing the same deployment twice never adds duplicate or
    conflicting policy statements.
    """

    def _grant_ledger(self) -> Dict[Tuple[str, str, str], AccessGrant]:
        if not hasattr(self, "_access_grants"):
            self._access_grants = {}
        return self._access_grants

    @property
    def access_grants(self) -> Tuple[AccessGrant, ...]:
        """Grants issued so far, in issue order."""
        return tuple(self._grant_ledger().values())

    def _record_grant(self, principal: iam.IGrantable, resource, permission: str) -> bool:
        """Record a grant. Returns False when it was already issued."""
        grant = AccessGrant(
            principal=principal.grant_principal.node.path
            if hasattr(principal.grant_principal, "node") else str(principal.grant_principal),
            resource=resource.node.path,
            permission=permission
        )
        key = (grant.principal, grant.resource, grant.permission)
        ledger = self._grant_ledger()
        if key in ledger:
            logger.debug(f"Grant already issued: {grant.permission} on {grant.resource} to {grant.principal}")
            return False
        ledger[key] = grant
        return True

    def grant_table_read_write(self, principal: iam.IGrantable, table: dynamodb.ITableV2) -> None:
        """
        Grant read and write data access on the shared table.

        Args:
            principal: The task role
            table: The externally owned shared table
        """
        if self._record_grant(principal, table, PERMISSION_READ_WRITE):
            table.grant_read_write_data(principal)

    def grant_secret_read(self, principal: iam.IGrantable, secret: secretsmanager.ISecret) -> None:
        """
        Grant read access on the secret bundle.

        Args:
            principal: The task role
            secret: The resolved secret bundle
        """
        if self._record_grant(principal, secret, PERMISSION_READ):
            secret.grant_read(principal)
