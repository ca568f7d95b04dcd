"""Mixin classes for CDK stacks."""

from .iam import AccessGrant, AccessGrantMixin
from .security import SecurityGroupMixin

__all__ = [
    "AccessGrant",
    "AccessGrantMixin",
    "SecurityGroupMixin"
]
