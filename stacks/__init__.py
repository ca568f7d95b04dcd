"""
CDK stack modules for the Karabast backend deployment.

- NetworkStack: VPC, subnets, NAT egress and the ECS cluster
- SharedTableStack: the persistent table shared across deployments
- BackendStack: the Fargate game server and its exposure strategy
"""

from .network.stack import NetworkStack
from .shared_table.stack import SharedTableStack
from .backend import BackendStack

# Import common components
from .common import (
    BaseStack,
    AccessGrantMixin,
    SecurityGroupMixin,
    DeploymentSpec,
    StackConfigurationError,
    ResourceCreationError,
    ValidationError,
    ResolutionError,
    ConfigValidator,
    AWSResourceValidator
)

__all__ = [
    # Stack classes
    "NetworkStack",
    "SharedTableStack",
    "BackendStack",

    # Base classes
    "BaseStack",

    # Mixins
    "AccessGrantMixin",
    "SecurityGroupMixin",

    # Deployment description
    "DeploymentSpec",

    # Exceptions
    "StackConfigurationError",
    "ResourceCreationError",
    "ValidationError",
    "ResolutionError",

    # Validators
    "ConfigValidator",
    "AWSResourceValidator"
]
