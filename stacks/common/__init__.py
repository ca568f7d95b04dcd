"""
Common CDK stack components and utilities.

Shared by the network, shared table and backend stacks:
- Base stack with configuration access, log groups and tagging
- Mixins for security groups and access grants
- Deployment description and provisioning plan
- Exceptions and validators
"""

# Import base classes
from .base import BaseStack

# Import mixins
from .mixins import (
    AccessGrant,
    AccessGrantMixin,
    SecurityGroupMixin
)

# Import deployment description
from .deployment import (
    DeploymentSpec,
    DirectExposureSpec,
    LoadBalancedExposureSpec,
    SecretBundleRef
)

# Import provisioning plan
from .plan import (
    ApplyReport,
    PlanNode,
    ResourcePlan,
    apply_plan
)

# Import exceptions
from .exceptions import (
    StackConfigurationError,
    ResourceCreationError,
    ValidationError,
    ResolutionError
)

# Import validators
from .validators import (
    ConfigValidator,
    AWSResourceValidator
)

# Import constants
from .constants import *

__all__ = [
    # Base classes
    "BaseStack",

    # Mixins
    "AccessGrant",
    "AccessGrantMixin",
    "SecurityGroupMixin",

    # Deployment description
    "DeploymentSpec",
    "DirectExposureSpec",
    "LoadBalancedExposureSpec",
    "SecretBundleRef",

    # Provisioning plan
    "ApplyReport",
    "PlanNode",
    "ResourcePlan",
    "apply_plan",

    # Exceptions
    "StackConfigurationError",
    "ResourceCreationError",
    "ValidationError",
    "ResolutionError",

    # Validators
    "ConfigValidator",
    "AWSResourceValidator",

    # Constants (imported from constants module)
]
