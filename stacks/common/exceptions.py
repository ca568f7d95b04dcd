"""Custom exceptions for CDK stacks."""

from typing import Optional


class StackConfigurationError(Exception):
    """
    Exception raised when stack configuration is invalid.

    Attributes:
        message: Human-readable error description
        config_key: The configuration key that caused the error
    """

    def __init__(self, message: str, config_key: Optional[str] = None) -> None:
        self.message = message
        self.config_key = config_key
        super().__init__(self.message)


class ResourceCreationError(Exception):
    """
    Exception raised when composing AWS resources fails at synth time.

    Attributes:
        message: Human-readable error description
        resource_type: The AWS resource type that failed to create
    """

    def __init__(self, message: str, resource_type: Optional[str] = None) -> None:
        self.message = message
        self.resource_type = resource_type
        super().__init__(self.message)


class ValidationError(Exception):
    """
    Exception raised when a deployment description or parameter is malformed.

    Always raised before any construct is added to a stack.

    Attributes:
        message: Human-readable error description
        parameter_name: The parameter that failed validation
        provided_value: The value that was provided
    """

    def __init__(
        self,
        message: str,
        parameter_name: Optional[str] = None,
        provided_value: Optional[str] = None
    ) -> None:
        self.message = message
        self.parameter_name = parameter_name
        self.provided_value = provided_value
        super().__init__(self.message)


class ResolutionError(Exception):
    """
    Exception reported by the apply engine when a deferred lookup fails.

    Examples are a hosted zone that does not exist, a secret entry missing
    from the bundle, or a region with fewer availability zones than requested.
    These are never retried by the stacks themselves.

    Attributes:
        message: Human-readable error description
        logical_id: Logical ID of the resource that failed
        resource_type: CloudFormation type of that resource
    """

    def __init__(
        self,
        message: str,
        logical_id: Optional[str] = None,
        resource_type: Optional[str] = None
    ) -> None:
        self.message = message
        self.logical_id = logical_id
        self.resource_type = resource_type
        super().__init__(self.message)
