"""
Base classes and common patterns for CDK stacks.

This module provides the base stack every Karabast stack derives from:
- Configuration access with validation
- Standardized log groups
- Common tagging
"""

from typing import Dict, Any, Optional

import aws_cdk as cdk
from aws_cdk import (
    aws_logs as logs,
    Stack
)
from constructs import Construct

from helper.config import Config
from .constants import DEFAULT_LOG_RETENTION_DAYS, RETENTION_DAYS_NAMES
from .exceptions import StackConfigurationError, ResourceCreationError
from .validators import ConfigValidator


class BaseStack(Stack):
    """
    Base stack class with common functionality and validation.

    This class provides:
    - Configuration validation
    - Standardized resource creation
    - Error handling
    - Common utilities
    """

    def __init__(self,
                 scope: Construct,
                 construct_id: str,
                 config: Config,
                 **kwargs) -> None:
        """
        Initialize the base stack.

        Args:
            scope: CDK scope
            construct_id: Unique identifier for this construct
            config: Configuration object
            **kwargs: Additional keyword arguments for Stack

        Raises:
            StackConfigurationError: If configuration is invalid
        """
        super().__init__(scope, construct_id, **kwargs)
        self.config = config
        self._validate_config()

    def _validate_config(self) -> None:
        """
        Validate configuration parameters.

        Raises:
            StackConfigurationError: If configuration is invalid
        """
        if not isinstance(self.config, Config):
            raise StackConfigurationError(
                "Configuration must be a Config instance",
                config_key="config"
            )

    def get_required_config(self, key: str) -> Any:
        """
        Get a required configuration value with validation.

        Args:
            key: Configuration key to retrieve

        Returns:
            The configuration value

        Raises:
            StackConfigurationError: If key is missing
        """
        try:
            value = self.config.get(key)
        except KeyError:
            value = None
        if value is None:
            raise StackConfigurationError(
                f"Required configuration key '{key}' is missing",
                config_key=key
            )
        return value

    def get_optional_config(self, key: str, default_value: Any = None) -> Any:
        """
        Get an optional configuration value.

        Args:
            key: Configuration key to retrieve
            default_value: Default value if key is not found

        Returns:
            The configuration value or default
        """
        try:
            value = self.config.get(key)
        except KeyError:
            return default_value
        return default_value if value is None else value

    def resource_name(self, suffix: str) -> str:
        """Name a resource as ``<ProjectName>-<suffix>``."""
        return f"{self.get_required_config('ProjectName')}-{suffix}"

    def create_log_group(self,
                         name: str,
                         retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
                         removal_policy: cdk.RemovalPolicy = cdk.RemovalPolicy.DESTROY) -> logs.LogGroup:
        """
        Create a standardized log group.

        Args:
            name: Identifier for the log group construct
            retention_days: Log retention period in days
            removal_policy: Removal policy for the log group

        Returns:
            The created log group

        Raises:
            ResourceCreationError: If log group creation fails
        """
        try:
            ConfigValidator.validate_resource_name(name)

            retention_name = RETENTION_DAYS_NAMES.get(retention_days, "ONE_MONTH")

            return logs.LogGroup(
                self,
                f"{name}-log-group",
                # No explicit log group name so CloudFormation can replace it freely
                retention=getattr(logs.RetentionDays, retention_name),
                removal_policy=removal_policy
            )
        except Exception as e:
            raise ResourceCreationError(
                f"Failed to create log group '{name}': {str(e)}",
                resource_type="LogGroup"
            )

    def add_common_tags(self, resource: Any, additional_tags: Optional[Dict[str, str]] = None) -> None:
        """
        Add common tags to a resource.

        Args:
            resource: The resource to tag
            additional_tags: Additional tags to add
        """
        common_tags = {
            "Environment": self.get_optional_config("Environment", "unknown"),
            "Project": self.get_optional_config("ProjectName", "default-project"),
            "ManagedBy": "CDK"
        }

        if additional_tags:
            common_tags.update(additional_tags)

        for key, value in common_tags.items():
            cdk.Tags.of(resource).add(key, str(value))
