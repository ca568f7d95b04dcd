"""Validation utilities for CDK stacks."""

import re
from typing import Any, Dict, Iterable, List, Optional

from aws_cdk import aws_ec2 as ec2

from .constants import FARGATE_MEMORY_BY_CPU, HEAP_RESERVE_MIB
from .exceptions import ValidationError


ENV_NAME_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
HOSTNAME_PATTERN = re.compile(
    r'^(?=.{1,253}$)([a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}$'
)


class ConfigValidator:
    """Utility class for validating configuration parameters."""

    @staticmethod
    def validate_required_config(config: Dict[str, Any],
                                 required_keys: List[str]) -> None:
        """
        Validate that all required configuration keys are present.

        Args:
            config: Configuration dictionary to validate
            required_keys: List of required configuration keys

        Raises:
            ValidationError: If any required key is missing
        """
        missing_keys = [key for key in required_keys if key not in config]
        if missing_keys:
            raise ValidationError(
                f"Missing required configuration keys: {', '.join(missing_keys)}",
                parameter_name="config",
                provided_value=str(list(config.keys()))
            )

    @staticmethod
    def validate_port_range(port: int) -> None:
        """
        Validate that port number is within valid range.

        Raises:
            ValidationError: If port is outside valid range
        """
        if not 1 <= port <= 65535:
            raise ValidationError(
                f"Port must be between 1 and 65535, got {port}",
                parameter_name="port",
                provided_value=str(port)
            )

    @staticmethod
    def validate_resource_name(name: str, max_length: int = 63) -> None:
        """
        Validate AWS resource name format.

        Args:
            name: Resource name to validate
            max_length: Maximum allowed length

        Raises:
            ValidationError: If name format is invalid
        """
        # Skip validation for CDK tokens (CloudFormation references)
        if isinstance(name, str) and '${' in name:
            return

        if not name:
            raise ValidationError(
                "Resource name cannot be empty",
                parameter_name="name",
                provided_value=name
            )

        if len(name) > max_length:
            raise ValidationError(
                f"Resource name too long (max {max_length}): {name}",
                parameter_name="name",
                provided_value=name
            )

        if not re.match(r'^[a-zA-Z0-9-_]+$', name):
            raise ValidationError(
                f"Invalid resource name format: {name}. "
                f"Only alphanumeric characters, hyphens, and underscores allowed",
                parameter_name="name",
                provided_value=name
            )

    @staticmethod
    def validate_environment_vars(env_vars: Optional[Dict[str, str]]) -> None:
        """
        Validate plain environment variables.

        Raises:
            ValidationError: If environment variables are invalid
        """
        if env_vars is None:
            return

        if not isinstance(env_vars, dict):
            raise ValidationError(
                "Environment variables must be a dictionary",
                parameter_name="environment_vars",
                provided_value=str(type(env_vars))
            )

        for key, value in env_vars.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise ValidationError(
                    f"Environment variable key and value must be strings: {key}={value}",
                    parameter_name="environment_vars",
                    provided_value=f"{key}={value}"
                )
            if not ENV_NAME_PATTERN.match(key):
                raise ValidationError(
                    f"Invalid environment variable name: {key}",
                    parameter_name="environment_vars",
                    provided_value=key
                )

    @staticmethod
    def validate_secret_names(names: Iterable[str],
                              plain_env_names: Iterable[str] = ()) -> None:
        """
        Validate the declared list of required secret names.

        Each name becomes an environment variable of the same name, so it must
        be a valid identifier, unique, and not shadow a plain variable.

        Raises:
            ValidationError: If any name is empty, malformed, duplicated or
                collides with a plain environment variable
        """
        seen = set()
        plain = set(plain_env_names)
        for name in names:
            if not isinstance(name, str) or not name:
                raise ValidationError(
                    "Secret name cannot be empty",
                    parameter_name="secrets",
                    provided_value=str(name)
                )
            if not ENV_NAME_PATTERN.match(name):
                raise ValidationError(
                    f"Invalid secret name: {name}. Secret names are bound as environment variables",
                    parameter_name="secrets",
                    provided_value=name
                )
            if name in seen:
                raise ValidationError(
                    f"Secret '{name}' is declared more than once",
                    parameter_name="secrets",
                    provided_value=name
                )
            if name in plain:
                raise ValidationError(
                    f"Secret '{name}' collides with a plain environment variable",
                    parameter_name="secrets",
                    provided_value=name
                )
            seen.add(name)

    @staticmethod
    def validate_fargate_sizing(cpu: int, memory: int) -> None:
        """
        Validate that CPU units and memory form a supported Fargate pairing.

        Raises:
            ValidationError: If the pairing is not supported
        """
        supported = FARGATE_MEMORY_BY_CPU.get(cpu)
        if supported is None:
            raise ValidationError(
                f"Unsupported CPU value {cpu}. Must be one of {sorted(FARGATE_MEMORY_BY_CPU)}",
                parameter_name="cpu",
                provided_value=str(cpu)
            )
        if memory not in supported:
            raise ValidationError(
                f"Memory {memory} MiB is not supported with {cpu} CPU units. "
                f"Supported values: {supported[0]}-{supported[-1]} MiB",
                parameter_name="memory",
                provided_value=str(memory)
            )

    @staticmethod
    def validate_heap_reserve(memory: int) -> None:
        """
        Validate that memory leaves a positive heap after the fixed reserve.

        Raises:
            ValidationError: If memory <= HEAP_RESERVE_MIB
        """
        if memory <= HEAP_RESERVE_MIB:
            raise ValidationError(
                f"Memory must exceed {HEAP_RESERVE_MIB} MiB to leave room for the runtime heap, got {memory}",
                parameter_name="memory",
                provided_value=str(memory)
            )

    @staticmethod
    def validate_health_check_path(path: str) -> None:
        if not path or not path.startswith('/'):
            raise ValidationError(
                f"Health check path must start with '/', got {path!r}",
                parameter_name="health_check_path",
                provided_value=str(path)
            )


class AWSResourceValidator:
    """Utility class for validating AWS resource parameters."""

    @staticmethod
    def validate_vpc(vpc: ec2.IVpc) -> None:
        """
        Validate VPC resource.

        Raises:
            ValidationError: If VPC is invalid
        """
        # IVpc is a Protocol and can't be used with isinstance()
        if not hasattr(vpc, 'vpc_id'):
            raise ValidationError(
                f"Expected VPC instance with vpc_id attribute, got {type(vpc)}",
                parameter_name="vpc",
                provided_value=str(type(vpc))
            )

    @staticmethod
    def validate_arn(arn: str, service: Optional[str] = None) -> None:
        """
        Validate AWS ARN format.

        Args:
            arn: ARN to validate
            service: Expected AWS service (optional)

        Raises:
            ValidationError: If ARN format is invalid
        """
        if '${' in arn:
            return

        arn_pattern = re.compile(
            r'^arn:aws[a-zA-Z0-9-]*:[a-zA-Z0-9-]+:'
            r'[a-zA-Z0-9-]*:[0-9]*:[a-zA-Z0-9-/._:]+$'
        )

        if not arn_pattern.match(arn):
            raise ValidationError(
                f"Invalid ARN format: {arn}",
                parameter_name="arn",
                provided_value=arn
            )

        if service and arn.split(':')[2] != service:
            raise ValidationError(
                f"Expected {service} service ARN, got {arn.split(':')[2]}",
                parameter_name="arn",
                provided_value=arn
            )

    @staticmethod
    def validate_hostname_in_zone(hostname: str, zone_domain: str) -> None:
        """
        Validate a DNS hostname and that it lives inside the hosted zone.

        Raises:
            ValidationError: If the hostname is malformed or outside the zone
        """
        if not hostname or not HOSTNAME_PATTERN.match(hostname):
            raise ValidationError(
                f"Invalid hostname: {hostname!r}",
                parameter_name="hostname",
                provided_value=str(hostname)
            )
        if not zone_domain or not HOSTNAME_PATTERN.match(zone_domain):
            raise ValidationError(
                f"Invalid hosted zone domain: {zone_domain!r}",
                parameter_name="zone_domain",
                provided_value=str(zone_domain)
            )
        if hostname != zone_domain and not hostname.endswith(f".{zone_domain}"):
            raise ValidationError(
                f"Hostname {hostname} is not inside hosted zone {zone_domain}",
                parameter_name="hostname",
                provided_value=hostname
            )
