"""
Deployment description for the Karabast backend.

A ``DeploymentSpec`` is the single input every stack is compiled from. It is
validated eagerly so that malformed descriptions are rejected before any
construct exists. The exposure strategy is a tagged variant: either
``DirectExposureSpec`` or ``LoadBalancedExposureSpec``.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .constants import (
    CONTAINER_PORT,
    DEFAULT_BUILD_CONTEXT,
    DEFAULT_CONTAINER_PLATFORM,
    DEFAULT_CPU,
    DEFAULT_DESIRED_COUNT,
    DEFAULT_HEALTH_CHECK_GRACE_PERIOD,
    DEFAULT_HEALTH_CHECK_PATH,
    DEFAULT_LOG_RETENTION_DAYS,
    DEFAULT_MAX_AZS,
    DEFAULT_MEMORY,
    DEFAULT_NAT_GATEWAYS,
    DEFAULT_SECRET_BUNDLE_NAME,
    ALLOWED_NAT_GATEWAYS,
    EXPOSURE_DIRECT,
    EXPOSURE_LOAD_BALANCED,
    HEAP_RESERVE_MIB,
    MIN_MAX_AZS,
    NODE_CONNECTION_REUSE_ENV,
    NODE_OPTIONS_ENV,
    RETENTION_DAYS_NAMES,
)
from .exceptions import ValidationError
from .validators import AWSResourceValidator, ConfigValidator


SUPPORTED_PLATFORMS = ("linux/amd64", "linux/arm64")
RESERVED_ENV_NAMES = (NODE_OPTIONS_ENV, NODE_CONNECTION_REUSE_ENV)


@dataclass(frozen=True)
class DirectExposureSpec:
    """Strategy A: public IP on the task, security group open on 80/443."""
    kind: str = field(default=EXPOSURE_DIRECT, init=False)


@dataclass(frozen=True)
class LoadBalancedExposureSpec:
    """Strategy B: ALB with TLS, HTTP redirect, health checks and a DNS alias."""
    hostname: str
    zone_domain: str
    health_check_path: str = DEFAULT_HEALTH_CHECK_PATH
    health_check_grace_period: int = DEFAULT_HEALTH_CHECK_GRACE_PERIOD
    kind: str = field(default=EXPOSURE_LOAD_BALANCED, init=False)

    def __post_init__(self):
        AWSResourceValidator.validate_hostname_in_zone(self.hostname, self.zone_domain)
        ConfigValidator.validate_health_check_path(self.health_check_path)
        if self.health_check_grace_period < 0:
            raise ValidationError(
                "Health check grace period cannot be negative",
                parameter_name="health_check_grace_period",
                provided_value=str(self.health_check_grace_period)
            )


ExposureSpec = Union[DirectExposureSpec, LoadBalancedExposureSpec]


@dataclass(frozen=True)
class SecretBundleRef:
    """Reference to an existing Secrets Manager secret, by name or complete ARN."""
    name: Optional[str] = None
    complete_arn: Optional[str] = None

    def __post_init__(self):
        if bool(self.name) == bool(self.complete_arn):
            raise ValidationError(
                "Secret bundle must be referenced by exactly one of name or complete ARN",
                parameter_name="secret_bundle",
                provided_value=str(self.name or self.complete_arn)
            )
        if self.complete_arn:
            AWSResourceValidator.validate_arn(self.complete_arn, "secretsmanager")

    @property
    def identifier(self) -> str:
        return self.complete_arn or self.name


@dataclass(frozen=True)
class DeploymentSpec:
    """
    Complete, validated description of one backend deployment.

    Instances hash by value; ``environment`` is folded into the hash as sorted
    pairs. The cluster, ECS service and load balancer are named from the
    project name, not from ``service_name``.

    Attributes:
        service_name: Names the container log group and the task security
            group, and tags the backend stack
        exposure: Exposure strategy variant
        secret_bundle: Reference to the secret collection
        secrets: Required secret names, each bound as an env var of the same name
        environment: Plain environment variables
        build_context: Docker build context directory
        platform: Target platform of the image and task
        container_port: Container port, always 9500
        cpu: Fargate CPU units
        memory: Fargate memory in MiB
        desired_count: Number of running tasks
        max_azs: Number of availability zones for the VPC
        nat_gateways: NAT gateways (0 or 1)
        log_retention_days: CloudWatch retention for container logs
    """
    service_name: str
    exposure: ExposureSpec
    secret_bundle: SecretBundleRef
    secrets: Tuple[str, ...] = ()
    environment: Mapping[str, str] = field(default_factory=dict)
    build_context: str = DEFAULT_BUILD_CONTEXT
    platform: str = DEFAULT_CONTAINER_PLATFORM
    container_port: int = CONTAINER_PORT
    cpu: int = DEFAULT_CPU
    memory: int = DEFAULT_MEMORY
    desired_count: int = DEFAULT_DESIRED_COUNT
    max_azs: int = DEFAULT_MAX_AZS
    nat_gateways: int = DEFAULT_NAT_GATEWAYS
    log_retention_days: int = DEFAULT_LOG_RETENTION_DAYS

    def __post_init__(self):
        # A bare string would otherwise be split into one secret per character
        if isinstance(self.secrets, str):
            raise ValidationError(
                "Secrets must be a list of names, not a single string",
                parameter_name="secrets",
                provided_value=self.secrets
            )
        if not isinstance(self.environment, Mapping):
            raise ValidationError(
                "Environment variables must be a mapping",
                parameter_name="environment",
                provided_value=str(type(self.environment))
            )
        object.__setattr__(self, "secrets", tuple(self.secrets))
        object.__setattr__(self, "environment", dict(self.environment))
        self.validate()

    def __hash__(self):
        return hash(tuple(
            tuple(sorted(value.items())) if isinstance(value, Mapping) else value
            for value in (getattr(self, f.name) for f in fields(self))
        ))

    def validate(self) -> None:
        """
        Reject malformed descriptions.

        Raises:
            ValidationError: On the first violated constraint
        """
        ConfigValidator.validate_resource_name(self.service_name)

        if self.container_port != CONTAINER_PORT:
            raise ValidationError(
                f"Container port is fixed at {CONTAINER_PORT}, got {self.container_port}",
                parameter_name="container_port",
                provided_value=str(self.container_port)
            )

        ConfigValidator.validate_heap_reserve(self.memory)
        ConfigValidator.validate_fargate_sizing(self.cpu, self.memory)

        if self.desired_count < 1:
            raise ValidationError(
                f"Desired count must be at least 1, got {self.desired_count}",
                parameter_name="desired_count",
                provided_value=str(self.desired_count)
            )

        if self.max_azs < MIN_MAX_AZS:
            raise ValidationError(
                f"At least {MIN_MAX_AZS} availability zones are required, got {self.max_azs}",
                parameter_name="max_azs",
                provided_value=str(self.max_azs)
            )

        if self.nat_gateways not in ALLOWED_NAT_GATEWAYS:
            raise ValidationError(
                f"NAT gateway count must be one of {ALLOWED_NAT_GATEWAYS}, got {self.nat_gateways}",
                parameter_name="nat_gateways",
                provided_value=str(self.nat_gateways)
            )

        if self.platform not in SUPPORTED_PLATFORMS:
            raise ValidationError(
                f"Unsupported platform {self.platform}. Must be one of {SUPPORTED_PLATFORMS}",
                parameter_name="platform",
                provided_value=self.platform
            )

        if self.log_retention_days not in RETENTION_DAYS_NAMES:
            raise ValidationError(
                f"Unsupported log retention {self.log_retention_days} days",
                parameter_name="log_retention_days",
                provided_value=str(self.log_retention_days)
            )

        if not self.build_context:
            raise ValidationError(
                "Build context path is required",
                parameter_name="build_context",
                provided_value=str(self.build_context)
            )

        ConfigValidator.validate_environment_vars(self.environment)
        reserved = [name for name in RESERVED_ENV_NAMES if name in self.environment]
        if reserved:
            raise ValidationError(
                f"Environment variables {reserved} are derived and cannot be set directly",
                parameter_name="environment",
                provided_value=", ".join(reserved)
            )

        ConfigValidator.validate_secret_names(
            self.secrets, list(self.environment) + list(RESERVED_ENV_NAMES)
        )

    @property
    def heap_cap_mib(self) -> int:
        """Node.js old-space cap: container memory minus the fixed reserve."""
        return self.memory - HEAP_RESERVE_MIB

    @property
    def is_load_balanced(self) -> bool:
        return isinstance(self.exposure, LoadBalancedExposureSpec)

    @property
    def tasks_in_public_subnets(self) -> bool:
        """
        Whether tasks run in public subnets with a public IP.

        Strategy A always does. Strategy B does only when there is no NAT
        gateway, since isolated subnets have no route to pull images.
        """
        return not self.is_load_balanced or self.nat_gateways == 0

    @classmethod
    def from_config(cls, deployment: Dict[str, Any], default_service_name: str) -> "DeploymentSpec":
        """
        Build a spec from the ``Deployment`` section of an environment config.

        Args:
            deployment: The ``Deployment`` mapping
            default_service_name: Used when ``ServiceName`` is absent

        Raises:
            ValidationError: If the section is malformed
        """
        ConfigValidator.validate_required_config(deployment, ["Exposure"])

        secrets = deployment.get("Secrets") or ()
        if not isinstance(secrets, (list, tuple)):
            raise ValidationError(
                "Secrets must be a list of secret names",
                parameter_name="secrets",
                provided_value=str(secrets)
            )

        environment = deployment.get("Environment") or {}
        if not isinstance(environment, dict):
            raise ValidationError(
                "Environment must be a mapping of variable name to value",
                parameter_name="environment",
                provided_value=str(environment)
            )

        return cls(
            service_name=deployment.get("ServiceName", default_service_name),
            exposure=_exposure_from_config(deployment["Exposure"]),
            secret_bundle=_secret_bundle_from_config(
                deployment.get("SecretBundle", DEFAULT_SECRET_BUNDLE_NAME)
            ),
            secrets=tuple(secrets),
            environment={str(k): str(v) for k, v in environment.items()},
            build_context=deployment.get("BuildContext", DEFAULT_BUILD_CONTEXT),
            platform=deployment.get("Platform", DEFAULT_CONTAINER_PLATFORM),
            container_port=_int_setting(deployment, "ContainerPort", CONTAINER_PORT),
            cpu=_int_setting(deployment, "Cpu", DEFAULT_CPU),
            memory=_int_setting(deployment, "MemoryMiB", DEFAULT_MEMORY),
            desired_count=_int_setting(deployment, "DesiredCount", DEFAULT_DESIRED_COUNT),
            max_azs=_int_setting(deployment, "MaxAZs", DEFAULT_MAX_AZS),
            nat_gateways=_int_setting(deployment, "NatGateways", DEFAULT_NAT_GATEWAYS),
            log_retention_days=_int_setting(deployment, "LogRetentionDays", DEFAULT_LOG_RETENTION_DAYS),
        )


def _int_setting(section: Dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    # YAML booleans are ints to Python
    if isinstance(value, bool):
        raise ValidationError(
            f"{key} must be an integer, got {value!r}",
            parameter_name=key,
            provided_value=str(value)
        )
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"{key} must be an integer, got {value!r}",
            parameter_name=key,
            provided_value=str(value)
        ) from e


def _exposure_from_config(exposure: Any) -> ExposureSpec:
    if not isinstance(exposure, dict):
        raise ValidationError(
            "Exposure must be a mapping with a Type key",
            parameter_name="exposure",
            provided_value=str(exposure)
        )

    kind = exposure.get("Type")
    if kind == EXPOSURE_DIRECT:
        return DirectExposureSpec()
    if kind == EXPOSURE_LOAD_BALANCED:
        ConfigValidator.validate_required_config(exposure, ["Hostname", "ZoneDomain"])
        return LoadBalancedExposureSpec(
            hostname=exposure["Hostname"],
            zone_domain=exposure["ZoneDomain"],
            health_check_path=exposure.get("HealthCheckPath", DEFAULT_HEALTH_CHECK_PATH),
            health_check_grace_period=_int_setting(
                exposure, "HealthCheckGracePeriod", DEFAULT_HEALTH_CHECK_GRACE_PERIOD
            ),
        )

    raise ValidationError(
        f"Unknown exposure type {kind!r}. Must be '{EXPOSURE_DIRECT}' or '{EXPOSURE_LOAD_BALANCED}'",
        parameter_name="exposure",
        provided_value=str(kind)
    )


def _secret_bundle_from_config(bundle: Any) -> SecretBundleRef:
    if isinstance(bundle, str):
        if bundle.startswith("arn:"):
            return SecretBundleRef(complete_arn=bundle)
        return SecretBundleRef(name=bundle)
    if isinstance(bundle, dict):
        return SecretBundleRef(name=bundle.get("Name"), complete_arn=bundle.get("Arn"))
    raise ValidationError(
        "SecretBundle must be a name, an ARN, or a mapping with Name or Arn",
        parameter_name="secret_bundle",
        provided_value=str(bundle)
    )
