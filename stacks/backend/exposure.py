"""
Network exposure strategies for the backend service.

Both strategies receive the same task definition and differ only in how the
service is reached and how rollouts are protected:

- ``DirectPublicExposure``: public IP on each task, security group open on
  80/443, no load balancer and no automatic rollback.
- ``LoadBalancedExposure``: public ALB with a DNS-validated certificate,
  HTTP to HTTPS redirect, target group health check, circuit breaker with
  rollback, health check grace period and a DNS alias record.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from aws_cdk import (
    aws_certificatemanager as acm,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_ecs_patterns as ecs_patterns,
    aws_elasticloadbalancingv2 as elbv2,
    aws_route53 as route53,
    aws_route53_targets as route53_targets,
    Duration
)

from stacks.common.constants import (
    CONTAINER_PORT,
    DEFAULT_HEALTH_CHECK_INTERVAL,
    DEFAULT_HEALTH_CHECK_TIMEOUT,
    DEFAULT_HEALTHY_THRESHOLD_COUNT,
    DEFAULT_UNHEALTHY_THRESHOLD_COUNT,
    PUBLIC_INGRESS_PORTS
)
from stacks.common.deployment import (
    DeploymentSpec,
    DirectExposureSpec,
    ExposureSpec,
    LoadBalancedExposureSpec
)
from stacks.common.exceptions import ValidationError


@dataclass(frozen=True)
class PublicEndpoint:
    """
    How clients reach the service.

    Attributes:
        kind: "task-public-ip" or "load-balancer"
        ports: Ports open to the internet
        hostname: Stable DNS name, load-balanced only
        load_balancer_dns: ALB DNS name token, load-balanced only
    """
    kind: str
    ports: Tuple[int, ...]
    hostname: Optional[str] = None
    load_balancer_dns: Optional[str] = None


@dataclass(frozen=True)
class RollbackPolicy:
    """Rollout safety wrapped around the service."""
    circuit_breaker: bool
    rollback: bool
    health_check_grace_period: Optional[int] = None


@dataclass
class ServiceContext:
    """Everything an exposure strategy needs to run the shared task definition."""
    deployment: DeploymentSpec
    cluster: ecs.ICluster
    vpc: ec2.IVpc
    task_definition: ecs.FargateTaskDefinition
    service_name: str
    load_balancer_name: str


@dataclass
class ExposureResult:
    """Resources produced by an exposure strategy."""
    service: ecs.FargateService
    public_endpoint: PublicEndpoint
    rollback_policy: RollbackPolicy
    security_group: Optional[ec2.SecurityGroup] = None
    load_balancer: Optional[elbv2.ApplicationLoadBalancer] = None
    target_group: Optional[elbv2.ApplicationTargetGroup] = None
    certificate: Optional[acm.Certificate] = None
    record: Optional[route53.ARecord] = None


class Exposure(ABC):
    """Strategy interface: make the service reachable and protect its rollouts."""

    @abstractmethod
    def attach(self, stack, context: ServiceContext) -> ExposureResult:
        """
        Create the service for the shared task definition and expose it.

        Args:
            stack: The backend stack, used as construct scope
            context: Cluster, VPC, task definition and names
        """


class DirectPublicExposure(Exposure):
    """Strategy A: tasks in public subnets with a public IP."""

    def __init__(self, spec: DirectExposureSpec) -> None:
        self.spec = spec

    def attach(self, stack, context: ServiceContext) -> ExposureResult:
        security_group = stack.create_web_security_group(
            context.service_name,
            context.vpc,
            ports=PUBLIC_INGRESS_PORTS,
            description=f"Public HTTP/HTTPS access to {context.service_name}"
        )

        # Restarts of unhealthy tasks are left to ECS; no circuit breaker
        service = ecs.FargateService(
            stack,
            "Service",
            service_name=context.service_name,
            cluster=context.cluster,
            task_definition=context.task_definition,
            desired_count=context.deployment.desired_count,
            assign_public_ip=True,
            security_groups=[security_group],
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC)
        )

        return ExposureResult(
            service=service,
            public_endpoint=PublicEndpoint(kind="task-public-ip", ports=PUBLIC_INGRESS_PORTS),
            rollback_policy=RollbackPolicy(circuit_breaker=False, rollback=False),
            security_group=security_group
        )


class LoadBalancedExposure(Exposure):
    """Strategy B: ALB + TLS + DNS alias with health-checked, self-rolling-back deploys."""

    def __init__(self, spec: LoadBalancedExposureSpec) -> None:
        self.spec = spec

    def attach(self, stack, context: ServiceContext) -> ExposureResult:
        deployment = context.deployment

        # Resolved at synth time through the context provider
        hosted_zone = route53.HostedZone.from_lookup(
            stack,
            "HostedZone",
            domain_name=self.spec.zone_domain
        )

        certificate = acm.Certificate(
            stack,
            "Certificate",
            domain_name=self.spec.hostname,
            validation=acm.CertificateValidation.from_dns(hosted_zone)
        )

        public_tasks = deployment.tasks_in_public_subnets
        task_subnet_type = (
            ec2.SubnetType.PUBLIC if public_tasks else ec2.SubnetType.PRIVATE_WITH_EGRESS
        )

        service = ecs_patterns.ApplicationLoadBalancedFargateService(
            stack,
            "Service",
            service_name=context.service_name,
            load_balancer_name=context.load_balancer_name,
            cluster=context.cluster,
            task_definition=context.task_definition,
            desired_count=deployment.desired_count,
            public_load_balancer=True,
            certificate=certificate,
            redirect_http=True,
            assign_public_ip=public_tasks,
            task_subnets=ec2.SubnetSelection(subnet_type=task_subnet_type),
            health_check_grace_period=Duration.seconds(self.spec.health_check_grace_period),
            circuit_breaker=ecs.DeploymentCircuitBreaker(enable=True, rollback=True)
        )

        service.target_group.configure_health_check(
            path=self.spec.health_check_path,
            port=str(CONTAINER_PORT),
            interval=Duration.seconds(DEFAULT_HEALTH_CHECK_INTERVAL),
            timeout=Duration.seconds(DEFAULT_HEALTH_CHECK_TIMEOUT),
            healthy_threshold_count=DEFAULT_HEALTHY_THRESHOLD_COUNT,
            unhealthy_threshold_count=DEFAULT_UNHEALTHY_THRESHOLD_COUNT
        )

        record = route53.ARecord(
            stack,
            "ApiRecord",
            zone=hosted_zone,
            record_name=self.spec.hostname,
            target=route53.RecordTarget.from_alias(
                route53_targets.LoadBalancerTarget(service.load_balancer)
            )
        )

        return ExposureResult(
            service=service.service,
            public_endpoint=PublicEndpoint(
                kind="load-balancer",
                ports=PUBLIC_INGRESS_PORTS,
                hostname=self.spec.hostname,
                load_balancer_dns=service.load_balancer.load_balancer_dns_name
            ),
            rollback_policy=RollbackPolicy(
                circuit_breaker=True,
                rollback=True,
                health_check_grace_period=self.spec.health_check_grace_period
            ),
            load_balancer=service.load_balancer,
            target_group=service.target_group,
            certificate=certificate,
            record=record
        )


def exposure_for(spec: ExposureSpec) -> Exposure:
    """Select the exposure strategy for a deployment's exposure variant."""
    if isinstance(spec, DirectExposureSpec):
        return DirectPublicExposure(spec)
    if isinstance(spec, LoadBalancedExposureSpec):
        return LoadBalancedExposure(spec)
    raise ValidationError(
        f"Unsupported exposure variant: {type(spec).__name__}",
        parameter_name="exposure",
        provided_value=type(spec).__name__
    )
