from dataclasses import dataclass
from typing import Tuple

from constructs import Construct
from aws_cdk import (
    aws_ecs as ecs,
    aws_ec2 as ec2,
    CfnOutput
)

from helper.config import Config
from stacks.common.base import BaseStack
from stacks.common.deployment import DeploymentSpec
from stacks.common.constants import (
    DEFAULT_CIDR_MASK,
    DEFAULT_ECS_CLUSTER_SUFFIX,
    DEFAULT_VPC_SUFFIX
)


@dataclass(frozen=True)
class NetworkTopology:
    """
    Shape of the network foundation.

    With no NAT gateway the private subnets are isolated and have no egress,
    so internet-facing compute must run in the public subnets.
    """
    max_azs: int
    nat_gateways: int
    subnet_groups: Tuple[Tuple[str, ec2.SubnetType], ...]

    @property
    def private_has_egress(self) -> bool:
        return self.nat_gateways > 0

    @property
    def private_subnet_type(self) -> ec2.SubnetType:
        return self.subnet_groups[1][1]

    @classmethod
    def for_deployment(cls, deployment: DeploymentSpec) -> "NetworkTopology":
        if deployment.nat_gateways > 0:
            private_group = ("Private", ec2.SubnetType.PRIVATE_WITH_EGRESS)
        else:
            private_group = ("Isolated", ec2.SubnetType.PRIVATE_ISOLATED)
        return cls(
            max_azs=deployment.max_azs,
            nat_gateways=deployment.nat_gateways,
            subnet_groups=(("Public", ec2.SubnetType.PUBLIC), private_group),
        )


class NetworkStack(BaseStack):
    """
    Network foundation: VPC, subnets, NAT egress and the ECS cluster.

    This stack is the leaf of the dependency graph; the backend stack
    consumes its VPC and cluster.
    """

    def __init__(self,
                 scope: Construct,
                 construct_id: str,
                 config: Config,
                 deployment: DeploymentSpec,
                 **kwargs) -> None:
        super().__init__(scope, construct_id, config, **kwargs)

        cidr_mask = self.get_optional_config('CIDRMask', DEFAULT_CIDR_MASK)
        self.topology = NetworkTopology.for_deployment(deployment)

        # One public and one private subnet per AZ
        vpc = ec2.Vpc(
            self,
            "Vpc",
            vpc_name=self.resource_name(DEFAULT_VPC_SUFFIX),
            max_azs=self.topology.max_azs,
            nat_gateways=self.topology.nat_gateways,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    subnet_type=subnet_type,
                    name=name,
                    cidr_mask=cidr_mask,
                )
                for name, subnet_type in self.topology.subnet_groups
            ],
        )

        if self.get_optional_config('EnableFlowLogs', True):
            vpc.add_flow_log("FlowLog")

        self.vpc = vpc

        cluster = ecs.Cluster(
            self,
            "EcsCluster",
            vpc=vpc,
            cluster_name=self.resource_name(DEFAULT_ECS_CLUSTER_SUFFIX),
            container_insights=bool(self.get_optional_config('ContainerInsights', False)),
            enable_fargate_capacity_providers=True
        )

        self.ecs_cluster = cluster

        self.add_common_tags(self)

        CfnOutput(
            self, "VpcIdExport",
            value=vpc.vpc_id,
            description="VPC ID of the network foundation"
        )

        CfnOutput(
            self, "ClusterNameExport",
            value=cluster.cluster_name,
            description="ECS cluster name"
        )
