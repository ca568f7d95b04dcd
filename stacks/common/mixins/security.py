"""Security group mixin for CDK stacks."""

from typing import Iterable, List, Optional

from aws_cdk import aws_ec2 as ec2

from ..constants import ANY_IPV4, PUBLIC_INGRESS_PORTS
from ..validators import ConfigValidator


PORT_LABELS = {80: "HTTP", 443: "HTTPS"}


class SecurityGroupMixin:
    """
    Mixin class providing security group functionality.

    This mixin provides methods for creating security groups with
    validated names and ports.
    """

    def create_web_security_group(self,
                                  name: str,
                                  vpc: ec2.IVpc,
                                  ports: Iterable[int] = PUBLIC_INGRESS_PORTS,
                                  allowed_cidrs: Optional[List[str]] = None,
                                  description: Optional[str] = None) -> ec2.SecurityGroup:
        """
        Create a security group for a publicly reachable web service.

        One ingress rule is added per port and CIDR. All egress is allowed.

        Args:
            name: Name for the security group
            vpc: VPC to create the security group in
            ports: TCP ports to open
            allowed_cidrs: CIDR blocks to allow from, anywhere when omitted
            description: Optional description for the security group

        Returns:
            The created security group
        """
        ConfigValidator.validate_resource_name(name)

        security_group = ec2.SecurityGroup(
            self,
            f"{name}-web-security-group",
            vpc=vpc,
            description=description or f"Web security group for {name}",
            allow_all_outbound=True
        )

        source_cidrs = allowed_cidrs or [ANY_IPV4]

        for cidr in source_cidrs:
            for port in ports:
                ConfigValidator.validate_port_range(port)
                security_group.add_ingress_rule(
                    peer=ec2.Peer.any_ipv4() if cidr == ANY_IPV4 else ec2.Peer.ipv4(cidr),
                    connection=ec2.Port.tcp(port),
                    description=f"Allow {PORT_LABELS.get(port, 'TCP')} traffic from {cidr}"
                )

        return security_group
