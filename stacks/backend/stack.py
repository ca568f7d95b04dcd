import logging

from constructs import Construct
from aws_cdk import (
    aws_dynamodb as dynamodb,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    CfnOutput
)

from helper.config import Config
from stacks.common.base import BaseStack
from stacks.common.deployment import DeploymentSpec
from stacks.common.exceptions import ResourceCreationError, ValidationError
from stacks.common.mixins import AccessGrantMixin, SecurityGroupMixin
from stacks.common.validators import AWSResourceValidator
from stacks.common.constants import (
    CONTAINER_NAME,
    DEFAULT_LOAD_BALANCER_SUFFIX,
    DEFAULT_SERVICE_SUFFIX,
    LOG_STREAM_PREFIX
)
from .exposure import ExposureResult, ServiceContext, exposure_for
from .image import build_image_asset, runtime_platform_for
from .secrets import bind_secrets, build_environment, resolve_secret_bundle

logger = logging.getLogger(__name__)


class BackendStack(BaseStack, SecurityGroupMixin, AccessGrantMixin):
    """
    Backend game server on ECS Fargate.

    One task definition is built from the deployment description and handed
    to the selected exposure strategy, which creates the service and makes it
    reachable. The task role then receives read/write access to the shared
    table and read access to the secret bundle.

    Resources are declared in dependency order: image, secret bundle, log
    group, task definition, service and exposure, grants.
    """

    def __init__(self,
                 scope: Construct,
                 construct_id: str,
                 config: Config,
                 deployment: DeploymentSpec,
                 vpc: ec2.IVpc,
                 cluster: ecs.ICluster,
                 shared_table: dynamodb.ITableV2,
                 **kwargs) -> None:
        super().__init__(scope, construct_id, config, **kwargs)

        self.deployment = deployment
        AWSResourceValidator.validate_vpc(vpc)

        try:
            self.image = build_image_asset(self, deployment)

            self.secret_bundle = resolve_secret_bundle(self, "SecretBundle", deployment.secret_bundle)

            self.log_group = self.create_log_group(
                deployment.service_name,
                retention_days=deployment.log_retention_days
            )

            self.task_definition = self._create_task_definition()

            context = ServiceContext(
                deployment=deployment,
                cluster=cluster,
                vpc=vpc,
                task_definition=self.task_definition,
                service_name=self.resource_name(DEFAULT_SERVICE_SUFFIX),
                load_balancer_name=self.resource_name(DEFAULT_LOAD_BALANCER_SUFFIX)
            )
            self.exposure: ExposureResult = exposure_for(deployment.exposure).attach(self, context)
            self.service = self.exposure.service

            task_role = self.task_definition.task_role
            self.grant_table_read_write(task_role, shared_table)
            self.grant_secret_read(task_role, self.secret_bundle)
        except (ValidationError, ResourceCreationError):
            raise
        except Exception as e:
            raise ResourceCreationError(
                f"Failed to compose backend service '{deployment.service_name}': {str(e)}",
                resource_type="FargateService"
            )

        logger.info(
            f"Composed {deployment.exposure.kind} backend '{deployment.service_name}' "
            f"({deployment.cpu} CPU / {deployment.memory} MiB, {len(deployment.secrets)} secrets)"
        )

        self.add_common_tags(self, {
            "ServiceName": deployment.service_name,
            "Exposure": deployment.exposure.kind
        })
        self._create_outputs()

    def _create_task_definition(self) -> ecs.FargateTaskDefinition:
        """Task definition shared by both exposure strategies."""
        deployment = self.deployment

        task_definition = ecs.FargateTaskDefinition(
            self,
            "TaskDefinition",
            cpu=deployment.cpu,
            memory_limit_mib=deployment.memory,
            runtime_platform=runtime_platform_for(deployment)
        )

        task_definition.add_container(
            CONTAINER_NAME,
            image=ecs.ContainerImage.from_docker_image_asset(self.image),
            port_mappings=[
                ecs.PortMapping(
                    container_port=deployment.container_port,
                    protocol=ecs.Protocol.TCP
                )
            ],
            environment=build_environment(deployment),
            secrets=bind_secrets(self.secret_bundle, deployment.secrets),
            logging=ecs.LogDrivers.aws_logs(
                stream_prefix=LOG_STREAM_PREFIX,
                log_group=self.log_group,
                mode=ecs.AwsLogDriverMode.NON_BLOCKING
            )
        )

        return task_definition

    def _create_outputs(self) -> None:
        CfnOutput(
            self, "ServiceNameExport",
            value=self.service.service_name,
            description="ECS service name"
        )

        endpoint = self.exposure.public_endpoint
        if endpoint.hostname:
            CfnOutput(
                self, "ApiEndpoint",
                value=f"https://{endpoint.hostname}",
                description="Public HTTPS endpoint of the backend"
            )
            CfnOutput(
                self, "LoadBalancerDnsName",
                value=endpoint.load_balancer_dns,
                description="DNS name of the application load balancer"
            )
        else:
            CfnOutput(
                self, "ServiceAccess",
                value="Public IP assigned to each task; see the ECS console",
                description="How to reach the backend"
            )
