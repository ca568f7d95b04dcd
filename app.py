#!/usr/bin/env python3

import logging
import os

import aws_cdk as cdk
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from cdk_nag import ( AwsSolutionsChecks, NagSuppressions )

from helper import config
from stacks import NetworkStack, SharedTableStack, BackendStack
from stacks.common.deployment import DeploymentSpec

logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)


def resolve_account(conf: config.Config):
    """Account from config or CDK environment, else the caller identity."""
    account = conf.get_account()
    if account:
        return account
    try:
        sts = boto3.client('sts')
        return sts.get_caller_identity()['Account']
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"Could not resolve AWS account, synthesizing environment-agnostic: {e}")
        return None


app = cdk.App()

conf = config.Config(app.node.try_get_context('environment') or 'production')

# Use ProjectName for all stack naming
project_name = conf.get_validated_project_name()

deployment = DeploymentSpec.from_config(conf.get_deployment_config(), default_service_name=project_name)

env = {
    "region": conf.get('RegionName'),
    "account": resolve_account(conf)
}

logger.info(f"Synthesizing '{conf.environment}' ({deployment.exposure.kind} exposure) for {env['region']}")

network_stack = NetworkStack(app, f"{project_name}-network",
                             config=conf,
                             deployment=deployment,
                             env=env,
                             termination_protection=True  # Protect the VPC and cluster
                             )

# The shared table outlives any single deployment
shared_table_stack = SharedTableStack(app, f"{project_name}-shared-table",
                                      config=conf,
                                      env=env,
                                      termination_protection=True
                                      )

backend_stack = BackendStack(app, f"{project_name}-backend",
                             config=conf,
                             deployment=deployment,
                             vpc=network_stack.vpc,
                             cluster=network_stack.ecs_cluster,
                             shared_table=shared_table_stack.table,
                             env=env
                             )

backend_stack.add_dependency(network_stack)
backend_stack.add_dependency(shared_table_stack)

if conf.is_nag_checks_enabled():
    cdk.Aspects.of(app).add(AwsSolutionsChecks())

# Network Stack suppressions
NagSuppressions.add_stack_suppressions(network_stack, [
    {"id": "AwsSolutions-VPC7", "reason": "Flow logs are configurable per environment through EnableFlowLogs"},
    {"id": "AwsSolutions-ECS4", "reason": "Container Insights is configurable per environment through ContainerInsights"}
])

# Shared Table Stack suppressions
NagSuppressions.add_stack_suppressions(shared_table_stack, [
    {"id": "AwsSolutions-DDB3", "reason": "Game data is rebuilt from play; point-in-time recovery not required"}
])

# Backend Stack suppressions
NagSuppressions.add_stack_suppressions(backend_stack, [
    {"id": "AwsSolutions-EC23", "reason": "Direct exposure serves the game backend on public HTTP/HTTPS ports"},
    {"id": "AwsSolutions-ECS2", "reason": "Environment variables contain non-sensitive runtime tuning only; secrets are injected from Secrets Manager"},
    {"id": "AwsSolutions-IAM5", "reason": "DynamoDB grant helpers add index wildcards for the shared table",
     "appliesTo": [{"regex": "/^Resource::.*\\/index\\/\\*$/"}]},
    {"id": "AwsSolutions-ELB2", "reason": "ALB access logs not required for the game backend"},
    {"id": "CdkNagValidationFailure", "reason": "Security group rules use intrinsic functions which cannot be validated at synth time"}
])

app.synth()
