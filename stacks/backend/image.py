"""Container image artifact for the backend task."""

import os

from aws_cdk import (
    aws_ecr_assets as ecr_assets,
    aws_ecs as ecs
)
from constructs import Construct

from stacks.common.constants import IMAGE_BUILD_ARGS
from stacks.common.deployment import DeploymentSpec
from stacks.common.exceptions import ValidationError


IMAGE_PLATFORMS = {
    "linux/amd64": ecr_assets.Platform.LINUX_AMD64,
    "linux/arm64": ecr_assets.Platform.LINUX_ARM64,
}

TASK_CPU_ARCHITECTURES = {
    "linux/amd64": ecs.CpuArchitecture.X86_64,
    "linux/arm64": ecs.CpuArchitecture.ARM64,
}


def build_image_asset(scope: Construct,
                      deployment: DeploymentSpec,
                      construct_id: str = "Image") -> ecr_assets.DockerImageAsset:
    """
    Build the backend image from the deployment's build context.

    The asset hash covers the context and build args, so an unchanged
    context produces the same image reference and no redeploy.

    Args:
        scope: Construct scope (the backend stack)
        deployment: Deployment description
        construct_id: Construct ID for the asset

    Raises:
        ValidationError: If the build context is not a directory
    """
    if not os.path.isdir(deployment.build_context):
        raise ValidationError(
            f"Image build context not found: {deployment.build_context}",
            parameter_name="build_context",
            provided_value=deployment.build_context
        )

    return ecr_assets.DockerImageAsset(
        scope,
        construct_id,
        directory=deployment.build_context,
        platform=IMAGE_PLATFORMS[deployment.platform],
        build_args=dict(IMAGE_BUILD_ARGS)
    )


def runtime_platform_for(deployment: DeploymentSpec) -> ecs.RuntimePlatform:
    """Task runtime platform matching the image architecture."""
    return ecs.RuntimePlatform(
        cpu_architecture=TASK_CPU_ARCHITECTURES[deployment.platform],
        operating_system_family=ecs.OperatingSystemFamily.LINUX
    )
