"""
Secret bundle resolution and container environment binding.

Each required secret name is bound as an environment variable of the same
name through an ECS secret reference, so the value is injected at container
start and never appears in the task definition. Whether the bundle actually
holds every name is only known when the task starts; nothing here checks it.
"""

from typing import Dict, Iterable

from aws_cdk import (
    aws_ecs as ecs,
    aws_secretsmanager as secretsmanager
)
from constructs import Construct

from stacks.common.constants import (
    NODE_CONNECTION_REUSE_ENV,
    NODE_OPTIONS_ENV,
    SEMI_SPACE_SIZE_MIB
)
from stacks.common.deployment import DeploymentSpec, SecretBundleRef
from stacks.common.validators import ConfigValidator


def resolve_secret_bundle(scope: Construct,
                          construct_id: str,
                          ref: SecretBundleRef) -> secretsmanager.ISecret:
    """
    Reference the existing secret bundle by complete ARN or by name.

    Args:
        scope: Construct scope
        construct_id: Construct ID for the imported secret
        ref: Bundle reference from the deployment
    """
    if ref.complete_arn:
        return secretsmanager.Secret.from_secret_complete_arn(scope, construct_id, ref.complete_arn)
    return secretsmanager.Secret.from_secret_name_v2(scope, construct_id, ref.name)


def bind_secrets(bundle: secretsmanager.ISecret,
                 names: Iterable[str]) -> Dict[str, ecs.Secret]:
    """
    Bind each declared secret name to the bundle entry of the same name.

    Args:
        bundle: The resolved secret bundle
        names: Declared required secret names

    Returns:
        Mapping of environment variable name to ECS secret reference
    """
    names = list(names)
    ConfigValidator.validate_secret_names(names)
    return {name: ecs.Secret.from_secrets_manager(bundle, name) for name in names}


def node_options(heap_cap_mib: int) -> str:
    return f"--max-old-space-size={heap_cap_mib} --max-semi-space-size={SEMI_SPACE_SIZE_MIB}"


def build_environment(deployment: DeploymentSpec) -> Dict[str, str]:
    """Plain environment: declared entries plus the derived runtime values."""
    environment = dict(deployment.environment)
    environment[NODE_CONNECTION_REUSE_ENV] = "1"
    # Heap cap leaves a fixed reserve below container memory
    environment[NODE_OPTIONS_ENV] = node_options(deployment.heap_cap_mib)
    return environment
