"""
Shared fixtures for the stack tests.

Stacks are synthesized against a fixed account and region with the hosted
zone and availability zone lookups answered from context, so no AWS
credentials are needed.
"""

from typing import Any, Dict, Optional
from unittest.mock import Mock

import pytest
import aws_cdk as cdk

from helper.config import Config
from stacks.common.deployment import (
    DeploymentSpec,
    DirectExposureSpec,
    LoadBalancedExposureSpec,
    SecretBundleRef
)
from stacks.network.stack import NetworkStack
from stacks.shared_table.stack import SharedTableStack
from stacks.backend.stack import BackendStack


ACCOUNT = "123456789012"
REGION = "us-east-1"
ZONE_DOMAIN = "karabast.net"
API_HOSTNAME = "api.karabast.net"
BUNDLE_ARN = f"arn:aws:secretsmanager:{REGION}:{ACCOUNT}:secret:karabast-secrets-AbCdEf"

LOOKUP_CONTEXT = {
    f"hosted-zone:account={ACCOUNT}:domainName={ZONE_DOMAIN}:region={REGION}": {
        "Id": "/hostedzone/Z0123456789ABCDEFGHIJ",
        "Name": f"{ZONE_DOMAIN}."
    },
    f"availability-zones:account={ACCOUNT}:region={REGION}": [
        "us-east-1a", "us-east-1b", "us-east-1c"
    ],
}

DIRECT_SECRETS = (
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "NEXTAUTH_SECRET",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "DISCORD_CLIENT_ID",
    "DISCORD_CLIENT_SECRET",
    "DISCORD_BUG_REPORT_WEBHOOK_URL",
    "DISCORD_ERROR_REPORT_WEBHOOK_URL",
    "DUMMY_SECRET",
    "SWUSTATS_API_KEY",
    "SWUSTATS_CLIENT_ID",
    "SWUSTATS_CLIENT_SECRET",
    "INTRASERVICE_SECRET",
    "PROFILE_CAPTURE_SECRET",
    "DISCORD_PLAYER_REPORT_WEBHOOK_URL",
)

LOAD_BALANCED_SECRETS = (
    "DISCORD_BUG_REPORT_WEBHOOK_URL",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "NEXTAUTH_SECRET",
)


def make_config(overrides: Optional[Dict[str, Any]] = None) -> Mock:
    """Mock Config answering ``get`` from a dict, raising KeyError like the real one."""
    values = {
        "ProjectName": "karabast",
        "RegionName": REGION,
        "Environment": "test",
        "EnableFlowLogs": False,
        "ContainerInsights": False,
    }
    if overrides:
        values.update(overrides)

    config = Mock(spec=Config)
    config._environment = "test"
    config.data = values
    config.get.side_effect = lambda key: values[key]
    config.get_shared_table_config.return_value = values.get(
        "SharedTable", {"Name": "karabast-data", "SortKey": "sk"}
    )
    return config


def direct_deployment(build_context: str, **overrides) -> DeploymentSpec:
    params = dict(
        service_name="karabast",
        exposure=DirectExposureSpec(),
        secret_bundle=SecretBundleRef(name="karabast-secrets"),
        secrets=DIRECT_SECRETS,
        build_context=build_context,
        cpu=2048,
        memory=6144,
        nat_gateways=0,
    )
    params.update(overrides)
    return DeploymentSpec(**params)


def load_balanced_deployment(build_context: str, **overrides) -> DeploymentSpec:
    params = dict(
        service_name="karabast",
        exposure=LoadBalancedExposureSpec(hostname=API_HOSTNAME, zone_domain=ZONE_DOMAIN),
        secret_bundle=SecretBundleRef(complete_arn=BUNDLE_ARN),
        secrets=LOAD_BALANCED_SECRETS,
        build_context=build_context,
        cpu=2048,
        memory=4096,
        nat_gateways=1,
    )
    params.update(overrides)
    return DeploymentSpec(**params)


class Deployed:
    """The three stacks of one synthesized deployment."""

    def __init__(self, app, network, shared_table, backend):
        self.app = app
        self.network = network
        self.shared_table = shared_table
        self.backend = backend


def compose(deployment: DeploymentSpec, config: Optional[Mock] = None) -> Deployed:
    """Compose network, shared table and backend stacks in a fresh app."""
    config = config or make_config()
    app = cdk.App(context=LOOKUP_CONTEXT)
    env = cdk.Environment(account=ACCOUNT, region=REGION)

    network = NetworkStack(app, "test-network", config=config, deployment=deployment, env=env)
    shared_table = SharedTableStack(app, "test-shared-table", config=config, env=env)
    backend = BackendStack(
        app,
        "test-backend",
        config=config,
        deployment=deployment,
        vpc=network.vpc,
        cluster=network.ecs_cluster,
        shared_table=shared_table.table,
        env=env
    )
    backend.add_dependency(network)
    backend.add_dependency(shared_table)
    return Deployed(app, network, shared_table, backend)


@pytest.fixture
def build_context(tmp_path):
    """Minimal Docker build context."""
    context_dir = tmp_path / "forceteki"
    context_dir.mkdir()
    (context_dir / "Dockerfile").write_text(
        "FROM node:22-slim\nWORKDIR /app\nCOPY . .\nEXPOSE 9500\nCMD [\"node\", \"server.js\"]\n"
    )
    (context_dir / "server.js").write_text("require('http').createServer().listen(9500);\n")
    return str(context_dir)


@pytest.fixture
def mock_config():
    return make_config()
