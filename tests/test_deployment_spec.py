"""
Unit tests for the deployment description.

These cover the checks that reject a malformed deployment before any
construct is created.
"""

from dataclasses import FrozenInstanceError

import pytest

from stacks.common.deployment import (
    DeploymentSpec,
    DirectExposureSpec,
    LoadBalancedExposureSpec,
    SecretBundleRef
)
from stacks.common.exceptions import ValidationError
from stacks.common.constants import EXPOSURE_DIRECT, EXPOSURE_LOAD_BALANCED
from stacks.backend.secrets import build_environment, node_options

from conftest import (
    BUNDLE_ARN,
    DIRECT_SECRETS,
    direct_deployment,
    load_balanced_deployment
)


class TestHeapSizing:
    """Heap cap derived from container memory."""

    @pytest.mark.parametrize("memory,expected", [(4096, 3072), (6144, 5120), (8192, 7168)])
    def test_heap_cap_is_memory_minus_reserve(self, build_context, memory, expected):
        deployment = direct_deployment(build_context, memory=memory)
        assert deployment.heap_cap_mib == expected

    def test_node_options_carry_heap_cap_and_semi_space(self, build_context):
        deployment = load_balanced_deployment(build_context)
        environment = build_environment(deployment)

        assert environment["NODE_OPTIONS"] == "--max-old-space-size=3072 --max-semi-space-size=128"
        assert environment["AWS_NODEJS_CONNECTION_REUSE_ENABLED"] == "1"

    def test_node_options_format(self):
        assert node_options(5120) == "--max-old-space-size=5120 --max-semi-space-size=128"

    @pytest.mark.parametrize("memory", [512, 1024])
    def test_memory_at_or_below_reserve_rejected(self, build_context, memory):
        with pytest.raises(ValidationError) as exc_info:
            direct_deployment(build_context, cpu=256, memory=memory)
        assert exc_info.value.parameter_name == "memory"

    def test_unsupported_fargate_pairing_rejected(self, build_context):
        # 2048 CPU units start at 4096 MiB
        with pytest.raises(ValidationError) as exc_info:
            direct_deployment(build_context, cpu=2048, memory=2048)
        assert exc_info.value.parameter_name == "memory"

    def test_unsupported_cpu_rejected(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            direct_deployment(build_context, cpu=3000)
        assert exc_info.value.parameter_name == "cpu"


class TestDeploymentValidation:
    """Structural constraints on the deployment description."""

    def test_container_port_is_fixed(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            direct_deployment(build_context, container_port=8080)
        assert exc_info.value.parameter_name == "container_port"

    def test_default_container_port(self, build_context):
        assert direct_deployment(build_context).container_port == 9500

    def test_single_availability_zone_rejected(self, build_context):
        with pytest.raises(ValidationError):
            direct_deployment(build_context, max_azs=1)

    def test_nat_gateway_count_restricted(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            direct_deployment(build_context, nat_gateways=2)
        assert exc_info.value.parameter_name == "nat_gateways"

    def test_desired_count_must_be_positive(self, build_context):
        with pytest.raises(ValidationError):
            direct_deployment(build_context, desired_count=0)

    def test_unknown_platform_rejected(self, build_context):
        with pytest.raises(ValidationError):
            direct_deployment(build_context, platform="windows/amd64")

    def test_unmapped_log_retention_rejected(self, build_context):
        with pytest.raises(ValidationError):
            direct_deployment(build_context, log_retention_days=42)

    def test_deployment_is_immutable(self, build_context):
        deployment = direct_deployment(build_context)
        with pytest.raises(FrozenInstanceError):
            deployment.memory = 8192


class TestSecretDeclarations:
    """Secret names become environment variables of the same name."""

    def test_duplicate_secret_rejected(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            direct_deployment(build_context, secrets=("NEXTAUTH_SECRET", "NEXTAUTH_SECRET"))
        assert exc_info.value.provided_value == "NEXTAUTH_SECRET"

    def test_secret_colliding_with_plain_variable_rejected(self, build_context):
        with pytest.raises(ValidationError):
            direct_deployment(
                build_context,
                secrets=("NEXTAUTH_SECRET",),
                environment={"NEXTAUTH_SECRET": "plain"}
            )

    def test_secret_shadowing_derived_variable_rejected(self, build_context):
        with pytest.raises(ValidationError):
            direct_deployment(build_context, secrets=("NODE_OPTIONS",))

    def test_derived_variable_cannot_be_set(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            direct_deployment(build_context, environment={"NODE_OPTIONS": "--max-old-space-size=1"})
        assert exc_info.value.parameter_name == "environment"

    def test_empty_and_malformed_names_rejected(self, build_context):
        with pytest.raises(ValidationError):
            direct_deployment(build_context, secrets=("",))
        with pytest.raises(ValidationError):
            direct_deployment(build_context, secrets=("NOT-A-VARIABLE",))

    def test_no_secrets_is_valid(self, build_context):
        assert direct_deployment(build_context, secrets=()).secrets == ()

    def test_secrets_are_normalised_to_tuple(self, build_context):
        deployment = direct_deployment(build_context, secrets=list(DIRECT_SECRETS))
        assert deployment.secrets == DIRECT_SECRETS


class TestExposureVariants:
    """Tagged exposure variants and their constraints."""

    def test_variant_kinds(self):
        assert DirectExposureSpec().kind == EXPOSURE_DIRECT
        lb = LoadBalancedExposureSpec(hostname="api.karabast.net", zone_domain="karabast.net")
        assert lb.kind == EXPOSURE_LOAD_BALANCED
        assert lb.health_check_path == "/api/health"
        assert lb.health_check_grace_period == 180

    def test_hostname_outside_zone_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            LoadBalancedExposureSpec(hostname="api.example.com", zone_domain="karabast.net")
        assert exc_info.value.parameter_name == "hostname"

    def test_zone_apex_is_allowed(self):
        exposure = LoadBalancedExposureSpec(hostname="karabast.net", zone_domain="karabast.net")
        assert exposure.hostname == "karabast.net"

    def test_health_check_path_must_be_absolute(self):
        with pytest.raises(ValidationError):
            LoadBalancedExposureSpec(
                hostname="api.karabast.net",
                zone_domain="karabast.net",
                health_check_path="api/health"
            )

    def test_negative_grace_period_rejected(self):
        with pytest.raises(ValidationError):
            LoadBalancedExposureSpec(
                hostname="api.karabast.net",
                zone_domain="karabast.net",
                health_check_grace_period=-1
            )

    def test_direct_tasks_always_public(self, build_context):
        assert direct_deployment(build_context, nat_gateways=0).tasks_in_public_subnets
        assert direct_deployment(build_context, nat_gateways=1).tasks_in_public_subnets

    def test_load_balanced_tasks_public_only_without_nat(self, build_context):
        assert not load_balanced_deployment(build_context, nat_gateways=1).tasks_in_public_subnets
        assert load_balanced_deployment(build_context, nat_gateways=0).tasks_in_public_subnets


class TestSecretBundleRef:
    """Bundle references by name or complete ARN."""

    def test_exactly_one_identifier_required(self):
        with pytest.raises(ValidationError):
            SecretBundleRef()
        with pytest.raises(ValidationError):
            SecretBundleRef(name="karabast-secrets", complete_arn=BUNDLE_ARN)

    def test_arn_must_be_secrets_manager(self):
        with pytest.raises(ValidationError):
            SecretBundleRef(complete_arn="arn:aws:s3:::karabast-secrets")

    def test_identifier(self):
        assert SecretBundleRef(name="karabast-secrets").identifier == "karabast-secrets"
        assert SecretBundleRef(complete_arn=BUNDLE_ARN).identifier == BUNDLE_ARN


class TestFromConfig:
    """Building a deployment from the ``Deployment`` config section."""

    def test_load_balanced_section(self, build_context):
        deployment = DeploymentSpec.from_config({
            "BuildContext": build_context,
            "MemoryMiB": 4096,
            "NatGateways": 1,
            "Exposure": {
                "Type": "load_balanced",
                "Hostname": "api.karabast.net",
                "ZoneDomain": "karabast.net"
            },
            "SecretBundle": {"Arn": BUNDLE_ARN},
            "Secrets": ["NEXTAUTH_SECRET"],
            "Environment": {"LOG_FORMAT": "json", "PORT_OFFSET": 0}
        }, default_service_name="karabast")

        assert deployment.service_name == "karabast"
        assert deployment.is_load_balanced
        assert deployment.secret_bundle.complete_arn == BUNDLE_ARN
        assert deployment.environment == {"LOG_FORMAT": "json", "PORT_OFFSET": "0"}
        assert deployment.secrets == ("NEXTAUTH_SECRET",)

    def test_bundle_string_is_name_or_arn(self, build_context):
        base = {"BuildContext": build_context, "Exposure": {"Type": "direct"}}

        by_name = DeploymentSpec.from_config(dict(base, SecretBundle="karabast-secrets"), "karabast")
        by_arn = DeploymentSpec.from_config(dict(base, SecretBundle=BUNDLE_ARN), "karabast")

        assert by_name.secret_bundle.name == "karabast-secrets"
        assert by_arn.secret_bundle.complete_arn == BUNDLE_ARN

    def test_bundle_defaults_to_shared_name(self, build_context):
        deployment = DeploymentSpec.from_config(
            {"BuildContext": build_context, "Exposure": {"Type": "direct"}}, "karabast"
        )
        assert deployment.secret_bundle.name == "karabast-secrets"

    def test_unknown_exposure_type_rejected(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            DeploymentSpec.from_config({
                "BuildContext": build_context,
                "Exposure": {"Type": "cloudfront"},
                "SecretBundle": "karabast-secrets"
            }, "karabast")
        assert exc_info.value.parameter_name == "exposure"

    def test_load_balanced_requires_hostname(self, build_context):
        with pytest.raises(ValidationError):
            DeploymentSpec.from_config({
                "BuildContext": build_context,
                "Exposure": {"Type": "load_balanced", "ZoneDomain": "karabast.net"},
                "SecretBundle": "karabast-secrets"
            }, "karabast")

    def test_missing_exposure_rejected(self):
        with pytest.raises(ValidationError):
            DeploymentSpec.from_config({"SecretBundle": "karabast-secrets"}, "karabast")

    def test_scalar_secrets_rejected(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            DeploymentSpec.from_config({
                "BuildContext": build_context,
                "Exposure": {"Type": "direct"},
                "Secrets": "NEXTAUTH_SECRET"
            }, "karabast")
        assert exc_info.value.parameter_name == "secrets"

    def test_non_integer_cpu_rejected(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            DeploymentSpec.from_config({
                "BuildContext": build_context,
                "Exposure": {"Type": "direct"},
                "Cpu": "two"
            }, "karabast")
        assert exc_info.value.parameter_name == "Cpu"
        assert exc_info.value.provided_value == "two"

    def test_non_integer_grace_period_rejected(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            DeploymentSpec.from_config({
                "BuildContext": build_context,
                "Exposure": {
                    "Type": "load_balanced",
                    "Hostname": "api.karabast.net",
                    "ZoneDomain": "karabast.net",
                    "HealthCheckGracePeriod": "three minutes"
                }
            }, "karabast")
        assert exc_info.value.parameter_name == "HealthCheckGracePeriod"

    def test_boolean_setting_rejected(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            DeploymentSpec.from_config({
                "BuildContext": build_context,
                "Exposure": {"Type": "direct"},
                "NatGateways": True
            }, "karabast")
        assert exc_info.value.parameter_name == "NatGateways"

    def test_environment_list_rejected(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            DeploymentSpec.from_config({
                "BuildContext": build_context,
                "Exposure": {"Type": "direct"},
                "Environment": ["LOG_FORMAT=json"]
            }, "karabast")
        assert exc_info.value.parameter_name == "environment"


class TestDeploymentIdentity:
    """Equality and hashing by value."""

    def test_equal_deployments_hash_alike(self, build_context):
        first = direct_deployment(build_context, environment={"LOG_FORMAT": "json", "REGION": "us"})
        second = direct_deployment(build_context, environment={"REGION": "us", "LOG_FORMAT": "json"})

        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_environment_changes_hash(self, build_context):
        first = direct_deployment(build_context, environment={"LOG_FORMAT": "json"})
        second = direct_deployment(build_context, environment={"LOG_FORMAT": "text"})

        assert first != second
        assert hash(first) != hash(second)

    def test_bare_string_secrets_rejected(self, build_context):
        with pytest.raises(ValidationError) as exc_info:
            direct_deployment(build_context, secrets="NEXTAUTH_SECRET")
        assert exc_info.value.parameter_name == "secrets"
