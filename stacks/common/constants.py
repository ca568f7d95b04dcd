"""
Constants used across CDK stacks.
"""

# Container Configuration
CONTAINER_PORT = 9500  # Fixed for every exposure strategy
CONTAINER_NAME = "AppContainer"
DEFAULT_CPU = 2048
DEFAULT_MEMORY = 4096
DEFAULT_DESIRED_COUNT = 1

# Node.js heap tuning: heap cap = container memory - reserve
HEAP_RESERVE_MIB = 1024
SEMI_SPACE_SIZE_MIB = 128

# Image Artifact
DEFAULT_BUILD_CONTEXT = "../forceteki"
DEFAULT_CONTAINER_PLATFORM = "linux/amd64"
IMAGE_BUILD_ARGS = {
    "BUILDX_NO_DEFAULT_ATTESTATIONS": "1"  # No provenance attestation manifests
}

# Health Check Configuration
DEFAULT_HEALTH_CHECK_PATH = "/api/health"
DEFAULT_HEALTH_CHECK_GRACE_PERIOD = 180  # Slow-starting containers
DEFAULT_HEALTHY_THRESHOLD_COUNT = 2
DEFAULT_UNHEALTHY_THRESHOLD_COUNT = 2
DEFAULT_HEALTH_CHECK_INTERVAL = 30
DEFAULT_HEALTH_CHECK_TIMEOUT = 10

# Exposure Strategies
EXPOSURE_DIRECT = "direct"
EXPOSURE_LOAD_BALANCED = "load_balanced"
PUBLIC_INGRESS_PORTS = (80, 443)
ANY_IPV4 = "0.0.0.0/0"

# VPC Configuration
DEFAULT_MAX_AZS = 2
MIN_MAX_AZS = 2  # Redundancy requirement
DEFAULT_NAT_GATEWAYS = 1
ALLOWED_NAT_GATEWAYS = (0, 1)
DEFAULT_CIDR_MASK = 24

# Logging
DEFAULT_LOG_RETENTION_DAYS = 30
LOG_STREAM_PREFIX = "Karabast"

# Runtime environment
NODE_CONNECTION_REUSE_ENV = "AWS_NODEJS_CONNECTION_REUSE_ENABLED"
NODE_OPTIONS_ENV = "NODE_OPTIONS"

# Resource Name Suffixes (prefixed with ProjectName)
DEFAULT_VPC_SUFFIX = "vpc"
DEFAULT_ECS_CLUSTER_SUFFIX = "cluster"
DEFAULT_SERVICE_SUFFIX = "service"
DEFAULT_LOAD_BALANCER_SUFFIX = "alb"
DEFAULT_SECRET_BUNDLE_NAME = "karabast-secrets"

# Fargate CPU units -> supported memory sizes (MiB)
FARGATE_MEMORY_BY_CPU = {
    256: (512, 1024, 2048),
    512: tuple(range(1024, 4096 + 1, 1024)),
    1024: tuple(range(2048, 8192 + 1, 1024)),
    2048: tuple(range(4096, 16384 + 1, 1024)),
    4096: tuple(range(8192, 30720 + 1, 1024)),
    8192: tuple(range(16384, 61440 + 1, 4096)),
    16384: tuple(range(32768, 122880 + 1, 8192)),
}

# Log retention days -> CDK RetentionDays member name
RETENTION_DAYS_NAMES = {
    1: "ONE_DAY",
    3: "THREE_DAYS",
    5: "FIVE_DAYS",
    7: "ONE_WEEK",
    14: "TWO_WEEKS",
    30: "ONE_MONTH",
    60: "TWO_MONTHS",
    90: "THREE_MONTHS",
    120: "FOUR_MONTHS",
    150: "FIVE_MONTHS",
    180: "SIX_MONTHS",
    365: "ONE_YEAR",
    400: "THIRTEEN_MONTHS",
    545: "EIGHTEEN_MONTHS",
    731: "TWO_YEARS",
    1827: "FIVE_YEARS",
    3653: "TEN_YEARS",
}
