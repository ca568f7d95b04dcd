"""Backend game server stack and its exposure strategies."""

from .stack import BackendStack
from .exposure import (
    DirectPublicExposure,
    Exposure,
    ExposureResult,
    LoadBalancedExposure,
    PublicEndpoint,
    RollbackPolicy,
    ServiceContext,
    exposure_for
)

__all__ = [
    "BackendStack",
    "DirectPublicExposure",
    "Exposure",
    "ExposureResult",
    "LoadBalancedExposure",
    "PublicEndpoint",
    "RollbackPolicy",
    "ServiceContext",
    "exposure_for"
]
