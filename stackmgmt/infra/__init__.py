# -----------------------------------------------------------------------------
# INFRASTRUCTURE LAYER
# -----------------------------------------------------------------------------
# Contains low-level wrappers around external systems:
# - PulumiCloudClient: Pulumi Cloud REST calls
# - PulumiEngine: Pulumi Service provider resources
# -----------------------------------------------------------------------------

from .cloud_client import PulumiCloudClient, RemoteAPIError
from .pulumi_engine import ProvisioningEngine, ProvisioningEngineError, PulumiEngine

__all__ = [
    "PulumiCloudClient", "RemoteAPIError",
    "ProvisioningEngine", "ProvisioningEngineError", "PulumiEngine",
]
