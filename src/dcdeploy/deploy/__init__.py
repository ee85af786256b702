"""dcdeploy deployment engine.

This package loads job files, merges datacenter service configs into them,
and carries the merged job through the scheduler's validate, plan,
register, and deployment lifecycle.
"""

from dcdeploy.deploy.client import NomadClient
from dcdeploy.deploy.deployer import PIPELINE, DeployContext, Deployer, Stage
from dcdeploy.deploy.merge import MergeResult, merge_service_config

__all__ = [
    "PIPELINE",
    "DeployContext",
    "Deployer",
    "MergeResult",
    "NomadClient",
    "Stage",
    "merge_service_config",
]
