"""dcdeploy - deploy services to a Nomad cluster, one datacenter at a time.

dcdeploy resolves per-datacenter service parameters from a directory of
YAML configs, merges them into the service's job file, and carries the job
through the scheduler's validate, plan, register, and deployment lifecycle.

Main features:
- Two-level (datacenter x service) configuration with federation lookups
- Optimistic-concurrency registration using the plan's modify index
- Deployment status long-polling with task event diagnostics on failure
"""

from dcdeploy.config.loader import load_deployment_config
from dcdeploy.lib.errors import ConfigError, DcDeployError, DeploymentError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigError",
    "DcDeployError",
    "DeploymentError",
    "load_deployment_config",
]
