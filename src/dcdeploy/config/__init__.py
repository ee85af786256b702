"""Configuration loading for dcdeploy.

Main components:
- load_deployment_config: Load all datacenter configs of an environment
- Environment variable substitution (${VAR_NAME} pattern)
- Default values for paths, polling, and scheduler metadata keys
"""

from dcdeploy.config.env_loader import get_env_var, substitute_env_vars
from dcdeploy.config.loader import load_datacenter_config, load_deployment_config

__all__ = [
    "get_env_var",
    "load_datacenter_config",
    "load_deployment_config",
    "substitute_env_vars",
]
