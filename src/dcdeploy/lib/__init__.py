"""Shared utilities and error handling for dcdeploy."""

from dcdeploy.lib.errors import (
    ConfigError,
    ConfigLoadError,
    ConfigNotFoundError,
    DcDeployError,
    DeploymentError,
)

__all__ = [
    "ConfigError",
    "ConfigLoadError",
    "ConfigNotFoundError",
    "DcDeployError",
    "DeploymentError",
]
