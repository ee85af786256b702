"""Configuration loader for per-datacenter service configs.

Layout under the deployment repository root:

    <root>/datacenters/<env>/deployment.yml     federation settings (optional)
    <root>/datacenters/<env>/<dc>/config.yml    one file per datacenter

A load either returns a DeploymentConfig in which every datacenter parsed
cleanly, or raises ConfigLoadError. Partial results are never returned.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from dcdeploy.config.defaults import (
    DATACENTER_FILE_NAMES,
    DATACENTERS_DIR,
    DEPLOYMENT_FILE_NAMES,
)
from dcdeploy.config.env_loader import substitute_env_vars
from dcdeploy.config.validator import format_config_errors
from dcdeploy.lib.errors import ConfigError, ConfigLoadError
from dcdeploy.models.config import DatacenterConfig, DeploymentConfig

logger = logging.getLogger(__name__)


def _read_yaml_with_env_substitution(path: Path) -> dict[str, Any] | None:
    """Read a YAML file with environment variable substitution.

    Args:
        path: Path to YAML file

    Returns:
        Parsed mapping or None if the file is empty

    Raises:
        ConfigLoadError: If the file cannot be read, substituted, or parsed
    """
    try:
        raw_text = path.read_text(encoding="utf-8")
        content = yaml.safe_load(substitute_env_vars(raw_text))
    except OSError as exc:
        raise ConfigLoadError(str(path), f"Failed to read file: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(str(path), f"Failed to parse YAML: {exc}") from exc
    except ConfigError as exc:
        raise ConfigLoadError(str(path), exc.message) from exc

    if content is None:
        return None
    if not isinstance(content, dict):
        raise ConfigLoadError(
            str(path),
            f"Expected a mapping at the top level, got {type(content).__name__}",
        )
    return content


def _first_existing(directory: Path, names: tuple[str, ...]) -> Path | None:
    """Return the first file in directory matching one of names."""
    for name in names:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def get_env_dir(root: str | Path, env: str) -> Path:
    """Return the directory holding the datacenter configs of an environment."""
    return Path(root) / DATACENTERS_DIR / env


def load_datacenter_config(path: Path, dc_name: str) -> DatacenterConfig:
    """Load and validate one datacenter config file.

    Args:
        path: Path to the datacenter's config.yml
        dc_name: Datacenter directory name, used when the file omits 'dc'

    Returns:
        Validated DatacenterConfig

    Raises:
        ConfigLoadError: If the file is empty, unreadable, or invalid
    """
    content = _read_yaml_with_env_substitution(path)
    if content is None:
        raise ConfigLoadError(str(path), "Datacenter config file is empty")

    content.setdefault("dc", dc_name)
    try:
        return DatacenterConfig.model_validate(content)
    except PydanticValidationError as exc:
        raise ConfigLoadError(str(path), format_config_errors(exc)) from exc


def load_deployment_config(root: str | Path, env: str) -> DeploymentConfig:
    """Load every datacenter config of an environment.

    Args:
        root: Deployment repository root
        env: Environment/profile name selecting datacenters/<env>

    Returns:
        DeploymentConfig with one entry per datacenter directory

    Raises:
        ConfigLoadError: If the environment is missing or any source is malformed
    """
    env_dir = get_env_dir(root, env)
    if not env_dir.is_dir():
        raise ConfigLoadError(
            str(env_dir), f"No datacenter configuration for environment '{env}'"
        )

    federated_dcs = ""
    deployment_file = _first_existing(env_dir, DEPLOYMENT_FILE_NAMES)
    if deployment_file is not None:
        content = _read_yaml_with_env_substitution(deployment_file) or {}
        federated = content.get("federated_dcs", "")
        if isinstance(federated, list):
            federated = " ".join(str(dc) for dc in federated)
        elif not isinstance(federated, str):
            raise ConfigLoadError(
                str(deployment_file),
                "federated_dcs must be a space-delimited string or a list",
            )
        federated_dcs = federated
        logger.debug(f"Loaded federation settings from {deployment_file}")

    datacenters: dict[str, DatacenterConfig] = {}
    for dc_dir in sorted(p for p in env_dir.iterdir() if p.is_dir()):
        config_file = _first_existing(dc_dir, DATACENTER_FILE_NAMES)
        if config_file is None:
            logger.debug(f"Skipping {dc_dir}: no datacenter config file")
            continue
        datacenters[dc_dir.name] = load_datacenter_config(config_file, dc_dir.name)
        logger.debug(
            f"Loaded datacenter '{dc_dir.name}' from {config_file} "
            f"({len(datacenters[dc_dir.name].services)} services)"
        )

    logger.info(f"Loaded {len(datacenters)} datacenters for environment '{env}'")
    return DeploymentConfig(federated_dcs=federated_dcs, datacenters=datacenters)
