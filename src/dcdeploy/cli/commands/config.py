"""CLI commands for querying datacenter service configuration.

Implements the 'dcdeploy config' command group.
"""

from __future__ import annotations

import click
import yaml

from dcdeploy.cli.commands.deploy import handle_deployment_errors
from dcdeploy.config.defaults import DEFAULT_ENV, ENV_VAR_MAP
from dcdeploy.config.loader import load_deployment_config
from dcdeploy.lib.errors import ConfigNotFoundError
from dcdeploy.models.config import DeploymentConfig, ServiceConfig

root_option = click.option(
    "--root",
    envvar=ENV_VAR_MAP["root"],
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Deployment repository root",
)
env_option = click.option(
    "--env",
    "env_name",
    envvar=ENV_VAR_MAP["env"],
    default=DEFAULT_ENV,
    show_default=True,
    help="Environment selecting the datacenter configs",
)


@click.group(name="config")
def config() -> None:
    """Query the datacenter service configuration."""


@config.command()
@click.option("--dc", "-d", default=None, help="Only list services of this datacenter")
@root_option
@env_option
def services(dc: str | None, root: str, env_name: str) -> None:
    """List configured services."""
    with handle_deployment_errors():
        deployment_config = load_deployment_config(root, env_name)
        if dc is None:
            names = deployment_config.service_names()
        else:
            datacenter = deployment_config.get_datacenter(dc)
            if datacenter is None:
                raise ConfigNotFoundError(dc, f"datacenter '{dc}' is not configured")
            names = sorted(datacenter.services)

        for name in names:
            click.echo(name)


@config.command()
@click.argument("service")
@root_option
@env_option
def datacenters(service: str, root: str, env_name: str) -> None:
    """List datacenters offering SERVICE, marking federated ones."""
    with handle_deployment_errors():
        deployment_config = load_deployment_config(root, env_name)
        federated = set(deployment_config.federated_datacenters())

        for dc in deployment_config.find_datacenters(service):
            marker = " (federated)" if dc in federated else ""
            click.echo(f"{dc}{marker}")


@config.command()
@click.argument("service")
@click.option("--dc", "-d", default=None, help="Datacenter to resolve the service in")
@root_option
@env_option
def show(service: str, dc: str | None, root: str, env_name: str) -> None:
    """Print the resolved configuration of SERVICE as YAML."""
    with handle_deployment_errors():
        deployment_config = load_deployment_config(root, env_name)
        service_config = _resolve(deployment_config, service, dc)
        click.echo(
            yaml.safe_dump(
                service_config.model_dump(exclude_defaults=True),
                sort_keys=False,
            ).rstrip()
        )


def _resolve(
    deployment_config: DeploymentConfig, service: str, dc: str | None
) -> ServiceConfig:
    if dc is None:
        found = deployment_config.find(service)
        where = "any datacenter"
    else:
        found = deployment_config.find_for_dc(service, dc)
        where = f"datacenter '{dc}'"
    if found is None:
        raise ConfigNotFoundError(service, f"service '{service}' not found in {where}")
    return found
