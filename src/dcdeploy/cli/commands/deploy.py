"""CLI commands for deploying services.

Implements the 'dcdeploy deploy' command group: running a deployment of one
service into one datacenter, and showing the last recorded deployment.
"""

from __future__ import annotations

import sys
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

import click
from pydantic import ValidationError as PydanticValidationError

from dcdeploy.config.defaults import (
    DEFAULT_ADDRESS,
    DEFAULT_ENV,
    DEFAULT_EVAL_TIMEOUT,
    ENV_VAR_MAP,
)
from dcdeploy.config.loader import load_deployment_config
from dcdeploy.config.validator import format_config_errors
from dcdeploy.deploy.deployer import Deployer
from dcdeploy.deploy.state import (
    get_deployment_record,
    get_state_path,
    record_from_result,
    update_deployment_record,
)
from dcdeploy.lib.errors import ConfigError, DeploymentError, DeploymentFailedError
from dcdeploy.lib.logging_config import get_logger, setup_logging
from dcdeploy.models.deployment import DeployOptions, DeployResult
from dcdeploy.models.deployment_state import DeploymentRecord

logger = get_logger(__name__)


@contextmanager
def handle_deployment_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in deployment commands.

    Exit codes:
        2: Configuration error
        3: Deployment/execution error
    """
    try:
        yield
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.field}: {e.message}", err=True)
        sys.exit(2)
    except DeploymentFailedError as e:
        logger.error(f"Deployment failed: {e.status}")
        click.secho(
            f"Error: deployment {e.status} {e.description}".rstrip(), fg="red", err=True
        )
        for line in e.diagnostics:
            click.secho(f"  {line}", fg="yellow", err=True)
        sys.exit(3)
    except DeploymentError as e:
        logger.error(f"Deployment error: {e}")
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(3)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)


@click.group(name="deploy", invoke_without_command=True)
@click.pass_context
def deploy(ctx: click.Context) -> None:
    """Deploy services to a datacenter.

    Subcommands:

        run     Deploy a service image into a datacenter
        status  Show the last recorded deployment of a service

    Example:

        dcdeploy deploy run backend_api --dc dc1 --image registry/backend_api:1.2.0
    """
    ctx.ensure_object(dict)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@deploy.command()
@click.argument("service")
@click.option("--dc", "-d", required=True, help="Target datacenter")
@click.option("--image", "-i", required=True, help="Container image to deploy")
@click.option(
    "--address",
    envvar=ENV_VAR_MAP["address"],
    default=DEFAULT_ADDRESS,
    show_default=True,
    help="Scheduler HTTP address",
)
@click.option(
    "--root",
    envvar=ENV_VAR_MAP["root"],
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Deployment repository root",
)
@click.option(
    "--env",
    "env_name",
    envvar=ENV_VAR_MAP["env"],
    default=DEFAULT_ENV,
    show_default=True,
    help="Environment selecting the datacenter configs",
)
@click.option(
    "--eval-timeout",
    type=float,
    default=DEFAULT_EVAL_TIMEOUT,
    show_default=True,
    help="Seconds to wait for the registration's evaluation (0: no limit)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose debug logging",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress progress output",
)
def run(
    service: str,
    dc: str,
    image: str,
    address: str,
    root: str,
    env_name: str,
    eval_timeout: float,
    verbose: bool,
    quiet: bool,
) -> None:
    """Deploy IMAGE of SERVICE into a datacenter.

    Loads the datacenter configs of the environment, merges the service's
    settings into its job file, then validates, plans, and registers the job
    and waits for the deployment to finish.
    """
    setup_logging(verbose=verbose, quiet=quiet)

    with handle_deployment_errors():
        try:
            options = DeployOptions(
                root=Path(root),
                env=env_name,
                service=service,
                dc=dc,
                image=image,
                address=address,
                eval_timeout=eval_timeout or None,
            )
        except PydanticValidationError as e:
            raise ConfigError("options", format_config_errors(e)) from e
        config = load_deployment_config(options.root, options.env)
        deployer = Deployer.from_config(options, config)

        if not quiet:
            click.echo()
            click.secho("Deploy Configuration:", bold=True)
            click.echo(f"  Service:     {service}")
            click.echo(f"  Datacenter:  {dc}")
            click.echo(f"  Region:      {deployer.datacenter.region}")
            click.echo(f"  Image:       {image}")
            click.echo(f"  Scheduler:   {options.address}")
            click.echo()

        state_path = get_state_path(options.root)
        try:
            result = deployer.run()
        except DeploymentFailedError as e:
            _record_failure(state_path, deployer, e)
            raise
        except KeyboardInterrupt:
            click.secho("Deployment interrupted.", fg="yellow", err=True)
            sys.exit(130)

        record = update_deployment_record(state_path, record_from_result(result))

        if quiet:
            click.echo(result.deployment_id or result.eval_id or "")
            return

        _display_deploy_success(result, record)


@deploy.command()
@click.argument("service")
@click.option("--dc", "-d", required=True, help="Datacenter of the deployment")
@click.option(
    "--root",
    envvar=ENV_VAR_MAP["root"],
    type=click.Path(exists=True, file_okay=False),
    default=".",
    show_default=True,
    help="Deployment repository root",
)
def status(service: str, dc: str, root: str) -> None:
    """Show the last recorded deployment of SERVICE in a datacenter."""
    with handle_deployment_errors():
        record = get_deployment_record(get_state_path(root), dc, service)
        if record is None:
            raise ConfigError(
                field="deployment_state",
                message=(
                    f"No deployment record for '{service}' in '{dc}'. "
                    "Run `dcdeploy deploy run` first."
                ),
            )

        click.echo()
        click.secho("Deployment Status", bold=True)
        click.echo(f"  Service:     {record.service}")
        click.echo(f"  Datacenter:  {record.datacenter}")
        click.echo(f"  Image:       {record.image}")
        click.echo(f"  Status:      {record.status}")
        if record.deployment_id:
            click.echo(f"  Deployment:  {record.deployment_id}")
        if record.updated_at:
            click.echo(f"  Updated:     {record.updated_at.isoformat()}")
        click.echo()


def _record_failure(
    state_path: Path, deployer: Deployer, error: DeploymentFailedError
) -> None:
    ctx = deployer.context
    if ctx is None or ctx.job is None:
        return
    record = DeploymentRecord(
        service=deployer.options.service,
        datacenter=deployer.datacenter.dc,
        image=deployer.options.image,
        job_id=ctx.job.id,
        job_modify_index=ctx.job_modify_index,
        eval_id=ctx.eval_id,
        deployment_id=ctx.deployment_id,
        status=error.status,
    )
    try:
        update_deployment_record(state_path, record)
    except DeploymentError as exc:
        logger.warning(f"Could not record failed deployment: {exc}")


def _display_deploy_success(result: DeployResult, record: DeploymentRecord) -> None:
    click.secho("Deployment Successful!", fg="green", bold=True)
    click.echo(f"  Job:         {result.job_id}")
    if result.eval_id:
        click.echo(f"  Evaluation:  {result.eval_id}")
    if result.deployment_id:
        click.echo(f"  Deployment:  {result.deployment_id}")
    if result.elapsed is not None:
        click.echo(f"  Duration:    {result.elapsed:.2f}s")
    click.echo(f"  Status:      {record.status}")
    click.echo()
