"""Deployment pipeline for one service in one datacenter.

The pipeline is an ordered tuple of named stages. Each stage reads and
writes a DeployContext and raises on failure; the first failure stops the
run and propagates unchanged.

    load      parse the service's job file, check the datacenter offers it
    connect   connect to the scheduler in the datacenter's region
    validate  merge the service config into the job and validate it
    plan      dry-run the job and capture its modify index
    register  register with the captured index enforced, wait for a deployment
    status    follow the deployment until it succeeds or fails
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

from dcdeploy.deploy.client import NomadClient
from dcdeploy.deploy.diagnostics import collect_event_errors
from dcdeploy.deploy.jobfile import load_service_job
from dcdeploy.deploy.merge import merge_service_config
from dcdeploy.lib.errors import (
    ConfigNotFoundError,
    DeploymentCancelledError,
    DeploymentError,
    DeploymentFailedError,
    JobValidationError,
    PlanError,
    RegisterError,
    SchedulerAPIError,
    SchedulerConnectionError,
)
from dcdeploy.models.config import DatacenterConfig, DeploymentConfig, ServiceConfig
from dcdeploy.models.deployment import DeployOptions, DeployResult
from dcdeploy.models.job import JOB_TYPE_SERVICE, Job
from dcdeploy.models.scheduler import (
    DEPLOYMENT_STATUS_RUNNING,
    DEPLOYMENT_STATUS_SUCCESSFUL,
    EVAL_STATUS_CANCELED,
    EVAL_STATUS_COMPLETE,
    EVAL_STATUS_FAILED,
)

logger = logging.getLogger(__name__)

STATUS_REGISTERED = "registered"

ClientFactory = Callable[..., NomadClient]


@dataclass
class DeployContext:
    """Run-state of a single deployment attempt."""

    options: DeployOptions
    datacenter: DatacenterConfig
    client_factory: ClientFactory = NomadClient.connect
    cancel_event: threading.Event = field(default_factory=threading.Event)
    clock: Callable[[], float] = time.monotonic

    job: Job | None = None
    job_path: Path | None = None
    service_config: ServiceConfig | None = None
    client: NomadClient | None = None
    job_modify_index: int | None = None
    eval_id: str | None = None
    deployment_id: str | None = None
    status: str | None = None
    elapsed: float | None = None

    def check_cancelled(self, operation: str) -> None:
        """Raise DeploymentCancelledError if the run was cancelled."""
        if self.cancel_event.is_set():
            raise DeploymentCancelledError(operation)

    def sleep(self, seconds: float, operation: str) -> None:
        """Wait between polls, waking early on cancellation."""
        if self.cancel_event.wait(seconds):
            raise DeploymentCancelledError(operation)

    def require_job(self) -> Job:
        if self.job is None:
            raise DeploymentError("pipeline", "job has not been loaded")
        return self.job

    def require_client(self) -> NomadClient:
        if self.client is None:
            raise DeploymentError("pipeline", "scheduler client is not connected")
        return self.client


class Stage(NamedTuple):
    """A named pipeline step."""

    name: str
    run: Callable[[DeployContext], None]


def load_service_config(ctx: DeployContext) -> None:
    """Load the job file and check the datacenter config has the service."""
    service = ctx.options.service
    job, path = load_service_job(ctx.options.root, service)

    service_config = ctx.datacenter.services.get(service)
    if service_config is None:
        raise ConfigNotFoundError(
            service,
            f"service '{service}' not found in datacenter '{ctx.datacenter.dc}' config",
        )

    ctx.job = job
    ctx.job_path = path
    ctx.service_config = service_config
    logger.debug(f"Loaded job from {path}")


def connect(ctx: DeployContext) -> None:
    """Connect to the scheduler serving the datacenter's region."""
    address = ctx.options.address
    try:
        ctx.client = ctx.client_factory(
            address,
            region=ctx.datacenter.region,
            timeout=ctx.options.request_timeout,
        )
    except SchedulerAPIError as exc:
        raise SchedulerConnectionError(
            f"Failed to connect to scheduler at {address}: {exc}"
        ) from exc
    logger.info(f"Connected to scheduler at {address}")


def validate(ctx: DeployContext) -> None:
    """Merge the service config into the job and have the scheduler check it."""
    if ctx.service_config is None:
        raise DeploymentError("pipeline", "service config has not been loaded")

    result = merge_service_config(
        ctx.require_job(),
        ctx.service_config,
        ctx.datacenter,
        service=ctx.options.service,
        image=ctx.options.image,
    )
    ctx.job = result.job
    ctx.service_config = result.service_config

    try:
        response = ctx.require_client().validate_job(ctx.job)
    except SchedulerAPIError as exc:
        raise JobValidationError(exc.message) from exc

    if response.error or response.validation_errors:
        raise JobValidationError(
            response.error or "; ".join(response.validation_errors or [])
        )
    if response.warnings:
        logger.warning(f"Job validation warnings: {response.warnings}")
    logger.info("Job validated")


def plan(ctx: DeployContext) -> None:
    """Dry-run the job and capture its modify index."""
    try:
        response = ctx.require_client().plan_job(ctx.require_job())
    except SchedulerAPIError as exc:
        raise PlanError(exc.message) from exc

    ctx.job_modify_index = response.job_modify_index
    logger.info(f"Job planned (modify index {response.job_modify_index})")


def await_deployment_id(ctx: DeployContext) -> None:
    """Poll the registration's evaluation until it yields a deployment.

    Stops without a deployment when a non-service job's evaluation completes.
    The wait is bounded by options.eval_timeout and by cancellation.
    """
    client = ctx.require_client()
    eval_id = ctx.eval_id
    if not eval_id:
        logger.debug("Registration created no evaluation")
        return

    timeout = ctx.options.eval_timeout
    deadline = None if timeout is None else ctx.clock() + timeout

    while True:
        ctx.check_cancelled("register")
        try:
            evaluation = client.get_evaluation(eval_id)
        except SchedulerAPIError as exc:
            raise RegisterError(exc.message) from exc

        if evaluation.deployment_id:
            ctx.deployment_id = evaluation.deployment_id
            return
        if evaluation.status == EVAL_STATUS_COMPLETE and evaluation.type != JOB_TYPE_SERVICE:
            return
        if evaluation.status in (EVAL_STATUS_FAILED, EVAL_STATUS_CANCELED):
            message = f"evaluation {eval_id} {evaluation.status}"
            if evaluation.status_description:
                message += f": {evaluation.status_description}"
            raise RegisterError(message)
        if deadline is not None and ctx.clock() >= deadline:
            raise RegisterError(
                f"timed out after {timeout:g}s waiting for evaluation {eval_id} "
                f"(status: {evaluation.status or 'unknown'})"
            )

        logger.debug(f"Waiting for evaluation {eval_id} (status: {evaluation.status})")
        ctx.sleep(ctx.options.eval_poll_interval, "register")


def register(ctx: DeployContext) -> None:
    """Register the job, enforcing the modify index captured by the plan."""
    client = ctx.require_client()
    modify_index = ctx.job_modify_index or 0
    try:
        response = client.enforce_register_job(ctx.require_job(), modify_index)
    except SchedulerAPIError as exc:
        raise RegisterError(exc.message) from exc

    ctx.eval_id = response.eval_id or None
    ctx.status = STATUS_REGISTERED
    await_deployment_id(ctx)
    logger.info(
        f"Job registered (evaluation {ctx.eval_id or '-'}, "
        f"deployment {ctx.deployment_id or '-'})"
    )


def gather_diagnostics(client: NomadClient, deployment_id: str) -> list[str]:
    """Collect task event errors for a deployment; failures yield no lines."""
    try:
        allocations = client.get_deployment_allocations(deployment_id)
    except SchedulerAPIError as exc:
        logger.warning(f"Failed to fetch allocations of deployment {deployment_id}: {exc}")
        return []
    return collect_event_errors(allocations)


def watch_status(ctx: DeployContext) -> None:
    """Follow the deployment with blocking queries until it is terminal."""
    deployment_id = ctx.deployment_id
    if not deployment_id:
        logger.debug("No deployment to watch")
        return

    client = ctx.require_client()
    started = ctx.clock()
    wait_index = 1

    while True:
        ctx.check_cancelled("status")
        try:
            deployment, meta = client.get_deployment(
                deployment_id,
                wait_index=wait_index,
                wait_time=ctx.options.status_wait_time,
                allow_stale=True,
            )
        except SchedulerAPIError as exc:
            raise DeploymentError("status", exc.message) from exc

        wait_index = max(meta.last_index, 1)
        elapsed = ctx.clock() - started
        ctx.status = deployment.status

        if deployment.status == DEPLOYMENT_STATUS_RUNNING:
            logger.debug(f"Deployment running ({elapsed:.2f}s)")
            continue
        if deployment.status == DEPLOYMENT_STATUS_SUCCESSFUL:
            ctx.elapsed = elapsed
            logger.info(f"Deployment successful after {elapsed:.2f}s")
            return

        raise DeploymentFailedError(
            deployment.status,
            deployment.status_description,
            gather_diagnostics(client, deployment_id),
        )


PIPELINE: tuple[Stage, ...] = (
    Stage("load", load_service_config),
    Stage("connect", connect),
    Stage("validate", validate),
    Stage("plan", plan),
    Stage("register", register),
    Stage("status", watch_status),
)


class Deployer:
    """Deploys one service into one datacenter through the scheduler.

    Each call to run() starts from a fresh DeployContext; the context of the
    last run stays available as `context` for reporting. A cancel() applies to
    the run in progress, or to the next run when none is in progress, and is
    cleared when that run ends.
    """

    def __init__(
        self,
        options: DeployOptions,
        datacenter: DatacenterConfig,
        client_factory: ClientFactory = NomadClient.connect,
        stages: tuple[Stage, ...] = PIPELINE,
    ) -> None:
        self.options = options
        self.datacenter = datacenter
        self.client_factory = client_factory
        self.stages = stages
        self._cancel_event = threading.Event()
        self.context: DeployContext | None = None

    @classmethod
    def from_config(
        cls,
        options: DeployOptions,
        config: DeploymentConfig,
        client_factory: ClientFactory = NomadClient.connect,
    ) -> Deployer:
        """Create a deployer for the datacenter named in options.

        Raises:
            ConfigNotFoundError: If the datacenter is not configured
        """
        datacenter = config.get_datacenter(options.dc)
        if datacenter is None:
            raise ConfigNotFoundError(
                options.service, f"datacenter '{options.dc}' is not configured"
            )
        return cls(options, datacenter, client_factory=client_factory)

    def cancel(self) -> None:
        """Ask the deployment to stop at its next poll or stage boundary.

        The evaluation wait wakes at once. The status watch notices after
        the blocking query in flight returns, at most status_wait_time later.
        """
        self._cancel_event.set()

    def run(self) -> DeployResult:
        """Run every stage in order and report the outcome.

        Raises:
            ConfigError: If the job file or service config is missing or invalid
            DeploymentError: If any scheduler step fails
        """
        ctx = DeployContext(
            options=self.options,
            datacenter=self.datacenter,
            client_factory=self.client_factory,
            cancel_event=self._cancel_event,
        )
        self.context = ctx

        try:
            for stage in self.stages:
                ctx.check_cancelled(stage.name)
                logger.debug(f"Running stage '{stage.name}'")
                stage.run(ctx)
        finally:
            self._cancel_event.clear()
            if ctx.client is not None:
                ctx.client.close()

        return DeployResult(
            service=self.options.service,
            datacenter=self.datacenter.dc,
            image=self.options.image,
            job_id=ctx.job.id if ctx.job else self.options.service,
            job_modify_index=ctx.job_modify_index,
            eval_id=ctx.eval_id,
            deployment_id=ctx.deployment_id,
            status=ctx.status or STATUS_REGISTERED,
            elapsed=ctx.elapsed,
        )
