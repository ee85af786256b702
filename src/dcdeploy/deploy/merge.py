"""Merge a datacenter's service config into a job descriptor.

The merge is pure: it works on deep copies and returns a new job and a new
service config, so repeated validations never see each other's changes.
"""

from __future__ import annotations

from dataclasses import dataclass

from dcdeploy.config.defaults import META_DC_REGION, META_HOST_GROUP, META_NODE
from dcdeploy.models.config import DatacenterConfig, ServiceConfig
from dcdeploy.models.job import Constraint, Job, Resources, Task


@dataclass(frozen=True)
class MergeResult:
    """Merged job plus the service config as deployed."""

    job: Job
    service_config: ServiceConfig


def placement_constraints(service_config: ServiceConfig) -> list[Constraint]:
    """Build one equality constraint per non-empty placement field."""
    constraints: list[Constraint] = []
    for target, value in (
        (META_DC_REGION, service_config.dc_region),
        (META_HOST_GROUP, service_config.host_group),
        (META_NODE, service_config.node),
    ):
        if value:
            constraints.append(Constraint(LTarget=target, Operand="=", RTarget=value))
    return constraints


def _apply_task_overrides(task: Task, service_config: ServiceConfig, image: str) -> None:
    task.config["image"] = image

    if service_config.environment:
        task.env = {**(task.env or {}), **service_config.environment}

    if service_config.cpu is not None or service_config.memory is not None:
        resources = task.resources or Resources()
        if service_config.cpu is not None:
            resources.cpu = service_config.cpu
        if service_config.memory is not None:
            resources.memory_mb = service_config.memory
        task.resources = resources

    if service_config.arguments:
        task.config["args"] = list(service_config.arguments)
    if service_config.volumes:
        task.config["volumes"] = list(service_config.volumes)


def merge_service_config(
    job: Job,
    service_config: ServiceConfig,
    datacenter: DatacenterConfig,
    service: str,
    image: str,
) -> MergeResult:
    """Merge datacenter and service settings into a copy of a job.

    Applies region, datacenter, and placement constraints to the job. The
    task group named after the service gets the count override, and its task
    named after the service gets the image, environment, resources,
    arguments, and volumes.

    Args:
        job: Job parsed from the service's job file
        service_config: Service config resolved for the target datacenter
        datacenter: Target datacenter config
        service: Service name (task group and task name)
        image: Container image to deploy

    Returns:
        MergeResult with the merged job and the service config as deployed
    """
    merged = job.model_copy(deep=True)
    merged.region = datacenter.region
    merged.add_datacenter(datacenter.dc)

    for constraint in placement_constraints(service_config):
        merged.constrain(constraint)

    group = merged.task_group(service)
    if group is not None:
        if service_config.count > 0:
            group.count = service_config.count
        for task in group.tasks:
            if task.name == service:
                _apply_task_overrides(task, service_config, image)

    return MergeResult(
        job=merged,
        service_config=service_config.model_copy(update={"image": image}),
    )
