"""Pydantic models for the Nomad job descriptor.

Only the parts of a job that the deployer reads or rewrites are modelled
explicitly. Every other key in the job file is kept as an extra field and
sent back to the scheduler unchanged.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

JOB_TYPE_SERVICE = "service"


class NomadModel(BaseModel):
    """Base model for scheduler payloads using PascalCase keys."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_api(self) -> dict[str, Any]:
        """Serialize to the scheduler's JSON shape."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Constraint(NomadModel):
    """Placement constraint, e.g. ${meta.node} = app1."""

    l_target: str = Field(default="", alias="LTarget")
    operand: str = Field(default="=", alias="Operand")
    r_target: str = Field(default="", alias="RTarget")


class Resources(NomadModel):
    """Task resource reservations."""

    cpu: int | None = Field(default=None, alias="CPU")
    memory_mb: int | None = Field(default=None, alias="MemoryMB")


class Task(NomadModel):
    """A single task within a task group."""

    name: str = Field(..., alias="Name")
    driver: str | None = Field(default=None, alias="Driver")
    config: dict[str, Any] = Field(default_factory=dict, alias="Config")
    env: dict[str, str] | None = Field(default=None, alias="Env")
    resources: Resources | None = Field(default=None, alias="Resources")


class TaskGroup(NomadModel):
    """A group of tasks scheduled together."""

    name: str = Field(..., alias="Name")
    count: int | None = Field(default=None, alias="Count")
    tasks: list[Task] = Field(default_factory=list, alias="Tasks")
    constraints: list[Constraint] | None = Field(default=None, alias="Constraints")


class Job(NomadModel):
    """Nomad job descriptor."""

    id: str = Field(..., alias="ID")
    name: str | None = Field(default=None, alias="Name")
    type: str | None = Field(default=None, alias="Type")
    region: str | None = Field(default=None, alias="Region")
    datacenters: list[str] = Field(default_factory=list, alias="Datacenters")
    constraints: list[Constraint] | None = Field(default=None, alias="Constraints")
    task_groups: list[TaskGroup] = Field(default_factory=list, alias="TaskGroups")

    def add_datacenter(self, dc: str) -> None:
        """Append a datacenter unless the job already targets it."""
        if dc not in self.datacenters:
            self.datacenters.append(dc)

    def constrain(self, constraint: Constraint) -> None:
        """Add a job-level constraint."""
        if self.constraints is None:
            self.constraints = []
        self.constraints.append(constraint)

    def task_group(self, name: str) -> TaskGroup | None:
        """Return the task group with the given name, if any."""
        for group in self.task_groups:
            if group.name == name:
                return group
        return None
