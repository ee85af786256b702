"""Pydantic models for scheduler API responses.

Responses carry many more keys than the deployer needs; unknown keys are
ignored.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

EVAL_STATUS_COMPLETE = "complete"
EVAL_STATUS_FAILED = "failed"
EVAL_STATUS_CANCELED = "canceled"
DEPLOYMENT_STATUS_RUNNING = "running"
DEPLOYMENT_STATUS_SUCCESSFUL = "successful"


class SchedulerModel(BaseModel):
    """Base model for scheduler responses."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class QueryMeta(SchedulerModel):
    """Blocking-query metadata taken from response headers."""

    last_index: int = Field(default=0, description="X-Nomad-Index header value")
    known_leader: bool = Field(default=False)


class JobValidateResponse(SchedulerModel):
    """Result of a job validation call."""

    driver_config_validated: bool = Field(default=False, alias="DriverConfigValidated")
    validation_errors: list[str] | None = Field(default=None, alias="ValidationErrors")
    error: str = Field(default="", alias="Error")
    warnings: str = Field(default="", alias="Warnings")


class JobPlanResponse(SchedulerModel):
    """Result of a dry-run plan."""

    job_modify_index: int = Field(..., alias="JobModifyIndex")
    warnings: str = Field(default="", alias="Warnings")


class JobRegisterResponse(SchedulerModel):
    """Result of a job registration."""

    eval_id: str = Field(default="", alias="EvalID")
    job_modify_index: int = Field(default=0, alias="JobModifyIndex")
    warnings: str = Field(default="", alias="Warnings")


class Evaluation(SchedulerModel):
    """An asynchronous scheduling evaluation."""

    id: str = Field(..., alias="ID")
    status: str = Field(default="", alias="Status")
    status_description: str = Field(default="", alias="StatusDescription")
    type: str = Field(default="", alias="Type")
    job_id: str = Field(default="", alias="JobID")
    deployment_id: str = Field(default="", alias="DeploymentID")

    @field_validator("deployment_id", "status_description", mode="before")
    @classmethod
    def none_to_empty(cls, v: object) -> object:
        """The scheduler may send null before a deployment exists."""
        return "" if v is None else v


class Deployment(SchedulerModel):
    """A tracked rollout of a job version."""

    id: str = Field(..., alias="ID")
    job_id: str = Field(default="", alias="JobID")
    status: str = Field(default="", alias="Status")
    status_description: str = Field(default="", alias="StatusDescription")


class TaskEvent(SchedulerModel):
    """A single task lifecycle event."""

    type: str = Field(default="", alias="Type")
    display_message: str = Field(default="", alias="DisplayMessage")
    driver_error: str = Field(default="", alias="DriverError")
    download_error: str = Field(default="", alias="DownloadError")
    validation_error: str = Field(default="", alias="ValidationError")
    setup_error: str = Field(default="", alias="SetupError")
    vault_error: str = Field(default="", alias="VaultError")

    @field_validator(
        "driver_error",
        "download_error",
        "validation_error",
        "setup_error",
        "vault_error",
        mode="before",
    )
    @classmethod
    def none_to_empty(cls, v: object) -> object:
        """Normalize null error fields to empty strings."""
        return "" if v is None else v

    def errors(self) -> list[str]:
        """Return the non-empty error fields in a fixed order."""
        return [
            message
            for message in (
                self.driver_error,
                self.download_error,
                self.validation_error,
                self.setup_error,
                self.vault_error,
            )
            if message
        ]


class TaskState(SchedulerModel):
    """State of one task within an allocation."""

    state: str = Field(default="", alias="State")
    failed: bool = Field(default=False, alias="Failed")
    events: list[TaskEvent] = Field(default_factory=list, alias="Events")

    @field_validator("events", mode="before")
    @classmethod
    def none_to_list(cls, v: object) -> object:
        """Normalize null event lists."""
        return [] if v is None else v


class Allocation(SchedulerModel):
    """An allocation placed by a deployment."""

    id: str = Field(..., alias="ID")
    task_group: str = Field(default="", alias="TaskGroup")
    client_status: str = Field(default="", alias="ClientStatus")
    task_states: dict[str, TaskState] = Field(default_factory=dict, alias="TaskStates")

    @field_validator("task_states", mode="before")
    @classmethod
    def none_to_dict(cls, v: object) -> object:
        """Normalize null task state maps."""
        return {} if v is None else v
