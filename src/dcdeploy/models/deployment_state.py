"""Deployment state models for persisted deployments."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class DeploymentRecord(BaseModel):
    """Persisted record of the last deployment of a service in a datacenter."""

    model_config = ConfigDict(extra="forbid")

    service: str = Field(..., description="Deployed service")
    datacenter: str = Field(..., description="Target datacenter")
    image: str = Field(..., description="Deployed container image")
    job_id: str = Field(..., description="Scheduler job ID")
    job_modify_index: int | None = Field(
        default=None, description="Job modify index captured by the plan"
    )
    eval_id: str | None = Field(default=None, description="Registration evaluation")
    deployment_id: str | None = Field(default=None, description="Scheduler deployment")
    status: str = Field(..., description="Final deployment status")
    created_at: datetime | None = Field(
        default=None, description="First deployment timestamp"
    )
    updated_at: datetime | None = Field(
        default=None, description="Last update timestamp"
    )


class DeploymentState(BaseModel):
    """Top-level deployment state stored on disk."""

    model_config = ConfigDict(extra="forbid")

    version: str = Field(default="1.0", description="State file version")
    deployments: dict[str, DeploymentRecord] = Field(
        default_factory=dict, description="Records keyed by '<dc>/<service>'"
    )
