"""Pydantic models for a single deployment run.

DeployOptions carries everything a run needs from the caller, so neither the
loader nor the deployer reads ambient CLI state. DeployResult reports what a
finished run produced.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dcdeploy.config.defaults import (
    DEFAULT_ADDRESS,
    DEFAULT_ENV,
    DEFAULT_EVAL_POLL_INTERVAL,
    DEFAULT_EVAL_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_STATUS_WAIT_TIME,
)


class DeployOptions(BaseModel):
    """Options for one deployment of one service into one datacenter.

    Attributes:
        root: Deployment repository root (job files and datacenter configs)
        env: Environment/profile selecting the datacenter config set
        service: Service to deploy
        dc: Target datacenter
        image: Container image to deploy
        address: Scheduler HTTP address
        eval_poll_interval: Seconds between evaluation polls
        eval_timeout: Maximum seconds to wait for an evaluation (None: no limit)
        status_wait_time: Server-side wait per deployment status query
        request_timeout: HTTP timeout for non-blocking requests
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    root: Path = Field(default=Path("."), description="Deployment repository root")
    env: str = Field(default=DEFAULT_ENV, description="Environment/profile name")
    service: str = Field(..., min_length=1, description="Service to deploy")
    dc: str = Field(..., min_length=1, description="Target datacenter")
    image: str = Field(..., min_length=1, description="Container image to deploy")
    address: str = Field(default=DEFAULT_ADDRESS, description="Scheduler address")
    eval_poll_interval: float = Field(
        default=DEFAULT_EVAL_POLL_INTERVAL,
        ge=0,
        description="Seconds between evaluation polls",
    )
    eval_timeout: float | None = Field(
        default=DEFAULT_EVAL_TIMEOUT,
        gt=0,
        description="Maximum seconds to wait for an evaluation",
    )
    status_wait_time: float = Field(
        default=DEFAULT_STATUS_WAIT_TIME,
        gt=0,
        description="Blocking query wait per deployment status read",
    )
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        gt=0,
        description="HTTP timeout for scheduler requests",
    )

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        """Require an http(s) URL and strip the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid scheduler address: {v}. Must start with http:// or https://"
            )
        return v.rstrip("/")


class DeployResult(BaseModel):
    """Outcome of a successful deployment run.

    Attributes:
        service: Deployed service
        datacenter: Target datacenter
        image: Deployed container image
        job_id: Scheduler job ID
        job_modify_index: Modify index captured by the plan
        eval_id: Evaluation created by registration
        deployment_id: Deployment tracked to completion (None for batch/system jobs)
        status: Final deployment status
        elapsed: Seconds spent waiting for the deployment
    """

    model_config = ConfigDict(extra="forbid")

    service: str
    datacenter: str
    image: str
    job_id: str
    job_modify_index: int | None = None
    eval_id: str | None = None
    deployment_id: str | None = None
    status: str
    elapsed: float | None = None
