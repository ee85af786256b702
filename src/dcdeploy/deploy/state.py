"""Deployment state tracking helpers.

The last deployment of each service in each datacenter is recorded under
<root>/.dcdeploy/deployments.json.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from dcdeploy.config.defaults import STATE_DIR
from dcdeploy.lib.errors import DeploymentError
from dcdeploy.models.deployment import DeployResult
from dcdeploy.models.deployment_state import DeploymentRecord, DeploymentState

STATE_VERSION = "1.0"


def get_state_path(root: str | Path) -> Path:
    """Return the deployment state file path for a deployment repository."""
    return Path(root) / STATE_DIR / "deployments.json"


def record_key(datacenter: str, service: str) -> str:
    """Return the state key of a service in a datacenter."""
    return f"{datacenter}/{service}"


def record_from_result(result: DeployResult) -> DeploymentRecord:
    """Build a deployment record from a run's result."""
    return DeploymentRecord(
        service=result.service,
        datacenter=result.datacenter,
        image=result.image,
        job_id=result.job_id,
        job_modify_index=result.job_modify_index,
        eval_id=result.eval_id,
        deployment_id=result.deployment_id,
        status=result.status,
    )


def load_state(state_path: Path) -> DeploymentState:
    """Load deployment state data from disk."""
    if not state_path.exists():
        return DeploymentState(version=STATE_VERSION)

    try:
        content = state_path.read_text(encoding="utf-8")
        if not content.strip():
            return DeploymentState(version=STATE_VERSION)
    except OSError as exc:
        raise DeploymentError(
            operation="state",
            message=f"Failed to read deployment state at {state_path}: {exc}",
        ) from exc

    try:
        return DeploymentState.model_validate_json(content)
    except ValidationError as exc:
        raise DeploymentError(
            operation="state",
            message=f"Invalid deployment state format in {state_path}: {exc}",
        ) from exc


def save_state(state_path: Path, state: DeploymentState) -> None:
    """Persist deployment state data to disk."""
    try:
        state_path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(state.model_dump(mode="json"), indent=2, sort_keys=True)
        state_path.write_text(payload, encoding="utf-8")
    except OSError as exc:
        raise DeploymentError(
            operation="state",
            message=f"Failed to write deployment state to {state_path}: {exc}",
        ) from exc


def get_deployment_record(
    state_path: Path, datacenter: str, service: str
) -> DeploymentRecord | None:
    """Return the last deployment record of a service in a datacenter."""
    state = load_state(state_path)
    return state.deployments.get(record_key(datacenter, service))


def update_deployment_record(
    state_path: Path, record: DeploymentRecord
) -> DeploymentRecord:
    """Store a deployment record, keeping the original creation time."""
    state = load_state(state_path)
    key = record_key(record.datacenter, record.service)
    existing = state.deployments.get(key)
    now = datetime.now(timezone.utc)

    created_at = record.created_at or (existing.created_at if existing else None) or now
    updated_record = record.model_copy(
        update={"created_at": created_at, "updated_at": now}
    )

    state.deployments[key] = updated_record
    save_state(state_path, state)
    return updated_record
