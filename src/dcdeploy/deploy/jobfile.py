"""Job file discovery and parsing.

Job files live under <root>/nomad/<jobset>/<service>.<ext>. The "service"
jobset is searched first, then "system". Files use the scheduler's JSON job
shape (`.json`, or `.nomad` with JSON content); YAML with the same keys is
accepted too.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError as PydanticValidationError

from dcdeploy.config.defaults import JOB_FILE_SUFFIXES, JOBS_DIR, JOBSETS
from dcdeploy.config.validator import format_config_errors
from dcdeploy.lib.errors import ConfigError, ConfigNotFoundError
from dcdeploy.models.job import Job

logger = logging.getLogger(__name__)


def job_file_candidates(root: str | Path, service: str) -> list[Path]:
    """Return the job file paths searched for a service, in priority order."""
    base = Path(root) / JOBS_DIR
    return [
        base / jobset / f"{service}{suffix}"
        for jobset in JOBSETS
        for suffix in JOB_FILE_SUFFIXES
    ]


def find_job_file(root: str | Path, service: str) -> Path:
    """Locate the job file for a service.

    Raises:
        ConfigNotFoundError: If no jobset has a file for the service
    """
    candidates = job_file_candidates(root, service)
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(
        service,
        f"No job file found for service '{service}' "
        f"(searched {', '.join(str(c) for c in candidates)})",
    )


def load_job_file(path: Path) -> Job:
    """Parse a job file into a Job.

    A top-level {"Job": {...}} envelope, as written by `nomad job run -output`,
    is unwrapped.

    Raises:
        ConfigError: If the file cannot be read or is not a valid job
    """
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(str(path), f"Failed to read job file: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(str(path), f"Failed to parse job file: {exc}") from exc

    if isinstance(content, dict) and isinstance(content.get("Job"), dict):
        content = content["Job"]
    if not isinstance(content, dict):
        raise ConfigError(str(path), "Job file must contain a job object")

    try:
        return Job.model_validate(content)
    except PydanticValidationError as exc:
        raise ConfigError(str(path), format_config_errors(exc)) from exc


def load_service_job(root: str | Path, service: str) -> tuple[Job, Path]:
    """Find and parse the job file for a service."""
    path = find_job_file(root, service)
    job = load_job_file(path)
    logger.debug(f"Loaded job '{job.id}' from {path}")
    return job, path
