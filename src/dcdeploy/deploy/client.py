"""HTTP client for the Nomad scheduler API.

Only the endpoints used by the deployment pipeline are implemented. Every
request is scoped to one region; every failure surfaces as SchedulerAPIError.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from dcdeploy.config.defaults import DEFAULT_REQUEST_TIMEOUT
from dcdeploy.lib.errors import SchedulerAPIError, SchedulerConnectionError
from dcdeploy.models.job import Job
from dcdeploy.models.scheduler import (
    Allocation,
    Deployment,
    Evaluation,
    JobPlanResponse,
    JobRegisterResponse,
    JobValidateResponse,
    QueryMeta,
)

logger = logging.getLogger(__name__)

INDEX_HEADER = "X-Nomad-Index"
KNOWN_LEADER_HEADER = "X-Nomad-KnownLeader"


class NomadClient:
    """Nomad HTTP API client bound to one address and region."""

    def __init__(
        self,
        address: str,
        region: str | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create a client.

        Args:
            address: Scheduler HTTP address, e.g. http://127.0.0.1:4646
            region: Region sent with every request
            timeout: Timeout for non-blocking requests, in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.address = address.rstrip("/")
        self.region = region
        self.timeout = timeout
        self._http = httpx.Client(
            base_url=self.address,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def connect(
        cls,
        address: str,
        region: str | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> NomadClient:
        """Create a client and verify the cluster has a leader.

        Raises:
            SchedulerConnectionError: If the handshake fails
        """
        client = cls(address, region=region, timeout=timeout)
        try:
            leader = client.leader()
        except SchedulerAPIError as exc:
            client.close()
            raise SchedulerConnectionError(
                f"Failed to connect to scheduler at {address}: {exc}"
            ) from exc
        logger.debug(f"Scheduler leader at {leader}")
        return client

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def __enter__(self) -> NomadClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        query: dict[str, str] = {}
        if self.region:
            query["region"] = self.region
        if params:
            query.update(params)

        try:
            response = self._http.request(
                method,
                path,
                json=json,
                params=query,
                timeout=timeout if timeout is not None else self.timeout,
            )
        except httpx.HTTPError as exc:
            raise SchedulerAPIError(f"{method} {path}: {exc}") from exc

        if response.is_error:
            raise SchedulerAPIError(
                response.text.strip() or response.reason_phrase,
                status_code=response.status_code,
            )
        return response

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise SchedulerAPIError(
                f"Invalid JSON response from {response.request.url}: {exc}"
            ) from exc

    def _parse(self, model: Any, data: Any) -> Any:
        try:
            return model.model_validate(data)
        except PydanticValidationError as exc:
            raise SchedulerAPIError(
                f"Unexpected {model.__name__} response: {exc}"
            ) from exc

    def leader(self) -> str:
        """Return the address of the current cluster leader."""
        response = self._request("GET", "/v1/status/leader")
        leader = self._json(response)
        if not leader:
            raise SchedulerAPIError("No cluster leader")
        return str(leader)

    def validate_job(self, job: Job) -> JobValidateResponse:
        """Check a job for syntactic and semantic errors."""
        response = self._request("PUT", "/v1/validate/job", json={"Job": job.to_api()})
        return self._parse(JobValidateResponse, self._json(response))

    def plan_job(self, job: Job, diff: bool = False) -> JobPlanResponse:
        """Dry-run a job update without changing the cluster."""
        response = self._request(
            "PUT",
            f"/v1/job/{job.id}/plan",
            json={"Job": job.to_api(), "Diff": diff},
        )
        return self._parse(JobPlanResponse, self._json(response))

    def enforce_register_job(self, job: Job, modify_index: int) -> JobRegisterResponse:
        """Register a job only if its modify index still equals modify_index.

        An index of zero registers only if the job does not exist yet.
        """
        response = self._request(
            "PUT",
            "/v1/jobs",
            json={
                "Job": job.to_api(),
                "EnforceIndex": True,
                "JobModifyIndex": modify_index,
            },
        )
        return self._parse(JobRegisterResponse, self._json(response))

    def get_evaluation(self, eval_id: str) -> Evaluation:
        """Fetch an evaluation."""
        response = self._request("GET", f"/v1/evaluation/{eval_id}")
        return self._parse(Evaluation, self._json(response))

    def get_deployment(
        self,
        deployment_id: str,
        wait_index: int = 0,
        wait_time: float | None = None,
        allow_stale: bool = False,
    ) -> tuple[Deployment, QueryMeta]:
        """Fetch a deployment, optionally as a blocking query.

        With wait_index > 0 the server holds the request until the
        deployment's index exceeds wait_index or wait_time elapses.

        Returns:
            The deployment and the query metadata (last_index for the next call)
        """
        params: dict[str, str] = {}
        timeout = self.timeout
        if wait_index > 0:
            params["index"] = str(wait_index)
        if wait_time is not None:
            params["wait"] = f"{int(wait_time * 1000)}ms"
            # the server adds up to wait/16 jitter
            timeout = self.timeout + wait_time * 17 / 16
        if allow_stale:
            params["stale"] = ""

        response = self._request(
            "GET", f"/v1/deployment/{deployment_id}", params=params, timeout=timeout
        )
        deployment = self._parse(Deployment, self._json(response))
        meta = QueryMeta(
            last_index=int(response.headers.get(INDEX_HEADER, "0") or 0),
            known_leader=response.headers.get(KNOWN_LEADER_HEADER) == "true",
        )
        return deployment, meta

    def get_deployment_allocations(self, deployment_id: str) -> list[Allocation]:
        """Fetch the allocations placed by a deployment."""
        response = self._request("GET", f"/v1/deployment/allocations/{deployment_id}")
        data = self._json(response) or []
        if not isinstance(data, list):
            raise SchedulerAPIError("Expected a list of allocations")
        return [self._parse(Allocation, item) for item in data]
