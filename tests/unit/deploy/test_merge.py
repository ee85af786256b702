"""Unit tests for merging service configs into jobs."""

from __future__ import annotations

from typing import Any

import pytest

from dcdeploy.deploy.merge import (
    MergeResult,
    merge_service_config,
    placement_constraints,
)
from dcdeploy.models.config import DatacenterConfig, ServiceConfig
from dcdeploy.models.job import Job

IMAGE = "registry.example.com/api:1.4.2"


def _job(**overrides: Any) -> Job:
    data: dict[str, Any] = {
        "ID": "api",
        "Type": "service",
        "Datacenters": ["dc0"],
        "Meta": {"team": "platform"},
        "TaskGroups": [
            {
                "Name": "api",
                "Count": 2,
                "Tasks": [
                    {
                        "Name": "api",
                        "Driver": "docker",
                        "Config": {"image": "placeholder", "args": ["--old"]},
                        "Env": {"LOG_LEVEL": "info", "PORT": "80"},
                    },
                    {
                        "Name": "sidecar",
                        "Driver": "docker",
                        "Config": {"image": "sidecar:1"},
                    },
                ],
            },
            {
                "Name": "worker",
                "Count": 1,
                "Tasks": [
                    {"Name": "api", "Driver": "docker", "Config": {"image": "w:1"}}
                ],
            },
        ],
    }
    data.update(overrides)
    return Job.model_validate(data)


@pytest.fixture
def datacenter() -> DatacenterConfig:
    """Target datacenter."""
    return DatacenterConfig(region="region1", dc="dc1")


def _merge(
    service_config: ServiceConfig,
    datacenter: DatacenterConfig,
    job: Job | None = None,
) -> MergeResult:
    return merge_service_config(
        job or _job(), service_config, datacenter, service="api", image=IMAGE
    )


class TestJobLevelMerge:
    """Tests for region, datacenter, and constraint merging."""

    def test_sets_region_and_appends_datacenter(
        self, datacenter: DatacenterConfig
    ) -> None:
        """Test the job is pointed at the target datacenter."""
        merged = _merge(ServiceConfig(), datacenter).job

        assert merged.region == "region1"
        assert merged.datacenters == ["dc0", "dc1"]

    def test_datacenter_not_duplicated(self, datacenter: DatacenterConfig) -> None:
        """Test an already targeted datacenter is not appended twice."""
        merged = _merge(ServiceConfig(), datacenter, _job(Datacenters=["dc1"])).job

        assert merged.datacenters == ["dc1"]

    def test_each_placement_field_adds_one_constraint(
        self, datacenter: DatacenterConfig
    ) -> None:
        """Test host group, node, and dc region each become one constraint."""
        svc = ServiceConfig(host_group="app", node="app1", dc_region="r1")

        merged = _merge(svc, datacenter).job

        assert merged.constraints is not None
        pairs = {(c.l_target, c.operand, c.r_target) for c in merged.constraints}
        assert pairs == {
            ("${meta.hostgroup}", "=", "app"),
            ("${meta.node}", "=", "app1"),
            ("${meta.dc_region}", "=", "r1"),
        }
        assert len(merged.constraints) == 3

    def test_omitted_fields_add_no_constraints(
        self, datacenter: DatacenterConfig
    ) -> None:
        """Test empty placement fields produce no constraints."""
        merged = _merge(ServiceConfig(node="app1"), datacenter).job

        assert merged.constraints is not None
        assert [c.l_target for c in merged.constraints] == ["${meta.node}"]

        assert _merge(ServiceConfig(), datacenter).job.constraints is None

    def test_placement_constraints_helper(self) -> None:
        """Test placement_constraints() on an empty config."""
        assert placement_constraints(ServiceConfig()) == []


class TestTaskGroupMerge:
    """Tests for overrides applied to the service's task group."""

    def test_count_override(self, datacenter: DatacenterConfig) -> None:
        """Test a positive count replaces the job's count."""
        merged = _merge(ServiceConfig(count=3), datacenter).job

        group = merged.task_group("api")
        assert group is not None
        assert group.count == 3

    def test_zero_count_keeps_job_count(self, datacenter: DatacenterConfig) -> None:
        """Test count 0 keeps the job file's count."""
        merged = _merge(ServiceConfig(count=0), datacenter).job

        group = merged.task_group("api")
        assert group is not None
        assert group.count == 2

    def test_other_groups_untouched(self, datacenter: DatacenterConfig) -> None:
        """Test groups not named after the service are unchanged."""
        merged = _merge(ServiceConfig(count=5), datacenter).job

        worker = merged.task_group("worker")
        assert worker is not None
        assert worker.count == 1
        assert worker.tasks[0].config["image"] == "w:1"

    def test_image_set_on_service_task_only(
        self, datacenter: DatacenterConfig
    ) -> None:
        """Test the image replaces only the task named after the service."""
        merged = _merge(ServiceConfig(image="static:0"), datacenter).job

        group = merged.task_group("api")
        assert group is not None
        assert group.tasks[0].config["image"] == IMAGE
        assert group.tasks[1].config["image"] == "sidecar:1"

    def test_environment_merged(self, datacenter: DatacenterConfig) -> None:
        """Test service environment is layered over the task's Env."""
        svc = ServiceConfig(environment={"PORT": "8080", "MODE": "prod"})

        group = _merge(svc, datacenter).job.task_group("api")

        assert group is not None
        assert group.tasks[0].env == {
            "LOG_LEVEL": "info",
            "PORT": "8080",
            "MODE": "prod",
        }

    def test_resources_arguments_volumes(self, datacenter: DatacenterConfig) -> None:
        """Test resources, arguments, and volumes are applied to the task."""
        svc = ServiceConfig(
            cpu=64,
            memory=128,
            arguments=["-port", "8080"],
            volumes=["data:/var/lib/api"],
        )

        group = _merge(svc, datacenter).job.task_group("api")

        assert group is not None
        task = group.tasks[0]
        assert task.resources is not None
        assert task.resources.cpu == 64
        assert task.resources.memory_mb == 128
        assert task.config["args"] == ["-port", "8080"]
        assert task.config["volumes"] == ["data:/var/lib/api"]

    def test_empty_arguments_keep_job_args(self, datacenter: DatacenterConfig) -> None:
        """Test job args are kept when the service sets none."""
        group = _merge(ServiceConfig(), datacenter).job.task_group("api")

        assert group is not None
        assert group.tasks[0].config["args"] == ["--old"]


class TestMergePurity:
    """Tests that merging never mutates its inputs."""

    def test_inputs_unchanged(self, datacenter: DatacenterConfig) -> None:
        """Test the original job and service config are not modified."""
        job = _job()
        svc = ServiceConfig(image="static:0", count=4, node="app1")
        before_job = job.to_api()

        result = merge_service_config(job, svc, datacenter, service="api", image=IMAGE)

        assert job.to_api() == before_job
        assert svc.image == "static:0"
        assert result.service_config.image == IMAGE
        assert result.service_config.count == 4

    def test_repeated_merges_are_independent(
        self, datacenter: DatacenterConfig
    ) -> None:
        """Test merging twice does not accumulate constraints."""
        job = _job()
        svc = ServiceConfig(node="app1")

        merge_service_config(job, svc, datacenter, service="api", image=IMAGE)
        second = merge_service_config(job, svc, datacenter, service="api", image=IMAGE)

        assert second.job.constraints is not None
        assert len(second.job.constraints) == 1

    def test_unknown_job_keys_preserved(self, datacenter: DatacenterConfig) -> None:
        """Test keys the merge does not model survive serialization."""
        payload = _merge(ServiceConfig(), datacenter).job.to_api()

        assert payload["Meta"] == {"team": "platform"}
        assert payload["ID"] == "api"
        assert payload["TaskGroups"][0]["Tasks"][0]["Driver"] == "docker"
