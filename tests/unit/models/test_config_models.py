"""Unit tests for the datacenter configuration models."""

import pytest
from pydantic import ValidationError

from dcdeploy.models.config import DatacenterConfig, DeploymentConfig, ServiceConfig


def _deployment_config() -> DeploymentConfig:
    return DeploymentConfig(
        federated_dcs="dc-a dc-b",
        datacenters={
            "dc-b": DatacenterConfig(
                region="r1",
                dc="dc-b",
                services={"api": ServiceConfig(image="api:b"), "web": ServiceConfig()},
            ),
            "dc-a": DatacenterConfig(
                region="r1",
                dc="dc-a",
                services={"api": ServiceConfig(image="api:a")},
            ),
            "dc-c": DatacenterConfig(region="r2", dc="dc-c"),
        },
    )


class TestServiceConfig:
    """Tests for ServiceConfig model."""

    def test_defaults(self) -> None:
        """Test an empty service config is valid."""
        svc = ServiceConfig()

        assert svc.image == ""
        assert svc.count == 0
        assert svc.host_group == ""
        assert svc.cpu is None
        assert svc.environment == {}
        assert svc.arguments == []
        assert svc.volumes == []

    def test_placement_aliases(self) -> None:
        """Test hostgroup and dcregion spellings are accepted."""
        svc = ServiceConfig.model_validate(
            {"hostgroup": "app", "dcregion": "r1", "node": "app1"}
        )

        assert svc.host_group == "app"
        assert svc.dc_region == "r1"
        assert svc.node == "app1"

    def test_negative_count_rejected(self) -> None:
        """Test count must be non-negative."""
        with pytest.raises(ValidationError):
            ServiceConfig(count=-1)

    @pytest.mark.parametrize("field", ["cpu", "memory"])
    def test_resources_must_be_positive(self, field: str) -> None:
        """Test cpu and memory must be positive when set."""
        with pytest.raises(ValidationError):
            ServiceConfig.model_validate({field: 0})

    def test_environment_values_coerced_to_strings(self) -> None:
        """Test YAML scalars in environment become strings."""
        svc = ServiceConfig.model_validate(
            {
                "environment": {
                    "PORT": 8080,
                    "DEBUG": True,
                    "TRACE": False,
                    "RATIO": 0.5,
                    "EMPTY": None,
                }
            }
        )

        assert svc.environment == {
            "PORT": "8080",
            "DEBUG": "true",
            "TRACE": "false",
            "RATIO": "0.5",
            "EMPTY": "",
        }

    @pytest.mark.parametrize("volume", ["no-separator", ":/target", "source:"])
    def test_invalid_volume_rejected(self, volume: str) -> None:
        """Test volumes must be source:target."""
        with pytest.raises(ValidationError, match="source:target"):
            ServiceConfig(volumes=[volume])

    def test_unknown_field_rejected(self) -> None:
        """Test unknown keys are configuration errors."""
        with pytest.raises(ValidationError):
            ServiceConfig.model_validate({"replicas": 3})


class TestDatacenterConfig:
    """Tests for DatacenterConfig model."""

    def test_empty_service_name_rejected(self) -> None:
        """Test service names must be non-empty."""
        with pytest.raises(ValidationError, match="non-empty"):
            DatacenterConfig.model_validate(
                {"region": "r1", "dc": "dc1", "services": {"": {}}}
            )

    def test_null_services_is_empty(self) -> None:
        """Test 'services:' without entries yields no services."""
        datacenter = DatacenterConfig.model_validate(
            {"region": "r1", "dc": "dc1", "services": None}
        )

        assert datacenter.services == {}


class TestDeploymentConfigResolver:
    """Tests for the lookup methods of DeploymentConfig."""

    def test_find_prefers_lowest_sorted_datacenter(self) -> None:
        """Test find() is deterministic across datacenters."""
        svc = _deployment_config().find("api")

        assert svc is not None
        assert svc.image == "api:a"

    def test_find_missing_returns_none(self) -> None:
        """Test find() returns None for unknown services."""
        assert _deployment_config().find("db") is None

    def test_find_for_dc(self) -> None:
        """Test find_for_dc() only looks in the given datacenter."""
        cfg = _deployment_config()

        svc = cfg.find_for_dc("api", "dc-b")
        assert svc is not None
        assert svc.image == "api:b"
        assert cfg.find_for_dc("web", "dc-a") is None
        assert cfg.find_for_dc("api", "dc-z") is None

    def test_service_names_are_distinct(self) -> None:
        """Test services in several datacenters are listed once."""
        assert _deployment_config().service_names() == ["api", "web"]

    def test_find_datacenters(self) -> None:
        """Test find_datacenters() counts each offering datacenter."""
        cfg = _deployment_config()

        assert cfg.find_datacenters("api") == ["dc-a", "dc-b"]
        assert cfg.find_datacenters("web") == ["dc-b"]
        assert cfg.find_datacenters("db") == []

    def test_get_datacenter(self) -> None:
        """Test get_datacenter() returns None for unknown names."""
        cfg = _deployment_config()

        datacenter = cfg.get_datacenter("dc-c")
        assert datacenter is not None
        assert datacenter.region == "r2"
        assert cfg.get_datacenter("dc-z") is None

    def test_empty_config_queries(self) -> None:
        """Test every query on an empty config is empty without error."""
        cfg = DeploymentConfig()

        assert cfg.find("api") is None
        assert cfg.find_for_dc("api", "dc-a") is None
        assert cfg.service_names() == []
        assert cfg.find_datacenters("api") == []
        assert cfg.federated_datacenters() == []
