"""Pydantic models for per-datacenter service configuration.

The configuration is a two-level map: a DeploymentConfig holds one
DatacenterConfig per datacenter, and each DatacenterConfig holds one
ServiceConfig per service. DeploymentConfig also answers the lookup and
aggregation queries used by the CLI and the deployer.
"""

from __future__ import annotations

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def _env_value(value: object) -> str:
    # YAML booleans are written back the way YAML spells them
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


class ServiceConfig(BaseModel):
    """Desired runtime parameters of one service within one datacenter.

    Attributes:
        image: Container image reference (replaced by the deployed image)
        count: Instance count override; 0 keeps the job file's count
        host_group: Placement constraint on ${meta.hostgroup}
        node: Placement constraint on ${meta.node}
        dc_region: Placement constraint on ${meta.dc_region}
        cpu: CPU reservation in MHz
        memory: Memory reservation in MB
        environment: Environment variables for the service task
        arguments: Command arguments as alternating flag/value pairs
        volumes: Volume mounts as "source:target" strings
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    image: str = Field(default="", description="Container image reference")
    count: int = Field(default=0, ge=0, description="Instance count override")
    host_group: str = Field(
        default="",
        validation_alias=AliasChoices("host_group", "hostgroup", "hostGroup"),
        description="Host group placement constraint",
    )
    node: str = Field(default="", description="Node placement constraint")
    dc_region: str = Field(
        default="",
        validation_alias=AliasChoices("dc_region", "dcregion", "dcRegion"),
        description="Datacenter region placement constraint",
    )
    cpu: int | None = Field(default=None, gt=0, description="CPU reservation (MHz)")
    memory: int | None = Field(default=None, gt=0, description="Memory (MB)")
    environment: dict[str, str] = Field(
        default_factory=dict, description="Environment variables"
    )
    arguments: list[str] = Field(
        default_factory=list, description="Alternating flag/value arguments"
    )
    volumes: list[str] = Field(
        default_factory=list, description="Volume mounts (source:target)"
    )

    @field_validator("environment", mode="before")
    @classmethod
    def stringify_environment(cls, v: object) -> object:
        """Coerce scalar YAML values (numbers, booleans) to strings."""
        if isinstance(v, dict):
            return {str(key): _env_value(val) for key, val in v.items()}
        return v

    @field_validator("volumes")
    @classmethod
    def validate_volumes(cls, v: list[str]) -> list[str]:
        """Validate volume entries use the source:target form."""
        for volume in v:
            source, sep, target = volume.partition(":")
            if not sep or not source or not target:
                raise ValueError(
                    f"Invalid volume: {volume!r}. Must be in 'source:target' form"
                )
        return v


class DatacenterConfig(BaseModel):
    """Datacenter-wide settings and the services offered in it.

    Attributes:
        region: Scheduler region the datacenter belongs to
        dc: Datacenter identifier as known to the scheduler
        services: Service configs keyed by service name
    """

    model_config = ConfigDict(extra="forbid")

    region: str = Field(..., description="Scheduler region")
    dc: str = Field(..., min_length=1, description="Datacenter identifier")
    services: dict[str, ServiceConfig] = Field(
        default_factory=dict, description="Service configs keyed by name"
    )

    @field_validator("services", mode="before")
    @classmethod
    def default_empty_services(cls, v: object) -> object:
        """Treat an empty 'services:' key as no services."""
        return {} if v is None else v

    @field_validator("services")
    @classmethod
    def validate_service_names(
        cls, v: dict[str, ServiceConfig]
    ) -> dict[str, ServiceConfig]:
        """Reject empty service names."""
        for name in v:
            if not name.strip():
                raise ValueError("Service names must be non-empty")
        return v


class DeploymentConfig(BaseModel):
    """All datacenter configs of one environment plus the federation list.

    Attributes:
        federated_dcs: Space-delimited datacenter names forming one federation
        datacenters: Datacenter configs keyed by datacenter name
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    federated_dcs: str = Field(
        default="", description="Space-delimited federated datacenter names"
    )
    datacenters: dict[str, DatacenterConfig] = Field(
        default_factory=dict, description="Datacenter configs keyed by name"
    )

    def get_datacenter(self, dc: str) -> DatacenterConfig | None:
        """Return the config of a datacenter, or None if unknown."""
        return self.datacenters.get(dc)

    def find(self, service: str) -> ServiceConfig | None:
        """Find a service in any datacenter.

        Datacenters are searched in sorted name order, so the result is the
        service config from the lowest-sorted datacenter offering it.
        Use find_for_dc() when a specific datacenter is required.
        """
        for dc in sorted(self.datacenters):
            svc = self.datacenters[dc].services.get(service)
            if svc is not None:
                return svc
        return None

    def find_for_dc(self, service: str, dc: str) -> ServiceConfig | None:
        """Find a service in one datacenter; None if either is absent."""
        datacenter = self.datacenters.get(dc)
        if datacenter is None:
            return None
        return datacenter.services.get(service)

    def service_names(self) -> list[str]:
        """Return the sorted, distinct service names across all datacenters."""
        names: set[str] = set()
        for datacenter in self.datacenters.values():
            names.update(datacenter.services)
        return sorted(names)

    def find_datacenters(self, service: str) -> list[str]:
        """Return the sorted names of datacenters offering a service."""
        return sorted(
            dc
            for dc, datacenter in self.datacenters.items()
            if service in datacenter.services
        )

    def federated_datacenters(self) -> list[str]:
        """Return the federation as a list of datacenter names."""
        return self.federated_dcs.split()
