"""Data models for the cluster configuration."""

import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from cluster_bootstrap.exceptions import ConfigurationError
from cluster_bootstrap.models.node import Mark, Node

API_TOKEN_ENV = "CLUSTER_API_TOKEN"

DATASTORE_ETCD = "etcd"
DATASTORE_EXTERNAL = "external"


class DatastoreSettings(BaseModel):
    """Datastore backing the control plane."""

    model_config = ConfigDict(frozen=True)

    mode: str = DATASTORE_ETCD
    external_datastore_endpoint: str = ""

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        """Validate datastore mode is etcd or external."""
        allowed = [DATASTORE_ETCD, DATASTORE_EXTERNAL]
        if v not in allowed:
            raise ValueError(f"datastore mode must be one of {allowed}, got '{v}'")
        return v

    @model_validator(mode="after")
    def validate_endpoint(self) -> "DatastoreSettings":
        """An external datastore needs a connection string."""
        if self.mode == DATASTORE_EXTERNAL and not self.external_datastore_endpoint:
            raise ValueError("external_datastore_endpoint is required when mode is 'external'")
        return self


class SSHSettings(BaseModel):
    """How to reach the nodes over SSH."""

    model_config = ConfigDict(frozen=True)

    port: int = Field(default=22, ge=1, le=65535)
    user: str = "root"
    use_agent: bool = False
    private_key_path: str | None = "~/.ssh/id_ed25519"

    def port_for(self, node: Node) -> int:
        """SSH port of a node, honouring a per-node override."""
        return node.ssh_port or self.port


class AutoscalingSettings(BaseModel):
    """Cluster autoscaler bounds for a worker pool."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    min_instances: int = Field(default=0, ge=0)
    max_instances: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "AutoscalingSettings":
        if self.enabled and self.max_instances < self.min_instances:
            raise ValueError("max_instances must be greater than or equal to min_instances")
        return self


class MasterNodePool(BaseModel):
    """Control-plane node pool."""

    model_config = ConfigDict(frozen=True)

    instance_type: str
    instance_count: int = Field(default=1, ge=1)
    location: str = ""
    labels: list[Mark] = Field(default_factory=list)
    taints: list[Mark] = Field(default_factory=list)


class WorkerNodePool(BaseModel):
    """Worker node pool sharing instance type and label/taint policy."""

    model_config = ConfigDict(frozen=True)

    name: str
    instance_type: str
    instance_count: int = Field(default=0, ge=0)
    location: str = ""
    labels: list[Mark] = Field(default_factory=list)
    taints: list[Mark] = Field(default_factory=list)
    autoscaling: AutoscalingSettings = Field(default_factory=AutoscalingSettings)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate pool name is usable inside a node name."""
        if not re.match(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$", v):
            raise ValueError(f"pool name '{v}' must be lowercase alphanumeric with hyphens")
        return v

    @property
    def autoscaling_enabled(self) -> bool:
        return self.autoscaling.enabled


class ManifestSettings(BaseModel):
    """Locations of the manifests applied by the downstream installers."""

    model_config = ConfigDict(frozen=True)

    cloud_controller_manager: str = (
        "https://github.com/hetznercloud/hcloud-cloud-controller-manager/"
        "releases/latest/download/ccm-networks.yaml"
    )
    csi_driver: str = (
        "https://raw.githubusercontent.com/hetznercloud/csi-driver/main/"
        "deploy/kubernetes/hcloud-csi.yml"
    )
    system_upgrade_controller: str = (
        "https://github.com/rancher/system-upgrade-controller/"
        "releases/latest/download/system-upgrade-controller.yaml"
    )
    cluster_autoscaler_image: str = "registry.k8s.io/autoscaling/cluster-autoscaler:v1.30.1"


class ClusterSettings(BaseModel):
    """Immutable cluster configuration snapshot."""

    model_config = ConfigDict(frozen=True)

    cluster_name: str
    k3s_version: str
    kubeconfig_path: str = "./kubeconfig"
    api_token: str = Field(default_factory=lambda: os.environ.get(API_TOKEN_ENV, ""))
    api_server_hostname: str | None = None
    schedule_workloads_on_masters: bool = False
    enable_encryption: bool = False
    disable_flannel: bool = False
    private_network_subnet: str = "10.0.0.0/16"
    existing_network: str | None = None
    cluster_cidr: str = "10.244.0.0/16"
    service_cidr: str = "10.43.0.0/16"
    cluster_dns: str = "10.43.0.10"
    datastore: DatastoreSettings = Field(default_factory=DatastoreSettings)
    ssh: SSHSettings = Field(default_factory=SSHSettings)
    kube_api_server_args: list[str] = Field(default_factory=list)
    kube_scheduler_args: list[str] = Field(default_factory=list)
    kube_controller_manager_args: list[str] = Field(default_factory=list)
    kube_cloud_controller_manager_args: list[str] = Field(default_factory=list)
    kubelet_args: list[str] = Field(default_factory=list)
    kube_proxy_args: list[str] = Field(default_factory=list)
    masters_pool: MasterNodePool
    worker_node_pools: list[WorkerNodePool] = Field(default_factory=list)
    manifests: ManifestSettings = Field(default_factory=ManifestSettings)

    @field_validator("cluster_name")
    @classmethod
    def validate_cluster_name(cls, v: str) -> str:
        """Validate cluster name is usable as a node name prefix."""
        if not v:
            raise ValueError("cluster_name cannot be empty")
        if not re.match(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$", v):
            raise ValueError(
                f"cluster_name '{v}' must contain only lowercase alphanumeric characters "
                "and hyphens, and cannot start or end with a hyphen"
            )
        return v

    @field_validator("k3s_version")
    @classmethod
    def validate_k3s_version(cls, v: str) -> str:
        """Validate k3s_version looks like a k3s release tag."""
        if not v:
            raise ValueError("k3s_version cannot be empty")
        version_pattern = re.compile(r"^v\d+\.\d+\.\d+(-rc\d+)?\+k3s\d+$")
        if not version_pattern.match(v):
            raise ValueError(f"k3s_version '{v}' must be a k3s release tag (e.g., v1.28.5+k3s1)")
        return v

    @field_validator("private_network_subnet", "cluster_cidr", "service_cidr")
    @classmethod
    def validate_cidr(cls, v: str) -> str:
        """Validate the value is an IPv4 CIDR."""
        cidr_pattern = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}/\d{1,2}$")
        if not cidr_pattern.match(v):
            raise ValueError(f"'{v}' must be a valid CIDR (e.g., 10.0.0.0/16)")
        return v

    @property
    def private_network_test_ip(self) -> str:
        """Network address used by the scripts to find the private interface."""
        return ".".join(self.private_network_subnet.split(".")[:3]) + ".0"

    @property
    def network_name(self) -> str:
        return self.existing_network or self.cluster_name

    @property
    def autoscaling_worker_node_pools(self) -> list[WorkerNodePool]:
        return [pool for pool in self.worker_node_pools if pool.autoscaling_enabled]

    def resolved_kubeconfig_path(self) -> Path:
        return Path(self.kubeconfig_path).expanduser()

    def save(self, path: str) -> None:
        """Save configuration to YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(self.model_dump(exclude={"api_token"}), f, default_flow_style=False)

    @classmethod
    def load(cls, path: str | Path) -> "ClusterSettings":
        """Load configuration from YAML file.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {path}",
                f"Expected location: {path.absolute()}",
            )

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {path}", str(e))

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file {path} must contain a mapping",
                "Expected top-level keys such as cluster_name, k3s_version and masters_pool.",
            )

        try:
            return cls(**data)
        except ValidationError as e:
            problems = "\n".join(
                f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}" for error in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration in {path}", problems)
