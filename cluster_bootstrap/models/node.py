"""Data models for provisioned nodes and their identity."""

import re

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress, field_validator

MASTER_ROLE = "master"
WORKER_ROLE = "worker"


class Mark(BaseModel):
    """A Kubernetes node label or taint.

    Taint values carry their effect, e.g. ``value="true:NoSchedule"``.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    value: str

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Validate mark key is not empty and has no whitespace."""
        if not v or any(c.isspace() for c in v):
            raise ValueError(f"mark key '{v}' must be non-empty and contain no whitespace")
        return v

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


class NodeIdentity(BaseModel):
    """Structured identity encoded in a node name.

    Workers are named ``<cluster>-<instance-type>-pool-<pool>-worker<index>``
    and masters ``<cluster>-<instance-type>-master<index>``. ``format``, ``parse`` and
    ``worker_prefix`` are the only places that know about that convention.
    """

    model_config = ConfigDict(frozen=True)

    cluster: str
    instance_type: str
    role: str
    index: int = Field(ge=1)
    pool: str | None = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        """Validate role is either master or worker."""
        if v not in (MASTER_ROLE, WORKER_ROLE):
            raise ValueError(f"role must be one of {[MASTER_ROLE, WORKER_ROLE]}, got '{v}'")
        return v

    @staticmethod
    def worker_prefix(cluster_name: str, instance_type: str, pool_name: str) -> str:
        """Name prefix shared by every worker of a pool, whatever follows ``worker``."""
        return f"{cluster_name}-{instance_type}-pool-{pool_name}-worker"

    def format(self) -> str:
        """Render the identity as a node name."""
        if self.role == MASTER_ROLE:
            return f"{self.cluster}-{self.instance_type}-master{self.index}"
        return f"{self.cluster}-{self.instance_type}-pool-{self.pool}-worker{self.index}"

    @classmethod
    def parse(cls, name: str, cluster_name: str) -> "NodeIdentity | None":
        """Parse a node name created for ``cluster_name``.

        Returns:
            The identity, or None if the name does not follow the convention
        """
        cluster = re.escape(cluster_name)

        worker = re.match(
            rf"^{cluster}-(?P<instance_type>.+?)-pool-(?P<pool>.+)-worker(?P<index>\d+)$", name
        )
        if worker:
            return cls(
                cluster=cluster_name,
                instance_type=worker.group("instance_type"),
                pool=worker.group("pool"),
                role=WORKER_ROLE,
                index=int(worker.group("index")),
            )

        master = re.match(rf"^{cluster}-(?P<instance_type>.+)-master(?P<index>\d+)$", name)
        if master:
            return cls(
                cluster=cluster_name,
                instance_type=master.group("instance_type"),
                role=MASTER_ROLE,
                index=int(master.group("index")),
            )

        return None


class Node(BaseModel):
    """A provisioned machine taking part in the cluster."""

    model_config = ConfigDict(frozen=True)

    name: str
    role: str
    public_ip: IPvAnyAddress
    private_ip: IPvAnyAddress
    ssh_port: int | None = Field(default=None, ge=1, le=65535)
    pool: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate node name follows DNS naming conventions."""
        if not v:
            raise ValueError("name cannot be empty")
        if len(v) > 253:
            raise ValueError("name cannot exceed 253 characters")
        # RFC 1123
        name_pattern = re.compile(
            r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$", re.IGNORECASE
        )
        if not name_pattern.match(v):
            raise ValueError(
                f"name '{v}' must contain only alphanumeric characters, "
                "hyphens, and dots, and cannot start or end with a hyphen"
            )
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        """Validate role is either master or worker."""
        if v not in (MASTER_ROLE, WORKER_ROLE):
            raise ValueError(f"role must be one of {[MASTER_ROLE, WORKER_ROLE]}, got '{v}'")
        return v

    @property
    def is_master(self) -> bool:
        return self.role == MASTER_ROLE

    def identity(self, cluster_name: str) -> NodeIdentity | None:
        """Structured identity of this node, if its name follows the convention."""
        return NodeIdentity.parse(self.name, cluster_name)

    def in_pool(self, cluster_name: str, instance_type: str, pool_name: str) -> bool:
        """Whether this worker belongs to the given worker pool.

        An explicit ``pool`` from the inventory wins over the name convention.
        Otherwise any name starting with the pool prefix matches, so
        ``...-worker-1`` and ``...-worker1-ab3f`` count as pool members.
        """
        if self.role != WORKER_ROLE:
            return False
        if self.pool is not None:
            return self.pool == pool_name

        prefix = NodeIdentity.worker_prefix(cluster_name, instance_type, pool_name)
        return self.name.startswith(prefix)

    def to_inventory_dict(self) -> dict:
        """Convert to inventory format."""
        result = {
            "public_ip": str(self.public_ip),
            "private_ip": str(self.private_ip),
        }
        if self.ssh_port is not None:
            result["ssh_port"] = self.ssh_port
        if self.pool is not None:
            result["pool"] = self.pool
        return result

    @classmethod
    def from_inventory_dict(cls, name: str, data: dict, role: str) -> "Node":
        """Parse from inventory format."""
        return cls(
            name=name,
            role=role,
            public_ip=data["public_ip"],
            private_ip=data["private_ip"],
            ssh_port=data.get("ssh_port"),
            pool=data.get("pool"),
        )


class LoadBalancer(BaseModel):
    """Load balancer in front of the API servers of a multi-master cluster."""

    model_config = ConfigDict(frozen=True)

    public_ip: IPvAnyAddress
    private_ip: IPvAnyAddress
