"""Data models for nodes and cluster configuration."""

from cluster_bootstrap.models.node import LoadBalancer, Mark, Node, NodeIdentity
from cluster_bootstrap.models.settings import (
    AutoscalingSettings,
    ClusterSettings,
    DatastoreSettings,
    ManifestSettings,
    MasterNodePool,
    SSHSettings,
    WorkerNodePool,
)

__all__ = [
    "Node",
    "NodeIdentity",
    "LoadBalancer",
    "Mark",
    "ClusterSettings",
    "DatastoreSettings",
    "SSHSettings",
    "AutoscalingSettings",
    "MasterNodePool",
    "WorkerNodePool",
    "ManifestSettings",
]
