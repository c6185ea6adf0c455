"""k3s bootstrap: topology, scripts, staged deployment and node marking."""

from cluster_bootstrap.bootstrap.context import InstallContext, build_context
from cluster_bootstrap.bootstrap.coordinator import DeploymentCoordinator
from cluster_bootstrap.bootstrap.installer import ClusterInstaller
from cluster_bootstrap.bootstrap.marking import NodeMarker
from cluster_bootstrap.bootstrap.scripts import ScriptTemplater

__all__ = [
    "ClusterInstaller",
    "DeploymentCoordinator",
    "InstallContext",
    "NodeMarker",
    "ScriptTemplater",
    "build_context",
]
