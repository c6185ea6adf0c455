"""Software installed on the cluster once k3s is up."""

from cluster_bootstrap.software.autoscaler import ClusterAutoscalerInstaller
from cluster_bootstrap.software.dispatcher import InstallerDispatcher
from cluster_bootstrap.software.manifests import (
    CloudControllerManagerInstaller,
    CSIDriverInstaller,
    SystemUpgradeControllerInstaller,
)
from cluster_bootstrap.software.secret import SecretInstaller

__all__ = [
    "InstallerDispatcher",
    "SecretInstaller",
    "CloudControllerManagerInstaller",
    "CSIDriverInstaller",
    "SystemUpgradeControllerInstaller",
    "ClusterAutoscalerInstaller",
]
