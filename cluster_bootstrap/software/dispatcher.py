"""Ordered hand-off to the downstream software installers."""

from rich.console import Console

from cluster_bootstrap.logging_config import get_logger
from cluster_bootstrap.software.autoscaler import ClusterAutoscalerInstaller
from cluster_bootstrap.software.manifests import (
    CloudControllerManagerInstaller,
    CSIDriverInstaller,
    SystemUpgradeControllerInstaller,
)
from cluster_bootstrap.software.secret import SecretInstaller

logger = get_logger(__name__)


class InstallerDispatcher:
    """Runs the installers in a fixed order, stopping at the first failure.

    Every installer is expected to be idempotent.
    """

    def __init__(
        self,
        secret=None,
        cloud_controller_manager=None,
        csi_driver=None,
        system_upgrade_controller=None,
        cluster_autoscaler=None,
        console: Console | None = None,
    ):
        self.installers = [
            ("secret", secret or SecretInstaller()),
            (
                "cloud controller manager",
                cloud_controller_manager or CloudControllerManagerInstaller(),
            ),
            ("CSI driver", csi_driver or CSIDriverInstaller()),
            (
                "system upgrade controller",
                system_upgrade_controller or SystemUpgradeControllerInstaller(),
            ),
            ("cluster autoscaler", cluster_autoscaler or ClusterAutoscalerInstaller()),
        ]
        self.console = console or Console()

    def dispatch(self, context) -> None:
        for name, installer in self.installers:
            self.console.print(f"\nInstalling {name}...")
            installer.install(context)
            self.console.print(f"...{name} installed.")
        logger.info("All installers completed")
