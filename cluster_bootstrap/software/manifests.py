"""Installers that apply a published manifest with kubectl."""

from cluster_bootstrap.logging_config import get_logger

logger = get_logger(__name__)


class ManifestInstaller:
    """Applies the manifest found at ``settings.manifests.<manifest_setting>``."""

    name = ""
    manifest_setting = ""

    def manifest_url(self, settings) -> str:
        return getattr(settings.manifests, self.manifest_setting)

    def install(self, context) -> None:
        url = self.manifest_url(context.settings)
        logger.info(f"Installing {self.name} from {url}")
        context.kubectl.run(
            ["kubectl", "apply", "-f", url],
            context.kubeconfig_path,
            context.settings.api_token,
        )


class CloudControllerManagerInstaller(ManifestInstaller):
    name = "cloud controller manager"
    manifest_setting = "cloud_controller_manager"


class CSIDriverInstaller(ManifestInstaller):
    name = "CSI driver"
    manifest_setting = "csi_driver"


class SystemUpgradeControllerInstaller(ManifestInstaller):
    name = "system upgrade controller"
    manifest_setting = "system_upgrade_controller"
