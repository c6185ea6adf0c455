"""Cloud credentials secret used by the cloud controller manager and CSI driver."""

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from cluster_bootstrap.exceptions import LocalCommandError
from cluster_bootstrap.logging_config import get_logger

logger = get_logger(__name__)

SECRET_NAME = "hcloud"
SECRET_NAMESPACE = "kube-system"


class SecretInstaller:
    """Creates or updates the cloud API token secret."""

    def _core_api(self, kubeconfig_path) -> client.CoreV1Api:
        api_client = config.new_client_from_config(config_file=str(kubeconfig_path))
        return client.CoreV1Api(api_client)

    def install(self, context) -> None:
        settings = context.settings
        logger.info(f"Creating secret {SECRET_NAMESPACE}/{SECRET_NAME}")

        body = client.V1Secret(
            metadata=client.V1ObjectMeta(name=SECRET_NAME, namespace=SECRET_NAMESPACE),
            string_data={"token": settings.api_token, "network": settings.network_name},
        )
        api = self._core_api(context.kubeconfig_path)

        try:
            api.create_namespaced_secret(SECRET_NAMESPACE, body)
        except ApiException as e:
            if e.status != 409:
                raise LocalCommandError(
                    f"Failed to create secret {SECRET_NAMESPACE}/{SECRET_NAME}",
                    f"{e.status} {e.reason}",
                )
            logger.debug("Secret already exists, replacing it")
            try:
                api.replace_namespaced_secret(SECRET_NAME, SECRET_NAMESPACE, body)
            except ApiException as e:
                raise LocalCommandError(
                    f"Failed to update secret {SECRET_NAMESPACE}/{SECRET_NAME}",
                    f"{e.status} {e.reason}",
                )
