"""Cluster autoscaler for worker pools with autoscaling enabled.

Autoscaled workers boot from cloud-init that runs the same worker install
script as the statically provisioned workers.
"""

import base64

from cluster_bootstrap.logging_config import get_logger
from cluster_bootstrap.models.settings import ClusterSettings
from cluster_bootstrap.templating import CLUSTER_AUTOSCALER_MANIFEST, render_template

logger = get_logger(__name__)

CA_CERTIFICATES_PATH = "/etc/ssl/certs/ca-certificates.crt"
CA_BUNDLE_PATH = "/etc/ssl/certs/ca-bundle.crt"
WORKER_SCRIPT_PATH = "/etc/k3s-bootstrap/worker_install_script.sh"


def node_pool_args(settings: ClusterSettings) -> list[str]:
    """``--nodes=min:max:TYPE:LOCATION:<cluster>-pool-<name>`` for every autoscaled pool."""
    return [
        f"--nodes={pool.autoscaling.min_instances}:{pool.autoscaling.max_instances}:"
        f"{pool.instance_type.upper()}:{pool.location.upper()}:"
        f"{settings.cluster_name}-pool-{pool.name}"
        for pool in settings.autoscaling_worker_node_pools
    ]


def cloud_init(worker_script: str) -> str:
    """Base64 encoded cloud-init running the worker install script."""
    indented = "\n".join(f"      {line}" for line in worker_script.splitlines())
    document = (
        "#cloud-config\n"
        "write_files:\n"
        f"  - path: {WORKER_SCRIPT_PATH}\n"
        '    permissions: "0755"\n'
        "    content: |\n"
        f"{indented}\n"
        "runcmd:\n"
        f"  - bash {WORKER_SCRIPT_PATH}\n"
    )
    return base64.b64encode(document.encode()).decode()


class ClusterAutoscalerInstaller:
    """Deploys the cluster autoscaler when at least one pool autoscales."""

    def certificate_path(self, context) -> str:
        """CA bundle location on the masters, which differs between distributions."""
        master = context.primary_master
        ssh = context.settings.ssh
        output = context.executor.run(
            master,
            ssh.port_for(master),
            f"[ -f {CA_CERTIFICATES_PATH} ] && echo 1 || echo 2",
            ssh.use_agent,
            print_output=False,
        )
        return CA_CERTIFICATES_PATH if output.strip() == "1" else CA_BUNDLE_PATH

    def render_manifest(self, context, certificate_path: str) -> str:
        settings = context.settings
        return render_template(
            CLUSTER_AUTOSCALER_MANIFEST,
            {
                "image": settings.manifests.cluster_autoscaler_image,
                "node_pool_args": node_pool_args(settings),
                "cloud_init": cloud_init(context.worker_script),
                "network_name": settings.network_name,
                "cluster_name": settings.cluster_name,
                "certificate_path": certificate_path,
            },
        )

    def install(self, context) -> None:
        if not context.autoscaling_pools:
            logger.info("No autoscaling worker pools, skipping cluster autoscaler")
            return

        logger.info(f"Installing cluster autoscaler for {len(context.autoscaling_pools)} pool(s)")
        manifest = self.render_manifest(context, self.certificate_path(context))
        context.kubectl.run(
            ["kubectl", "apply", "-f", "-"],
            context.kubeconfig_path,
            context.settings.api_token,
            input=manifest,
        )
