"""Rendering of the per-role k3s install scripts."""

from typing import TYPE_CHECKING

from cluster_bootstrap.models.node import Node
from cluster_bootstrap.models.settings import DATASTORE_ETCD, ClusterSettings
from cluster_bootstrap.templating import (
    MASTER_INSTALL_SCRIPT,
    WORKER_INSTALL_SCRIPT,
    render_template,
)

if TYPE_CHECKING:
    from cluster_bootstrap.bootstrap.context import InstallContext

API_SERVER_PORT = 6443

CLUSTER_INIT = "--cluster-init"
ETCD_METRICS = "--etcd-expose-metrics=true"
MASTER_TAINT = "--node-taint CriticalAddonsOnly=true:NoExecute"

# (flag prefix, settings attribute) in the order they appear in the install command
EXTRA_ARGS_GROUPS = (
    ("kube-apiserver", "kube_api_server_args"),
    ("kube-scheduler", "kube_scheduler_args"),
    ("kube-controller-manager", "kube_controller_manager_args"),
    ("kube-cloud-controller-manager", "kube_cloud_controller_manager_args"),
    ("kubelet", "kubelet_args"),
    ("kube-proxy", "kube_proxy_args"),
)


def args_list(group: str, args: list[str]) -> str:
    """Render ``--<group>-arg="<value>"`` for every value, in order."""
    return " ".join(f'--{group}-arg="{arg}"' for arg in args)


def render_extra_args(settings: ClusterSettings) -> str:
    """Extra arguments of all control plane components as one string."""
    rendered = (args_list(group, getattr(settings, attr)) for group, attr in EXTRA_ARGS_GROUPS)
    return " ".join(part for part in rendered if part)


def taint_directive(settings: ClusterSettings) -> str:
    """Keep regular workloads off the masters unless explicitly allowed."""
    return "" if settings.schedule_workloads_on_masters else MASTER_TAINT


class ScriptTemplater:
    """Renders install scripts from opaque templates.

    Only the variables handed to the templates are defined here; the
    templates themselves are loaded once from the package at import time.
    """

    def __init__(
        self,
        master_template: str = MASTER_INSTALL_SCRIPT,
        worker_template: str = WORKER_INSTALL_SCRIPT,
    ):
        self.master_template = master_template
        self.worker_template = worker_template

    def master_variables(self, node: Node, context: "InstallContext") -> dict:
        """Template variables for a master.

        With the embedded etcd datastore the primary master initializes the
        cluster and the others join it through the API endpoint. With an
        external datastore every master just connects to the datastore.
        """
        settings = context.settings
        server = ""
        datastore_endpoint = ""
        etcd_arguments = ""

        if settings.datastore.mode == DATASTORE_ETCD:
            if context.is_primary(node):
                server = CLUSTER_INIT
            else:
                server = f"--server https://{context.api_endpoint}:{API_SERVER_PORT}"
            etcd_arguments = ETCD_METRICS
        else:
            endpoint = settings.datastore.external_datastore_endpoint
            datastore_endpoint = f"K3S_DATASTORE_ENDPOINT='{endpoint}'"

        return {
            "cluster_name": settings.cluster_name,
            "k3s_version": settings.k3s_version,
            "k3s_token": context.token,
            "disable_flannel": str(settings.disable_flannel).lower(),
            "flannel_backend": context.flannel_backend,
            "taint": taint_directive(settings),
            "extra_args": context.extra_args,
            "server": server,
            "tls_sans": " ".join(context.tls_sans),
            "private_network_test_ip": settings.private_network_test_ip,
            "cluster_cidr": settings.cluster_cidr,
            "service_cidr": settings.service_cidr,
            "cluster_dns": settings.cluster_dns,
            "datastore_endpoint": datastore_endpoint,
            "etcd_arguments": etcd_arguments,
        }

    def worker_variables(self, context: "InstallContext") -> dict:
        settings = context.settings
        return {
            "cluster_name": settings.cluster_name,
            "k3s_token": context.token,
            "k3s_version": settings.k3s_version,
            "first_master_private_ip_address": str(context.primary_master.private_ip),
            "private_network_test_ip": settings.private_network_test_ip,
        }

    def render_master_script(self, node: Node, context: "InstallContext") -> str:
        return render_template(self.master_template, self.master_variables(node, context))

    def render_worker_script(self, context: "InstallContext") -> str:
        """Worker script; identical for every worker."""
        return render_template(self.worker_template, self.worker_variables(context))
