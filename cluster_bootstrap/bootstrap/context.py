"""Per-run install context derived from settings and topology."""

from dataclasses import dataclass, field, replace
from pathlib import Path

from cluster_bootstrap.bootstrap.features import resolve_networking_backend
from cluster_bootstrap.bootstrap.scripts import render_extra_args
from cluster_bootstrap.bootstrap.token import negotiate_token
from cluster_bootstrap.bootstrap.topology import build_tls_sans, resolve_api_endpoint
from cluster_bootstrap.logging_config import get_logger
from cluster_bootstrap.models.node import LoadBalancer, Node
from cluster_bootstrap.models.settings import ClusterSettings, WorkerNodePool

logger = get_logger(__name__)


@dataclass(frozen=True)
class InstallContext:
    """Everything resolved for one bootstrap run. Never persisted."""

    settings: ClusterSettings
    masters: list[Node]
    workers: list[Node]
    load_balancer: LoadBalancer | None
    api_endpoint: str
    token: str
    tls_sans: list[str]
    flannel_backend: str
    extra_args: str
    executor: object
    kubectl: object
    worker_script: str = field(default="", repr=False)

    @property
    def primary_master(self) -> Node:
        return self.masters[0]

    @property
    def secondary_masters(self) -> list[Node]:
        return self.masters[1:]

    @property
    def kubeconfig_path(self) -> Path:
        return self.settings.resolved_kubeconfig_path()

    @property
    def autoscaling_pools(self) -> list[WorkerNodePool]:
        return self.settings.autoscaling_worker_node_pools

    def is_primary(self, node: Node) -> bool:
        return node.name == self.primary_master.name


def build_context(
    settings: ClusterSettings,
    masters: list[Node],
    workers: list[Node],
    load_balancer: LoadBalancer | None,
    executor,
    kubectl,
    release_catalog,
    templater,
    token: str | None = None,
) -> InstallContext:
    """Resolve endpoint, SANs, features and token, and render the worker script.

    The release catalog is only consulted when encryption is enabled. A given
    token is used as is and the primary master is not asked for one.
    """
    api_endpoint = resolve_api_endpoint(masters, load_balancer)
    logger.info(f"API endpoint: {api_endpoint}")

    tls_sans = build_tls_sans(api_endpoint, settings.api_server_hostname, load_balancer, masters)

    releases = release_catalog.available_releases() if settings.enable_encryption else []
    flannel_backend = resolve_networking_backend(
        settings.k3s_version, settings.enable_encryption, releases
    )

    if token is None:
        token = negotiate_token(masters[0], executor, settings.ssh)

    context = InstallContext(
        settings=settings,
        masters=list(masters),
        workers=list(workers),
        load_balancer=load_balancer,
        api_endpoint=api_endpoint,
        token=token,
        tls_sans=tls_sans,
        flannel_backend=flannel_backend,
        extra_args=render_extra_args(settings),
        executor=executor,
        kubectl=kubectl,
    )
    return replace(context, worker_script=templater.render_worker_script(context))
