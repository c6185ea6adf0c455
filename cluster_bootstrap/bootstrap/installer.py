"""End-to-end bootstrap of a k3s cluster on provisioned machines."""

from rich.console import Console

from cluster_bootstrap.bootstrap.context import InstallContext, build_context
from cluster_bootstrap.bootstrap.coordinator import DeploymentCoordinator
from cluster_bootstrap.bootstrap.marking import NodeMarker
from cluster_bootstrap.bootstrap.scripts import ScriptTemplater
from cluster_bootstrap.kubectl import KubectlRunner, check_kubectl
from cluster_bootstrap.logging_config import get_logger
from cluster_bootstrap.models.node import LoadBalancer, Node
from cluster_bootstrap.models.settings import ClusterSettings
from cluster_bootstrap.releases import GitHubReleaseCatalog
from cluster_bootstrap.software.dispatcher import InstallerDispatcher
from cluster_bootstrap.ssh import SSHExecutor

logger = get_logger(__name__)


class ClusterInstaller:
    """Bootstraps k3s, marks the nodes and installs the cluster software.

    Collaborators default to the real implementations and can be replaced,
    e.g. with fakes in tests.
    """

    def __init__(
        self,
        settings: ClusterSettings,
        masters: list[Node],
        workers: list[Node],
        load_balancer: LoadBalancer | None = None,
        executor=None,
        kubectl=None,
        release_catalog=None,
        templater: ScriptTemplater | None = None,
        coordinator: DeploymentCoordinator | None = None,
        dispatcher: InstallerDispatcher | None = None,
        console: Console | None = None,
    ):
        self.settings = settings
        self.masters = masters
        self.workers = workers
        self.load_balancer = load_balancer
        self.console = console or Console()
        self.executor = executor or SSHExecutor(
            user=settings.ssh.user,
            private_key_path=settings.ssh.private_key_path,
            console=self.console,
        )
        self.kubectl = kubectl or KubectlRunner()
        self.release_catalog = release_catalog or GitHubReleaseCatalog()
        self.templater = templater or ScriptTemplater()
        self.coordinator = coordinator or DeploymentCoordinator(
            self.templater, console=self.console
        )
        self.dispatcher = dispatcher or InstallerDispatcher(console=self.console)

    def prepare(self) -> InstallContext:
        """Resolve everything the bootstrap needs without touching the nodes' k3s setup.

        Reads the join token from the primary master if it already has one.
        """
        return build_context(
            self.settings,
            self.masters,
            self.workers,
            self.load_balancer,
            self.executor,
            self.kubectl,
            self.release_catalog,
            self.templater,
        )

    def run(self) -> InstallContext:
        """Run the whole bootstrap.

        Raises:
            ClusterBootstrapError: On the first fatal failure; later steps are skipped
        """
        check_kubectl()

        self.console.print("\n=== Setting up Kubernetes ===\n")
        logger.info(
            f"Bootstrapping cluster '{self.settings.cluster_name}' with "
            f"{len(self.masters)} master(s) and {len(self.workers)} worker(s)"
        )

        context = self.prepare()
        self.coordinator.deploy(context)

        marker = NodeMarker(
            context.kubectl, context.kubeconfig_path, self.settings.api_token, self.console
        )
        marker.mark_masters(context.masters, self.settings.masters_pool)
        marker.mark_workers(
            context.workers, self.settings.worker_node_pools, self.settings.cluster_name
        )

        self.dispatcher.dispatch(context)

        logger.info(f"Cluster '{self.settings.cluster_name}' is ready")
        return context
