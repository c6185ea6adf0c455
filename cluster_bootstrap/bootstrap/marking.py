"""Labels and taints for master and worker nodes."""

from pathlib import Path

from rich.console import Console

from cluster_bootstrap.logging_config import get_logger
from cluster_bootstrap.models.node import Mark, Node
from cluster_bootstrap.models.settings import MasterNodePool, WorkerNodePool

logger = get_logger(__name__)

LABEL = "label"
TAINT = "taint"


def build_mark_command(kind: str, node_names: list[str], marks: list[Mark]) -> list[str]:
    """Single kubectl command applying every mark to every node."""
    if kind not in (LABEL, TAINT):
        raise ValueError(f"kind must be '{LABEL}' or '{TAINT}', got '{kind}'")
    return ["kubectl", kind, "--overwrite", "nodes", *node_names, *(str(m) for m in marks)]


def select_pool_nodes(workers: list[Node], cluster_name: str, pool: WorkerNodePool) -> list[Node]:
    """Workers belonging to a pool, in inventory order."""
    return [w for w in workers if w.in_pool(cluster_name, pool.instance_type, pool.name)]


class NodeMarker:
    """Applies labels and taints through kubectl, one batch per node group."""

    def __init__(
        self,
        kubectl,
        kubeconfig_path: str | Path,
        api_token: str,
        console: Console | None = None,
    ):
        self.kubectl = kubectl
        self.kubeconfig_path = kubeconfig_path
        self.api_token = api_token
        self.console = console or Console()

    def apply_marks(self, kind: str, nodes: list[Node], marks: list[Mark], group: str = "") -> bool:
        """Apply marks to nodes in one command.

        Returns:
            False if there was nothing to apply, True otherwise

        Raises:
            LocalCommandError: If kubectl fails
        """
        if not marks or not nodes:
            return False

        command = build_mark_command(kind, [n.name for n in nodes], marks)
        self.console.print(f"\nAdding {kind}s to {group or 'nodes'}...")
        logger.info(f"Applying {len(marks)} {kind}(s) to {len(nodes)} node(s)")

        self.kubectl.run(command, self.kubeconfig_path, self.api_token)

        self.console.print("...done.")
        return True

    def mark_masters(self, masters: list[Node], pool: MasterNodePool) -> None:
        self.apply_marks(LABEL, masters, pool.labels, "masters")
        self.apply_marks(TAINT, masters, pool.taints, "masters")

    def mark_workers(
        self, workers: list[Node], pools: list[WorkerNodePool], cluster_name: str
    ) -> None:
        """Apply each pool's marks to the workers of that pool.

        A pool without matching workers is skipped.
        """
        for pool in pools:
            nodes = select_pool_nodes(workers, cluster_name, pool)
            if not nodes:
                logger.debug(f"No workers found for pool '{pool.name}'")
                continue

            self.apply_marks(LABEL, nodes, pool.labels, f"workers of pool {pool.name}")
            self.apply_marks(TAINT, nodes, pool.taints, f"workers of pool {pool.name}")
