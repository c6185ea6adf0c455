"""Staged deployment of k3s to masters and workers.

Stages run strictly one after the other:

1. the primary master, alone, which initializes the cluster;
2. every other master, in parallel;
3. every worker, in parallel.

A stage only ends once all of its nodes have finished. If a remote command
failed on any node the run stops there with a StageFailedError. Local errors,
such as a failed template render or kubeconfig write, propagate unchanged. Nodes that were already
bootstrapped are left as they are, failed commands are not retried, and a
hung SSH command blocks its stage.
"""

import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from rich.console import Console

from cluster_bootstrap.bootstrap.context import InstallContext
from cluster_bootstrap.bootstrap.kubeconfig import finalize_kubeconfig
from cluster_bootstrap.bootstrap.scripts import ScriptTemplater
from cluster_bootstrap.exceptions import RemoteExecutionError, StageFailedError
from cluster_bootstrap.logging_config import get_logger
from cluster_bootstrap.models.node import Node

logger = get_logger(__name__)

# Printed by the k3s installer when the node already runs the requested setup
NO_CHANGE_MARKER = "No change detected"
SETTLING_INTERVAL = 10

PRIMARY_MASTER_STAGE = "primary master"
SECONDARY_MASTERS_STAGE = "secondary masters"
WORKERS_STAGE = "workers"


class DeploymentCoordinator:
    """Drives the three bootstrap stages over the remote executor."""

    def __init__(
        self,
        templater: ScriptTemplater | None = None,
        settling_interval: float = SETTLING_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
        console: Console | None = None,
    ):
        self.templater = templater or ScriptTemplater()
        self.settling_interval = settling_interval
        self.sleep = sleep
        self.console = console or Console()

    def deploy(self, context: InstallContext) -> Path:
        """Run all stages and return the path of the saved kubeconfig.

        Raises:
            StageFailedError: If a node of any stage failed
        """
        kubeconfig_path = self.deploy_primary_master(context)
        self.deploy_secondary_masters(context)
        self.deploy_workers(context)
        return kubeconfig_path

    def deploy_primary_master(self, context: InstallContext) -> Path:
        master = context.primary_master
        self.console.print(f"Deploying k3s to first master {master.name}...")

        try:
            script = self.templater.render_master_script(master, context)
            output = self._run_script(context, master, script)

            self.console.print("Waiting for the control plane to be ready...")
            if NO_CHANGE_MARKER not in output:
                logger.debug(f"Waiting {self.settling_interval}s for the control plane to settle")
                self.sleep(self.settling_interval)

            kubeconfig_path = finalize_kubeconfig(
                master,
                context.api_endpoint,
                context.settings.cluster_name,
                context.kubeconfig_path,
                context.executor,
                context.settings.ssh,
            )
        except RemoteExecutionError as e:
            logger.error(f"Stage '{PRIMARY_MASTER_STAGE}' failed on {master.name}: {e}")
            raise StageFailedError(PRIMARY_MASTER_STAGE, {master.name: e}) from e

        self.console.print(
            f"...k3s has been deployed to first master {master.name} and the control plane is up."
        )
        return kubeconfig_path

    def deploy_secondary_masters(self, context: InstallContext) -> None:
        def deploy_master(master: Node) -> None:
            self.console.print(f"Deploying k3s to master {master.name}...")
            self._run_script(context, master, self.templater.render_master_script(master, context))
            self.console.print(f"...k3s has been deployed to master {master.name}.")

        self._run_stage(SECONDARY_MASTERS_STAGE, context.secondary_masters, deploy_master)

    def deploy_workers(self, context: InstallContext) -> None:
        def deploy_worker(worker: Node) -> None:
            self.console.print(f"Deploying k3s to worker {worker.name}...")
            self._run_script(context, worker, context.worker_script)
            self.console.print(f"...k3s has been deployed to worker {worker.name}.")

        self._run_stage(WORKERS_STAGE, context.workers, deploy_worker)

    def _run_script(self, context: InstallContext, node: Node, script: str) -> str:
        ssh = context.settings.ssh
        return context.executor.run(node, ssh.port_for(node), script, ssh.use_agent)

    def _run_stage(self, stage: str, nodes: list[Node], task: Callable[[Node], None]) -> None:
        """Run ``task`` for every node concurrently and wait for all of them."""
        if not nodes:
            logger.debug(f"Stage '{stage}' has no nodes")
            return

        logger.info(f"Starting stage '{stage}' on {len(nodes)} node(s)")
        errors = {}

        with ThreadPoolExecutor(max_workers=len(nodes)) as pool:
            future_to_node = {pool.submit(task, node): node for node in nodes}

            for future in as_completed(future_to_node):
                node = future_to_node[future]
                try:
                    future.result()
                except RemoteExecutionError as e:
                    logger.error(f"Stage '{stage}' failed on {node.name}: {e}")
                    errors[node.name] = e

        if errors:
            failures = {node.name: errors[node.name] for node in nodes if node.name in errors}
            raise StageFailedError(stage, failures) from next(iter(failures.values()))

        logger.info(f"Stage '{stage}' completed on {len(nodes)} node(s)")
