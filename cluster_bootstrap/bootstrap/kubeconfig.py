"""Retrieval of the admin kubeconfig from the primary master."""

import os
from pathlib import Path

from cluster_bootstrap.logging_config import get_logger
from cluster_bootstrap.models.node import Node
from cluster_bootstrap.models.settings import SSHSettings

logger = get_logger(__name__)

REMOTE_KUBECONFIG_PATH = "/etc/rancher/k3s/k3s.yaml"
LOOPBACK_ADDRESS = "127.0.0.1"
DEFAULT_CONTEXT_NAME = "default"
KUBECONFIG_MODE = 0o600


def rewrite_kubeconfig(kubeconfig: str, endpoint: str, cluster_name: str) -> str:
    """Point the kubeconfig at the API endpoint and rename its context."""
    return kubeconfig.replace(LOOPBACK_ADDRESS, endpoint).replace(
        DEFAULT_CONTEXT_NAME, cluster_name
    )


def finalize_kubeconfig(
    primary_master: Node,
    endpoint: str,
    cluster_name: str,
    path: str | Path,
    executor,
    ssh: SSHSettings,
) -> Path:
    """Save a kubeconfig usable from outside the cluster.

    Any existing file at ``path`` is overwritten; the file is readable and
    writable by its owner only.

    Returns:
        Path of the written kubeconfig
    """
    path = Path(path).expanduser()
    logger.info(f"Saving the kubeconfig file to {path}")

    kubeconfig = executor.run(
        primary_master,
        ssh.port_for(primary_master),
        f"cat {REMOTE_KUBECONFIG_PATH}",
        ssh.use_agent,
        print_output=False,
    )

    path.parent.mkdir(parents=True, exist_ok=True)
    # Created owner-only; an existing file is tightened before any content lands
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KUBECONFIG_MODE)
    os.fchmod(fd, KUBECONFIG_MODE)
    with os.fdopen(fd, "w") as f:
        f.write(rewrite_kubeconfig(kubeconfig, endpoint, cluster_name))
    path.chmod(KUBECONFIG_MODE)

    return path
