"""Local execution of cluster-management commands."""

import os
import shutil
import subprocess
from pathlib import Path

from cluster_bootstrap.exceptions import LocalCommandError
from cluster_bootstrap.logging_config import get_logger
from cluster_bootstrap.models.settings import API_TOKEN_ENV

logger = get_logger(__name__)


def check_kubectl() -> None:
    """Make sure kubectl is installed.

    Raises:
        LocalCommandError: If kubectl is not in PATH
    """
    if shutil.which("kubectl") is None:
        logger.error("kubectl binary not found in PATH")
        raise LocalCommandError(
            "kubectl is not installed or not in PATH",
            "Install kubectl from https://kubernetes.io/docs/tasks/tools/\n"
            "Or ensure the 'kubectl' command is in your PATH",
        )


class KubectlRunner:
    """Runs kubectl (or any local command) against the bootstrapped cluster."""

    def run(
        self,
        command: list[str],
        kubeconfig_path: str | Path,
        api_token: str,
        input: str | None = None,
    ) -> str:
        """Run a local command with the cluster credentials in its environment.

        Args:
            command: Command and arguments
            kubeconfig_path: Kubeconfig exported as KUBECONFIG
            api_token: Cloud API token exported for tools that need it
            input: Optional text passed on stdin

        Returns:
            Standard output of the command

        Raises:
            LocalCommandError: If the command is missing or exits non-zero
        """
        env = {
            **os.environ,
            "KUBECONFIG": str(Path(kubeconfig_path).expanduser()),
            API_TOKEN_ENV: api_token,
        }
        printable = " ".join(command)
        logger.debug(f"Running local command: {printable}")

        try:
            result = subprocess.run(
                command,
                input=input,
                capture_output=True,
                text=True,
                check=True,
                env=env,
            )
        except FileNotFoundError:
            logger.error(f"Command not found: {command[0]}")
            raise LocalCommandError(
                f"Command not found: {command[0]}",
                f"Ensure '{command[0]}' is installed and in your PATH",
            )
        except subprocess.CalledProcessError as e:
            logger.error(f"Command '{printable}' failed with return code {e.returncode}")
            raise LocalCommandError(
                f"Command failed with return code {e.returncode}: {printable}",
                (e.stderr or e.stdout or "").strip() or None,
            )

        logger.debug(f"Command completed: {printable}")
        return result.stdout
