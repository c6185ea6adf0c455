"""Remote command execution on cluster nodes over SSH."""

from pathlib import Path

import paramiko
from rich.console import Console

from cluster_bootstrap.exceptions import RemoteExecutionError
from cluster_bootstrap.logging_config import get_logger
from cluster_bootstrap.models.node import Node

logger = get_logger(__name__)

# Lines of output kept in the error details of a failed command
OUTPUT_TAIL_LINES = 20


class SSHExecutor:
    """Runs commands and scripts on nodes, one SSH connection per call.

    Connections are never shared, so concurrent calls for different nodes
    are safe.
    """

    def __init__(
        self,
        user: str = "root",
        private_key_path: str | None = None,
        connect_timeout: float = 30.0,
        console: Console | None = None,
    ):
        self.user = user
        self.private_key_path = (
            str(Path(private_key_path).expanduser()) if private_key_path else None
        )
        self.connect_timeout = connect_timeout
        self.console = console or Console()

    def _connect(self, node: Node, port: int, use_agent: bool) -> paramiko.SSHClient:
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        try:
            client.connect(
                hostname=str(node.public_ip),
                port=port,
                username=self.user,
                key_filename=None if use_agent else self.private_key_path,
                allow_agent=use_agent,
                look_for_keys=False,
                timeout=self.connect_timeout,
            )
        except (paramiko.SSHException, OSError) as e:
            client.close()
            logger.error(f"SSH connection to {node.name} ({node.public_ip}:{port}) failed: {e}")
            raise RemoteExecutionError(
                f"Failed to connect to {node.name} ({node.public_ip}:{port})",
                f"{e}\n\nCheck that the node is reachable and that the SSH key "
                "or agent is configured for this user.",
                node=node.name,
            )

        return client

    def run(
        self,
        node: Node,
        port: int,
        command: str,
        use_agent: bool,
        print_output: bool = True,
    ) -> str:
        """Run a command or script on a node and return its output.

        The text is fed to ``bash -s`` on stdin, so multi-line install scripts
        and one-line commands are handled the same way. stderr is merged into
        the returned output.

        Raises:
            RemoteExecutionError: On connection failure or non-zero exit status
        """
        logger.debug(f"Running command on {node.name}:{port}")
        client = self._connect(node, port, use_agent)

        try:
            channel = client.get_transport().open_session()
            channel.set_combine_stderr(True)
            channel.exec_command("bash -s")
            channel.sendall(command.encode())
            channel.shutdown_write()

            lines = []
            # Remote output is not guaranteed to be UTF-8
            for raw in channel.makefile("rb"):
                line = raw.decode("utf-8", errors="replace")
                lines.append(line)
                if print_output:
                    self.console.print(
                        f"[{node.name}] {line.rstrip()}", markup=False, highlight=False
                    )

            exit_status = channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            logger.error(f"SSH session on {node.name} failed: {e}")
            raise RemoteExecutionError(
                f"SSH session on {node.name} failed", str(e), node=node.name
            )
        finally:
            client.close()

        output = "".join(lines)
        if exit_status != 0:
            logger.error(f"Command on {node.name} exited with status {exit_status}")
            raise RemoteExecutionError(
                f"Command failed on {node.name} with exit status {exit_status}",
                "".join(lines[-OUTPUT_TAIL_LINES:]).strip() or None,
                node=node.name,
                exit_status=exit_status,
            )

        return output
