"""Negotiation of the cluster join token."""

import secrets

from cluster_bootstrap.exceptions import RemoteExecutionError, TokenRetrievalFailure
from cluster_bootstrap.logging_config import get_logger
from cluster_bootstrap.models.node import Node
from cluster_bootstrap.models.settings import SSHSettings

logger = get_logger(__name__)

NODE_TOKEN_PATH = "/var/lib/rancher/k3s/server/node-token"
TOKEN_BYTES = 16


def generate_token() -> str:
    """New random join secret, hex encoded (32 characters)."""
    return secrets.token_hex(TOKEN_BYTES)


def read_token(primary_master: Node, executor, ssh: SSHSettings) -> str:
    """Read the join secret of an already initialized primary master.

    The node token file holds ``<server-id>:<secret>``; only the part after
    the last colon is the secret.

    Raises:
        TokenRetrievalFailure: If the file cannot be read or is empty
    """
    try:
        output = executor.run(
            primary_master,
            ssh.port_for(primary_master),
            f"cat {NODE_TOKEN_PATH}",
            ssh.use_agent,
            print_output=False,
        )
    except RemoteExecutionError as e:
        raise TokenRetrievalFailure(
            f"Could not read the join token from {primary_master.name}", e.message
        )

    secret = output.strip().rsplit(":", 1)[-1]
    if not secret:
        raise TokenRetrievalFailure(f"Join token on {primary_master.name} is empty")

    return secret


def negotiate_token(primary_master: Node, executor, ssh: SSHSettings) -> str:
    """Reuse the join secret of the primary master, or create a new one.

    The result is not stored anywhere; reruns find the token again on the
    primary master once it has been bootstrapped.
    """
    try:
        token = read_token(primary_master, executor, ssh)
        logger.info(f"Reusing existing join token from {primary_master.name}")
        return token
    except TokenRetrievalFailure as e:
        logger.info(f"{e.message}; generating a new join token")
        return generate_token()
