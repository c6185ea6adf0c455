"""API endpoint and certificate SAN derivation from the cluster topology."""

from cluster_bootstrap.exceptions import TopologyError
from cluster_bootstrap.models.node import LoadBalancer, Node


def resolve_api_endpoint(masters: list[Node], load_balancer: LoadBalancer | None) -> str:
    """Address clients and joining nodes use to reach the API server.

    Multi-master clusters are reached through the load balancer, a single
    master directly.

    Raises:
        TopologyError: If there are no masters, or several masters and no load balancer
    """
    if not masters:
        raise TopologyError("At least one master is required to bootstrap a cluster")

    if len(masters) > 1:
        if load_balancer is None:
            raise TopologyError(
                f"Cluster has {len(masters)} masters but no load balancer",
                "Multi-master clusters need a load balancer in front of the API servers. "
                "Add a 'load_balancer' entry to the inventory.",
            )
        return str(load_balancer.public_ip)

    return str(masters[0].public_ip)


def build_tls_sans(
    endpoint: str,
    hostname: str | None,
    load_balancer: LoadBalancer | None,
    masters: list[Node],
) -> list[str]:
    """``--tls-san`` flags the API server certificate must carry.

    The order is fixed (endpoint, hostname, load balancer, masters in order)
    so reapplying the same configuration renders identical scripts.
    """
    sans = [f"--tls-san={endpoint}"]

    if hostname:
        sans.append(f"--tls-san={hostname}")

    if len(masters) > 1:
        if load_balancer is None:
            raise TopologyError(f"Cluster has {len(masters)} masters but no load balancer")
        sans.append(f"--tls-san={load_balancer.private_ip}")

    for master in masters:
        sans.append(f"--tls-san={master.private_ip}")

    return sans
