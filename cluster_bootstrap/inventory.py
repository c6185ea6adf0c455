"""Inventory of provisioned machines.

This module reads the YAML file describing the machines a cluster is
bootstrapped on, using ruamel.yaml so that the order of the masters (the
first one is the primary master) is exactly the order in the file.

Expected layout::

    load_balancer:            # only for multi-master clusters
      public_ip: 203.0.113.10
      private_ip: 10.0.0.2
    masters:
      mycluster-cpx21-master1:
        public_ip: 203.0.113.11
        private_ip: 10.0.0.3
    workers:
      mycluster-cpx31-pool-small-worker1:
        public_ip: 203.0.113.21
        private_ip: 10.0.0.11
        pool: small             # optional, otherwise derived from the name
"""

from pathlib import Path

from ruamel.yaml import YAML

from cluster_bootstrap.exceptions import ClusterBootstrapError
from cluster_bootstrap.logging_config import get_logger
from cluster_bootstrap.models.node import MASTER_ROLE, WORKER_ROLE, LoadBalancer, Node

logger = get_logger(__name__)

GROUPS = {"masters": MASTER_ROLE, "workers": WORKER_ROLE}


class InventoryError(ClusterBootstrapError):
    """Base exception for inventory operations."""

    pass


class InventoryValidationError(InventoryError):
    """Exception raised when inventory validation fails."""

    pass


class InventoryManager:
    """Reader for the machine inventory."""

    def __init__(self, inventory_path: str | Path):
        """Initialize inventory manager.

        Args:
            inventory_path: Path to the inventory file
        """
        self.inventory_path = Path(inventory_path)
        self.yaml = YAML(typ="rt")

    def read(self) -> dict:
        """Read inventory file and return parsed data.

        Returns:
            Dictionary containing inventory data

        Raises:
            InventoryError: If file cannot be read or parsed
        """
        logger.debug(f"Reading inventory file: {self.inventory_path}")

        if not self.inventory_path.exists():
            logger.error(f"Inventory file not found: {self.inventory_path}")
            raise InventoryError(
                f"Inventory file not found: {self.inventory_path}",
                f"Expected location: {self.inventory_path.absolute()}\n"
                f"Create the file or specify a different path with --inventory",
            )

        try:
            with open(self.inventory_path) as f:
                data = self.yaml.load(f)
        except Exception as e:
            logger.error(f"Failed to read inventory file: {e}", exc_info=True)
            raise InventoryError(
                f"Failed to read inventory file: {e}",
                f"The file may have invalid YAML syntax. "
                f"Check the file at: {self.inventory_path.absolute()}",
            )

        if data is None:
            logger.error("Inventory file is empty")
            raise InventoryError(
                "Inventory file is empty",
                "The inventory file exists but contains no data.",
            )

        logger.debug(f"Successfully read inventory with {len(data)} top-level keys")
        return data

    def validate(self, data: dict) -> None:
        """Validate inventory structure and required fields.

        Args:
            data: Dictionary containing inventory data

        Raises:
            InventoryValidationError: If validation fails
        """
        if not isinstance(data, dict):
            raise InventoryValidationError("Inventory must be a dictionary")

        if not data.get("masters"):
            raise InventoryValidationError("Inventory must list at least one master")

        for group in GROUPS:
            hosts = data.get(group) or {}
            if not isinstance(hosts, dict):
                raise InventoryValidationError(f"Group '{group}' must be a dictionary")

            for name, host_data in hosts.items():
                self._validate_host(name, host_data, group)

        load_balancer = data.get("load_balancer")
        if load_balancer is not None:
            try:
                LoadBalancer(**load_balancer)
            except Exception as e:
                raise InventoryValidationError(f"Load balancer validation failed: {e}")

    def _validate_host(self, name: str, host_data: dict, group: str) -> None:
        """Validate a single host entry.

        Raises:
            InventoryValidationError: If host validation fails
        """
        if not isinstance(host_data, dict):
            raise InventoryValidationError(f"Host '{name}' in group '{group}' must be a dictionary")

        for field in ("public_ip", "private_ip"):
            if field not in host_data:
                raise InventoryValidationError(
                    f"Host '{name}' in group '{group}' missing required field: {field}"
                )

        try:
            Node.from_inventory_dict(name, dict(host_data), GROUPS[group])
        except Exception as e:
            raise InventoryValidationError(
                f"Host '{name}' in group '{group}' validation failed: {e}"
            )

    def _load(self) -> dict:
        data = self.read()
        self.validate(data)
        return data

    def get_nodes(self, group: str) -> list[Node]:
        """Get the nodes of one group in file order.

        Args:
            group: 'masters' or 'workers'
        """
        if group not in GROUPS:
            raise InventoryError(f"Unknown inventory group '{group}'")

        hosts = self._load().get(group) or {}
        return [
            Node.from_inventory_dict(name, dict(host_data), GROUPS[group])
            for name, host_data in hosts.items()
        ]

    def get_masters(self) -> list[Node]:
        return self.get_nodes("masters")

    def get_workers(self) -> list[Node]:
        return self.get_nodes("workers")

    def get_load_balancer(self) -> LoadBalancer | None:
        load_balancer = self._load().get("load_balancer")
        if load_balancer is None:
            return None
        return LoadBalancer(**load_balancer)
