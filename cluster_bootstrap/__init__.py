"""Bootstrap multi-node k3s clusters on provisioned machines."""

__version__ = "0.1.0"
