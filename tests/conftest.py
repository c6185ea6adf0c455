"""Pytest configuration and shared fixtures."""

import threading
from dataclasses import dataclass

import pytest
from hypothesis import Verbosity, settings

from cluster_bootstrap.models import (
    ClusterSettings,
    LoadBalancer,
    MasterNodePool,
    Node,
    WorkerNodePool,
)

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")

SAMPLE_KUBECONFIG = """apiVersion: v1
clusters:
- cluster:
    server: https://127.0.0.1:6443
  name: default
contexts:
- context:
    cluster: default
    user: default
  name: default
current-context: default
users:
- name: default
"""


@dataclass
class RemoteCall:
    node: str
    port: int
    command: str
    use_agent: bool
    print_output: bool


class FakeExecutor:
    """Remote executor recording every call instead of using SSH.

    ``outputs`` and ``failures`` are keyed by ``(node name, command fragment)``;
    the first entry whose fragment occurs in the command applies. An empty
    fragment matches any command.
    """

    def __init__(self, outputs=None, failures=None):
        self.outputs = outputs or {}
        self.failures = failures or {}
        self.calls: list[RemoteCall] = []
        self._lock = threading.Lock()

    def run(self, node, port, command, use_agent, print_output=True):
        with self._lock:
            self.calls.append(RemoteCall(node.name, port, command, use_agent, print_output))

        for (name, fragment), error in self.failures.items():
            if name == node.name and fragment in command:
                raise error

        for (name, fragment), output in self.outputs.items():
            if name == node.name and fragment in command:
                return output

        return ""

    def calls_for(self, node_name: str) -> list[RemoteCall]:
        return [call for call in self.calls if call.node == node_name]

    def nodes_called(self) -> list[str]:
        return [call.node for call in self.calls]


@dataclass
class LocalCall:
    command: list[str]
    kubeconfig_path: object
    api_token: str
    input: str | None


class FakeKubectl:
    """Local command runner recording the commands it was given."""

    def __init__(self, failures=None):
        self.failures = failures or {}
        self.calls: list[LocalCall] = []

    def run(self, command, kubeconfig_path, api_token, input=None):
        self.calls.append(LocalCall(list(command), kubeconfig_path, api_token, input))
        for fragment, error in self.failures.items():
            if fragment in " ".join(command):
                raise error
        return ""

    @property
    def commands(self) -> list[list[str]]:
        return [call.command for call in self.calls]


def make_master(index: int, cluster: str = "test") -> Node:
    return Node(
        name=f"{cluster}-cpx21-master{index}",
        role="master",
        public_ip=f"203.0.113.{10 + index}",
        private_ip=f"10.0.0.{10 + index}",
    )


def make_worker(index: int, pool: str = "small", instance_type: str = "cpx31") -> Node:
    return Node(
        name=f"test-{instance_type}-pool-{pool}-worker{index}",
        role="worker",
        public_ip=f"203.0.113.{100 + index}",
        private_ip=f"10.0.1.{index}",
    )


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def fake_kubectl():
    return FakeKubectl()


@pytest.fixture
def make_settings(tmp_path):
    """Factory for cluster settings writing the kubeconfig below tmp_path."""

    def _make(**overrides) -> ClusterSettings:
        values = {
            "cluster_name": "test",
            "k3s_version": "v1.28.5+k3s1",
            "api_token": "cloud-api-token",
            "kubeconfig_path": str(tmp_path / "kubeconfig"),
            "masters_pool": MasterNodePool(instance_type="cpx21", instance_count=1),
            "worker_node_pools": [
                WorkerNodePool(name="small", instance_type="cpx31", instance_count=3)
            ],
        }
        values.update(overrides)
        return ClusterSettings(**values)

    return _make


@pytest.fixture
def single_master():
    return [make_master(1)]


@pytest.fixture
def three_masters():
    return [make_master(1), make_master(2), make_master(3)]


@pytest.fixture
def three_workers():
    return [make_worker(1), make_worker(2), make_worker(3)]


@pytest.fixture
def load_balancer():
    return LoadBalancer(public_ip="203.0.113.5", private_ip="10.0.0.5")


@pytest.fixture
def sample_inventory_data():
    """Sample inventory data for testing."""
    return {
        "load_balancer": {"public_ip": "203.0.113.5", "private_ip": "10.0.0.5"},
        "masters": {
            "test-cpx21-master1": {"public_ip": "203.0.113.11", "private_ip": "10.0.0.11"},
            "test-cpx21-master2": {"public_ip": "203.0.113.12", "private_ip": "10.0.0.12"},
            "test-cpx21-master3": {"public_ip": "203.0.113.13", "private_ip": "10.0.0.13"},
        },
        "workers": {
            "test-cpx31-pool-small-worker1": {
                "public_ip": "203.0.113.101",
                "private_ip": "10.0.1.1",
            },
            "gpu-box": {
                "public_ip": "203.0.113.150",
                "private_ip": "10.0.1.50",
                "pool": "gpu",
                "ssh_port": 2222,
            },
        },
    }


@pytest.fixture
def sample_config_data():
    """Sample cluster configuration for testing."""
    return {
        "cluster_name": "test",
        "k3s_version": "v1.28.5+k3s1",
        "api_token": "cloud-api-token",
        "masters_pool": {
            "instance_type": "cpx21",
            "instance_count": 3,
            "location": "nbg1",
            "labels": [{"key": "role", "value": "control-plane"}],
        },
        "worker_node_pools": [
            {
                "name": "small",
                "instance_type": "cpx31",
                "instance_count": 1,
                "location": "nbg1",
                "taints": [{"key": "dedicated", "value": "small:NoSchedule"}],
            }
        ],
    }
