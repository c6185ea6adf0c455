"""End-to-end tests of the bootstrap run with fake collaborators."""

from unittest.mock import Mock, patch

import pytest
from conftest import SAMPLE_KUBECONFIG, FakeExecutor, FakeKubectl
from rich.console import Console

from cluster_bootstrap.bootstrap.coordinator import DeploymentCoordinator
from cluster_bootstrap.bootstrap.installer import ClusterInstaller
from cluster_bootstrap.bootstrap.kubeconfig import REMOTE_KUBECONFIG_PATH
from cluster_bootstrap.bootstrap.token import NODE_TOKEN_PATH
from cluster_bootstrap.exceptions import (
    LocalCommandError,
    RemoteExecutionError,
    StageFailedError,
)
from cluster_bootstrap.models import Mark, MasterNodePool, WorkerNodePool
from cluster_bootstrap.releases import StaticReleaseCatalog


@pytest.fixture
def run_installer(make_settings, three_masters, three_workers, load_balancer):
    def _run(executor, kubectl=None, dispatcher=None, **settings_overrides):
        settings = make_settings(**settings_overrides)
        installer = ClusterInstaller(
            settings,
            three_masters,
            three_workers,
            load_balancer,
            executor=executor,
            kubectl=kubectl or FakeKubectl(),
            release_catalog=StaticReleaseCatalog([]),
            coordinator=DeploymentCoordinator(sleep=lambda _: None, console=Console(quiet=True)),
            dispatcher=dispatcher or Mock(),
            console=Console(quiet=True),
        )
        with patch("cluster_bootstrap.bootstrap.installer.check_kubectl"):
            return installer.run()

    return _run


def executor_for(masters, token_output=""):
    return FakeExecutor(
        outputs={
            (masters[0].name, REMOTE_KUBECONFIG_PATH): SAMPLE_KUBECONFIG,
            (masters[0].name, NODE_TOKEN_PATH): token_output,
        }
    )


def test_run_deploys_marks_and_dispatches(run_installer, three_masters, three_workers):
    executor = executor_for(three_masters)
    kubectl = FakeKubectl()
    dispatcher = Mock()

    context = run_installer(
        executor,
        kubectl,
        dispatcher,
        masters_pool=MasterNodePool(instance_type="cpx21", labels=[Mark(key="role", value="cp")]),
        worker_node_pools=[
            WorkerNodePool(
                name="small", instance_type="cpx31", labels=[Mark(key="size", value="s")]
            )
        ],
    )

    assert NODE_TOKEN_PATH in executor.calls[0].command
    assert context.kubeconfig_path.exists()
    assert kubectl.commands == [
        ["kubectl", "label", "--overwrite", "nodes", *(m.name for m in three_masters), "role=cp"],
        ["kubectl", "label", "--overwrite", "nodes", *(w.name for w in three_workers), "size=s"],
    ]
    dispatcher.dispatch.assert_called_once_with(context)


def test_existing_token_is_used_by_every_node(run_installer, three_masters):
    executor = executor_for(three_masters, token_output="K10abc::server:existing\n")

    context = run_installer(executor)

    assert context.token == "existing"
    install_calls = [c for c in executor.calls if "get.k3s.io" in c.command]
    assert len(install_calls) == 6
    assert all('K3S_TOKEN="existing"' in c.command for c in install_calls)


def test_generated_token_is_shared_by_every_node(run_installer, three_masters):
    executor = executor_for(three_masters)

    context = run_installer(executor)

    install_calls = [c for c in executor.calls if "get.k3s.io" in c.command]
    assert all(f'K3S_TOKEN="{context.token}"' in c.command for c in install_calls)


def test_missing_kubectl_aborts_before_contacting_nodes(make_settings, three_masters):
    executor = FakeExecutor()
    installer = ClusterInstaller(
        make_settings(), three_masters, [], executor=executor, console=Console(quiet=True)
    )

    with patch(
        "cluster_bootstrap.bootstrap.installer.check_kubectl",
        side_effect=LocalCommandError("kubectl is not installed or not in PATH"),
    ):
        with pytest.raises(LocalCommandError):
            installer.run()

    assert executor.calls == []


def test_stage_failure_skips_marking_and_installers(run_installer, three_masters, three_workers):
    executor = executor_for(three_masters)
    executor.failures = {(three_workers[1].name, ""): RemoteExecutionError("install failed")}
    kubectl = FakeKubectl()
    dispatcher = Mock()

    with pytest.raises(StageFailedError):
        run_installer(
            executor,
            kubectl,
            dispatcher,
            masters_pool=MasterNodePool(
                instance_type="cpx21", labels=[Mark(key="role", value="cp")]
            ),
        )

    assert kubectl.calls == []
    dispatcher.dispatch.assert_not_called()
