"""Tests for the cluster configuration."""

import pytest
import yaml
from conftest import make_master
from pydantic import ValidationError

from cluster_bootstrap.exceptions import ConfigurationError
from cluster_bootstrap.models import (
    AutoscalingSettings,
    ClusterSettings,
    DatastoreSettings,
    WorkerNodePool,
)
from cluster_bootstrap.models.settings import API_TOKEN_ENV


def write_config(tmp_path, data):
    path = tmp_path / "cluster.yml"
    path.write_text(yaml.safe_dump(data))
    return path


def test_load_valid_config(tmp_path, sample_config_data):
    settings = ClusterSettings.load(write_config(tmp_path, sample_config_data))

    assert settings.cluster_name == "test"
    assert settings.masters_pool.instance_count == 3
    assert str(settings.masters_pool.labels[0]) == "role=control-plane"
    assert str(settings.worker_node_pools[0].taints[0]) == "dedicated=small:NoSchedule"
    assert settings.datastore.mode == "etcd"
    assert settings.ssh.port == 22


def test_api_token_falls_back_to_environment(tmp_path, sample_config_data, monkeypatch):
    monkeypatch.setenv(API_TOKEN_ENV, "from-env")
    del sample_config_data["api_token"]

    settings = ClusterSettings.load(write_config(tmp_path, sample_config_data))

    assert settings.api_token == "from-env"


def test_settings_are_immutable(make_settings):
    settings = make_settings()

    with pytest.raises(ValidationError):
        settings.cluster_name = "other"


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError) as exc_info:
        ClusterSettings.load(tmp_path / "missing.yml")

    assert "not found" in exc_info.value.message


def test_invalid_yaml(tmp_path):
    path = tmp_path / "cluster.yml"
    path.write_text("cluster_name: [unclosed")

    with pytest.raises(ConfigurationError):
        ClusterSettings.load(path)


def test_config_must_be_a_mapping(tmp_path):
    with pytest.raises(ConfigurationError):
        ClusterSettings.load(write_config(tmp_path, ["not", "a", "mapping"]))


def test_invalid_values_are_reported(tmp_path, sample_config_data):
    sample_config_data["k3s_version"] = "1.28"

    with pytest.raises(ConfigurationError) as exc_info:
        ClusterSettings.load(write_config(tmp_path, sample_config_data))

    assert "k3s_version" in exc_info.value.details


def test_release_candidate_versions_are_accepted(make_settings):
    assert make_settings(k3s_version="v1.29.0-rc1+k3s1").k3s_version == "v1.29.0-rc1+k3s1"


def test_external_datastore_requires_endpoint():
    with pytest.raises(ValidationError):
        DatastoreSettings(mode="external")


def test_unknown_datastore_mode():
    with pytest.raises(ValidationError):
        DatastoreSettings(mode="sqlite")


def test_private_network_test_ip(make_settings):
    assert make_settings(private_network_subnet="192.168.12.0/24").private_network_test_ip == (
        "192.168.12.0"
    )


def test_network_name_prefers_existing_network(make_settings):
    assert make_settings().network_name == "test"
    assert make_settings(existing_network="shared").network_name == "shared"


def test_autoscaling_pools(make_settings):
    burst = WorkerNodePool(
        name="burst",
        instance_type="cpx31",
        autoscaling=AutoscalingSettings(enabled=True, min_instances=0, max_instances=3),
    )
    settings = make_settings(
        worker_node_pools=[WorkerNodePool(name="static", instance_type="cpx31"), burst]
    )

    assert settings.autoscaling_worker_node_pools == [burst]


def test_autoscaling_bounds():
    with pytest.raises(ValidationError):
        AutoscalingSettings(enabled=True, min_instances=3, max_instances=1)


def test_ssh_port_override(make_settings):
    settings = make_settings()
    node = make_master(1).model_copy(update={"ssh_port": 2222})

    assert settings.ssh.port_for(make_master(1)) == 22
    assert settings.ssh.port_for(node) == 2222


def test_save_omits_api_token(tmp_path, make_settings):
    path = tmp_path / "saved.yml"
    make_settings().save(str(path))

    saved = yaml.safe_load(path.read_text())
    assert "api_token" not in saved
    assert saved["cluster_name"] == "test"
