"""Tests for the cloud credentials secret."""

from unittest.mock import Mock, patch

import pytest
from kubernetes.client.rest import ApiException

from cluster_bootstrap.exceptions import LocalCommandError
from cluster_bootstrap.software.secret import SECRET_NAME, SECRET_NAMESPACE, SecretInstaller


@pytest.fixture
def context(make_settings, tmp_path):
    return Mock(settings=make_settings(), kubeconfig_path=tmp_path / "kubeconfig")


def test_creates_secret(context):
    api = Mock()
    with patch.object(SecretInstaller, "_core_api", return_value=api):
        SecretInstaller().install(context)

    namespace, body = api.create_namespaced_secret.call_args.args
    assert namespace == SECRET_NAMESPACE
    assert body.metadata.name == SECRET_NAME
    assert body.string_data == {"token": "cloud-api-token", "network": "test"}
    api.replace_namespaced_secret.assert_not_called()


def test_existing_secret_is_replaced(context):
    api = Mock()
    api.create_namespaced_secret.side_effect = ApiException(status=409, reason="Conflict")
    with patch.object(SecretInstaller, "_core_api", return_value=api):
        SecretInstaller().install(context)

    api.replace_namespaced_secret.assert_called_once()


def test_api_error_is_reported(context):
    api = Mock()
    api.create_namespaced_secret.side_effect = ApiException(status=403, reason="Forbidden")
    with patch.object(SecretInstaller, "_core_api", return_value=api):
        with pytest.raises(LocalCommandError) as exc_info:
            SecretInstaller().install(context)

    assert "403" in exc_info.value.details
