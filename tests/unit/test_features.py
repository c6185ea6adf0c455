"""Tests for version-gated networking backend selection."""

import pytest

from cluster_bootstrap.bootstrap.features import (
    WIREGUARD_BACKEND,
    WIREGUARD_NATIVE_BACKEND,
    WIREGUARD_NATIVE_SINCE,
    resolve_networking_backend,
)
from cluster_bootstrap.exceptions import UnknownVersionError

RELEASES = [
    "v1.22.9+k3s1",
    "v1.23.5+k3s1",
    WIREGUARD_NATIVE_SINCE,
    "v1.24.1+k3s1",
    "v1.28.5+k3s1",
]


def test_encryption_disabled_returns_empty_flag():
    assert resolve_networking_backend("v1.28.5+k3s1", False, []) == ""


def test_encryption_disabled_does_not_need_the_version_in_the_catalog():
    assert resolve_networking_backend("v9.9.9+k3s1", False, RELEASES) == ""


def test_older_release_uses_legacy_wireguard():
    assert resolve_networking_backend("v1.23.5+k3s1", True, RELEASES) == WIREGUARD_BACKEND


def test_threshold_release_uses_native_wireguard():
    assert (
        resolve_networking_backend(WIREGUARD_NATIVE_SINCE, True, RELEASES)
        == WIREGUARD_NATIVE_BACKEND
    )


def test_newer_release_uses_native_wireguard():
    assert resolve_networking_backend("v1.28.5+k3s1", True, RELEASES) == WIREGUARD_NATIVE_BACKEND


def test_unknown_selected_version_fails():
    with pytest.raises(UnknownVersionError) as exc_info:
        resolve_networking_backend("v1.99.0+k3s1", True, RELEASES)

    assert exc_info.value.version == "v1.99.0+k3s1"


def test_catalog_without_threshold_fails():
    with pytest.raises(UnknownVersionError) as exc_info:
        resolve_networking_backend("v1.28.5+k3s1", True, ["v1.28.5+k3s1"])

    assert exc_info.value.version == WIREGUARD_NATIVE_SINCE
