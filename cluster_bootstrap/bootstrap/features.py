"""Version-gated install flags."""

from collections.abc import Sequence

from cluster_bootstrap.exceptions import UnknownVersionError

# First k3s release shipping the in-kernel wireguard flannel backend
WIREGUARD_NATIVE_SINCE = "v1.23.6+k3s1"

WIREGUARD_NATIVE_BACKEND = "--flannel-backend=wireguard-native"
WIREGUARD_BACKEND = "--flannel-backend=wireguard"


def _release_index(version: str, releases: Sequence[str]) -> int:
    try:
        return releases.index(version)
    except ValueError:
        raise UnknownVersionError(
            version,
            f"The release catalog lists {len(releases)} releases. "
            "Check the version with 'k3s-bootstrap releases'.",
        )


def resolve_networking_backend(
    selected_version: str, encryption_enabled: bool, releases: Sequence[str]
) -> str:
    """Flannel backend flag for the selected k3s release.

    Args:
        selected_version: k3s release being installed
        encryption_enabled: Whether pod traffic must be encrypted
        releases: Release catalog, oldest first

    Returns:
        The backend flag, or an empty string when encryption is disabled

    Raises:
        UnknownVersionError: If the selected or threshold release is not in the catalog
    """
    if not encryption_enabled:
        return ""

    selected_index = _release_index(selected_version, releases)
    threshold_index = _release_index(WIREGUARD_NATIVE_SINCE, releases)

    if selected_index >= threshold_index:
        return WIREGUARD_NATIVE_BACKEND
    return WIREGUARD_BACKEND
