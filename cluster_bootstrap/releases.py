"""k3s release catalog.

Releases are listed from the GitHub tags of k3s-io/k3s and cached locally
for a week, since the unauthenticated GitHub API is rate limited.
"""

import re
import time
from pathlib import Path

import requests
import yaml

from cluster_bootstrap.exceptions import ReleaseCatalogError
from cluster_bootstrap.logging_config import get_logger

logger = get_logger(__name__)

GITHUB_TAGS_URL = "https://api.github.com/repos/k3s-io/k3s/tags"
DEFAULT_CACHE_PATH = Path("~/.cache/k3s-bootstrap/k3s-releases.yaml")
CACHE_MAX_AGE = 7 * 24 * 60 * 60

RELEASE_PATTERN = re.compile(r"^v(\d+)\.(\d+)\.(\d+)\+k3s(\d+)$")


def release_sort_key(version: str) -> tuple[int, int, int, int]:
    """Sort key putting k3s releases in chronological order."""
    match = RELEASE_PATTERN.match(version)
    if not match:
        raise ValueError(f"'{version}' is not a k3s release tag")
    return tuple(int(part) for part in match.groups())


class StaticReleaseCatalog:
    """Release catalog backed by an explicit, already ordered list."""

    def __init__(self, releases: list[str]):
        self.releases = list(releases)

    def available_releases(self) -> list[str]:
        return list(self.releases)


class GitHubReleaseCatalog:
    """Release catalog fetched from GitHub with a local YAML cache."""

    def __init__(
        self,
        cache_path: str | Path = DEFAULT_CACHE_PATH,
        max_age: int = CACHE_MAX_AGE,
        session: requests.Session | None = None,
    ):
        self.cache_path = Path(cache_path).expanduser()
        self.max_age = max_age
        self.session = session or requests.Session()
        self._releases: list[str] | None = None

    def available_releases(self, refresh: bool = False) -> list[str]:
        """Stable k3s releases, oldest first.

        Raises:
            ReleaseCatalogError: If the releases cannot be fetched
        """
        if self._releases is not None and not refresh:
            return list(self._releases)

        releases = None if refresh else self._read_cache()
        if releases is None:
            releases = self._fetch()
            self._write_cache(releases)

        self._releases = releases
        return list(releases)

    def _read_cache(self) -> list[str] | None:
        if not self.cache_path.exists():
            return None

        age = time.time() - self.cache_path.stat().st_mtime
        if age > self.max_age:
            logger.debug(f"Release cache {self.cache_path} is stale ({int(age)}s old)")
            return None

        try:
            with open(self.cache_path) as f:
                releases = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring unreadable release cache {self.cache_path}: {e}")
            return None

        if not isinstance(releases, list):
            return None
        logger.debug(f"Loaded {len(releases)} releases from {self.cache_path}")
        return releases

    def _write_cache(self, releases: list[str]) -> None:
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_path, "w") as f:
                yaml.safe_dump(releases, f, default_flow_style=False)
        except OSError as e:
            logger.warning(f"Failed to write release cache {self.cache_path}: {e}")

    def _fetch(self) -> list[str]:
        logger.info("Fetching k3s releases from GitHub")
        tags = []
        url = f"{GITHUB_TAGS_URL}?per_page=100"

        try:
            while url:
                response = self.session.get(
                    url, headers={"Accept": "application/vnd.github+json"}, timeout=30
                )
                response.raise_for_status()
                tags.extend(tag["name"] for tag in response.json())
                url = response.links.get("next", {}).get("url")
        except requests.RequestException as e:
            raise ReleaseCatalogError(
                "Failed to fetch k3s releases from GitHub",
                f"{e}\n\nCheck network access to api.github.com or retry later "
                "if the API rate limit was hit.",
            )

        releases = sorted({tag for tag in tags if RELEASE_PATTERN.match(tag)}, key=release_sort_key)
        logger.info(f"Found {len(releases)} k3s releases")
        return releases
