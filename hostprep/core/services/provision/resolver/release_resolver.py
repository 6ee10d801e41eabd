"""
L2 Resolver — GitHub latest-release resolution.

Fetches ``/repos/{owner}/{repo}/releases/latest`` and picks the asset
whose download URL contains the architecture token.  Single attempt,
no retries: any failure is a ``ResolutionError``.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from collections.abc import Callable
from typing import Any

from hostprep.core.errors import ResolutionError
from hostprep.core.models.lifecycle import Release
from hostprep.core.services.provision.data.constants import NON_BINARY_SUFFIXES, USER_AGENT

logger = logging.getLogger(__name__)

_RATE_LIMIT_MARKER = "API rate limit exceeded"

# fetch(url, timeout) -> response body
Fetcher = Callable[[str, int], bytes]


def _urllib_fetch(url: str, timeout: int) -> bytes:
    req = urllib.request.Request(
        url,
        headers={
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        },
    )
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        return resp.read()


def select_asset(assets: list[dict[str, Any]], token: str) -> dict[str, Any] | None:
    """Pick the release asset for ``token``.

    Checksum/signature assets are ignored.  An asset where the token is
    immediately followed by an extension dot (``...-linux-amd64.tar.gz``)
    wins over one where it is merely contained
    (``...-linux-amd64v3.tar.gz``); otherwise API order decides.
    """
    candidates = []
    for asset in assets:
        url = str(asset.get("browser_download_url") or "")
        if not url or token not in url:
            continue
        if url.lower().endswith(NON_BINARY_SUFFIXES):
            continue
        candidates.append(asset)

    if not candidates:
        return None

    for asset in candidates:
        if f"{token}." in str(asset["browser_download_url"]):
            return asset
    return candidates[0]


class ReleaseResolver:
    """Resolves the latest release asset of a GitHub repository.

    Args:
        api_base: GitHub API root (``https://api.github.com``).
        proxy: Optional mirror prefix prepended to download URLs.
        timeout: HTTP timeout in seconds.
        fetch: Transport override, mainly for tests.
    """

    def __init__(
        self,
        *,
        api_base: str = "https://api.github.com",
        proxy: str = "",
        timeout: int = 30,
        fetch: Fetcher | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.proxy = proxy
        self.timeout = timeout
        self._fetch = fetch or _urllib_fetch

    def latest_release_metadata(self, repo: str) -> dict[str, Any]:
        """Raw JSON of the latest release."""
        api_url = f"{self.api_base}/repos/{repo}/releases/latest"
        logger.info("Resolving latest release of %s", repo)

        try:
            body = self._fetch(api_url, self.timeout)
        except urllib.error.HTTPError as exc:
            try:
                detail = exc.read().decode("utf-8", errors="replace")
            except (OSError, AttributeError):
                detail = ""
            if exc.code in (403, 429) or _RATE_LIMIT_MARKER in detail:
                raise ResolutionError("GitHub API rate limit exceeded") from exc
            raise ResolutionError(f"Failed to fetch release of {repo}: HTTP {exc.code}") from exc
        except (urllib.error.URLError, OSError) as exc:
            raise ResolutionError(
                f"Cannot reach {api_url}, check the network: {exc}"
            ) from exc

        text = body.decode("utf-8", errors="replace").strip() if body else ""
        if not text:
            raise ResolutionError(f"Empty release response for {repo}")
        if _RATE_LIMIT_MARKER in text:
            raise ResolutionError("GitHub API rate limit exceeded")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ResolutionError(f"Unparseable release response for {repo}") from exc
        if not isinstance(data, dict):
            raise ResolutionError(f"Unexpected release response for {repo}")
        return data

    def resolve(self, repo: str, token: str) -> Release:
        """Resolve ``(version, download URL)`` for ``token``.

        Args:
            repo: ``owner/name``.
            token: Substring identifying the platform asset, e.g.
                ``linux-amd64`` or ``x86_64-unknown-linux-musl``.

        Raises:
            ResolutionError: Empty, rate-limited or unparseable response,
                missing tag, or no asset for the token.
        """
        data = self.latest_release_metadata(repo)

        tag = str(data.get("tag_name") or "")
        if not tag:
            raise ResolutionError(f"No tag_name in latest release of {repo}")

        assets = data.get("assets") or []
        asset = select_asset(assets, token)
        if asset is None:
            available = [a.get("name", "") for a in assets[:10]]
            logger.debug("Assets of %s %s: %s", repo, tag, available)
            raise ResolutionError(f"No release asset of {repo} {tag} matches '{token}'")

        url = f"{self.proxy}{asset['browser_download_url']}"
        release = Release(
            version=tag.removeprefix("v"),
            url=url,
            asset_name=str(asset.get("name") or url.rsplit("/", 1)[-1]),
        )
        logger.info("Resolved %s %s → %s", repo, release.version, release.asset_name)
        return release
