"""
github_client.py

Responsibility: Isolate all direct GitHub REST API interaction.

This module must be the only place that:
- Constructs GitHub REST endpoints
- Sends HTTP requests to api.github.com / uploads.github.com
- Interprets GitHub API responses / error payloads

It is used to publish build archives as release assets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests

from buildhelpers.errors import BuildHelpersError

logger = logging.getLogger(__name__)


class GitHubError(BuildHelpersError):
    pass


@dataclass(frozen=True)
class ReleaseInfo:
    id: int
    tag: str
    html_url: str
    upload_url: str


def _release_from(data: dict[str, Any]) -> ReleaseInfo:
    return ReleaseInfo(
        id=int(data["id"]),
        tag=str(data["tag_name"]),
        html_url=str(data.get("html_url") or ""),
        # The API returns a URI template like ".../assets{?name,label}".
        upload_url=str(data["upload_url"]).split("{", 1)[0],
    )


class GitHubClient:
    def __init__(self, token: str, api_base: str = "https://api.github.com") -> None:
        if not token.strip():
            raise GitHubError("GitHub token is required.")
        self._token = token
        self._api_base = api_base.rstrip("/")

    def _headers(self, content_type: str | None = None) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "buildhelpers",
        }
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def _request(
        self,
        method: str,
        url: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        data: bytes | None = None,
        content_type: str | None = None,
    ) -> Any:
        if url.startswith("/"):
            url = f"{self._api_base}{url}"
        r = requests.request(
            method,
            url,
            headers=self._headers(content_type),
            json=json_body,
            params=params,
            data=data,
            timeout=60,
        )
        if r.status_code >= 400:
            try:
                payload = r.json()
            except ValueError:
                payload = {"message": r.text}
            raise GitHubError(f"GitHub API error {r.status_code} {method} {url}: {payload.get('message', payload)}")
        if r.status_code == 204:
            return None
        return r.json()

    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> ReleaseInfo | None:
        """
        Return the release for `tag`, or None if there is none.
        """
        try:
            data = self._request("GET", f"/repos/{owner}/{repo}/releases/tags/{tag}")
        except GitHubError as e:
            msg = str(e).lower()
            if "404" in msg or "not found" in msg:
                return None
            raise
        return _release_from(data)

    def create_release(
        self,
        *,
        owner: str,
        repo: str,
        tag: str,
        name: str,
        prerelease: bool = False,
        body: str = "",
    ) -> ReleaseInfo:
        payload = {
            "tag_name": tag,
            "name": name,
            "body": body,
            "draft": False,
            "prerelease": prerelease,
        }
        data = self._request("POST", f"/repos/{owner}/{repo}/releases", json_body=payload)
        logger.info("Created release %s of %s/%s", tag, owner, repo)
        return _release_from(data)

    def upload_asset(self, release: ReleaseInfo, path: str | Path, content_type: str = "application/zip") -> str:
        """
        Attach a file to the release. Returns the asset's download URL.
        """
        asset = Path(path)
        data = self._request(
            "POST",
            release.upload_url,
            params={"name": asset.name},
            data=asset.read_bytes(),
            content_type=content_type,
        )
        logger.info("Uploaded %s to release %s", asset.name, release.tag)
        return str(data.get("browser_download_url") or "")
