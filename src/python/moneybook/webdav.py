"""Minimal WebDAV client used to ship backup archives off the device."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any

import requests

from moneybook.exceptions import WebDavError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30
OK_PROPFIND = {200, 207}
OK_MKCOL = {200, 201, 405}  # 405: collection already exists
OK_PUT = {200, 201, 204}
OK_DELETE = {200, 204, 404}
ARCHIVE_CONTENT_TYPE = "application/zip"


@dataclass(frozen=True)
class WebDavConfig:
    """Connection settings for a WebDAV server."""

    url: str
    username: str = ""
    password: str = ""
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS


class WebDavClient:
    """Talk to a WebDAV server (Nextcloud, Jianguoyun, ...) over HTTP."""

    def __init__(self, config: WebDavConfig) -> None:
        if not config.url:
            raise ValueError("WebDAV url is required")
        self.config = config
        self.base_url = config.url.rstrip("/")
        self.auth = (config.username, config.password) if config.username else None

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "WebDavClient":
        """Build a client from the ``webdav`` section of the config file."""
        return cls(
            WebDavConfig(
                url=str(config.get("url", "")),
                username=str(config.get("username", "")),
                password=str(config.get("password", "")),
                timeout_seconds=int(config.get("timeout", DEFAULT_TIMEOUT_SECONDS)),
            )
        )

    def _url(self, remote_path: str) -> str:
        return f"{self.base_url}/{remote_path.lstrip('/')}"

    def _request(
        self,
        method: str,
        remote_path: str,
        ok_statuses: set[int],
        **kwargs: Any,
    ) -> requests.Response:
        url = self._url(remote_path)
        try:
            response = requests.request(
                method,
                url,
                auth=self.auth,
                timeout=self.config.timeout_seconds,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise WebDavError(f"{method} {url} failed: {exc}") from exc
        if response.status_code not in ok_statuses:
            raise WebDavError(
                f"{method} {url} returned {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def test_connection(self) -> bool:
        """Return True when the server answers a depth-0 PROPFIND."""
        try:
            self._request("PROPFIND", "", OK_PROPFIND, headers={"Depth": "0"})
        except WebDavError as exc:
            logger.warning("WebDAV connection test failed: %s", exc)
            return False
        return True

    def exists(self, remote_path: str) -> bool:
        try:
            self._request("PROPFIND", remote_path, OK_PROPFIND, headers={"Depth": "0"})
        except WebDavError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    def create_directory(self, remote_path: str) -> None:
        self._request("MKCOL", remote_path, OK_MKCOL)

    def ensure_parent_directories(self, remote_path: str) -> None:
        parts = remote_path.strip("/").split("/")[:-1]
        for depth in range(1, len(parts) + 1):
            self.create_directory("/".join(parts[:depth]))

    def upload(
        self,
        remote_path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> None:
        self.ensure_parent_directories(remote_path)
        self._request(
            "PUT", remote_path, OK_PUT, data=data, headers={"Content-Type": content_type}
        )
        logger.info("Uploaded %s (%d bytes)", remote_path, len(data))

    def upload_file(self, remote_path: str, local_path: str | Path) -> None:
        self.upload(remote_path, Path(local_path).read_bytes(), ARCHIVE_CONTENT_TYPE)

    def download(self, remote_path: str) -> bytes:
        return self._request("GET", remote_path, {200}).content

    def download_file(self, remote_path: str, local_path: str | Path) -> Path:
        target = Path(local_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.download(remote_path))
        return target

    def delete(self, remote_path: str) -> None:
        self._request("DELETE", remote_path, OK_DELETE)
