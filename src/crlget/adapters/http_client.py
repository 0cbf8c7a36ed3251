"""
HTTP adapter — component update check and CRX download via httpx.

Adapter layer — implements the UpdateChecker and PackageDownloader ports
using httpx for sync HTTP calls.

Flow (2 requests):
  1. GET {update_url}?x=<id=..&v=..&uc=..>  → update manifest XML → UpdateCheck
  2. GET {UpdateCheck.codebase}              → raw CRX bytes

Redirects are followed (the codebase usually points at a CDN).
Retry/backoff via tenacity on transient errors (network, timeout).
All HTTP errors are captured into Result failures — no exceptions
leak to the pipeline.
"""

from __future__ import annotations

from urllib.parse import urlencode

import httpx
import structlog
from railway import ErrorCode
from railway.result import Result
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from crlget.adapters.manifest import parse_update_manifest
from crlget.domain.models import UpdateCheck

log = structlog.get_logger()

DEFAULT_UPDATE_URL = "http://clients2.google.com/service/update2/crx"
CRLSET_APP_ID = "hfnkpimlhhgieaddgfemjhofmfblmnib"


def build_update_url(
    base_url: str,
    app_id: str,
    version: str = "",
    uc: str = "",
) -> str:
    """
    Update-check URL: the request parameters travel urlencoded inside `x`.

    >>> build_update_url("http://u.example/crx", "abc")
    'http://u.example/crx?x=id%3Dabc%26v%3D%26uc%3D'
    """
    inner = urlencode({"id": app_id, "v": version, "uc": uc})
    return f"{base_url}?{urlencode({'x': inner})}"


class HttpUpdateChecker:
    """
    Ask the component update service for the current CRLSet release.

    Implements the UpdateChecker port.
    Uses tenacity retry on transient network errors only.
    """

    def __init__(
        self,
        update_url: str = DEFAULT_UPDATE_URL,
        app_id: str = CRLSET_APP_ID,
        version: str = "",
        uc: str = "",
        timeout: int = 5,
    ) -> None:
        self._app_id = app_id
        self._url = build_update_url(update_url, app_id, version, uc)
        self._timeout = timeout

    @property
    def url(self) -> str:
        return self._url

    def check(self) -> Result[UpdateCheck]:
        """
        Fetch and validate the update manifest.

        Returns Result[UpdateCheck] on success,
        Result.failure(EXTERNAL_SERVICE_ERROR, ...) when the request fails,
        or the manifest parser's failure when the answer is unusable.
        """
        return Result.from_computation(
            lambda: self._do_request(),
            ErrorCode.EXTERNAL_SERVICE_ERROR,
            f"Unable to download CRLSet update information ({self._url})",
        ).flat_map(lambda document: parse_update_manifest(document, self._app_id))

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=0.1, max=30),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    def _do_request(self) -> bytes:
        """HTTP call with retry — exceptions caught by from_computation."""
        with httpx.Client(timeout=self._timeout, follow_redirects=True) as client:
            response = client.get(self._url)
            response.raise_for_status()
            log.info("update_check.received", app_id=self._app_id, size_bytes=len(response.content))
            return response.content


class HttpPackageDownloader:
    """
    Download the CRX package named by an UpdateCheck.

    Implements the PackageDownloader port.
    Uses tenacity retry on transient network errors only.
    """

    def __init__(self, timeout: int = 5) -> None:
        self._timeout = timeout

    def download(self, update: UpdateCheck) -> Result[bytes]:
        """
        GET the update's codebase.

        Returns Result[bytes] with the raw CRX on success,
        or Result.failure(EXTERNAL_SERVICE_ERROR, ...) on failure.
        The bytes are NOT verified here; see crlget.domain.integrity.
        """
        return Result.from_computation(
            lambda: self._do_download(update.codebase),
            ErrorCode.EXTERNAL_SERVICE_ERROR,
            f"CRLSet package download failed ({update.codebase})",
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=0.1, max=30),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    def _do_download(self, url: str) -> bytes:
        """HTTP GET with retry — exceptions caught by from_computation."""
        with httpx.Client(timeout=self._timeout, follow_redirects=True) as client:
            response = client.get(url)
            response.raise_for_status()
            data = response.content
            log.info("download.complete", url=url, size_bytes=len(data))
            return data
