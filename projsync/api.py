"""API client for the Dropbox HTTP API (v2)."""

from __future__ import annotations

import json
import logging
import os
import random
import tempfile
import time
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Callable

import httpx

from .config import config
from .exceptions import (
    ConfigError,
    StorageAuthenticationError,
    StorageDownloadError,
    StorageError,
    StorageInvalidResponseError,
    StorageNetworkError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageRateLimitError,
    StorageUploadError,
)
from .models import FileMetadata, ListFolderResult
from .utils import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY,
    DEFAULT_SESSION_THRESHOLD,
    DOWNLOAD_CHUNK_SIZE,
)

logger = logging.getLogger(__name__)

# Error summaries (prefixes) that mean "this path does not exist"
NOT_FOUND_SUMMARIES = (
    "path/not_found",
    "path_lookup/not_found",
    "from_lookup/not_found",
)


class DropboxClient:
    """Client for interacting with the Dropbox HTTP API."""

    def __init__(
        self,
        token: str | None = None,
        api_url: str | None = None,
        content_url: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize Dropbox API client.

        Args:
            token: Optional access token (uses config if not provided)
            api_url: Optional RPC endpoint base URL (uses config if not provided)
            content_url: Optional content endpoint base URL
                (uses config if not provided)
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
            transport: Optional httpx transport, mainly for tests
        """
        self.token = token or config.token
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.content_url = (content_url or config.content_url).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._transport = transport

        if not self.token:
            raise ConfigError(
                "Dropbox token not configured. "
                "Please set PROJSYNC_DROPBOX_TOKEN environment variable."
            )

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if a request should be retried.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried, False otherwise
        """
        if attempt >= self.max_retries:
            return False

        # Transient failures only; client errors are never retried
        return isinstance(exception, (StorageNetworkError, StorageRateLimitError))

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # Add jitter: +/- 25% of base delay
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _sleep_before_retry(
        self, error: Exception, attempt: int, target: str
    ) -> None:
        """Wait before retrying, honouring a server-provided Retry-After."""
        if isinstance(error, StorageRateLimitError) and error.retry_after is not None:
            delay = error.retry_after
        else:
            delay = self._calculate_retry_delay(attempt)
        logger.debug(
            "Retrying %s in %.1fs (attempt %d of %d): %s",
            target,
            delay,
            attempt + 1,
            self.max_retries,
            error,
        )
        time.sleep(delay)

    @staticmethod
    def _error_summary(response: httpx.Response) -> str:
        """Extract the ``error_summary`` field from an error response."""
        try:
            if response.content:
                data = response.json()
                if isinstance(data, dict):
                    summary = data.get("error_summary") or data.get("error")
                    if summary:
                        return str(summary)
        except ValueError:
            pass
        # Some endpoints answer with plain text
        try:
            return response.text.strip()
        except UnicodeDecodeError:
            return ""

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Map an HTTP error to a storage exception.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)
        """
        status_code = e.response.status_code
        summary = self._error_summary(e.response)

        if status_code == 401:
            return (
                StorageAuthenticationError(
                    "Invalid or expired access token"
                    + (f": {summary}" if summary else "")
                ),
                False,
            )
        elif status_code == 403:
            return (
                StoragePermissionError(
                    "Access forbidden - check your app permissions"
                    + (f": {summary}" if summary else "")
                ),
                False,
            )
        elif status_code == 409:
            # Endpoint-specific errors; only lookups that missed are "not found"
            if summary.startswith(NOT_FOUND_SUMMARIES):
                return (StorageNotFoundError(f"Path not found: {summary}"), False)
            return (StorageError(f"API error: {summary}"), False)
        elif status_code == 429:
            retry_after_header = e.response.headers.get("Retry-After")
            retry_after = (
                float(retry_after_header)
                if retry_after_header and retry_after_header.isdigit()
                else None
            )
            error = StorageRateLimitError(
                "Rate limit exceeded - please try again later",
                retry_after=retry_after,
            )
            return (error, attempt < self.max_retries)
        else:
            error_msg = f"API request failed with status {status_code}"
            if summary:
                error_msg = f"{error_msg}: {summary}"
            should_retry = 500 <= status_code < 600 and attempt < self.max_retries
            return (StorageError(error_msg), should_retry)

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            url: Full request URL
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data (empty dict for empty bodies)

        Raises:
            StorageError: If the request fails after all retries
        """
        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()

                if not response.content:
                    return {}
                try:
                    return response.json()
                except ValueError as e:
                    content_type = response.headers.get("Content-Type", "")
                    raise StorageInvalidResponseError(
                        f"Invalid JSON response from server ({content_type})"
                    ) from e

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error

                if should_retry:
                    self._sleep_before_retry(error, attempt, url)
                    continue
                raise error from e
            except StorageError:
                raise
            except httpx.RequestError as e:
                error = StorageNetworkError(f"Network error: {e}")
                last_exception = error
                if self._should_retry(error, attempt):
                    self._sleep_before_retry(error, attempt, url)
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise StorageError("Request failed after all retry attempts")

    def _rpc(self, endpoint: str, payload: dict[str, Any] | None = None) -> Any:
        """Call an RPC-style endpoint (JSON in, JSON out)."""
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        return self._request("POST", url, json=payload)

    def _content(self, endpoint: str, arg: dict[str, Any], data: bytes) -> Any:
        """Call a content-upload endpoint (arguments in header, bytes in body)."""
        url = f"{self.content_url}/{endpoint.lstrip('/')}"
        headers = {
            # json.dumps escapes non-ASCII, which HTTP headers require
            "Dropbox-API-Arg": json.dumps(arg),
            "Content-Type": "application/octet-stream",
        }
        return self._request("POST", url, headers=headers, content=data)

    # =========================
    # Listing Operations
    # =========================

    def iter_list_folder(
        self, path: str, recursive: bool = True
    ) -> Iterator[ListFolderResult]:
        """Iterate over the pages of a folder listing.

        Args:
            path: Folder path ("" for the root)
            recursive: List the whole subtree, not only direct children

        Yields:
            ListFolderResult pages, following ``list_folder/continue``

        Raises:
            StorageNotFoundError: If the folder does not exist
        """
        data = self._rpc(
            "files/list_folder",
            {
                "path": path,
                "recursive": recursive,
                "include_media_info": False,
                "include_deleted": False,
            },
        )
        page = ListFolderResult.from_api_response(data)
        yield page

        while page.has_more:
            data = self._rpc("files/list_folder/continue", {"cursor": page.cursor})
            page = ListFolderResult.from_api_response(data)
            yield page

    def list_folder(self, path: str, recursive: bool = True) -> list[FileMetadata]:
        """List every entry under a folder.

        Args:
            path: Folder path ("" for the root)
            recursive: List the whole subtree, not only direct children

        Returns:
            All entries from all pages
        """
        entries: list[FileMetadata] = []
        for page in self.iter_list_folder(path, recursive=recursive):
            entries.extend(page.entries)
        return entries

    # =========================
    # Upload Operations
    # =========================

    def upload(
        self,
        local_path: Path,
        remote_path: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        session_threshold: int = DEFAULT_SESSION_THRESHOLD,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> FileMetadata:
        """Upload a local file, overwriting whatever is at the remote path.

        Files up to ``session_threshold`` bytes go up in a single request.
        Larger files use an upload session; the remote file only appears
        once the session is finished.

        Args:
            local_path: Local file to upload
            remote_path: Full remote destination path
            chunk_size: Size of each upload session chunk
            session_threshold: Size above which an upload session is used
            progress_callback: Optional callback function(bytes_uploaded,
                total_bytes)

        Returns:
            Metadata of the committed remote file

        Raises:
            OSError: If the local file cannot be read
            StorageError: If the upload fails
        """
        commit = {
            "path": remote_path,
            "mode": "overwrite",
            "autorename": False,
            "mute": True,
        }

        with open(local_path, "rb") as f:
            file_size = os.fstat(f.fileno()).st_size

            if file_size <= session_threshold:
                data = f.read()
                result = self._content("files/upload", commit, data)
                if progress_callback:
                    progress_callback(len(data), file_size)
            else:
                result = self._upload_session(
                    f, file_size, commit, chunk_size, progress_callback
                )

        if not isinstance(result, dict) or not result.get("path_lower"):
            raise StorageUploadError(f"Upload of {remote_path} returned no metadata")
        return FileMetadata.from_api_response({".tag": "file", **result})

    def _upload_session(
        self,
        f: Any,
        file_size: int,
        commit: dict[str, Any],
        chunk_size: int,
        progress_callback: Callable[[int, int], None] | None,
    ) -> Any:
        """Upload an open file through an upload session."""
        chunk = f.read(chunk_size)
        start = self._content("files/upload_session/start", {"close": False}, chunk)
        session_id = start.get("session_id") if isinstance(start, dict) else None
        if not session_id:
            raise StorageUploadError("Upload session start returned no session_id")

        offset = len(chunk)
        if progress_callback:
            progress_callback(offset, file_size)

        while file_size - offset > chunk_size:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            self._content(
                "files/upload_session/append_v2",
                {
                    "cursor": {"session_id": session_id, "offset": offset},
                    "close": False,
                },
                chunk,
            )
            offset += len(chunk)
            if progress_callback:
                progress_callback(offset, file_size)

        rest = f.read()
        result = self._content(
            "files/upload_session/finish",
            {"cursor": {"session_id": session_id, "offset": offset}, "commit": commit},
            rest,
        )
        if progress_callback:
            progress_callback(offset + len(rest), file_size)
        return result

    # =========================
    # Download Operations
    # =========================

    def download(
        self,
        remote_path: str,
        local_path: Path,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> Path:
        """Download a remote file to a local path.

        The content is streamed into a temporary file in the destination
        directory and moved into place once complete, so an interrupted
        download never leaves a truncated file behind. Rate limits, 5xx
        responses and network errors are retried with a fresh temporary
        file each time.

        Args:
            remote_path: Full remote source path
            local_path: Local destination (parent directories are created)
            progress_callback: Optional callback function(bytes_downloaded,
                total_bytes)

        Returns:
            Path where the file was saved

        Raises:
            StorageNotFoundError: If the remote file does not exist
            StorageDownloadError: If the download fails
        """
        url = f"{self.content_url}/files/download"
        headers = {"Dropbox-API-Arg": json.dumps({"path": remote_path})}
        local_path.parent.mkdir(parents=True, exist_ok=True)

        for attempt in range(self.max_retries + 1):
            try:
                self._download_once(url, headers, local_path, progress_callback)
                return local_path
            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                if should_retry:
                    self._sleep_before_retry(error, attempt, remote_path)
                    continue
                if isinstance(error, StorageNotFoundError):
                    raise error from e
                raise StorageDownloadError(f"Download failed: {error}") from e
            except httpx.RequestError as e:
                error = StorageNetworkError(f"Network error during download: {e}")
                if self._should_retry(error, attempt):
                    self._sleep_before_retry(error, attempt, remote_path)
                    continue
                raise error from e

        raise StorageDownloadError(f"Download failed after all retries: {remote_path}")

    def _download_once(
        self,
        url: str,
        headers: dict[str, str],
        local_path: Path,
        progress_callback: Callable[[int, int], None] | None,
    ) -> None:
        """Stream one download attempt into place; the temp file never survives."""
        client = self._get_client()
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{local_path.name}.", suffix=".part", dir=local_path.parent
        )
        try:
            with os.fdopen(fd, "wb") as out:
                with client.stream("POST", url, headers=headers) as response:
                    if response.is_error:
                        response.read()
                    response.raise_for_status()

                    total_size = int(response.headers.get("Content-Length", 0))
                    bytes_downloaded = 0
                    for chunk in response.iter_bytes(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            out.write(chunk)
                            bytes_downloaded += len(chunk)
                            if progress_callback:
                                progress_callback(bytes_downloaded, total_size)
            os.replace(tmp_name, local_path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    # =========================
    # File Entry Operations
    # =========================

    def delete(self, path: str) -> FileMetadata:
        """Delete a file or folder.

        Args:
            path: Full remote path

        Returns:
            Metadata of the deleted entry

        Raises:
            StorageNotFoundError: If nothing exists at the path
        """
        result = self._rpc("files/delete_v2", {"path": path})
        metadata = result.get("metadata", {}) if isinstance(result, dict) else {}
        return FileMetadata.from_api_response(metadata)

    def get_metadata(self, path: str) -> FileMetadata:
        """Get metadata for a single file or folder.

        Args:
            path: Full remote path

        Returns:
            FileMetadata for the entry

        Raises:
            StorageNotFoundError: If nothing exists at the path
        """
        result = self._rpc("files/get_metadata", {"path": path})
        if not isinstance(result, dict):
            raise StorageInvalidResponseError(
                f"Unexpected metadata response for {path}"
            )
        return FileMetadata.from_api_response(result)
