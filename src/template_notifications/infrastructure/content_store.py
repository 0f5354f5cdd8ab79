"""
Template Notifications - Content Stores.

Remote storage for template bodies. The Cloudinary implementation stores
bodies as "raw" resources through the Cloudinary REST API; the in-memory
implementation backs tests and local development.

None of these methods raise: failures are returned as result values.

Architecture Layer: Infrastructure
Principles: Strategy Pattern, Dependency Inversion, Async I/O
"""
from __future__ import annotations

import asyncio
import hashlib
import time
from pathlib import Path
from uuid import uuid4

import httpx
import structlog

from ..config import ContentStoreConfig
from ..domain.providers import ContentStore
from ..domain.value_objects import ContentResult, UploadResult

logger = structlog.get_logger(__name__)

RESOURCE_TYPE = "raw"
DELETE_SUCCESS = "ok"


def resolve_upload_path(path: str, upload_directory: str) -> Path:
    """Absolute paths are used as given, bare names are staged under the upload directory."""
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return (Path(upload_directory) / candidate).resolve()


def _remove_local_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("content_local_file_delete_failed", path=str(path), error=str(e))


class InMemoryContentStore(ContentStore):
    """Keeps uploaded bodies in a dict keyed by generated file id."""

    def __init__(self, upload_directory: str = ".", remove_local_after_upload: bool = False) -> None:
        self._files: dict[str, str] = {}
        self._upload_directory = upload_directory
        self._remove_local = remove_local_after_upload

    async def upload(self, path: str) -> UploadResult:
        local_path = resolve_upload_path(path, self._upload_directory)
        try:
            content = await asyncio.to_thread(local_path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("content_upload_failed", path=str(local_path), error=str(e))
            return UploadResult.failed(f"[MEMORY] Cannot read {local_path}: {e}")

        file_id = f"{RESOURCE_TYPE}/{uuid4().hex}"
        self._files[file_id] = content
        if self._remove_local:
            _remove_local_file(local_path)
        logger.debug("content_uploaded", file_id=file_id)
        return UploadResult.ok(file_id)

    async def delete_by_id(self, file_id: str) -> bool:
        return self._files.pop(file_id, None) is not None

    async def fetch_content_by_id(self, file_id: str) -> ContentResult:
        content = self._files.get(file_id)
        if content is None:
            return ContentResult.failed(f"[MEMORY] File not found {file_id}")
        return ContentResult.ok(content)

    def put(self, content: str, file_id: str | None = None) -> str:
        """Seed a body directly, returning its file id."""
        file_id = file_id or f"{RESOURCE_TYPE}/{uuid4().hex}"
        self._files[file_id] = content
        return file_id

    def __contains__(self, file_id: object) -> bool:
        return file_id in self._files


class CloudinaryContentStore(ContentStore):
    """
    Cloudinary-backed content store.

    Uploads and destroys are signed with the API secret. Content is read
    back from the public delivery URL of the raw resource. A staged local
    file is removed once the upload succeeded.
    """

    def __init__(self, config: ContentStoreConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_seconds)
        return self._client

    def _sign(self, params: dict[str, str]) -> str:
        payload = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return hashlib.sha1(f"{payload}{self._config.api_secret}".encode("utf-8")).hexdigest()

    def _signed(self, params: dict[str, str]) -> dict[str, str]:
        params = {**params, "timestamp": str(int(time.time()))}
        return {**params, "api_key": self._config.api_key, "signature": self._sign(params)}

    def _api_endpoint(self, action: str) -> str:
        return f"{self._config.api_url}/{self._config.cloud_name}/{RESOURCE_TYPE}/{action}"

    def content_url(self, file_id: str) -> str:
        return f"{self._config.delivery_url}/{self._config.cloud_name}/{RESOURCE_TYPE}/upload/{file_id}"

    async def upload(self, path: str) -> UploadResult:
        local_path = resolve_upload_path(path, self._config.upload_directory)
        try:
            data = await asyncio.to_thread(local_path.read_bytes)
        except OSError as e:
            logger.warning("content_upload_failed", path=str(local_path), error=str(e))
            return UploadResult.failed(f"[CLOUDINARY] Cannot read {local_path}: {e}")

        client = await self._get_client()
        try:
            response = await client.post(
                self._api_endpoint("upload"),
                data=self._signed({"folder": self._config.folder}),
                files={"file": (local_path.name, data)},
            )
            response.raise_for_status()
            public_id = response.json().get("public_id")
        except httpx.HTTPStatusError as e:
            logger.error("content_upload_failed", path=str(local_path),
                         status_code=e.response.status_code)
            return UploadResult.failed(f"[CLOUDINARY] HTTP {e.response.status_code}")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.error("content_upload_failed", path=str(local_path), error=str(e))
            return UploadResult.failed(f"[CLOUDINARY] {e}")

        if not public_id:
            return UploadResult.failed("[CLOUDINARY] Upload response carried no public_id")

        if self._config.remove_local_after_upload:
            await asyncio.to_thread(_remove_local_file, local_path)
        logger.info("content_uploaded", file_id=public_id)
        return UploadResult.ok(public_id)

    async def delete_by_id(self, file_id: str) -> bool:
        client = await self._get_client()
        try:
            response = await client.post(
                self._api_endpoint("destroy"),
                data=self._signed({"public_id": file_id}),
            )
            response.raise_for_status()
            result = response.json().get("result")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.error("content_delete_failed", file_id=file_id, error=str(e))
            return False

        if result != DELETE_SUCCESS:
            logger.warning("content_delete_rejected", file_id=file_id, result=result)
            return False
        return True

    async def fetch_content_by_id(self, file_id: str) -> ContentResult:
        client = await self._get_client()
        try:
            response = await client.get(self.content_url(file_id))
        except httpx.HTTPError as e:
            logger.error("content_fetch_failed", file_id=file_id, error=str(e))
            return ContentResult.failed(f"[CLOUDINARY] {e}")

        if response.status_code >= 400:
            logger.warning("content_fetch_failed", file_id=file_id, status_code=response.status_code)
            return ContentResult.failed(f"[CLOUDINARY] File not found {file_id}")
        return ContentResult.ok(response.text)
