"""
Storage Service
Content store for templates and generated certificates.

Supabase Storage is used when configured; otherwise files are written to a
local directory. Both stores can read either kind of reference, since
template images may be supplied as a local path or as a URL.
"""

import logging
import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional, Union

import httpx

from certicraft.config import settings
from certicraft.exceptions import (
    ContentNotFound,
    StorageFetchError,
    StorageNotConfigured,
    StorageUploadError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalRef:
    path: str


@dataclass(frozen=True)
class RemoteRef:
    url: str


StorageRef = Union[LocalRef, RemoteRef]


def classify_ref(ref: str) -> StorageRef:
    """Tag a stored reference as a remote URL or a local filesystem path"""
    if ref.startswith("http://") or ref.startswith("https://"):
        return RemoteRef(ref)
    return LocalRef(ref)


def is_remote_ref(ref: Optional[str]) -> bool:
    if not ref:
        return False
    return isinstance(classify_ref(ref), RemoteRef)


def remove_file(path: str) -> None:
    """Delete a temporary file; failures are logged, never raised"""
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to delete temporary file %s: %s", path, e)


@asynccontextmanager
async def temporary_file(suffix: str = "", content: Optional[bytes] = None) -> AsyncIterator[str]:
    """
    Scoped temporary file under TEMP_DIR.

    The file is removed on every exit path, including errors raised by the
    caller while the file is in use.
    """
    temp_dir = Path(settings.TEMP_DIR)
    temp_dir.mkdir(parents=True, exist_ok=True)
    fd, path = tempfile.mkstemp(suffix=suffix, dir=str(temp_dir))
    try:
        with os.fdopen(fd, "wb") as handle:
            if content is not None:
                handle.write(content)
        yield path
    finally:
        remove_file(path)


class ContentStore:
    """Common read side shared by the remote and local stores"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=settings.STORAGE_TIMEOUT_SECONDS, transport=self._transport)

    async def put(self, bucket: str, key: str, content: bytes, content_type: str) -> str:
        raise NotImplementedError

    async def delete(self, bucket: str, key: str) -> None:
        raise NotImplementedError

    async def get(self, ref: str) -> bytes:
        """Read bytes from a remote URL or a local path"""
        target = classify_ref(ref)
        if isinstance(target, RemoteRef):
            async with self._client() as client:
                resp = await client.get(target.url)
            if resp.status_code != 200:
                raise StorageFetchError(target.url, resp.status_code)
            return resp.content

        path = Path(target.path)
        if not path.is_file():
            raise ContentNotFound(target.path)
        return path.read_bytes()

    @asynccontextmanager
    async def materialize(self, ref: str, suffix: str = "") -> AsyncIterator[str]:
        """
        Yield a local path holding the referenced content.

        Local references are yielded as-is; remote ones are downloaded to a
        scoped temporary file that is removed when the block exits.
        """
        target = classify_ref(ref)
        if isinstance(target, LocalRef):
            if not Path(target.path).is_file():
                raise ContentNotFound(target.path)
            yield target.path
            return

        content = await self.get(target.url)
        async with temporary_file(suffix=suffix, content=content) as path:
            yield path


class SupabaseStore(ContentStore):
    """Supabase Storage helper"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(transport)
        self.base_url = (base_url or settings.SUPABASE_URL or "").rstrip("/")
        self.api_key = api_key or settings.SUPABASE_KEY

    def _ensure_config(self):
        if not self.base_url or not self.api_key:
            raise StorageNotConfigured()

    def _auth_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "apikey": self.api_key
        }

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{key}"

    async def put(self, bucket: str, key: str, content: bytes, content_type: str) -> str:
        self._ensure_config()

        url = f"{self.base_url}/storage/v1/object/{bucket}/{key}"
        headers = {
            **self._auth_headers(),
            "Content-Type": content_type or "application/octet-stream",
            "x-upsert": "true"
        }

        async with self._client() as client:
            resp = await client.post(url, headers=headers, content=content)

        if resp.status_code not in (200, 201):
            raise StorageUploadError(resp.text)

        return self.public_url(bucket, key)

    async def delete(self, bucket: str, key: str) -> None:
        self._ensure_config()

        url = f"{self.base_url}/storage/v1/object/{bucket}/{key}"
        async with self._client() as client:
            resp = await client.delete(url, headers=self._auth_headers())

        if resp.status_code not in (200, 204, 404):
            raise StorageUploadError(f"delete returned {resp.status_code}: {resp.text}")


class LocalStore(ContentStore):
    """Filesystem store used when remote storage is not configured"""

    def __init__(self, root: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(transport)
        self.root = Path(root or settings.LOCAL_STORAGE_DIR)

    def _path_for(self, bucket: str, key: str) -> Path:
        return self.root / bucket / key

    async def put(self, bucket: str, key: str, content: bytes, content_type: str) -> str:
        path = self._path_for(bucket, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return str(path)

    async def delete(self, bucket: str, key: str) -> None:
        path = self._path_for(bucket, key)
        if path.exists():
            path.unlink()


def build_content_store() -> ContentStore:
    """Pick the store from configuration"""
    if settings.remote_storage_enabled:
        logger.info("Using Supabase storage at %s", settings.SUPABASE_URL)
        return SupabaseStore()
    logger.warning("Supabase URL or key missing, storing files under %s", settings.LOCAL_STORAGE_DIR)
    return LocalStore()

