from __future__ import annotations
import abc
import asyncio
import json
import logging
from pathlib import Path, PurePosixPath
from typing import Any, Optional, Tuple

import requests
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


class BlobNotFound(StorageError):
    def __init__(self, key: str):
        super().__init__(f"blob not found: {key}")
        self.key = key


class BlobStore(abc.ABC):
    """Text blobs addressed by a path-like key."""

    name = "abstract"

    async def init(self) -> None:
        """Prepare the backend (directories, tables, collections)."""

    @abc.abstractmethod
    async def read(self, key: str) -> str:
        """Return the blob's text or raise BlobNotFound."""

    @abc.abstractmethod
    async def write(self, key: str, content: str) -> None:
        ...


def _clean_key(key: str) -> str:
    parts = [p for p in PurePosixPath(key).parts if p not in ("/", "", ".")]
    if not parts or ".." in parts:
        raise StorageError(f"invalid key: {key!r}")
    return "/".join(parts)


class FileBlobStore(BlobStore):
    name = "file"

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        return self.base_dir / _clean_key(key)

    async def init(self) -> None:
        await asyncio.to_thread(self.base_dir.mkdir, parents=True, exist_ok=True)

    async def read(self, key: str) -> str:
        path = self._path(key)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            raise BlobNotFound(key) from None

    async def write(self, key: str, content: str) -> None:
        path = self._path(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        await asyncio.to_thread(_write)
        logger.debug("wrote %s (%d chars)", path, len(content))


class WebDavBlobStore(BlobStore):
    """Blobs as files inside one WebDAV collection (Nextcloud, ownCloud, ...)."""

    name = "webdav"

    def __init__(
        self,
        base_url: str,
        auth: Optional[Tuple[str, str]] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.session = session or requests.Session()
        if auth:
            self.session.auth = auth

    def _url(self, key: str) -> str:
        return self.base_url + _clean_key(key)

    async def init(self) -> None:
        def _mkcol() -> None:
            r = self.session.request("MKCOL", self.base_url, timeout=self.timeout)
            # 405: collection exists already
            if r.status_code not in (201, 405):
                r.raise_for_status()

        await asyncio.to_thread(_mkcol)

    async def read(self, key: str) -> str:
        url = self._url(key)
        r = await asyncio.to_thread(self.session.get, url, timeout=self.timeout)
        if r.status_code == 404:
            raise BlobNotFound(key)
        r.raise_for_status()
        r.encoding = "utf-8"
        return r.text

    async def write(self, key: str, content: str) -> None:
        url = self._url(key)
        r = await asyncio.to_thread(
            self.session.put,
            url,
            data=content.encode("utf-8"),
            headers={"Content-Type": "application/json; charset=utf-8"},
            timeout=self.timeout,
        )
        r.raise_for_status()
        logger.debug("PUT %s -> %s", url, r.status_code)


class SqliteBlobStore(BlobStore):
    name = "sqlite"

    def __init__(self, db_url: str):
        self.engine: AsyncEngine = create_async_engine(db_url, future=True)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    async def init(self) -> None:
        async with self.engine.begin() as conn:
            await conn.execute(text("""
                CREATE TABLE IF NOT EXISTS blobs (
                    key TEXT PRIMARY KEY,
                    content TEXT NOT NULL
                )
            """))

    async def read(self, key: str) -> str:
        async with self.session_factory() as s:
            res = await s.execute(text("SELECT content FROM blobs WHERE key=:key"), {"key": _clean_key(key)})
            row = res.first()
        if not row:
            raise BlobNotFound(key)
        return row[0]

    async def write(self, key: str, content: str) -> None:
        async with self.session_factory() as s:
            await s.execute(
                text("INSERT OR REPLACE INTO blobs (key, content) VALUES (:key, :content)"),
                {"key": _clean_key(key), "content": content},
            )
            await s.commit()

    async def close(self) -> None:
        await self.engine.dispose()


# --- json documents ---

async def read_document(store: BlobStore, key: str) -> Any:
    """Parsed JSON stored under key, None if there is no such blob."""
    try:
        raw = await store.read(key)
    except BlobNotFound:
        logger.debug("%s not found in %s store", key, store.name)
        return None
    return json.loads(raw)


async def write_document(store: BlobStore, key: str, data: Any) -> None:
    await store.write(key, json.dumps(data, indent=2, ensure_ascii=False))
