from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from .storage import BlobStore, FileBlobStore, SqliteBlobStore, WebDavBlobStore

load_dotenv()

BASE_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = BASE_DIR / "data"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class ConfigurationError(Exception):
    pass


class Settings(BaseModel):
    storage: str = "file"
    data_dir: Path = DATA_DIR
    db_url: str = f"sqlite+aiosqlite:///{(DATA_DIR / 'kochliste.db').as_posix()}"
    webdav_url: Optional[str] = None
    webdav_user: Optional[str] = None
    webdav_password: Optional[str] = None
    webdav_timeout: float = 30
    static_dir: Path = BASE_DIR
    recipes_key: str = "rezepte.json"
    to_cook_key: str = "to_be_cooked.json"
    to_buy_key: str = "to_be_bought.json"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        data_dir = Path(os.getenv("KOCHLISTE_DATA_DIR", str(DATA_DIR)))
        return cls(
            storage=os.getenv("KOCHLISTE_STORAGE", "file").strip().lower(),
            data_dir=data_dir,
            db_url=os.getenv(
                "KOCHLISTE_DB_URL",
                f"sqlite+aiosqlite:///{(data_dir / 'kochliste.db').as_posix()}",
            ),
            webdav_url=os.getenv("WEBDAV_URL") or None,
            webdav_user=os.getenv("WEBDAV_USER") or None,
            webdav_password=os.getenv("WEBDAV_PASSWORD") or None,
            webdav_timeout=float(os.getenv("WEBDAV_TIMEOUT", "30")),
            static_dir=Path(os.getenv("KOCHLISTE_STATIC_DIR", str(BASE_DIR))),
            recipes_key=os.getenv("KOCHLISTE_RECIPES_KEY", "rezepte.json"),
            to_cook_key=os.getenv("KOCHLISTE_TO_COOK_KEY", "to_be_cooked.json"),
            to_buy_key=os.getenv("KOCHLISTE_TO_BUY_KEY", "to_be_bought.json"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def create_store(settings: Settings) -> BlobStore:
    """Pick the blob store backend named in the settings."""
    if settings.storage == "file":
        return FileBlobStore(settings.data_dir)
    if settings.storage == "sqlite":
        return SqliteBlobStore(settings.db_url)
    if settings.storage == "webdav":
        if not settings.webdav_url:
            raise ConfigurationError("KOCHLISTE_STORAGE=webdav needs WEBDAV_URL")
        auth = None
        if settings.webdav_user:
            auth = (settings.webdav_user, settings.webdav_password or "")
        return WebDavBlobStore(settings.webdav_url, auth=auth, timeout=settings.webdav_timeout)
    raise ConfigurationError(f"unknown storage backend: {settings.storage!r}")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
