"""
Pytest configuration and shared fixtures.

Every test gets its own data directory; nothing touches ./data.
"""
import json

import pytest
from fastapi.testclient import TestClient

from kochliste.api import create_app
from kochliste.config import Settings
from kochliste.service import CookingService
from kochliste.storage import FileBlobStore


CATALOG = {
    "rezepte": [
        {"name": "Brot", "zutaten": ["500g Mehl", "1 Pck. Hefe", "Salz"], "bild": "brot.jpg"},
        {"name": "Pfannkuchen", "zutaten": ["200g Mehl", "3 Eier", "½ l Milch", "Salz"]},
        {"id": 7, "name": "Rührei", "zutaten": ["2 EIER", "1 EL Butter"]},
    ]
}


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data", static_dir=tmp_path / "static")


@pytest.fixture
def store(settings):
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return FileBlobStore(settings.data_dir)


@pytest.fixture
def catalog(settings, store):
    """Write the sample catalog to the data directory."""
    (settings.data_dir / settings.recipes_key).write_text(
        json.dumps(CATALOG, ensure_ascii=False), encoding="utf-8"
    )
    return CATALOG


@pytest.fixture
def service(store, settings):
    return CookingService(store, settings)


@pytest.fixture
def read_data(settings):
    """Read a stored document straight from disk."""
    def _read(key):
        return json.loads((settings.data_dir / key).read_text(encoding="utf-8"))
    return _read


@pytest.fixture
def client(settings, store):
    app = create_app(settings, store=store)
    with TestClient(app) as client:
        yield client
