from pathlib import Path

import pytest

from docq.config import DocqConfig, load_config, open_storage
from docq.errors import DocqError
from docq.storage.json_storage import DocumentStorage
from docq.storage.sqlite_storage import SQLiteDocumentStorage


def test_defaults():
    config = load_config({})
    assert config.home == Path.home() / ".docq"
    assert config.backend == "json"
    assert config.storage_path.name == "documents.json"


def test_environment_overrides(tmp_path):
    config = load_config({"DOCQ_HOME": str(tmp_path), "DOCQ_BACKEND": "SQLite"})
    assert config.home == tmp_path
    assert config.backend == "sqlite"
    assert config.storage_path == tmp_path / "documents.db"


def test_unknown_backend():
    with pytest.raises(DocqError):
        load_config({"DOCQ_BACKEND": "mongo"})


def test_open_storage(tmp_path):
    json_store = open_storage(DocqConfig(home=tmp_path / "j"))
    assert isinstance(json_store, DocumentStorage)
    assert json_store.storage_path.exists()

    sqlite_store = open_storage(DocqConfig(home=tmp_path / "s", backend="sqlite"))
    assert isinstance(sqlite_store, SQLiteDocumentStorage)
    sqlite_store.close()
