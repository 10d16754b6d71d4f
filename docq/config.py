"""Runtime configuration, read from the environment."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from docq.errors import DocqError

BACKENDS = ("json", "sqlite")


@dataclass
class DocqConfig:
    """Where documents live and which storage backend reads them"""
    home: Path = field(default_factory=lambda: Path.home() / ".docq")
    backend: str = "json"

    @property
    def storage_path(self) -> Path:
        if self.backend == "sqlite":
            return self.home / "documents.db"
        return self.home / "documents.json"


def load_config(environ=None) -> DocqConfig:
    """Build the configuration from DOCQ_HOME and DOCQ_BACKEND"""
    environ = os.environ if environ is None else environ
    config = DocqConfig()
    if environ.get("DOCQ_HOME"):
        config.home = Path(environ["DOCQ_HOME"]).expanduser()
    backend = environ.get("DOCQ_BACKEND", "").strip().lower()
    if backend:
        if backend not in BACKENDS:
            raise DocqError(f"Unknown storage backend {backend!r}, expected one of {', '.join(BACKENDS)}")
        config.backend = backend
    return config


def open_storage(config: DocqConfig):
    """Open the storage configured by ``config``"""
    if config.backend == "sqlite":
        from docq.storage.sqlite_storage import SQLiteDocumentStorage
        return SQLiteDocumentStorage(config.storage_path)
    from docq.storage.json_storage import DocumentStorage
    return DocumentStorage(config.storage_path)


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
