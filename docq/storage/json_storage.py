import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from docq.errors import StorageError
from docq.models import Record

logger = logging.getLogger(__name__)


class DocumentStorage:
    """JSON-based document storage (with an in-memory index keyed by id)"""

    def __init__(self, storage_path: Path = None):
        """Initialize storage with default or custom path"""
        self.storage_path = storage_path or (Path.home() / ".docq" / "documents.json")
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_file()

        self._index: Dict[int, Record] = {}
        self._next_id: int = 1
        self._load_index()

    def _ensure_file(self):
        """Ensure storage file exists"""
        if not self.storage_path.exists():
            self._write_data({"next_id": 1, "documents": []})

    def _read_data(self) -> dict:
        """Read raw data from storage, upgrading the legacy list format"""
        try:
            raw = json.loads(self.storage_path.read_text())
        except json.JSONDecodeError:
            logger.warning("Unreadable document file %s, starting empty", self.storage_path)
            return {"next_id": 1, "documents": []}
        except FileNotFoundError:
            return {"next_id": 1, "documents": []}
        except OSError as exc:
            raise StorageError(f"Cannot read {self.storage_path}: {exc}") from exc

        if isinstance(raw, list):
            return self._upgrade_legacy(raw)
        if isinstance(raw, dict) and "documents" in raw and "next_id" in raw:
            return raw
        logger.warning("Unexpected layout in %s, starting empty", self.storage_path)
        return {"next_id": 1, "documents": []}

    def _upgrade_legacy(self, raw: list) -> dict:
        """Rewrite a plain list of documents in the current layout, numbering ids where missing"""
        documents = [d for d in raw if isinstance(d, dict)]
        taken = {d["id"] for d in documents if isinstance(d.get("id"), int) and d["id"] > 0}
        candidate = 1
        for d in documents:
            if not (isinstance(d.get("id"), int) and d["id"] > 0):
                while candidate in taken:
                    candidate += 1
                d["id"] = candidate
                taken.add(candidate)

        data = {"next_id": max(taken, default=0) + 1, "documents": documents}
        self._write_data(data)
        return data

    def _write_data(self, data: dict):
        """Write raw data to storage"""
        try:
            self.storage_path.write_text(json.dumps(data, indent=2))
        except OSError as exc:
            raise StorageError(f"Cannot write {self.storage_path}: {exc}") from exc

    def _load_index(self):
        """Load documents into memory and build index"""
        data = self._read_data()
        self._index = {d["id"]: Record.from_dict(d) for d in data["documents"]}
        self._next_id = data["next_id"]

    def _save_index(self):
        """Persist index back to storage"""
        data = {
            "next_id": self._next_id,
            "documents": [d.to_dict() for d in self._index.values()],
        }
        self._write_data(data)

    def add_document(self, entity: str, fields: Dict[str, Any] = None,
                     parent_id: Optional[int] = None) -> Record:
        """Add a new document and return it"""
        new_id = self._next_id
        record = Record(id=new_id, entity=entity, fields=dict(fields or {}), parent_id=parent_id)
        self._index[new_id] = record
        self._next_id += 1
        self._save_index()
        logger.debug("Added %s #%d", entity, new_id)
        return record

    def get_document(self, document_id: int) -> Optional[Record]:
        """Get a specific document by ID"""
        return self._index.get(document_id)

    def delete_document(self, document_id: int) -> bool:
        """Delete a document by ID, return True if deleted"""
        if document_id in self._index:
            del self._index[document_id]
            self._save_index()
            return True
        return False

    def iter_documents(self, entity: str) -> Iterator[Record]:
        """Yield documents of one entity lazily, in id order"""
        for document_id in sorted(self._index):
            record = self._index.get(document_id)
            if record is not None and record.entity == entity:
                yield record

    def list_entities(self) -> List[str]:
        """Names of all entity types present"""
        return sorted({d.entity for d in self._index.values()})
