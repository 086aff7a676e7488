"""File-based overview storage.

Each overview is stored as a single JSON document:
- <base_path>/<overview_id>.json: overview_id, text, timestamp, chatHistory,
  updated_at

The updated_at value doubles as the document version for conditional
chat history writes.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Dict, Any, Optional

from config import OVERVIEWS_PATH
from services.errors import OverviewNotFoundError, StoreError, WriteConflictError
from services.models import ChatTurn, OverviewDocument, is_valid_overview_id
from services.overview_store import OverviewStore


class FileOverviewStore(OverviewStore):
    """Local JSON storage with the same semantics as the remote store."""

    def __init__(self, base_path: str = OVERVIEWS_PATH):
        self.base_path = Path(base_path)

    async def initialize(self):
        """Initialize the storage directory."""
        self.base_path.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # File Operations
    # =========================================================================

    def _get_overview_path(self, overview_id: str) -> Path:
        """Get path to an overview document."""
        if not is_valid_overview_id(overview_id):
            raise OverviewNotFoundError(overview_id)
        return self.base_path / f"{overview_id}.json"

    async def _read_json(self, path: Path) -> Optional[Dict]:
        """Read and parse a JSON file."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt overview document {path.name}: {e}")

    async def _write_json(self, path: Path, data: Dict):
        """Write data to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _to_document(self, data: Dict[str, Any]) -> OverviewDocument:
        return OverviewDocument(
            overview_id=data["overview_id"],
            text=data.get("text", ""),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            chat_history=[ChatTurn(**turn) for turn in data.get("chatHistory", [])],
            version=data.get("updated_at"),
        )

    # =========================================================================
    # Overview CRUD
    # =========================================================================

    async def create_overview(self, document: OverviewDocument) -> OverviewDocument:
        """Write a new overview document."""
        path = self._get_overview_path(document.overview_id)
        now = datetime.now(timezone.utc).isoformat()
        data = {
            "overview_id": document.overview_id,
            "text": document.text,
            "timestamp": document.timestamp.isoformat(),
            "chatHistory": [turn.model_dump() for turn in document.chat_history],
            "updated_at": now,
        }
        await self._write_json(path, data)
        return document.model_copy(update={"version": now})

    async def get_overview(self, overview_id: str) -> OverviewDocument:
        """Load an overview document."""
        data = await self._read_json(self._get_overview_path(overview_id))
        if data is None:
            raise OverviewNotFoundError(overview_id)
        return self._to_document(data)

    async def save_chat_history(
        self,
        overview_id: str,
        turns: List[ChatTurn],
        expected_version: Optional[str] = None
    ) -> None:
        """Replace the chatHistory field, optionally guarded by version."""
        path = self._get_overview_path(overview_id)
        data = await self._read_json(path)
        if data is None:
            raise OverviewNotFoundError(overview_id)
        if expected_version is not None and data.get("updated_at") != expected_version:
            raise WriteConflictError(overview_id)

        data["chatHistory"] = [turn.model_dump() for turn in turns]
        data["updated_at"] = datetime.now(timezone.utc).isoformat()
        await self._write_json(path, data)
