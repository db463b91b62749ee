"""File-backed store for draft quotes that have not been placed as orders"""

import json
import logging
import os
import tempfile
import threading
import uuid
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import List, Optional
from shop_gateway.config import settings
from shop_gateway.domain.models import DraftQuote, LineItem
from shop_gateway.domain.exceptions import NotFoundError, RemoteOperationError

logger = logging.getLogger(__name__)


def _to_record(draft: DraftQuote) -> dict:
    return {
        "id": draft.id,
        "customer": draft.customer,
        "line_items": [
            {
                "product_id": item.product_id,
                "name": item.name,
                "unit_price": str(item.unit_price),
                "quantity": item.quantity,
            }
            for item in draft.line_items
        ],
        "subtotal": str(draft.subtotal),
        "total": str(draft.total),
        "created_at": draft.created_at.isoformat(),
    }


def _from_record(record: dict) -> DraftQuote:
    return DraftQuote(
        id=record["id"],
        customer=record["customer"],
        line_items=[
            LineItem(
                unit_price=Decimal(item["unit_price"]),
                quantity=item["quantity"],
                product_id=item.get("product_id"),
                name=item.get("name", ""),
            )
            for item in record["line_items"]
        ],
        subtotal=Decimal(record["subtotal"]),
        total=Decimal(record["total"]),
        created_at=datetime.fromisoformat(record["created_at"]),
    )


class DraftStore:
    """
    Ordered list of draft quotes kept in a single JSON file.

    Drafts never reach the database and play no part in settlement. Saving
    appends; deleting removes by id; order of creation is preserved.
    """

    _lock = threading.Lock()  # serializes read-modify-write within the process

    def __init__(self, path: str | None = None):
        self.path = Path(path or settings.draft_store_path)

    def _read(self) -> List[dict]:
        if not self.path.exists():
            return []
        try:
            return json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, ValueError) as e:
            raise RemoteOperationError(f"Draft store unreadable: {e}") from e

    def _write(self, records: List[dict]) -> None:
        """Write to a sibling temp file, then swap it in with os.replace"""
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump(records, tmp)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise RemoteOperationError(f"Draft store not writable: {e}") from e

    def list_drafts(self) -> List[DraftQuote]:
        return [_from_record(r) for r in self._read()]

    def get_draft(self, draft_id: str) -> Optional[DraftQuote]:
        for record in self._read():
            if record["id"] == draft_id:
                return _from_record(record)
        return None

    def save_draft(self, draft: DraftQuote) -> DraftQuote:
        with self._lock:
            records = self._read()
            records.append(_to_record(draft))
            self._write(records)
        logger.info("Draft quote saved", extra={"draft_id": draft.id, "step": "draft_saved"})
        return draft

    def delete_draft(self, draft_id: str) -> None:
        with self._lock:
            records = self._read()
            remaining = [r for r in records if r["id"] != draft_id]
            if len(remaining) == len(records):
                raise NotFoundError(f"Draft {draft_id} not found")
            self._write(remaining)
        logger.info("Draft quote deleted", extra={"draft_id": draft_id, "step": "draft_deleted"})


def new_draft_id() -> str:
    return uuid.uuid4().hex
