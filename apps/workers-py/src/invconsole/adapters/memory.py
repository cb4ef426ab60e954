"""In-process CRUD transport used for offline runs and tests."""

from __future__ import annotations

import copy
import itertools
from typing import Any, Dict, Iterable, List, Optional

from ..domain.dates import now_iso
from ..domain.models import ApiResponse


class MemoryTransport:
    """Keeps records in a list, newest first, like the mock API service."""

    def __init__(self, records: Optional[Iterable[Dict[str, Any]]] = None, match_key: str = "invoice_no"):
        self.records: List[Dict[str, Any]] = [copy.deepcopy(r) for r in records or []]
        self.match_key = match_key
        self._ids = itertools.count(1)

    def _next_id(self) -> str:
        taken = {str(r.get("id")) for r in self.records}
        while True:
            candidate = f"mem-{next(self._ids)}"
            if candidate not in taken:
                return candidate

    def _index_of(self, record_id: str) -> Optional[int]:
        for idx, record in enumerate(self.records):
            if str(record.get("id")) == str(record_id):
                return idx
        return None

    def get_all(self) -> ApiResponse:
        return ApiResponse(data=copy.deepcopy(self.records))

    def create(self, payload: Dict[str, Any]) -> ApiResponse:
        record = copy.deepcopy(payload)
        record["id"] = self._next_id()
        record.setdefault("created_at", now_iso())
        self.records.insert(0, record)
        return ApiResponse(data=copy.deepcopy(record))

    def update(self, record_id: str, payload: Dict[str, Any]) -> ApiResponse:
        idx = self._index_of(record_id)
        if idx is None:
            return ApiResponse(error="Record not found")
        self.records[idx] = {**self.records[idx], **copy.deepcopy(payload), "id": self.records[idx]["id"]}
        return ApiResponse(data=copy.deepcopy(self.records[idx]))

    def delete(self, record_id: str) -> ApiResponse:
        idx = self._index_of(record_id)
        if idx is None:
            return ApiResponse(error="Record not found")
        del self.records[idx]
        return ApiResponse(data={"success": True})

    def upsert(self, payload: Dict[str, Any]) -> ApiResponse:
        idx = self._index_of(payload["id"]) if payload.get("id") is not None else None
        if idx is None and payload.get(self.match_key):
            for i, record in enumerate(self.records):
                if record.get(self.match_key) == payload[self.match_key]:
                    idx = i
                    break
        if idx is None:
            record = copy.deepcopy(payload)
            record.setdefault("id", self._next_id())
            record.setdefault("created_at", now_iso())
            self.records.insert(0, record)
            return ApiResponse(data=copy.deepcopy(record))
        return self.update(self.records[idx]["id"], payload)
