from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from ..domain.models import ApiResponse


class CrudTransport(Protocol):
    """Remote collection contract; failures come back in ``ApiResponse.error``."""

    def get_all(self) -> ApiResponse: ...

    def create(self, payload: Dict[str, Any]) -> ApiResponse: ...

    def update(self, record_id: str, payload: Dict[str, Any]) -> ApiResponse: ...

    def delete(self, record_id: str) -> ApiResponse: ...

    def upsert(self, payload: Dict[str, Any]) -> ApiResponse: ...


class KeyValueStorage(Protocol):
    """Synchronous string storage in the shape of browser ``localStorage``."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...
