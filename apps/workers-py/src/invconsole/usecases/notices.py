"""User-visible notices (the console's toast messages)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

log = logging.getLogger(__name__)

_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(frozen=True)
class Notice:
    level: str
    message: str


class NoticeBoard:
    """Collects notices in order and mirrors each one to the log."""

    def __init__(self):
        self.items: List[Notice] = []

    def post(self, level: str, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self.items.append(notice)
        log.log(_LEVELS.get(level, logging.INFO), "[%s] %s", level.upper(), message)
        return notice

    def success(self, message: str) -> Notice:
        return self.post("success", message)

    def info(self, message: str) -> Notice:
        return self.post("info", message)

    def warning(self, message: str) -> Notice:
        return self.post("warning", message)

    def error(self, message: str) -> Notice:
        return self.post("error", message)

    @property
    def last(self) -> Optional[Notice]:
        return self.items[-1] if self.items else None

    def messages(self) -> List[str]:
        return [n.message for n in self.items]
