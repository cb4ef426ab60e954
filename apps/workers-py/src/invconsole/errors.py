from __future__ import annotations


class ConsoleError(RuntimeError):
    """Base class for recoverable invoice-console failures."""


class BatchFetchError(ConsoleError):
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Batch fetch from {url} failed: {reason}")


class InvalidRecordError(ConsoleError):
    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"missing required field(s): {', '.join(self.missing)}")


class NothingToExportError(ConsoleError):
    pass
