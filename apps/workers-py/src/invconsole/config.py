"""Environment-driven settings; CLI flags override whatever is set here."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_API_BASE_URL = "http://localhost:3000/api"
DEFAULT_TIMEOUT = 30.0
DEFAULT_DRAFT_PATH = Path.home() / ".invconsole" / "draft.json"


@dataclass
class ConsoleConfig:
    api_base_url: str = DEFAULT_API_BASE_URL
    api_token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    import_concurrency: int = 1
    draft_path: Path = DEFAULT_DRAFT_PATH

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ConsoleConfig":
        env = os.environ if environ is None else environ
        try:
            timeout = float(env.get("INVCONSOLE_TIMEOUT") or DEFAULT_TIMEOUT)
        except ValueError as exc:
            raise ValueError("INVCONSOLE_TIMEOUT must be a number of seconds") from exc
        try:
            concurrency = int(env.get("INVCONSOLE_IMPORT_CONCURRENCY") or 1)
        except ValueError as exc:
            raise ValueError("INVCONSOLE_IMPORT_CONCURRENCY must be an integer") from exc
        draft_path = env.get("INVCONSOLE_DRAFT_PATH")
        return cls(
            api_base_url=(env.get("INVCONSOLE_API_BASE_URL") or DEFAULT_API_BASE_URL).rstrip("/"),
            api_token=env.get("INVCONSOLE_API_TOKEN") or None,
            timeout=timeout,
            import_concurrency=max(1, concurrency),
            draft_path=Path(draft_path).expanduser() if draft_path else DEFAULT_DRAFT_PATH,
        )
