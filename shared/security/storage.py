import json
from pathlib import Path
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


class SessionStore:
    """
    String key/value store behind the session context.

    Mirrors browser local storage: values are plain strings (user records are
    stored as JSON text). Backed by a JSON file when a path is given,
    memory-only otherwise.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._data: dict[str, str] = self._read()

    def _read(self) -> dict[str, str]:
        if not self.path or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("session_store_unreadable", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        if not self.path:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data), encoding="utf-8")

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, *keys: str) -> None:
        changed = False
        for key in keys:
            if self._data.pop(key, None) is not None:
                changed = True
        if changed:
            self._flush()
