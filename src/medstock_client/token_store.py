from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir

logger = logging.getLogger(__name__)

TOKEN_KEY = "medstock_token"


@dataclass
class TokenStore:
    """Durable home of the session token: one JSON file, one fixed key."""

    app_name: str = "medstock"
    filename: str = "session.json"
    base_dir: Path | None = None

    def _path(self) -> Path:
        base = self.base_dir or Path(user_data_dir(self.app_name, "MedStock"))
        base.mkdir(parents=True, exist_ok=True)
        return base / self.filename

    def save(self, token: str) -> None:
        path = self._path()
        path.write_text(json.dumps({TOKEN_KEY: token}, indent=2))
        try:
            path.chmod(0o600)
        except OSError:
            logger.warning("token_store_chmod_failed", extra={"path": str(path)})

    def load(self) -> str | None:
        path = self._path()
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError:
            logger.warning("token_store_corrupt", extra={"path": str(path)})
            self.clear()
            return None
        token = data.get(TOKEN_KEY) if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            self.clear()
            return None
        return token

    def clear(self) -> None:
        path = self._path()
        if path.exists():
            path.unlink()
