"""Persistent storage for the access token."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_KEY = "userToken"


class FileCredentialStore:
    """JSON object file holding the token under a fixed key."""

    def __init__(self, path: Path, key: str = DEFAULT_KEY) -> None:
        self._path = path
        self._key = key

    def load(self) -> str | None:
        data = self._read()
        token = data.get(self._key)
        return token if isinstance(token, str) and token else None

    def save(self, token: str) -> None:
        data = self._read()
        data[self._key] = token
        self._write(data)

    def clear(self) -> None:
        data = self._read()
        if data.pop(self._key, None) is not None:
            self._write(data)

    def _read(self) -> dict[str, object]:
        try:
            data = json.loads(self._path.read_text())
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            logger.warning("Credentials file %s is unreadable, ignoring it", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, object]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data))
        self._path.chmod(0o600)


@dataclass
class MemoryCredentialStore:
    token: str | None = None

    def load(self) -> str | None:
        return self.token

    def save(self, token: str) -> None:
        self.token = token

    def clear(self) -> None:
        self.token = None
