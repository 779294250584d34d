"""Progress snapshot persistence (JSON + fcntl.flock + atomic write)."""

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

import structlog
from pydantic import ValidationError

from ..errors import DeserializationError, PersistenceError
from ..models.progress import UserProgress

logger = structlog.get_logger()

KEY_PREFIX = "progress_"


def progress_key(user_id: str) -> str:
    return f"{KEY_PREFIX}{user_id}"


def parse_snapshot(raw: str, key: str) -> UserProgress:
    """Parse a stored document, re-hydrating timestamps."""
    try:
        return UserProgress.model_validate_json(raw)
    except (ValidationError, ValueError) as e:
        raise DeserializationError(f"Malformed snapshot for {key}: {e}") from e


class ProgressStore(Protocol):
    """Whole-document key-value store for progress snapshots."""

    def load(self, key: str) -> UserProgress | None: ...

    def save(self, key: str, progress: UserProgress) -> None: ...

    def delete(self, key: str) -> None: ...


class FileProgressStore:
    """One JSON document per key inside ``directory``.

    Args:
        directory: Directory holding ``<key>.json`` files. Created if missing.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        """File for ``key``; the key is percent-encoded so it stays one path segment."""
        return self.directory / f"{quote(key, safe='')}.json"

    def load(self, key: str) -> UserProgress | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                raw = f.read()
                fcntl.flock(f, fcntl.LOCK_UN)
        except OSError as e:
            raise PersistenceError(f"Could not read {path}: {e}") from e
        return parse_snapshot(raw, key)

    def save(self, key: str, progress: UserProgress) -> None:
        path = self.path_for(key)
        data = json.loads(progress.to_json())
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", dir=self.directory, delete=False, suffix=".tmp", encoding="utf-8"
            ) as tmp:
                tmp_name = tmp.name
                json.dump(data, tmp, indent=2)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(f"Could not write {path}: {e}") from e
        logger.debug("progress_saved", key=key, path=str(path))

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Could not delete {path}: {e}") from e
        logger.debug("progress_deleted", key=key)


class InMemoryProgressStore:
    """Keeps serialised snapshots in a dict. Used for tests and ephemeral runs."""

    def __init__(self) -> None:
        self._documents: dict[str, str] = {}

    def load(self, key: str) -> UserProgress | None:
        raw = self._documents.get(key)
        if raw is None:
            return None
        return parse_snapshot(raw, key)

    def save(self, key: str, progress: UserProgress) -> None:
        self._documents[key] = progress.to_json()

    def delete(self, key: str) -> None:
        self._documents.pop(key, None)
