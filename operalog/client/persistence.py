"""
Local snapshot storage for the client store.

The snapshot is one JSON document stored under a fixed name, so a
restarted client can show its last catalog and lists before the network
answers.
"""

import json
import logging
from pathlib import Path
from typing import Any

from operalog.config import STORAGE_NAME, settings

logger = logging.getLogger(__name__)


class SnapshotStorage:
    """Reads and writes `<directory>/<name>.json`."""

    def __init__(self, directory: Path | None = None, name: str = STORAGE_NAME) -> None:
        self.directory = directory or settings.state_dir
        self.name = name

    @property
    def path(self) -> Path:
        return self.directory / f"{self.name}.json"

    def save(self, snapshot: dict[str, Any]) -> Path:
        """Write the snapshot, replacing any previous one."""
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(snapshot, f, ensure_ascii=False)
        tmp_path.replace(self.path)
        return self.path

    def load(self) -> dict[str, Any] | None:
        """
        Read the snapshot.

        Returns None if there is none or it cannot be parsed.
        """
        if not self.path.exists():
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable snapshot %s: %s", self.path, e)
            return None

        if not isinstance(data, dict):
            logger.warning("Ignoring malformed snapshot %s", self.path)
            return None
        return data

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
