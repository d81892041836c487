# tracker/services/local_store.py
"""
Local persistence: the whole snapshot as one JSON document.

The document lives at <data_dir>/<storage_key>.json and is always written as
a unit (temp file + os.replace), so readers never see half a snapshot.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..errors import PersistenceCorruptError
from ..models.entities import Snapshot

logger = logging.getLogger(__name__)


class LocalStore:
    def __init__(self, data_dir: Path, storage_key: str = "asepsData"):
        self.data_dir = Path(data_dir)
        self.storage_key = storage_key

    @property
    def path(self) -> Path:
        return self.data_dir / f"{self.storage_key}.json"

    def save(self, snapshot: Snapshot) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(snapshot.to_dict(), ensure_ascii=False, indent=2)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.storage_key}.", suffix=".tmp", dir=self.data_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def read(self) -> Optional[Snapshot]:
        """
        Read the blob.

        Returns None when there is no blob; raises PersistenceCorruptError when
        the blob exists but is not a valid snapshot, including records that
        fail validation.
        """
        if not self.path.exists():
            return None
        try:
            raw = self.path.read_text(encoding="utf-8")
            return Snapshot.from_dict(json.loads(raw))
        except (OSError, ValueError) as e:
            raise PersistenceCorruptError(f"{self.path}: {e}") from e

    def load(self) -> Optional[Snapshot]:
        """Like read(), but a corrupt blob counts as absent."""
        try:
            return self.read()
        except PersistenceCorruptError as e:
            logger.warning("Ignoring unreadable local data: %s", e)
            return None

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
