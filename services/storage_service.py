# services/storage_service.py
import logging
from pathlib import Path
from typing import Iterable, Union

from core.config import settings

logger = logging.getLogger(__name__)


class ObjectStorage:
    """Attachment store on the local filesystem, keyed by relative path."""

    def __init__(self, root: Union[str, Path, None] = None):
        self.root = Path(root or settings.UPLOAD_DIR)

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Storage key escapes upload root: {key}")
        return path

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        if not path.exists():
            logger.warning("Attachment %s already missing from storage", key)
            return False
        path.unlink()
        return True

    def delete_many(self, keys: Iterable[str]) -> int:
        """Remove every key; missing files are skipped. Returns the number removed."""
        removed = 0
        for key in keys:
            try:
                if self.delete(key):
                    removed += 1
            except (OSError, ValueError) as e:
                logger.error("Failed to delete attachment %s: %s", key, e)
        return removed


storage = ObjectStorage()
