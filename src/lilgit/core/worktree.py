"""Raw byte access to files in the working directory."""

import logging
import os
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


class WorkingTree:
    """Reads and writes working files by repository-relative POSIX path."""

    def __init__(self, root: Path, ignore: Optional[List[str]] = None):
        self.root = Path(root)
        self.ignore = set(ignore or [])

    def _path(self, path: str) -> Path:
        return self.root / path

    def exists(self, path: str) -> bool:
        return self._path(path).is_file()

    def read(self, path: str) -> bytes:
        return self._path(path).read_bytes()

    def write(self, path: str, data: bytes) -> None:
        target = self._path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.debug("Wrote %s (%d bytes)", path, len(data))

    def delete(self, path: str) -> bool:
        """Remove a working file, pruning directories it leaves empty."""
        target = self._path(path)
        if not target.is_file():
            return False
        target.unlink()
        parent = target.parent
        while parent != self.root and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent
        logger.debug("Deleted %s", path)
        return True

    def files(self) -> List[str]:
        """Every file under the root, skipping ignored top-level entries."""
        result = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            rel_dir = Path(dirpath).relative_to(self.root)
            if rel_dir == Path("."):
                dirnames[:] = [d for d in dirnames if d not in self.ignore]
                filenames = [f for f in filenames if f not in self.ignore]
            for name in filenames:
                result.append((rel_dir / name).as_posix())
        return sorted(result)
