"""Mutable references: branches, HEAD and the active branch name."""

import logging
from pathlib import Path
from typing import List, Optional

from lilgit.errors import InvalidBranchNameError

logger = logging.getLogger(__name__)

HEAD = "HEAD"
CURRENT = "CURRENT"
HEADS_DIR = "refs/heads"


def validate_branch_name(name: str) -> None:
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        raise InvalidBranchNameError()


class RefStore:
    """Small key-value store of text refs, one file per key under ``root``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / key

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8").strip()

    def write(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(value, encoding="utf-8")
        logger.debug("Ref %s -> %s", key, value)

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.is_file():
            return False
        path.unlink()
        logger.debug("Ref %s deleted", key)
        return True

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    # Named accessors

    @property
    def head(self) -> Optional[str]:
        return self.read(HEAD)

    @head.setter
    def head(self, commit_id: str) -> None:
        self.write(HEAD, commit_id)

    @property
    def current(self) -> Optional[str]:
        return self.read(CURRENT)

    @current.setter
    def current(self, branch: str) -> None:
        self.write(CURRENT, branch)

    def branch(self, name: str) -> Optional[str]:
        return self.read(f"{HEADS_DIR}/{name}")

    def set_branch(self, name: str, commit_id: str) -> None:
        validate_branch_name(name)
        self.write(f"{HEADS_DIR}/{name}", commit_id)

    def delete_branch(self, name: str) -> bool:
        return self.delete(f"{HEADS_DIR}/{name}")

    def has_branch(self, name: str) -> bool:
        if not name or "/" in name:
            return False
        return self.exists(f"{HEADS_DIR}/{name}")

    def branches(self) -> List[str]:
        heads = self._path(HEADS_DIR)
        if not heads.exists():
            return []
        return sorted(p.name for p in heads.iterdir() if p.is_file())
