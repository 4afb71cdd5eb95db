"""Content-addressed object storage.

One immutable file per object, named by the SHA-1 of its bytes. Blobs and
commits live in separate directories.
"""

import hashlib
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import List, Optional

from lilgit.errors import AmbiguousCommitIdError, ObjectNotFoundError
from lilgit.models.commit import Commit

logger = logging.getLogger(__name__)

HASH_PREFIX = re.compile(r"[0-9a-f]{1,40}")


def compute_hash(data: bytes) -> str:
    """Hex SHA-1 of raw bytes."""
    return hashlib.sha1(data).hexdigest()  # noqa: S324


class ObjectStore:
    """Append-only store of immutable byte objects of one kind."""

    def __init__(self, root: Path, kind: str = "object"):
        self.root = Path(root)
        self.kind = kind

    def _path(self, object_hash: str) -> Path:
        return self.root / object_hash

    def put(self, data: bytes) -> str:
        """Store ``data`` if absent and return its hash."""
        object_hash = compute_hash(data)
        path = self._path(object_hash)
        if path.exists():
            return object_hash

        self.root.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("Stored %s %s (%d bytes)", self.kind, object_hash, len(data))
        return object_hash

    def get(self, object_hash: str) -> bytes:
        path = self._path(object_hash)
        if not path.is_file():
            raise ObjectNotFoundError(object_hash, self.kind)
        return path.read_bytes()

    def contains(self, object_hash: str) -> bool:
        return self._path(object_hash).is_file()

    def hashes(self) -> List[str]:
        """All stored hashes, sorted."""
        if not self.root.exists():
            return []
        return sorted(
            p.name for p in self.root.iterdir() if p.is_file() and not p.name.startswith(".")
        )

    def find(self, prefix: str) -> Optional[str]:
        """Resolve an abbreviated hash to a full one.

        Returns None when nothing matches, including anything that is not a
        lowercase hex string of at most 40 characters. Raises
        AmbiguousCommitIdError when more than one object matches.
        """
        if not HASH_PREFIX.fullmatch(prefix or ""):
            return None
        if self.contains(prefix):
            return prefix
        matches = [h for h in self.hashes() if h.startswith(prefix)]
        if len(matches) > 1:
            raise AmbiguousCommitIdError()
        return matches[0] if matches else None


class BlobStore(ObjectStore):
    """File contents."""

    def __init__(self, root: Path):
        super().__init__(root, kind="blob")


class CommitStore(ObjectStore):
    """Commits, stored in their canonical serialized form."""

    def __init__(self, root: Path):
        super().__init__(root, kind="commit")

    def put_commit(self, commit: Commit) -> str:
        return self.put(commit.serialize())

    def get_commit(self, commit_id: str) -> Commit:
        return Commit.deserialize(self.get(commit_id), commit_id)

    @staticmethod
    def commit_id(commit: Commit) -> str:
        return compute_hash(commit.serialize())
