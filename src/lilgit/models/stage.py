"""Staging area model: the delta the next commit applies to its parent."""

from typing import Dict

from pydantic import BaseModel, Field


class StagingArea(BaseModel):
    """Pending additions and removals.

    A path is never in both maps. ``staged_remove`` keeps the hash the path
    had in the parent commit.
    """

    staged_add: Dict[str, str] = Field(default_factory=dict)
    staged_remove: Dict[str, str] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.staged_add and not self.staged_remove

    def record_add(self, path: str, blob_hash: str) -> None:
        self.staged_remove.pop(path, None)
        self.staged_add[path] = blob_hash

    def record_remove(self, path: str, prior_hash: str) -> None:
        self.staged_add.pop(path, None)
        self.staged_remove[path] = prior_hash

    def unstage(self, path: str) -> bool:
        """Drop a pending addition. Returns True if there was one."""
        return self.staged_add.pop(path, None) is not None

    def discard(self, path: str) -> None:
        """Forget the path entirely."""
        self.staged_add.pop(path, None)
        self.staged_remove.pop(path, None)

    def build_snapshot(self, parent_tree: Dict[str, str]) -> Dict[str, str]:
        """Fold the pending delta onto a copy of ``parent_tree``."""
        tree = dict(parent_tree)
        tree.update(self.staged_add)
        for path in self.staged_remove:
            tree.pop(path, None)
        return dict(sorted(tree.items()))

    def clear(self) -> None:
        self.staged_add.clear()
        self.staged_remove.clear()
