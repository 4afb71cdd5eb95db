"""Commit graph queries.

Edges are parent hashes looked up in the commit store; no commit holds a
reference to another in memory.
"""

import logging
from collections import deque
from typing import Iterator, List, Set, Tuple

from lilgit.core.object_store import CommitStore
from lilgit.errors import NoCommonAncestorError
from lilgit.models.commit import Commit

logger = logging.getLogger(__name__)


class CommitGraph:
    """Ancestry and split-point queries over stored commits."""

    def __init__(self, commits: CommitStore):
        self.commits = commits

    def parents(self, commit_id: str) -> List[str]:
        """Non-null parents of a commit in lexicographic order."""
        commit = self.commits.get_commit(commit_id)
        return sorted(p for p in commit.parents if p is not None)

    def _bfs(self, start: str) -> Iterator[str]:
        """Breadth-first walk over both parent links, each commit once."""
        visited: Set[str] = {start}
        queue = deque([start])
        while queue:
            commit_id = queue.popleft()
            yield commit_id
            for parent in self.parents(commit_id):
                if parent not in visited:
                    visited.add(parent)
                    queue.append(parent)

    def ancestors(self, commit_id: str) -> Set[str]:
        """Every commit reachable from ``commit_id``, itself included."""
        return set(self._bfs(commit_id))

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return ancestor in self.ancestors(descendant)

    def split_point(self, a: str, b: str) -> str:
        """The merge base of ``a`` and ``b``.

        Returns ``b`` when it is already an ancestor of ``a``. Otherwise the
        first commit reached breadth-first from ``b`` that is also an ancestor
        of ``a``, visiting the two parents of a merge commit in lexicographic
        order. With several common ancestors at the same depth this picks the
        first under that order, not necessarily the best one.
        """
        a_ancestors = self.ancestors(a)
        if b in a_ancestors:
            return b
        for commit_id in self._bfs(b):
            if commit_id in a_ancestors:
                logger.debug("Split point of %s and %s is %s", a, b, commit_id)
                return commit_id
        raise NoCommonAncestorError(a, b)

    def history(self, start: str) -> Iterator[Tuple[str, Commit]]:
        """Follow first parents from ``start`` back to the root commit."""
        commit_id = start
        while commit_id is not None:
            commit = self.commits.get_commit(commit_id)
            yield commit_id, commit
            commit_id = commit.parent
