"""Three-way merge classification.

Given the trees of the split point, the current head and the commit being
merged in, decide per path whether to keep the current version, take the given
one, remove the path or write a conflict block.
"""

import logging
from typing import Dict, Optional

from lilgit.core.object_store import BlobStore
from lilgit.errors import IntegrityError
from lilgit.models.merge import (
    CASE_TABLE,
    MergeCase,
    MergePlan,
    PathDecision,
    PathState,
)

logger = logging.getLogger(__name__)

CONFLICT_START = b"<<<<<<< HEAD\n"
CONFLICT_SEPARATOR = b"=======\n"
CONFLICT_END = b">>>>>>>\n"


def side_state(split: Optional[str], side: Optional[str]) -> PathState:
    """State of one side's blob relative to the split point's blob."""
    if split is None:
        return PathState.ABSENT if side is None else PathState.ADDED
    if side is None:
        return PathState.REMOVED
    return PathState.UNCHANGED if side == split else PathState.MODIFIED


def classify(split: Optional[str], current: Optional[str], given: Optional[str]) -> MergeCase:
    """Select the merge case for one path from its three blob hashes."""
    key = (side_state(split, current), side_state(split, given), current == given)
    try:
        return CASE_TABLE[key]
    except KeyError:
        raise IntegrityError(
            f"Unclassifiable merge state: split={split} current={current} given={given}"
        ) from None


def conflict_content(current: bytes, given: bytes) -> bytes:
    """Conflict block with both sides; either side may be empty."""
    return CONFLICT_START + current + CONFLICT_SEPARATOR + given + CONFLICT_END


class MergeEngine:
    """Plans a merge and renders conflict files from stored blobs."""

    def __init__(self, blobs: BlobStore):
        self.blobs = blobs

    def plan(
        self,
        split_tree: Dict[str, str],
        current_tree: Dict[str, str],
        given_tree: Dict[str, str],
    ) -> MergePlan:
        paths = sorted(set(split_tree) | set(current_tree) | set(given_tree))
        decisions = []
        for path in paths:
            split = split_tree.get(path)
            current = current_tree.get(path)
            given = given_tree.get(path)
            case = classify(split, current, given)
            logger.debug("Merge %s: %s", path, case.value)
            decisions.append(
                PathDecision(path=path, case=case, split=split, current=current, given=given)
            )
        return MergePlan(decisions=decisions)

    def _content(self, blob_hash: Optional[str]) -> bytes:
        if blob_hash is None:
            return b""
        return self.blobs.get(blob_hash)

    def render_conflict(self, decision: PathDecision) -> bytes:
        return conflict_content(self._content(decision.current), self._content(decision.given))

    def target_content(self, decision: PathDecision) -> Optional[bytes]:
        """Bytes the merge will leave at the path, or None if it is left absent.

        Only meaningful for decisions that change the working tree.
        """
        if decision.case.is_conflict:
            return self.render_conflict(decision)
        if decision.given is not None and decision.case in (
            MergeCase.GIVEN_MODIFIED,
            MergeCase.ADDED_IN_GIVEN,
        ):
            return self.blobs.get(decision.given)
        return None
