"""Merge classification types.

Every path touched by a merge is described by the state it has on each side
relative to the split point. The pair of states, together with whether the two
sides ended up with the same blob, selects exactly one ``MergeCase``.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel


class PathState(str, Enum):
    """State of a path on one side of the merge, relative to the split point."""

    UNCHANGED = "unchanged"
    MODIFIED = "modified"
    REMOVED = "removed"
    ADDED = "added"
    ABSENT = "absent"


class MergeAction(str, Enum):
    KEEP = "keep"
    TAKE_GIVEN = "take_given"
    REMOVE = "remove"
    CONFLICT = "conflict"


class MergeCase(str, Enum):
    UNCHANGED_BOTH = "unchanged_both"
    GIVEN_MODIFIED = "given_modified"
    GIVEN_REMOVED = "given_removed"
    CURRENT_MODIFIED = "current_modified"
    CURRENT_REMOVED = "current_removed"
    CONVERGED = "converged"
    BOTH_MODIFIED = "both_modified"
    MODIFIED_VS_REMOVED = "modified_vs_removed"
    REMOVED_VS_MODIFIED = "removed_vs_modified"
    BOTH_REMOVED = "both_removed"
    ADDED_IN_GIVEN = "added_in_given"
    ADDED_IN_CURRENT = "added_in_current"
    ADDED_IDENTICALLY = "added_identically"
    ADDED_DIFFERENTLY = "added_differently"

    @property
    def action(self) -> MergeAction:
        return CASE_ACTIONS[self]

    @property
    def is_conflict(self) -> bool:
        return self.action is MergeAction.CONFLICT


S = PathState

# (current state, given state, current blob == given blob) -> case
CASE_TABLE: Dict[Tuple[PathState, PathState, bool], MergeCase] = {
    (S.UNCHANGED, S.UNCHANGED, True): MergeCase.UNCHANGED_BOTH,
    (S.UNCHANGED, S.MODIFIED, False): MergeCase.GIVEN_MODIFIED,
    (S.UNCHANGED, S.REMOVED, False): MergeCase.GIVEN_REMOVED,
    (S.MODIFIED, S.UNCHANGED, False): MergeCase.CURRENT_MODIFIED,
    (S.REMOVED, S.UNCHANGED, False): MergeCase.CURRENT_REMOVED,
    (S.MODIFIED, S.MODIFIED, True): MergeCase.CONVERGED,
    (S.MODIFIED, S.MODIFIED, False): MergeCase.BOTH_MODIFIED,
    (S.MODIFIED, S.REMOVED, False): MergeCase.MODIFIED_VS_REMOVED,
    (S.REMOVED, S.MODIFIED, False): MergeCase.REMOVED_VS_MODIFIED,
    (S.REMOVED, S.REMOVED, True): MergeCase.BOTH_REMOVED,
    (S.ABSENT, S.ADDED, False): MergeCase.ADDED_IN_GIVEN,
    (S.ADDED, S.ABSENT, False): MergeCase.ADDED_IN_CURRENT,
    (S.ADDED, S.ADDED, True): MergeCase.ADDED_IDENTICALLY,
    (S.ADDED, S.ADDED, False): MergeCase.ADDED_DIFFERENTLY,
}

del S

CASE_ACTIONS: Dict[MergeCase, MergeAction] = {
    MergeCase.UNCHANGED_BOTH: MergeAction.KEEP,
    MergeCase.GIVEN_MODIFIED: MergeAction.TAKE_GIVEN,
    MergeCase.GIVEN_REMOVED: MergeAction.REMOVE,
    MergeCase.CURRENT_MODIFIED: MergeAction.KEEP,
    MergeCase.CURRENT_REMOVED: MergeAction.KEEP,
    MergeCase.CONVERGED: MergeAction.KEEP,
    MergeCase.BOTH_MODIFIED: MergeAction.CONFLICT,
    MergeCase.MODIFIED_VS_REMOVED: MergeAction.CONFLICT,
    MergeCase.REMOVED_VS_MODIFIED: MergeAction.CONFLICT,
    MergeCase.BOTH_REMOVED: MergeAction.KEEP,
    MergeCase.ADDED_IN_GIVEN: MergeAction.TAKE_GIVEN,
    MergeCase.ADDED_IN_CURRENT: MergeAction.KEEP,
    MergeCase.ADDED_IDENTICALLY: MergeAction.KEEP,
    MergeCase.ADDED_DIFFERENTLY: MergeAction.CONFLICT,
}


class PathDecision(BaseModel):
    """How one path is merged."""

    path: str
    case: MergeCase
    split: Optional[str] = None
    current: Optional[str] = None
    given: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def action(self) -> MergeAction:
        return self.case.action


class MergePlan(BaseModel):
    """Decisions for every path in split, current and given trees, sorted by path."""

    decisions: List[PathDecision] = []

    @property
    def conflicts(self) -> List[str]:
        return [d.path for d in self.decisions if d.case.is_conflict]

    def with_action(self, action: MergeAction) -> List[PathDecision]:
        return [d for d in self.decisions if d.action is action]

    @property
    def changes(self) -> List[PathDecision]:
        """Decisions that touch the working tree or the staging area."""
        return [d for d in self.decisions if d.action is not MergeAction.KEEP]


class MergeStatus(str, Enum):
    FAST_FORWARDED = "fast_forwarded"
    NO_OP = "no_op"
    COMPLETED = "completed"


class MergeResult(BaseModel):
    """Outcome of merging a branch into the current one."""

    status: MergeStatus
    commit_id: Optional[str] = None
    conflicts: List[str] = []

    @property
    def had_conflicts(self) -> bool:
        return bool(self.conflicts)
