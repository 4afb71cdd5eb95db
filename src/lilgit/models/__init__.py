"""Data models for lilgit."""

from .commit import Commit
from .merge import (
    MergeAction,
    MergeCase,
    MergePlan,
    MergeResult,
    MergeStatus,
    PathDecision,
    PathState,
)
from .stage import StagingArea

__all__ = [
    "Commit",
    "MergeAction",
    "MergeCase",
    "MergePlan",
    "MergeResult",
    "MergeStatus",
    "PathDecision",
    "PathState",
    "StagingArea",
]
