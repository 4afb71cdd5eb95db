"""lilgit repository: the operations behind every command.

All state lives on disk under ``.lilgit``. Every call reads what it needs
fresh and writes its changes back before returning; user errors are raised
before anything is mutated.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from lilgit.config import RepoConfig, load_config, save_config
from lilgit.core.graph import CommitGraph
from lilgit.core.merge import MergeEngine
from lilgit.core.object_store import BlobStore, CommitStore, compute_hash
from lilgit.core.refs import RefStore, validate_branch_name
from lilgit.core.staging import StagingStore
from lilgit.core.worktree import WorkingTree
from lilgit.errors import (
    AlreadyOnBranchError,
    BranchExistsError,
    BranchNotFoundError,
    CommitNotFoundError,
    CurrentBranchRemovalError,
    EmptyMessageError,
    FileNotInCommitError,
    FileNotInWorkingTreeError,
    MalformedObjectError,
    NoMatchingCommitError,
    NothingToCommitError,
    NothingToRemoveError,
    RepositoryExistsError,
    SelfMergeError,
    UncommittedChangesError,
    UntrackedFileError,
)
from lilgit.models.commit import Commit
from lilgit.models.merge import MergeAction, MergeResult, MergeStatus
from lilgit.models.stage import StagingArea

logger = logging.getLogger(__name__)

REPO_DIR = ".lilgit"


class StatusReport(BaseModel):
    """Everything ``status`` shows."""

    current_branch: str
    branches: List[str]
    staged: List[str]
    removed: List[str]
    modified: List[str]
    untracked: List[str]


def _local_now() -> datetime:
    return datetime.now().astimezone()


class Repository:
    """A lilgit repository rooted at ``project_root``."""

    def __init__(self, project_root: Path, clock: Optional[Callable[[], datetime]] = None):
        self.project_root = Path(project_root).resolve()
        self.lilgit_dir = self.project_root / REPO_DIR
        self.config_file = self.lilgit_dir / "config.json"
        self.debug_log_file = self.lilgit_dir / "debug.log"

        self.blobs = BlobStore(self.lilgit_dir / "objects" / "blobs")
        self.commits = CommitStore(self.lilgit_dir / "objects" / "commits")
        self.refs = RefStore(self.lilgit_dir)
        self.staging_store = StagingStore(self.lilgit_dir / "index.json")
        self.graph = CommitGraph(self.commits)
        self.worktree = WorkingTree(self.project_root, ignore=[REPO_DIR])
        self.merger = MergeEngine(self.blobs)
        self._clock = clock or _local_now

    @classmethod
    def find(cls, start: Optional[Path] = None) -> Optional["Repository"]:
        """Locate the repository containing ``start`` (default: cwd)."""
        current_dir = Path(start or Path.cwd()).resolve()
        for parent in [current_dir] + list(current_dir.parents):
            if (parent / REPO_DIR).is_dir():
                return cls(parent)
        return None

    @property
    def config(self) -> RepoConfig:
        return load_config(self.config_file)

    def exists(self) -> bool:
        return self.lilgit_dir.is_dir() and self.refs.head is not None

    def init(self) -> str:
        """Create the repository with its root commit; returns the root id."""
        if self.lilgit_dir.exists():
            raise RepositoryExistsError()

        self.lilgit_dir.mkdir()
        config = RepoConfig()
        save_config(self.config_file, config)

        root_id = self.commits.put_commit(Commit.root())
        self.refs.set_branch(config.default_branch, root_id)
        self.refs.head = root_id
        self.refs.current = config.default_branch
        self.staging_store.clear()

        logger.info("Initialized repository in %s", self.lilgit_dir)
        return root_id

    # Reading state

    @property
    def head_id(self) -> str:
        head = self.refs.head
        if not head:
            raise MalformedObjectError("HEAD ref is missing")
        return head

    @property
    def current_branch(self) -> str:
        current = self.refs.current
        if not current:
            raise MalformedObjectError("current branch ref is missing")
        return current

    def head_commit(self) -> Commit:
        return self.commits.get_commit(self.head_id)

    def resolve_commit(self, ref: str) -> str:
        """Full commit id for a possibly abbreviated one."""
        commit_id = self.commits.find(ref)
        if commit_id is None:
            raise CommitNotFoundError()
        return commit_id

    def get_commit(self, ref: str) -> Commit:
        return self.commits.get_commit(self.resolve_commit(ref))

    def history(self, start: Optional[str] = None) -> List[Tuple[str, Commit]]:
        """First-parent history, newest first."""
        start_id = self.resolve_commit(start) if start else self.head_id
        return list(self.graph.history(start_id))

    def all_commits(self) -> List[Tuple[str, Commit]]:
        return [(h, self.commits.get_commit(h)) for h in self.commits.hashes()]

    def find_by_message(self, message: str) -> List[str]:
        matches = [h for h, c in self.all_commits() if c.message == message]
        if not matches:
            raise NoMatchingCommitError()
        return matches

    def tracked_files(self, ref: Optional[str] = None) -> List[str]:
        commit = self.get_commit(ref) if ref else self.head_commit()
        return sorted(commit.tree)

    def staging(self) -> StagingArea:
        return self.staging_store.load()

    def status(self) -> StatusReport:
        head = self.head_commit()
        stage = self.staging_store.load()

        modified = []
        for path, blob_hash in head.tree.items():
            if path in stage.staged_add:
                continue
            if self.worktree.exists(path):
                if compute_hash(self.worktree.read(path)) != blob_hash:
                    modified.append(f"{path} (modified)")
            elif path not in stage.staged_remove:
                modified.append(f"{path} (deleted)")
        for path, blob_hash in stage.staged_add.items():
            if not self.worktree.exists(path):
                modified.append(f"{path} (deleted)")
            elif compute_hash(self.worktree.read(path)) != blob_hash:
                modified.append(f"{path} (modified)")

        untracked = [
            path
            for path in self.worktree.files()
            if (path not in stage.staged_add and path not in head.tree)
            or path in stage.staged_remove
        ]

        return StatusReport(
            current_branch=self.current_branch,
            branches=self.refs.branches(),
            staged=sorted(stage.staged_add),
            removed=sorted(stage.staged_remove),
            modified=sorted(modified),
            untracked=sorted(untracked),
        )

    # Staging

    def add(self, path: str) -> None:
        """Stage the working copy of ``path`` for the next commit."""
        if not self.worktree.exists(path):
            raise FileNotInWorkingTreeError()

        data = self.worktree.read(path)
        blob_hash = compute_hash(data)
        tracked = self.head_commit().tree.get(path)

        with self.staging_store.edit() as stage:
            if tracked == blob_hash:
                stage.discard(path)
                logger.debug("%s matches HEAD; nothing staged", path)
            else:
                self.blobs.put(data)
                stage.record_add(path, blob_hash)
                logger.info("Staged %s", path)

    def remove_tracked(self, path: str) -> None:
        """Unstage ``path`` and, if HEAD tracks it, stage its removal."""
        tracked = self.head_commit().tree.get(path)

        with self.staging_store.edit() as stage:
            if path in stage.staged_remove:
                return
            if stage.unstage(path) and tracked is None:
                logger.info("Unstaged %s", path)
                return
            if tracked is None:
                raise NothingToRemoveError()
            stage.record_remove(path, tracked)
            self.worktree.delete(path)
            logger.info("Staged removal of %s", path)

    # Commits

    def commit(self, message: str, second_parent: Optional[str] = None) -> str:
        """Fold the staging area onto HEAD and record it as a new commit.

        A merge commit (``second_parent`` set) is recorded even when nothing
        is staged.
        """
        if not message or not message.strip():
            raise EmptyMessageError()
        stage = self.staging_store.load()
        if stage.is_empty and second_parent is None:
            raise NothingToCommitError()
        if second_parent is not None and not self.commits.contains(second_parent):
            raise CommitNotFoundError()

        head_id = self.head_id
        parent = self.commits.get_commit(head_id)
        commit = Commit(
            message=message,
            timestamp=self._clock(),
            parent=head_id,
            second_parent=second_parent,
            tree=stage.build_snapshot(parent.tree),
        )
        commit_id = self.commits.put_commit(commit)
        self._move_head(commit_id)
        self.staging_store.clear()

        logger.info("Committed %s: %s", commit_id[:7], message)
        return commit_id

    def _move_head(self, commit_id: str) -> None:
        self.refs.head = commit_id
        self.refs.set_branch(self.current_branch, commit_id)

    # Checkout and reset

    def checkout_file(self, path: str, commit_ref: Optional[str] = None) -> None:
        """Restore ``path`` from a commit (HEAD by default) into the working tree."""
        commit_id = self.resolve_commit(commit_ref) if commit_ref else self.head_id
        tree = self.commits.get_commit(commit_id).tree
        if path not in tree:
            raise FileNotInCommitError()
        self.worktree.write(path, self.blobs.get(tree[path]))
        logger.info("Checked out %s from %s", path, commit_id[:7])

    def _guard_untracked(self, current_tree: Dict[str, str], incoming: Dict[str, str]) -> None:
        """Refuse to overwrite working files the current commit does not track."""
        for path, blob_hash in incoming.items():
            if path in current_tree or not self.worktree.exists(path):
                continue
            if compute_hash(self.worktree.read(path)) != blob_hash:
                raise UntrackedFileError(path)

    def _switch_tree(self, current_tree: Dict[str, str], target_tree: Dict[str, str]) -> None:
        self._guard_untracked(current_tree, target_tree)
        for path, blob_hash in target_tree.items():
            self.worktree.write(path, self.blobs.get(blob_hash))
        for path in current_tree:
            if path not in target_tree:
                self.worktree.delete(path)

    def checkout_branch(self, name: str) -> None:
        """Make ``name`` the current branch and check out its tip."""
        if not self.refs.has_branch(name):
            raise BranchNotFoundError("No such branch exists.")
        if name == self.current_branch:
            raise AlreadyOnBranchError()

        target_id = self.refs.branch(name)
        self._switch_tree(self.head_commit().tree, self.commits.get_commit(target_id).tree)
        self.refs.head = target_id
        self.refs.current = name
        self.staging_store.clear()
        logger.info("Switched to branch %s", name)

    def reset(self, commit_ref: str) -> None:
        """Check out a commit and move the current branch to it."""
        commit_id = self.resolve_commit(commit_ref)
        self._switch_tree(self.head_commit().tree, self.commits.get_commit(commit_id).tree)
        self._move_head(commit_id)
        self.staging_store.clear()
        logger.info("Reset %s to %s", self.current_branch, commit_id[:7])

    # Branches

    def create_branch(self, name: str) -> None:
        validate_branch_name(name)
        if self.refs.has_branch(name):
            raise BranchExistsError()
        self.refs.set_branch(name, self.head_id)
        logger.info("Created branch %s at %s", name, self.head_id[:7])

    def delete_branch(self, name: str) -> None:
        if not self.refs.has_branch(name):
            raise BranchNotFoundError()
        if name == self.current_branch:
            raise CurrentBranchRemovalError()
        self.refs.delete_branch(name)
        logger.info("Deleted branch %s", name)

    # Merge

    def merge(self, branch: str) -> MergeResult:
        """Merge the tip of ``branch`` into the current branch.

        Conflicting paths are written with conflict markers and committed;
        they are reported in the result, not raised.
        """
        if not self.staging_store.load().is_empty:
            raise UncommittedChangesError()
        if not self.refs.has_branch(branch):
            raise BranchNotFoundError()
        current_branch = self.current_branch
        if branch == current_branch:
            raise SelfMergeError()

        current_id = self.head_id
        given_id = self.refs.branch(branch)
        split_id = self.graph.split_point(given_id, current_id)

        if split_id == given_id:
            logger.info("%s is already contained in %s", branch, current_branch)
            return MergeResult(status=MergeStatus.NO_OP)

        current = self.commits.get_commit(current_id)
        given = self.commits.get_commit(given_id)

        if split_id == current_id:
            self._switch_tree(current.tree, given.tree)
            self._move_head(given_id)
            self.staging_store.clear()
            logger.info("Fast-forwarded %s to %s", current_branch, given_id[:7])
            return MergeResult(status=MergeStatus.FAST_FORWARDED, commit_id=given_id)

        split = self.commits.get_commit(split_id)
        plan = self.merger.plan(split.tree, current.tree, given.tree)

        writes: Dict[str, bytes] = {}
        for decision in plan.changes:
            content = self.merger.target_content(decision)
            if content is not None:
                writes[decision.path] = content
        self._guard_untracked(
            current.tree, {path: compute_hash(data) for path, data in writes.items()}
        )

        with self.staging_store.edit() as stage:
            for decision in plan.changes:
                if decision.action is MergeAction.REMOVE:
                    self.worktree.delete(decision.path)
                    stage.record_remove(decision.path, decision.current)
                    continue
                data = writes[decision.path]
                blob_hash = self.blobs.put(data)
                self.worktree.write(decision.path, data)
                stage.record_add(decision.path, blob_hash)

        commit_id = self.commit(f"Merged {branch} into {current_branch}.", second_parent=given_id)
        if plan.conflicts:
            logger.info("Merge of %s left conflicts in: %s", branch, ", ".join(plan.conflicts))
        return MergeResult(
            status=MergeStatus.COMPLETED, commit_id=commit_id, conflicts=plan.conflicts
        )
