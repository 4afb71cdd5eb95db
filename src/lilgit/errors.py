"""Error types for lilgit.

User errors are expected and carry the message shown to the user.
Integrity errors mean the repository on disk is damaged.
"""

from typing import Optional


class LilgitError(Exception):
    """Base exception for all lilgit errors."""


class UserError(LilgitError):
    """A request that cannot be carried out in the current repository state."""

    message = "Invalid request."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class NotARepositoryError(UserError):
    message = "Not in an initialized lilgit directory."


class RepositoryExistsError(UserError):
    message = "A lilgit version-control system already exists in the current directory."


class EmptyMessageError(UserError):
    message = "Please enter a commit message."


class NothingToCommitError(UserError):
    message = "No changes added to the commit."


class NothingToRemoveError(UserError):
    message = "No reason to remove the file."


class FileNotInWorkingTreeError(UserError):
    message = "File does not exist."


class FileNotInCommitError(UserError):
    message = "File does not exist in that commit."


class CommitNotFoundError(UserError):
    message = "No commit with that id exists."


class AmbiguousCommitIdError(UserError):
    message = "Commit id is ambiguous; use more characters."


class NoMatchingCommitError(UserError):
    message = "Found no commit with that message."


class BranchExistsError(UserError):
    message = "A branch with that name already exists."


class BranchNotFoundError(UserError):
    message = "A branch with that name does not exist."


class InvalidBranchNameError(UserError):
    message = "Branch names must be non-empty and may not contain path separators."


class AlreadyOnBranchError(UserError):
    message = "No need to checkout the current branch."


class CurrentBranchRemovalError(UserError):
    message = "Cannot remove the current branch."


class SelfMergeError(UserError):
    message = "Cannot merge a branch with itself."


class UncommittedChangesError(UserError):
    message = "You have uncommitted changes."


class UntrackedFileError(UserError):
    """Raised when an untracked working file would be overwritten."""

    message = "There is an untracked file in the way; delete it, or add and commit it first."

    def __init__(self, path: Optional[str] = None):
        self.path = path
        super().__init__()


class IntegrityError(LilgitError):
    """The stored repository state violates one of its invariants."""


class ObjectNotFoundError(IntegrityError):
    """Raised when a requested object does not exist."""

    def __init__(self, object_hash: str, kind: str = "object"):
        self.object_hash = object_hash
        self.kind = kind
        super().__init__(f"{kind.capitalize()} not found: {object_hash}")


class MalformedObjectError(IntegrityError):
    """Raised when a stored record cannot be decoded."""

    def __init__(self, reason: str, object_hash: Optional[str] = None):
        self.reason = reason
        self.object_hash = object_hash
        msg = f"Malformed object: {reason}"
        if object_hash:
            msg += f" (hash: {object_hash})"
        super().__init__(msg)


class NoCommonAncestorError(IntegrityError):
    """Raised when two commits share no history."""

    def __init__(self, first: str, second: str):
        self.first = first
        self.second = second
        super().__init__(f"No common ancestor between {first} and {second}")
