"""Tests for Repository staging, commits, branches, checkout and reset."""

import tempfile
from pathlib import Path

import pytest

from lilgit.core.repository import Repository
from lilgit.errors import (
    AlreadyOnBranchError,
    BranchExistsError,
    BranchNotFoundError,
    CommitNotFoundError,
    CurrentBranchRemovalError,
    EmptyMessageError,
    FileNotInCommitError,
    FileNotInWorkingTreeError,
    InvalidBranchNameError,
    NoMatchingCommitError,
    NothingToCommitError,
    NothingToRemoveError,
    RepositoryExistsError,
    UntrackedFileError,
)


@pytest.fixture
def repo():
    """Create an initialized repository in a temporary directory."""
    with tempfile.TemporaryDirectory() as temp_dir:
        repo = Repository(Path(temp_dir))
        repo.init()
        yield repo


def write(repo, path, text):
    target = repo.project_root / path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text)


def read(repo, path):
    return (repo.project_root / path).read_text()


def commit_file(repo, path, text, message=None):
    write(repo, path, text)
    repo.add(path)
    return repo.commit(message or f"update {path}")


def test_repository_init(repo):
    assert repo.exists()
    assert repo.config_file.exists()
    assert repo.current_branch == "master"
    assert repo.refs.branches() == ["master"]
    assert repo.head_commit().message == "initial commit"
    assert repo.staging().is_empty


def test_init_twice_fails(repo):
    with pytest.raises(RepositoryExistsError):
        Repository(repo.project_root).init()


def test_find_from_subdirectory(repo):
    subdir = repo.project_root / "a" / "b"
    subdir.mkdir(parents=True)

    found = Repository.find(subdir)

    assert found is not None
    assert found.project_root == repo.project_root


def test_add_and_commit(repo):
    write(repo, "hello.txt", "hello")
    repo.add("hello.txt")

    assert list(repo.staging().staged_add) == ["hello.txt"]

    root_id = repo.head_id
    commit_id = repo.commit("add hello")

    commit = repo.head_commit()
    assert repo.head_id == commit_id
    assert repo.refs.branch("master") == commit_id
    assert commit.parent == root_id
    assert commit.second_parent is None
    assert commit.message == "add hello"
    assert repo.blobs.get(commit.tree["hello.txt"]) == b"hello"
    assert repo.staging().is_empty


def test_add_missing_file(repo):
    with pytest.raises(FileNotInWorkingTreeError):
        repo.add("missing.txt")


def test_add_unchanged_file_stages_nothing(repo):
    commit_file(repo, "a.txt", "one")
    repo.add("a.txt")
    assert repo.staging().is_empty


def test_add_reverted_file_unstages(repo):
    commit_file(repo, "a.txt", "one")
    write(repo, "a.txt", "two")
    repo.add("a.txt")
    write(repo, "a.txt", "one")
    repo.add("a.txt")

    assert repo.staging().is_empty


def test_readd_cancels_removal(repo):
    commit_file(repo, "a.txt", "one")
    repo.remove_tracked("a.txt")
    write(repo, "a.txt", "one")
    repo.add("a.txt")

    assert repo.staging().is_empty


def test_commit_requires_message(repo):
    write(repo, "a.txt", "one")
    repo.add("a.txt")
    with pytest.raises(EmptyMessageError):
        repo.commit("")
    assert not repo.staging().is_empty


def test_commit_requires_changes(repo):
    with pytest.raises(NothingToCommitError):
        repo.commit("nothing")


def test_commit_folds_onto_parent(repo):
    commit_file(repo, "a.txt", "one")
    commit_file(repo, "b.txt", "two")

    assert repo.tracked_files() == ["a.txt", "b.txt"]


def test_nested_paths(repo):
    commit_file(repo, "src/pkg/mod.py", "x = 1\n")
    assert repo.tracked_files() == ["src/pkg/mod.py"]


def test_rm_tracked_file(repo):
    commit_file(repo, "a.txt", "one")

    repo.remove_tracked("a.txt")

    assert not (repo.project_root / "a.txt").exists()
    stage = repo.staging()
    assert stage.staged_remove == {"a.txt": repo.head_commit().tree["a.txt"]}
    repo.commit("remove a")
    assert repo.tracked_files() == []


def test_rm_staged_only_file_keeps_it(repo):
    write(repo, "new.txt", "new")
    repo.add("new.txt")

    repo.remove_tracked("new.txt")

    assert (repo.project_root / "new.txt").exists()
    assert repo.staging().is_empty


def test_rm_staged_and_tracked(repo):
    commit_file(repo, "a.txt", "one")
    write(repo, "a.txt", "two")
    repo.add("a.txt")

    repo.remove_tracked("a.txt")

    stage = repo.staging()
    assert stage.staged_add == {}
    assert "a.txt" in stage.staged_remove
    assert not (repo.project_root / "a.txt").exists()


def test_rm_twice_is_noop(repo):
    commit_file(repo, "a.txt", "one")
    repo.remove_tracked("a.txt")
    repo.remove_tracked("a.txt")
    assert list(repo.staging().staged_remove) == ["a.txt"]


def test_rm_untracked_file(repo):
    write(repo, "loose.txt", "x")
    with pytest.raises(NothingToRemoveError):
        repo.remove_tracked("loose.txt")
    assert repo.staging().is_empty


def test_checkout_file_from_head(repo):
    commit_file(repo, "a.txt", "one")
    write(repo, "a.txt", "scribble")

    repo.checkout_file("a.txt")

    assert read(repo, "a.txt") == "one"


def test_checkout_file_from_abbreviated_commit(repo):
    first = commit_file(repo, "a.txt", "one")
    commit_file(repo, "a.txt", "two")

    repo.checkout_file("a.txt", first[:8])

    assert read(repo, "a.txt") == "one"
    assert repo.head_commit().tree["a.txt"] != repo.get_commit(first).tree["a.txt"]


def test_checkout_file_errors(repo):
    commit_file(repo, "a.txt", "one")
    with pytest.raises(FileNotInCommitError):
        repo.checkout_file("b.txt")
    with pytest.raises(CommitNotFoundError):
        repo.checkout_file("a.txt", "f" * 40)


def test_branch_create_and_delete(repo):
    repo.create_branch("feature")
    assert repo.refs.branch("feature") == repo.head_id

    with pytest.raises(BranchExistsError):
        repo.create_branch("feature")

    repo.delete_branch("feature")
    assert repo.refs.branches() == ["master"]

    with pytest.raises(BranchNotFoundError):
        repo.delete_branch("feature")
    with pytest.raises(CurrentBranchRemovalError):
        repo.delete_branch("master")


def test_invalid_branch_name(repo):
    with pytest.raises(InvalidBranchNameError):
        repo.create_branch("a/b")
    with pytest.raises(InvalidBranchNameError):
        repo.create_branch("")


def test_checkout_branch_switches_tree(repo):
    commit_file(repo, "shared.txt", "base")
    repo.create_branch("feature")
    repo.checkout_branch("feature")
    commit_file(repo, "feature.txt", "feature only")
    commit_file(repo, "shared.txt", "changed on feature")

    repo.checkout_branch("master")

    assert repo.current_branch == "master"
    assert read(repo, "shared.txt") == "base"
    assert not (repo.project_root / "feature.txt").exists()

    repo.checkout_branch("feature")
    assert read(repo, "feature.txt") == "feature only"
    assert read(repo, "shared.txt") == "changed on feature"


def test_checkout_branch_errors(repo):
    with pytest.raises(BranchNotFoundError):
        repo.checkout_branch("nope")
    with pytest.raises(AlreadyOnBranchError):
        repo.checkout_branch("master")


def test_checkout_branch_blocked_by_untracked_file(repo):
    repo.create_branch("feature")
    repo.checkout_branch("feature")
    commit_file(repo, "a.txt", "feature version")
    repo.checkout_branch("master")
    write(repo, "a.txt", "my unsaved work")

    with pytest.raises(UntrackedFileError) as exc_info:
        repo.checkout_branch("feature")

    assert exc_info.value.path == "a.txt"
    assert repo.current_branch == "master"
    assert read(repo, "a.txt") == "my unsaved work"


def test_checkout_branch_allows_identical_untracked_file(repo):
    repo.create_branch("feature")
    repo.checkout_branch("feature")
    commit_file(repo, "a.txt", "same")
    repo.checkout_branch("master")
    write(repo, "a.txt", "same")

    repo.checkout_branch("feature")

    assert repo.current_branch == "feature"


def test_checkout_branch_clears_staging(repo):
    repo.create_branch("feature")
    write(repo, "a.txt", "staged")
    repo.add("a.txt")

    repo.checkout_branch("feature")

    assert repo.staging().is_empty


def test_reset(repo):
    first = commit_file(repo, "a.txt", "one")
    commit_file(repo, "b.txt", "two")

    repo.reset(first[:10])

    assert repo.head_id == first
    assert repo.refs.branch("master") == first
    assert not (repo.project_root / "b.txt").exists()
    assert read(repo, "a.txt") == "one"


def test_reset_unknown_commit(repo):
    with pytest.raises(CommitNotFoundError):
        repo.reset("deadbeef")


@pytest.mark.parametrize("ref", ["../../HEAD", "../../config.json", "../../index.json"])
def test_reset_to_path_outside_commit_store(repo, ref):
    head = repo.head_id

    with pytest.raises(CommitNotFoundError):
        repo.reset(ref)

    assert repo.head_id == head


def test_checkout_file_from_blob_path(repo):
    commit_file(repo, "a.txt", "one")
    blob_hash = repo.head_commit().tree["a.txt"]

    with pytest.raises(CommitNotFoundError):
        repo.checkout_file("a.txt", commit_ref=f"../blobs/{blob_hash}")


def test_reset_blocked_by_untracked_file(repo):
    base = commit_file(repo, "a.txt", "one")
    tip = commit_file(repo, "u.txt", "committed")
    repo.reset(base)
    assert not (repo.project_root / "u.txt").exists()
    write(repo, "u.txt", "untracked work")

    with pytest.raises(UntrackedFileError) as exc_info:
        repo.reset(tip)

    assert exc_info.value.path == "u.txt"
    assert repo.head_id == base
    assert repo.refs.branch("master") == base
    assert read(repo, "u.txt") == "untracked work"


def test_history_and_find(repo):
    first = commit_file(repo, "a.txt", "one", message="same message")
    second = commit_file(repo, "a.txt", "two", message="same message")

    history = [commit_id for commit_id, _ in repo.history()]
    assert history[:2] == [second, first]
    assert len(history) == 3

    assert sorted(repo.find_by_message("same message")) == sorted([first, second])
    with pytest.raises(NoMatchingCommitError):
        repo.find_by_message("never used")

    assert len(repo.all_commits()) == 3


def test_deleting_branch_keeps_commits(repo):
    repo.create_branch("feature")
    repo.checkout_branch("feature")
    tip = commit_file(repo, "a.txt", "one")
    repo.checkout_branch("master")

    repo.delete_branch("feature")

    assert repo.get_commit(tip).message == "update a.txt"


def test_status(repo):
    commit_file(repo, "tracked.txt", "v1")
    commit_file(repo, "gone.txt", "v1")
    commit_file(repo, "removed.txt", "v1")
    repo.create_branch("other")

    write(repo, "tracked.txt", "v2")
    (repo.project_root / "gone.txt").unlink()
    repo.remove_tracked("removed.txt")
    write(repo, "staged.txt", "new")
    repo.add("staged.txt")
    write(repo, "staged.txt", "newer")
    write(repo, "loose.txt", "?")

    report = repo.status()

    assert report.current_branch == "master"
    assert report.branches == ["master", "other"]
    assert report.staged == ["staged.txt"]
    assert report.removed == ["removed.txt"]
    assert report.modified == [
        "gone.txt (deleted)",
        "staged.txt (modified)",
        "tracked.txt (modified)",
    ]
    assert report.untracked == ["loose.txt"]
