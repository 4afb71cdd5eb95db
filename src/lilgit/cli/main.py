"""Main CLI interface for lilgit."""

import logging
from pathlib import Path
from typing import List, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from lilgit.core.repository import Repository
from lilgit.errors import LilgitError, NotARepositoryError
from lilgit.models.commit import Commit
from lilgit.models.merge import MergeStatus

console = Console(highlight=False)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(verbose: bool, debug: bool) -> None:
    """Route library logging to stderr through rich."""
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    handler = RichHandler(
        console=Console(stderr=True), show_path=False, rich_tracebacks=False
    )
    root = logging.getLogger("lilgit")
    for old in root.handlers:
        old.close()
    root.handlers = [handler]
    root.setLevel(level)
    root.propagate = False


def _attach_debug_log(repo: Repository) -> None:
    """Append to ``.lilgit/debug.log`` when the repository asks for it."""
    if not repo.config.debug_log_enabled:
        return
    root = logging.getLogger("lilgit")
    # The console keeps the level chosen on the command line.
    for handler in root.handlers:
        if handler.level == logging.NOTSET:
            handler.setLevel(root.level)
    file_handler = logging.FileHandler(repo.debug_log_file, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)
    root.setLevel(logging.DEBUG)


def _fail(error: Exception) -> None:
    console.print(f"[red]{escape(str(error))}[/red]")
    raise click.Abort() from error


def get_repo_or_exit() -> Repository:
    """Get the enclosing Repository or exit with an error message."""
    repo = Repository.find()
    if repo is None or not repo.exists():
        _fail(NotARepositoryError())
    _attach_debug_log(repo)
    return repo


def _repo_path(repo: Repository, file: str) -> str:
    """Path of ``file`` (relative to cwd) relative to the repository root."""
    absolute = (Path.cwd() / file).resolve()
    try:
        return absolute.relative_to(repo.project_root).as_posix()
    except ValueError:
        _fail(LilgitError(f"{file} is outside the repository"))


def _format_commit(commit_id: str, commit: Commit) -> str:
    lines = ["===", f"commit {commit_id}"]
    if commit.is_merge:
        lines.append(f"Merge: {commit.parent[:7]} {commit.second_parent[:7]}")
    lines.append(f"Date: {commit.display_date()}")
    lines.append(commit.message)
    return "\n".join(lines) + "\n"


def _print_commits(entries: List[Tuple[str, Commit]]) -> None:
    for commit_id, commit in entries:
        console.print(escape(_format_commit(commit_id, commit)))


@click.group()
@click.version_option(package_name="lilgit")
@click.option("-v", "--verbose", is_flag=True, help="Log what each command does")
@click.option("--debug", is_flag=True, help="Log every state change")
def main(verbose: bool, debug: bool):
    """lilgit - a small local version-control system."""
    _configure_logging(verbose, debug)


@main.command()
def init():
    """Initialize a repository in the current directory."""
    repo = Repository(Path.cwd())
    try:
        repo.init()
    except LilgitError as e:
        _fail(e)
    console.print(f"[green]Initialized empty lilgit repository in {repo.lilgit_dir}[/green]")


@main.command()
@click.argument("file")
def add(file: str):
    """Stage FILE for the next commit."""
    repo = get_repo_or_exit()
    try:
        repo.add(_repo_path(repo, file))
    except LilgitError as e:
        _fail(e)


@main.command()
@click.argument("message")
def commit(message: str):
    """Record the staged changes with MESSAGE."""
    repo = get_repo_or_exit()
    try:
        commit_id = repo.commit(message)
    except LilgitError as e:
        _fail(e)
    console.print(f"[green]\\[{repo.current_branch} {commit_id[:7]}][/green] {escape(message)}")


@main.command()
@click.argument("file")
def rm(file: str):
    """Unstage FILE, and stage its removal if it is tracked."""
    repo = get_repo_or_exit()
    try:
        repo.remove_tracked(_repo_path(repo, file))
    except LilgitError as e:
        _fail(e)


@main.command()
def log():
    """Show the history of the current head."""
    repo = get_repo_or_exit()
    try:
        _print_commits(repo.history())
    except LilgitError as e:
        _fail(e)


@main.command("global-log")
def global_log():
    """Show every commit ever made."""
    repo = get_repo_or_exit()
    try:
        _print_commits(repo.all_commits())
    except LilgitError as e:
        _fail(e)


@main.command()
@click.argument("message")
def find(message: str):
    """Print the ids of all commits with MESSAGE."""
    repo = get_repo_or_exit()
    try:
        for commit_id in repo.find_by_message(message):
            console.print(commit_id)
    except LilgitError as e:
        _fail(e)


@main.command()
def status():
    """Show branches, staged files and working-tree changes."""
    repo = get_repo_or_exit()
    try:
        report = repo.status()
    except LilgitError as e:
        _fail(e)

    console.print("[bold]=== Branches ===[/bold]")
    for branch in report.branches:
        if branch == report.current_branch:
            console.print(f"[green]*{escape(branch)}[/green]")
        else:
            console.print(escape(branch))
    sections = [
        ("Staged Files", report.staged, "green"),
        ("Removed Files", report.removed, "red"),
        ("Modifications Not Staged For Commit", report.modified, "yellow"),
        ("Untracked Files", report.untracked, "red"),
    ]
    for title, paths, style in sections:
        console.print(f"\n[bold]=== {title} ===[/bold]")
        for path in paths:
            console.print(f"[{style}]{escape(path)}[/{style}]")
    console.print()


@main.command()
@click.argument("args", nargs=-1)
def checkout(args: Tuple[str, ...]):
    """Restore files or switch branches.

    \b
    checkout -- FILE            restore FILE from the head commit
    checkout COMMIT -- FILE     restore FILE from COMMIT
    checkout BRANCH             switch to BRANCH
    """
    repo = get_repo_or_exit()
    try:
        if len(args) == 2 and args[0] == "--":
            repo.checkout_file(_repo_path(repo, args[1]))
        elif len(args) == 3 and args[1] == "--":
            repo.checkout_file(_repo_path(repo, args[2]), commit_ref=args[0])
        elif len(args) == 1:
            repo.checkout_branch(args[0])
        else:
            _fail(LilgitError("Incorrect operands."))
    except LilgitError as e:
        _fail(e)


@main.command()
@click.argument("name")
def branch(name: str):
    """Create branch NAME at the head commit."""
    repo = get_repo_or_exit()
    try:
        repo.create_branch(name)
    except LilgitError as e:
        _fail(e)


@main.command("rm-branch")
@click.argument("name")
def rm_branch(name: str):
    """Delete branch NAME (its commits are kept)."""
    repo = get_repo_or_exit()
    try:
        repo.delete_branch(name)
    except LilgitError as e:
        _fail(e)


@main.command()
@click.argument("commit_id")
def reset(commit_id: str):
    """Check out COMMIT_ID and move the current branch to it."""
    repo = get_repo_or_exit()
    try:
        repo.reset(commit_id)
    except LilgitError as e:
        _fail(e)


@main.command()
@click.argument("branch_name")
def merge(branch_name: str):
    """Merge BRANCH_NAME into the current branch."""
    repo = get_repo_or_exit()
    try:
        result = repo.merge(branch_name)
    except LilgitError as e:
        _fail(e)

    if result.status is MergeStatus.NO_OP:
        console.print("Given branch is an ancestor of the current branch.")
    elif result.status is MergeStatus.FAST_FORWARDED:
        console.print("[green]Current branch fast-forwarded.[/green]")
    elif result.had_conflicts:
        console.print("[yellow]Encountered a merge conflict.[/yellow]")
        for path in result.conflicts:
            console.print(f"  [red]{escape(path)}[/red]")


if __name__ == "__main__":
    main()
