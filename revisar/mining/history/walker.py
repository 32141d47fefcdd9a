# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Revision history walker.

Turns a cloned repository into a stream of (before, after) file pairs, one
per modified file per commit. Everything is read from the object database
with git plumbing commands, so the clone never needs a working tree.

The walk is a generator: one file pair is in memory at a time, no matter
how long the history is.
"""

from pathlib import Path, PurePosixPath
from typing import Iterator, NamedTuple, Optional

from revisar.config.schema import FileFilterConfig
from revisar.logging.logger import get_logger
from revisar.mining.git import GitCommandError, run_git
from revisar.utils.paths import has_allowed_extension, is_in_excluded_directory

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"


class CommitInfo(NamedTuple):
    sha: str
    parents: tuple[str, ...]
    author: str
    timestamp: int


class FileRevision(NamedTuple):
    """Two versions of one file across one commit."""

    source: str
    commit: str
    parent: str
    path: str
    before_text: str
    after_text: str


def list_commits(
    repo_dir: Path,
    head: str,
    max_commits: int,
    include_merges: bool = False,
    timeout: int = 600,
) -> list[CommitInfo]:
    """
    List up to max_commits commits reachable from head, newest first.

    Raises:
        GitCommandError: If git log fails (e.g. head doesn't exist).
    """
    args = [
        "log",
        f"--max-count={max_commits}",
        f"--format=%H{_FIELD_SEP}%P{_FIELD_SEP}%an{_FIELD_SEP}%at{_RECORD_SEP}",
    ]
    if not include_merges:
        args.append("--no-merges")
    args.append(head)

    output = run_git(args, cwd=repo_dir, timeout=timeout)

    commits: list[CommitInfo] = []
    for record in output.split(_RECORD_SEP):
        record = record.strip()
        if not record:
            continue
        sha, parents, author, timestamp = record.split(_FIELD_SEP)
        commits.append(
            CommitInfo(
                sha=sha,
                parents=tuple(parents.split()),
                author=author,
                timestamp=int(timestamp or "0"),
            )
        )
    return commits


def changed_files(repo_dir: Path, parent: str, commit: str, timeout: int = 600) -> list[str]:
    """
    Paths modified in place between parent and commit.

    Added, deleted and renamed files are left out: an edit needs both an old
    and a new version of the same file.
    """
    output = run_git(
        ["diff-tree", "-r", "--no-renames", "--name-only", "--diff-filter=M", "-z", parent, commit],
        cwd=repo_dir,
        timeout=timeout,
    )
    return sorted(path for path in output.split("\x00") if path)


def read_blob(repo_dir: Path, commit: str, path: str, timeout: int = 600) -> Optional[str]:
    """Read a file at a commit, or None when it doesn't exist there."""
    try:
        return run_git(["show", f"{commit}:{path}"], cwd=repo_dir, timeout=timeout)
    except GitCommandError:
        return None


def _blob_size(repo_dir: Path, commit: str, path: str, timeout: int) -> int:
    try:
        output = run_git(["cat-file", "-s", f"{commit}:{path}"], cwd=repo_dir, timeout=timeout)
    except GitCommandError:
        return -1
    return int(output.strip() or "-1")


def is_candidate_path(path: str, file_filter: FileFilterConfig) -> bool:
    """Extension allow-list and excluded-directory check for one repo path."""
    posix = PurePosixPath(path)
    if not has_allowed_extension(posix, file_filter.allowed_extensions):
        return False
    return not is_in_excluded_directory(posix, file_filter.excluded_directories)


def iter_file_revisions(
    source: str,
    repo_dir: Path,
    commits: list[CommitInfo],
    file_filter: FileFilterConfig,
    timeout: int = 600,
) -> Iterator[FileRevision]:
    """
    Yield every modified candidate file of every commit, in list order.

    `commits` comes from list_commits. Root commits have nothing to diff
    against and are skipped. Merge commits are diffed against their first
    parent.
    """
    logger = get_logger("revisar.mining.history")
    logger.debug("Walking history", extra={"source": source, "commits": len(commits)})

    for info in commits:
        if not info.parents:
            continue
        parent = info.parents[0]

        for path in changed_files(repo_dir, parent, info.sha, timeout):
            if not is_candidate_path(path, file_filter):
                continue

            sizes = (
                _blob_size(repo_dir, parent, path, timeout),
                _blob_size(repo_dir, info.sha, path, timeout),
            )
            if any(size < 0 or size > file_filter.max_file_size_bytes for size in sizes):
                logger.debug(
                    "Skipping oversized or missing blob",
                    extra={"source": source, "commit": info.sha, "path": path},
                )
                continue

            before_text = read_blob(repo_dir, parent, path, timeout)
            after_text = read_blob(repo_dir, info.sha, path, timeout)
            if before_text is None or after_text is None:
                continue

            yield FileRevision(
                source=source,
                commit=info.sha,
                parent=parent,
                path=path,
                before_text=before_text,
                after_text=after_text,
            )
