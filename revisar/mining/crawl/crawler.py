# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Deterministic repository crawler.

This is the acquisition stage. Each source is cloned with its full history
(we need the history, not a snapshot) and pinned to a commit: the history
walk always starts there, so re-running the pipeline mines exactly the same
revisions. The commit hash plays the role of a lockfile entry.

Clones are made with --no-checkout. We never need a working tree, because
every file version is read straight out of the object database, and we
never run anything from the cloned repository.
"""

import json
import shutil
from pathlib import Path
from typing import NamedTuple

from revisar.config.schema import MiningConfig, SourceConfig
from revisar.logging.logger import get_logger
from revisar.mining.git import GitCommandError, run_git
from revisar.runtime.environment import require_git
from revisar.utils.filesystem import atomic_write
from revisar.utils.paths import ensure_directory

CRAWL_MARKER = ".revisar_crawl_marker"


class RepoSnapshot(NamedTuple):
    """What we know about a single cloned repository."""

    name: str
    url: str
    commit: str
    local_path: str
    commit_count: int


class CrawlResult(NamedTuple):
    """Summary of the entire crawl run."""

    total_sources: int
    cloned: int
    skipped: int
    snapshots: list[RepoSnapshot]


def repo_directory(raw_dir: Path, source: SourceConfig) -> Path:
    """Where a source's clone lives: raw_dir/<name>/<commit>/."""
    return raw_dir / source.name / source.commit


def _repo_already_exists(repo_dir: Path, expected_commit: str) -> bool:
    """
    True when a previous run finished cloning this source at this commit.

    The marker is written only after the pinned commit was verified, so a
    half-finished clone never counts as present.
    """
    marker = repo_dir / CRAWL_MARKER
    if not marker.exists():
        return False
    try:
        return marker.read_text(encoding="utf-8").strip() == expected_commit
    except OSError:
        return False


def _count_commits(repo_dir: Path, commit: str, timeout: int) -> int:
    output = run_git(["rev-list", "--count", commit], cwd=repo_dir, timeout=timeout)
    return int(output.strip() or "0")


def clone_repository(source: SourceConfig, raw_dir: Path, timeout: int) -> RepoSnapshot:
    """
    Clone a single repository and verify its pinned commit.

    Steps:
    1. Create raw_dir/<name>/<commit>/
    2. `git clone --no-checkout` the full history into it
    3. Check the pinned commit exists in the clone
    4. Write the crawl marker so future runs can skip this source

    Raises:
        RuntimeError: If cloning fails, times out, or the commit is missing.
    """
    logger = get_logger("revisar.mining.crawl")

    repo_dir = repo_directory(raw_dir, source)
    if _repo_already_exists(repo_dir, source.commit):
        logger.info(
            "Repo already cloned, skipping",
            extra={"source": source.name, "commit": source.commit},
        )
        return RepoSnapshot(
            name=source.name,
            url=source.url,
            commit=source.commit,
            local_path=str(repo_dir),
            commit_count=_count_commits(repo_dir, source.commit, timeout),
        )

    if repo_dir.exists():
        # Leftover from an interrupted clone; git refuses non-empty targets.
        shutil.rmtree(repo_dir)
    ensure_directory(repo_dir.parent)

    logger.info(
        "Cloning repository",
        extra={"source": source.name, "url": source.url, "commit": source.commit},
    )

    try:
        run_git(
            ["clone", "--no-checkout", "--quiet", source.url, str(repo_dir)],
            timeout=timeout,
        )
    except GitCommandError as err:
        raise RuntimeError(f"Git clone failed for {source.name}: {err}") from err

    try:
        run_git(["cat-file", "-e", f"{source.commit}^{{commit}}"], cwd=repo_dir, timeout=timeout)
    except GitCommandError as err:
        raise RuntimeError(
            f"Pinned commit {source.commit} not found in {source.name}"
        ) from err

    atomic_write(repo_dir / CRAWL_MARKER, source.commit)
    commit_count = _count_commits(repo_dir, source.commit, timeout)

    logger.info(
        "Clone complete",
        extra={"source": source.name, "commits": commit_count},
    )

    return RepoSnapshot(
        name=source.name,
        url=source.url,
        commit=source.commit,
        local_path=str(repo_dir),
        commit_count=commit_count,
    )


def crawl_repositories(config: MiningConfig, project_root: Path) -> CrawlResult:
    """
    Clone every source in the mining config and write crawl_manifest.json.

    Idempotent: a second call with the same config finds the markers and
    clones nothing.

    Raises:
        RuntimeError: If git is missing or any source fails to clone.
    """
    logger = get_logger("revisar.mining.crawl")
    if config.sources:
        require_git()
    raw_dir = ensure_directory(project_root / config.raw_directory)

    snapshots: list[RepoSnapshot] = []
    cloned = 0
    skipped = 0

    for source in config.sources:
        was_present = _repo_already_exists(repo_directory(raw_dir, source), source.commit)

        snapshots.append(clone_repository(source, raw_dir, config.git_timeout_seconds))

        if was_present:
            skipped += 1
        else:
            cloned += 1

    result = CrawlResult(
        total_sources=len(config.sources),
        cloned=cloned,
        skipped=skipped,
        snapshots=snapshots,
    )

    manifest_data = {
        "total_sources": result.total_sources,
        "cloned": result.cloned,
        "skipped": result.skipped,
        "snapshots": [snapshot._asdict() for snapshot in result.snapshots],
    }
    atomic_write(
        raw_dir / "crawl_manifest.json",
        json.dumps(manifest_data, indent=2, sort_keys=True),
    )

    logger.info(
        "Crawl complete",
        extra={
            "total": result.total_sources,
            "cloned": result.cloned,
            "skipped": result.skipped,
        },
    )

    return result
