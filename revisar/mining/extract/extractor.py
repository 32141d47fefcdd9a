# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Edit extraction: the first step of the pipeline.

For every crawled source we walk the history, parse both sides of every
modified Java file, diff the trees and keep the changed regions as
concrete edits. Edits stream straight into the shard writer, so memory use
doesn't grow with history length.

Each source is walked from its pinned commit and sources are processed in
name order, so two runs over the same clones produce byte-identical shards
and the same dataset version hash.
"""

import shutil
from pathlib import Path
from typing import NamedTuple

from revisar.config.schema import ExtractConfig, MiningConfig
from revisar.java.lexer import JavaSyntaxError
from revisar.java.tree import nodes_size, parse_tree
from revisar.logging.logger import get_logger
from revisar.mining.crawl.crawler import CRAWL_MARKER, repo_directory
from revisar.mining.extract.deduplicator import EditDeduplicator
from revisar.mining.extract.differ import diff_trees
from revisar.mining.extract.edit import ConcreteEdit, edit_to_record
from revisar.mining.history.walker import FileRevision, iter_file_revisions, list_commits
from revisar.mining.store.manifest import build_manifest, write_checksums, write_dataset_manifest
from revisar.mining.store.shard import ShardWriter
from revisar.utils.filesystem import atomic_write
from revisar.utils.hashing import short_id
from revisar.utils.paths import ensure_directory

LATEST_POINTER = "LATEST"
_STAGING_DIR = "_staging"


class ExtractionStats(NamedTuple):
    """Counts for one extraction run."""

    sources_scanned: int
    commits_scanned: int
    files_scanned: int
    parse_failures: int
    edits_kept: int
    duplicates_dropped: int
    oversize_dropped: int
    insertions_dropped: int
    version_hash: str
    output_dir: str


class _FileOutcome(NamedTuple):
    edits: list[ConcreteEdit]
    oversize: int
    insertions: int


def _extract_with_counts(revision: FileRevision, config: ExtractConfig) -> _FileOutcome:
    """
    Raises:
        JavaSyntaxError: If either side of the revision doesn't parse.
    """
    before_root = parse_tree(revision.before_text)
    after_root = parse_tree(revision.after_text)

    edits: list[ConcreteEdit] = []
    oversize = 0
    insertions = 0

    regions = diff_trees(before_root, after_root, config.context_before, config.context_after)
    for index, region in enumerate(regions):
        if not region.before or not region.after:
            if not config.include_insertions:
                insertions += 1
                continue

        if nodes_size(region.before) + nodes_size(region.after) > config.max_edit_nodes:
            oversize += 1
            continue

        edit = ConcreteEdit(
            edit_id="",
            source=revision.source,
            commit=revision.commit,
            parent=revision.parent,
            path=revision.path,
            line=region.line,
            left_context=region.left_context,
            before=region.before,
            after=region.after,
            right_context=region.right_context,
        )
        edit_id = short_id(
            revision.source, revision.commit, revision.path, str(index), edit.template().render()
        )
        edits.append(edit._replace(edit_id=edit_id))

    return _FileOutcome(edits=edits, oversize=oversize, insertions=insertions)


def extract_edits(revision: FileRevision, config: ExtractConfig) -> list[ConcreteEdit]:
    """
    Concrete edits between the two sides of one file revision.

    Regions bigger than max_edit_nodes are dropped, and so are pure
    insertions and deletions unless include_insertions is set.

    Raises:
        JavaSyntaxError: If either side of the revision doesn't parse.
    """
    return _extract_with_counts(revision, config).edits


def _extraction_settings(config: MiningConfig) -> dict:
    sources = sorted(config.sources, key=lambda source: source.name)
    return {
        "sources": [{"name": s.name, "commit": s.commit} for s in sources],
        "max_commits": config.max_commits,
        "include_merges": config.include_merges,
        "filter": config.filter.model_dump(),
        "extract": config.extract.model_dump(),
    }


def run_extraction(config: MiningConfig, project_root: Path) -> ExtractionStats:
    """
    Extract edits from every crawled source into a new versioned dataset.

    Steps:
    1. Walk each source's history from its pinned commit (sources by name)
    2. Parse, diff and filter every modified file
    3. Deduplicate within each repository
    4. Pack records into shards in a staging directory
    5. Write manifest and checksums, move the dataset to <version_hash>/
    6. Point LATEST at the new version

    Raises:
        RuntimeError: If a configured source hasn't been crawled yet.
    """
    logger = get_logger("revisar.mining.extract")

    raw_dir = project_root / config.raw_directory
    edits_root = ensure_directory(project_root / config.edits_directory)
    staging_dir = edits_root / _STAGING_DIR
    if staging_dir.exists():
        shutil.rmtree(staging_dir)

    writer = ShardWriter(staging_dir, config.shard_size_bytes)
    deduplicator = EditDeduplicator()

    per_source: dict[str, int] = {}
    commits_scanned = 0
    files_scanned = 0
    parse_failures = 0
    edits_kept = 0
    duplicates = 0
    oversize = 0
    insertions = 0

    for source in sorted(config.sources, key=lambda s: s.name):
        repo_dir = repo_directory(raw_dir, source)
        if not (repo_dir / CRAWL_MARKER).exists():
            raise RuntimeError(
                f"Source '{source.name}' has not been crawled yet; run `revisar crawl` first"
            )

        per_source[source.name] = 0
        logger.info("Extracting edits", extra={"source": source.name, "commit": source.commit})

        commits = list_commits(
            repo_dir,
            source.commit,
            config.max_commits,
            config.include_merges,
            config.git_timeout_seconds,
        )
        commits_scanned += len(commits)

        revisions = iter_file_revisions(
            source.name, repo_dir, commits, config.filter, config.git_timeout_seconds
        )
        for revision in revisions:
            files_scanned += 1
            try:
                outcome = _extract_with_counts(revision, config.extract)
            except JavaSyntaxError as err:
                parse_failures += 1
                logger.debug(
                    "Skipping unparsable revision",
                    extra={
                        "source": revision.source,
                        "commit": revision.commit,
                        "path": revision.path,
                        "error": str(err),
                    },
                )
                continue

            oversize += outcome.oversize
            insertions += outcome.insertions

            for edit in outcome.edits:
                if config.extract.enable_deduplication and deduplicator.is_duplicate(edit):
                    duplicates += 1
                    continue
                writer.add_record(edit_to_record(edit))
                per_source[source.name] += 1
                edits_kept += 1

    shard_infos = writer.finalize()
    ensure_directory(staging_dir)
    manifest = build_manifest(shard_infos, per_source, _extraction_settings(config))
    write_dataset_manifest(manifest, staging_dir / "manifest.json")
    write_checksums(shard_infos, staging_dir / "checksums.txt")

    final_dir = edits_root / manifest.version_hash
    if final_dir.exists():
        shutil.rmtree(final_dir)
    staging_dir.rename(final_dir)
    atomic_write(edits_root / LATEST_POINTER, manifest.version_hash)

    stats = ExtractionStats(
        sources_scanned=len(per_source),
        commits_scanned=commits_scanned,
        files_scanned=files_scanned,
        parse_failures=parse_failures,
        edits_kept=edits_kept,
        duplicates_dropped=duplicates,
        oversize_dropped=oversize,
        insertions_dropped=insertions,
        version_hash=manifest.version_hash,
        output_dir=str(final_dir),
    )

    logger.info(
        "Extraction complete",
        extra={
            "version": manifest.version_hash[:16],
            "commits": stats.commits_scanned,
            "edits": stats.edits_kept,
            "files": stats.files_scanned,
            "parse_failures": stats.parse_failures,
            "duplicates": stats.duplicates_dropped,
            "oversize": stats.oversize_dropped,
        },
    )

    return stats
