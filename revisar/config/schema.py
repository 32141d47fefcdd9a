# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for Revisar.

Each pipeline stage gets its own frozen pydantic model. Frozen means the
config can't be mutated once loaded; every stage sees exactly what was on
disk when the command started.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DirectoryConfig(BaseModel):
    """Paths to the standard project directories, all relative to project root."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    data: str = Field(default="data", description="Root directory for mined data")
    logs: str = Field(default="logs", description="System and debug logs")


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings for the whole tool: identity, seed, and logging.
    This is the only section every config file must carry.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(default="revisar", description="Human-readable project identifier")
    seed: int = Field(default=42, ge=0, description="Random seed set during bootstrap")
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output, relative to project root",
    )
    directories: DirectoryConfig = Field(default_factory=DirectoryConfig)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level '{value}'")
        return upper


class SourceConfig(BaseModel):
    """
    A single repository whose history gets mined.

    The commit pins the newest revision we look at, so re-running the
    pipeline always walks the same history.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    name: str = Field(
        pattern=r"^[A-Za-z0-9_.\-]+$",
        description="Short identifier, used in directory names",
    )
    url: str = Field(description="Git clone URL (or local path) for the repository")
    commit: str = Field(description="Commit hash the history walk starts from")


class FileFilterConfig(BaseModel):
    """Which files of a commit are worth diffing."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    allowed_extensions: list[str] = Field(
        default_factory=lambda: [".java"],
        description="Only files with these extensions are diffed",
    )
    excluded_directories: list[str] = Field(
        default_factory=lambda: ["target", "build", "generated", "vendor", ".git"],
        description="Files under any of these directories are skipped",
    )
    max_file_size_bytes: int = Field(
        default=1_048_576,
        ge=1,
        description="Either side of a revision bigger than this is skipped",
    )


class ExtractConfig(BaseModel):
    """Knobs for turning two file versions into concrete edits."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    context_before: int = Field(
        default=2, ge=0, description="Sibling nodes kept to the left of a change"
    )
    context_after: int = Field(
        default=1, ge=0, description="Sibling nodes kept to the right of a change"
    )
    max_edit_nodes: int = Field(
        default=40,
        ge=1,
        description="Edits with more nodes than this (before + after) are dropped",
    )
    include_insertions: bool = Field(
        default=False,
        description="Keep edits that only insert or only delete nodes",
    )
    enable_deduplication: bool = Field(
        default=True,
        description="Drop repeated identical edits within the same repository",
    )


class MiningConfig(BaseModel):
    """Everything the crawl and extract stages need."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    sources: list[SourceConfig] = Field(
        default_factory=list,
        description="Repositories to mine; an empty list means nothing to do",
    )
    raw_directory: str = Field(default="data/raw", description="Where clones land")
    edits_directory: str = Field(
        default="data/edits", description="Where versioned edit datasets are written"
    )
    max_commits: int = Field(
        default=1000, ge=1, description="How many commits per source to walk"
    )
    include_merges: bool = Field(
        default=False, description="Diff merge commits against their first parent"
    )
    git_timeout_seconds: int = Field(
        default=600, ge=1, description="Timeout for a single git invocation"
    )
    shard_size_bytes: int = Field(
        default=16_777_216, ge=1, description="Target size of one edit shard"
    )
    filter: FileFilterConfig = Field(default_factory=FileFilterConfig)
    extract: ExtractConfig = Field(default_factory=ExtractConfig)

    @field_validator("sources")
    @classmethod
    def _unique_source_names(cls, value: list[SourceConfig]) -> list[SourceConfig]:
        names = [source.name for source in value]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate source names: {', '.join(duplicates)}")
        return value


class ClusteringConfig(BaseModel):
    """Controls how concrete edits get grouped."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    partition_depth: int = Field(
        default=2,
        ge=0,
        description="Depth of the d-cap used to partition edits; 0 disables partitioning",
    )
    max_cost: int = Field(
        default=24,
        ge=0,
        description="Merges whose anti-unification cost exceeds this are refused",
    )
    min_concrete_nodes: int = Field(
        default=2,
        ge=1,
        description="A template's before side must keep at least this many non-hole nodes",
    )
    max_partition_size: int = Field(
        default=500,
        ge=2,
        description="Partitions larger than this are clustered in chunks",
    )
    edits_directory: str = Field(
        default="data/edits", description="Where to find edit datasets"
    )
    output_directory: str = Field(
        default="data/clusters", description="Where clusters.json is written"
    )


class GeneralizeConfig(BaseModel):
    """Which clusters become transformations."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    min_edits: int = Field(default=3, ge=1, description="Minimum cluster size")
    min_repositories: int = Field(
        default=2, ge=1, description="Minimum number of distinct repositories in a cluster"
    )
    max_examples: int = Field(
        default=5, ge=0, description="How many member edits to keep as examples"
    )
    clusters_path: str = Field(
        default="data/clusters/clusters.json", description="Input clusters file"
    )
    output_directory: str = Field(
        default="data/transformations",
        description="Where transformations.json is written",
    )


class ApplyConfig(BaseModel):
    """Applying mined transformations to new code."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    transformations_path: str = Field(
        default="data/transformations/transformations.json",
        description="Transformation catalog to load",
    )
    max_suggestions: int = Field(
        default=100, ge=1, description="Cap on suggestions reported for one file"
    )


class RevisarConfig(BaseModel):
    """
    Top-level config container. Each CLI command loads the section it needs.

    A file might hold only `global:` or any combination of stage sections.
    Missing sections stay None and commands fall back to their defaults or
    report that there's nothing to do.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    mining: Optional[MiningConfig] = Field(default=None)
    clustering: Optional[ClusteringConfig] = Field(default=None)
    generalize: Optional[GeneralizeConfig] = Field(default=None)
    apply: Optional[ApplyConfig] = Field(default=None)
