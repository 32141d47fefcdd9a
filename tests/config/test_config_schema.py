# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Schema-level validation tests.

These focus on the pydantic models themselves: boundary values, constraint
enforcement, and structural correctness.
"""

import pytest
from pydantic import ValidationError

from revisar.config.schema import (
    ClusteringConfig,
    DirectoryConfig,
    ExtractConfig,
    FileFilterConfig,
    GlobalConfig,
    MiningConfig,
    RevisarConfig,
    SourceConfig,
)


class TestGlobalConfigSchema:
    def test_seed_must_be_non_negative(self) -> None:
        with pytest.raises(ValidationError):
            GlobalConfig(config_version="1.0.0", seed=-1)

    def test_seed_zero_is_valid(self) -> None:
        config = GlobalConfig(config_version="1.0.0", seed=0)
        assert config.seed == 0

    def test_default_log_level_is_info(self) -> None:
        config = GlobalConfig(config_version="1.0.0")
        assert config.log_level == "INFO"

    def test_log_level_is_normalized(self) -> None:
        config = GlobalConfig(config_version="1.0.0", log_level="warning")
        assert config.log_level == "WARNING"

    def test_invalid_log_level_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GlobalConfig(config_version="1.0.0", log_level="LOUD")

    def test_default_project_name(self) -> None:
        config = GlobalConfig(config_version="1.0.0")
        assert config.project_name == "revisar"

    def test_config_version_is_required(self) -> None:
        with pytest.raises(ValidationError):
            GlobalConfig()  # type: ignore[call-arg]


class TestDirectoryConfigSchema:
    def test_custom_paths_are_accepted(self) -> None:
        dirs = DirectoryConfig(data="my_data", logs="my_logs")
        assert dirs.data == "my_data"
        assert dirs.logs == "my_logs"

    def test_unknown_field_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DirectoryConfig(data="data", secret_dir="hidden")  # type: ignore[call-arg]


class TestMiningConfigSchema:
    def test_source_name_must_be_path_safe(self) -> None:
        with pytest.raises(ValidationError):
            SourceConfig(name="../escape", url="https://example.com/r.git", commit="abc")

    def test_duplicate_source_names_are_rejected(self) -> None:
        source = {"name": "guava", "url": "https://example.com/guava.git", "commit": "abc"}
        with pytest.raises(ValidationError, match="Duplicate source names"):
            MiningConfig(config_version="1.0.0", sources=[source, source])

    def test_defaults(self) -> None:
        config = MiningConfig(config_version="1.0.0")
        assert config.sources == []
        assert config.filter.allowed_extensions == [".java"]
        assert "target" in config.filter.excluded_directories
        assert config.extract.include_insertions is False
        assert config.extract.enable_deduplication is True

    def test_context_cannot_be_negative(self) -> None:
        with pytest.raises(ValidationError):
            ExtractConfig(context_before=-1)

    def test_max_file_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            FileFilterConfig(max_file_size_bytes=0)


class TestClusteringConfigSchema:
    def test_partition_depth_zero_is_allowed(self) -> None:
        config = ClusteringConfig(config_version="1.0.0", partition_depth=0)
        assert config.partition_depth == 0

    def test_partition_size_needs_room_for_a_pair(self) -> None:
        with pytest.raises(ValidationError):
            ClusteringConfig(config_version="1.0.0", max_partition_size=1)


class TestRevisarConfigSchema:
    def test_requires_global_section(self) -> None:
        with pytest.raises(ValidationError):
            RevisarConfig()  # type: ignore[call-arg]

    def test_rejects_top_level_unknown_fields(self) -> None:
        with pytest.raises(ValidationError):
            RevisarConfig.model_validate({
                "global": {"config_version": "1.0.0"},
                "unknown_section": {"something": True},
            })
