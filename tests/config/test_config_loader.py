# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the config loader, the entry point for all config loading.

We test:
  1. Valid YAML loads into a frozen, correct config object
  2. Missing required fields raise ConfigValidationError
  3. Unknown fields raise ConfigValidationError (extra="forbid")
  4. Broken YAML raises ConfigLoadError
  5. Stage sections fall back to defaults when absent
"""

import textwrap
from pathlib import Path

import pytest

from revisar.config.exceptions import ConfigError, ConfigLoadError, ConfigValidationError
from revisar.config.loader import (
    apply_or_default,
    clustering_or_default,
    generalize_or_default,
    load_config,
)


class TestLoadValidConfig:
    def test_loads_minimal_valid_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.global_config.project_name == "revisar-test"
        assert config.global_config.seed == 42
        assert config.global_config.config_version == "1.0.0"
        assert config.global_config.log_level == "DEBUG"

    def test_default_directories_are_populated(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        dirs = config.global_config.directories
        assert dirs.data == "data"
        assert dirs.logs == "logs"

    def test_optional_sections_default_to_none(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.mining is None
        assert config.clustering is None
        assert config.generalize is None
        assert config.apply is None

    def test_loads_full_config_with_all_sections(self, tmp_path: Path) -> None:
        content = textwrap.dedent("""\
            global:
              config_version: "1.0.0"
              project_name: "full-test"
              seed: 99
              log_level: "debug"
            mining:
              config_version: "1.0.0"
              sources:
                - name: "commons-lang"
                  url: "https://github.com/apache/commons-lang.git"
                  commit: "0123456789abcdef0123456789abcdef01234567"
              max_commits: 50
              extract:
                context_before: 3
            clustering:
              config_version: "1.0.0"
              partition_depth: 1
            generalize:
              config_version: "1.0.0"
              min_edits: 2
            apply:
              config_version: "1.0.0"
              max_suggestions: 10
        """)
        config_file = tmp_path / "full.yaml"
        config_file.write_text(content, encoding="utf-8")

        config = load_config(config_file)
        assert config.global_config.seed == 99
        assert config.global_config.log_level == "DEBUG"
        assert config.mining is not None
        assert config.mining.sources[0].name == "commons-lang"
        assert config.mining.max_commits == 50
        assert config.mining.extract.context_before == 3
        assert config.mining.extract.context_after == 1
        assert config.clustering is not None and config.clustering.partition_depth == 1
        assert config.generalize is not None and config.generalize.min_edits == 2
        assert config.apply is not None and config.apply.max_suggestions == 10

    def test_example_config_in_repo_loads(self) -> None:
        example = Path(__file__).resolve().parents[2] / "configs" / "revisar.yaml"
        config = load_config(example)
        assert config.mining is not None
        assert config.clustering is not None


class TestLoadInvalidConfig:
    def test_missing_required_field_raises_validation_error(
        self, invalid_config_file: Path
    ) -> None:
        with pytest.raises(ConfigValidationError):
            load_config(invalid_config_file)

    def test_unknown_field_raises_validation_error(self, tmp_path: Path) -> None:
        content = textwrap.dedent("""\
            global:
              config_version: "1.0.0"
              project_name: "test"
              seed: 42
              some_nonsense_field: true
        """)
        config_file = tmp_path / "unknown_field.yaml"
        config_file.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_wrong_type_raises_validation_error(self, tmp_path: Path) -> None:
        content = textwrap.dedent("""\
            global:
              config_version: "1.0.0"
              seed: "not_a_number"
        """)
        config_file = tmp_path / "wrong_type.yaml"
        config_file.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_broken_yaml_raises_load_error(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(broken_yaml_file)

    def test_non_mapping_yaml_raises_load_error(self, tmp_path: Path) -> None:
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigLoadError):
            load_config(config_file)

    def test_nonexistent_file_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path / "does_not_exist.yaml")

    def test_directory_path_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path)

    def test_errors_share_a_base_class(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(broken_yaml_file)


class TestStageDefaults:
    def test_defaults_without_config(self) -> None:
        assert clustering_or_default(None).max_cost == 24
        assert generalize_or_default(None).min_repositories == 2
        assert apply_or_default(None).max_suggestions == 100

    def test_present_section_wins(self, tmp_path: Path) -> None:
        content = textwrap.dedent("""\
            global:
              config_version: "1.0.0"
            clustering:
              config_version: "1.0.0"
              max_cost: 5
        """)
        config_file = tmp_path / "clustering.yaml"
        config_file.write_text(content, encoding="utf-8")

        config = load_config(config_file)
        assert clustering_or_default(config).max_cost == 5
        assert generalize_or_default(config).min_edits == 3


class TestConfigImmutability:
    def test_cannot_mutate_frozen_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        with pytest.raises(Exception):
            config.global_config.seed = 999  # type: ignore[misc]

    def test_cannot_mutate_nested_directories(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        with pytest.raises(Exception):
            config.global_config.directories.data = "/hacked"  # type: ignore[misc]
