# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
End-to-end pipeline test.

Three scratch repositories each replace explicit type arguments with the
diamond operator. `revisar mine` has to crawl them, extract the edits,
cluster them across repositories, and publish the rule; `revisar apply`
then uses the rule on code none of the repositories contained.
"""

import json
import shutil
import sys
import textwrap
from pathlib import Path
from unittest import mock

import pytest

from revisar.cli.exit_codes import SUCCESS
from revisar.cli.main import main
from revisar.transform.transformation import load_catalog

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

_BEFORE = textwrap.dedent("""\
    class {name} {{
      void run() {{
        List<{arg}> items = new ArrayList<{arg}>();
        items.clear();
      }}
    }}
""")

_AFTER = textwrap.dedent("""\
    class {name} {{
      void run() {{
        List<{arg}> items = new ArrayList<>();
        items.clear();
      }}
    }}
""")


def _run_main(*argv: str) -> int:
    with mock.patch.object(sys, "argv", ["revisar", *argv]):
        try:
            main()
        except SystemExit as exc:
            return exc.code if isinstance(exc.code, int) else 0
    return 0


@pytest.fixture()
def pipeline_config(tmp_path: Path, make_git_repo) -> Path:
    sources = []
    for name, arg in (("alpha", "String"), ("beta", "Integer"), ("gamma", "Long")):
        repo = make_git_repo(name)
        path = f"src/{name.title()}.java"
        repo.commit({path: _BEFORE.format(name=name.title(), arg=arg)}, "initial")
        head = repo.commit({path: _AFTER.format(name=name.title(), arg=arg)}, "use diamond")
        sources.append(f"    - name: {name}\n      url: \"{repo.path}\"\n      commit: \"{head}\"\n")

    config = (
        "global:\n"
        "  config_version: \"1.0.0\"\n"
        "  log_level: \"WARNING\"\n"
        "mining:\n"
        "  config_version: \"1.0.0\"\n"
        "  sources:\n"
        + "".join(sources)
        + "clustering:\n"
        "  config_version: \"1.0.0\"\n"
        "generalize:\n"
        "  config_version: \"1.0.0\"\n"
        "  min_edits: 3\n"
        "  min_repositories: 2\n"
    )
    config_file = tmp_path / "revisar.yaml"
    config_file.write_text(config, encoding="utf-8")
    return config_file


class TestMiningPipeline:
    def test_mine_then_apply(self, pipeline_config: Path, tmp_path: Path, capsys) -> None:
        project = tmp_path / "project"
        common = ("--config", str(pipeline_config), "--project-root", str(project))

        assert _run_main("mine", *common) == SUCCESS
        assert _run_main("verify", *common) == SUCCESS

        catalog_path = project / "data" / "transformations" / "transformations.json"
        transformations = load_catalog(catalog_path)
        assert len(transformations) == 1
        rule = transformations[0]
        assert rule.support == 3
        assert rule.repositories == ("alpha", "beta", "gamma")
        assert rule.rendered == "new ArrayList<?0>() ==> new ArrayList<>()"

        target = tmp_path / "work" / "Fresh.java"
        target.parent.mkdir(parents=True)
        target.write_text(
            "class Fresh { List<Foo> f = new ArrayList<Foo>(); }\n", encoding="utf-8"
        )
        capsys.readouterr()
        assert _run_main("apply", "--input", str(target), *common) == SUCCESS
        assert "new ArrayList<Foo>() ==> new ArrayList<>()" in capsys.readouterr().out

        assert _run_main("apply", "--input", str(target), "--write", *common) == SUCCESS
        assert target.read_text(encoding="utf-8") == (
            "class Fresh { List<Foo> f = new ArrayList<>(); }\n"
        )

    def test_rerun_is_deterministic(self, pipeline_config: Path, tmp_path: Path) -> None:
        project = tmp_path / "project"
        common = ("--config", str(pipeline_config), "--project-root", str(project))
        clusters_path = project / "data" / "clusters" / "clusters.json"
        catalog_path = project / "data" / "transformations" / "transformations.json"

        assert _run_main("mine", *common) == SUCCESS
        first = json.loads(catalog_path.read_text(encoding="utf-8"))["catalog_hash"]
        latest = (project / "data" / "edits" / "LATEST").read_text(encoding="utf-8")
        clusters = clusters_path.read_bytes()

        assert _run_main("mine", *common) == SUCCESS
        second = json.loads(catalog_path.read_text(encoding="utf-8"))["catalog_hash"]

        assert first == second
        assert clusters_path.read_bytes() == clusters
        assert (project / "data" / "edits" / "LATEST").read_text(encoding="utf-8") == latest
