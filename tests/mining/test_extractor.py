# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for turning file revisions into concrete edits, and for edit
deduplication. These work on in-memory revisions; the git-backed parts of
extraction are covered in the pipeline tests.
"""

import pytest

from revisar.config.schema import ExtractConfig
from revisar.java.lexer import IDENT, JavaSyntaxError
from revisar.java.tree import Leaf
from revisar.mining.extract.deduplicator import EditDeduplicator
from revisar.mining.extract.edit import edit_from_record, edit_to_record
from revisar.mining.extract.extractor import extract_edits
from revisar.mining.history.walker import FileRevision

_BEFORE = "class A {\n  void f() {\n    StringBuffer sb = new StringBuffer();\n  }\n}\n"
_AFTER = "class A {\n  void f() {\n    StringBuilder sb = new StringBuilder();\n  }\n}\n"


def _revision(before: str, after: str, source: str = "repo-a", commit: str = "c1") -> FileRevision:
    return FileRevision(
        source=source,
        commit=commit,
        parent="c0",
        path="src/A.java",
        before_text=before,
        after_text=after,
    )


class TestExtractEdits:
    def test_string_buffer_edits(self) -> None:
        edits = extract_edits(_revision(_BEFORE, _AFTER), ExtractConfig())
        assert len(edits) == 2
        for edit in edits:
            assert edit.before == (Leaf(IDENT, "StringBuffer"),)
            assert edit.after == (Leaf(IDENT, "StringBuilder"),)
            assert edit.line == 3
            assert edit.source == "repo-a"
            assert edit.path == "src/A.java"

    def test_edit_ids_are_unique_and_stable(self) -> None:
        first = extract_edits(_revision(_BEFORE, _AFTER), ExtractConfig())
        second = extract_edits(_revision(_BEFORE, _AFTER), ExtractConfig())
        assert [e.edit_id for e in first] == [e.edit_id for e in second]
        assert len({e.edit_id for e in first}) == len(first)

    def test_identical_files_produce_no_edits(self) -> None:
        assert extract_edits(_revision(_BEFORE, _BEFORE), ExtractConfig()) == []

    def test_oversize_regions_are_dropped(self) -> None:
        config = ExtractConfig(max_edit_nodes=1)
        assert extract_edits(_revision(_BEFORE, _AFTER), config) == []

    def test_insertions_dropped_by_default(self) -> None:
        revision = _revision("f(a);", "f(a); g();")
        assert extract_edits(revision, ExtractConfig()) == []

    def test_insertions_kept_when_enabled(self) -> None:
        revision = _revision("f(a);", "f(a); g();")
        edits = extract_edits(revision, ExtractConfig(include_insertions=True))
        assert len(edits) == 1
        assert edits[0].before == ()

    def test_unparsable_revision_raises(self) -> None:
        with pytest.raises(JavaSyntaxError):
            extract_edits(_revision("class A {", _AFTER), ExtractConfig())

    def test_record_round_trip(self) -> None:
        edit = extract_edits(_revision(_BEFORE, _AFTER), ExtractConfig())[0]
        record = edit_to_record(edit)
        assert record["rendered"] == "StringBuffer sb ==> StringBuilder sb"
        assert edit_from_record(record) == edit


class TestEditDeduplicator:
    def test_repeat_in_same_repository_is_duplicate(self) -> None:
        dedup = EditDeduplicator()
        first = extract_edits(_revision(_BEFORE, _AFTER, commit="c1"), ExtractConfig())[0]
        again = extract_edits(_revision(_BEFORE, _AFTER, commit="c9"), ExtractConfig())[0]
        assert dedup.is_duplicate(first) is False
        assert dedup.is_duplicate(again) is True
        assert dedup.unique_count == 1

    def test_same_edit_in_other_repository_is_kept(self) -> None:
        dedup = EditDeduplicator()
        here = extract_edits(_revision(_BEFORE, _AFTER, source="repo-a"), ExtractConfig())[0]
        there = extract_edits(_revision(_BEFORE, _AFTER, source="repo-b"), ExtractConfig())[0]
        assert dedup.is_duplicate(here) is False
        assert dedup.is_duplicate(there) is False

    def test_different_context_is_not_duplicate(self) -> None:
        dedup = EditDeduplicator()
        edits = extract_edits(_revision(_BEFORE, _AFTER), ExtractConfig())
        assert [dedup.is_duplicate(edit) for edit in edits] == [False, False]

    def test_reset(self) -> None:
        dedup = EditDeduplicator()
        edit = extract_edits(_revision(_BEFORE, _AFTER), ExtractConfig())[0]
        dedup.is_duplicate(edit)
        dedup.reset()
        assert dedup.is_duplicate(edit) is False
