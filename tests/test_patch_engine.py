"""
Tests for patch planning and application
"""

import pytest

from inkloc.models import EditMode, PendingEdit
from inkloc.patch_engine import (
    PatchApplyError,
    apply_file_edits,
    apply_plan,
    insert_tag,
    output_path_for,
    plan_patches,
    replace_tag,
)


def _edit(file_name="main.ink", line=1, loc_id="main_NEW1", mode=EditMode.INSERT, column=0):
    return PendingEdit(
        file_id="main", file_name=file_name, line=line, loc_id=loc_id, mode=mode, column=column,
    )


class TestPlan:
    def test_groups_by_file_in_discovery_order(self):
        edits = [
            _edit("b.ink", 1), _edit("a.ink", 1), _edit("b.ink", 3), _edit("a.ink", 2),
        ]
        plan = plan_patches(edits)
        assert list(plan.keys()) == ["b.ink", "a.ink"]
        assert [e.line for e in plan["b.ink"]] == [1, 3]
        assert [e.line for e in plan["a.ink"]] == [1, 2]

    def test_empty(self):
        assert plan_patches([]) == {}


class TestInsert:
    def test_adds_space_after_text(self):
        assert insert_tag("Hello world", 11, "#loc:X") == "Hello world #loc:X"

    def test_no_extra_space_after_whitespace(self):
        assert insert_tag("Hello  -> next", 6, "#loc:X") == "Hello #loc:X -> next"

    def test_space_before_adjacent_tag(self):
        assert insert_tag("Hello#mood", 5, "#loc:X") == "Hello #loc:X #mood"

    def test_existing_tag_after_space(self):
        assert insert_tag("Hello #mood", 5, "#loc:X") == "Hello #loc:X #mood"

    def test_inside_choice_brackets(self):
        assert insert_tag("* [Go north] -> north", 11, "#loc:X") == "* [Go north #loc:X] -> north"

    @pytest.mark.parametrize("column", [0, 20])
    def test_out_of_range(self, column):
        with pytest.raises(PatchApplyError):
            insert_tag("Hello", column, "#loc:X")


class TestReplace:
    def test_replaces_marker(self):
        assert replace_tag("Bonjour #loc:main_OLD1 #mood", "#loc:main_NEW1") == "Bonjour #loc:main_NEW1 #mood"

    def test_only_first_marker(self):
        assert replace_tag("a #loc:one #loc:two", "#loc:new") == "a #loc:new #loc:two"

    def test_missing_id(self):
        with pytest.raises(PatchApplyError):
            replace_tag("Broken #loc: here", "#loc:new")


class TestApplyFile:
    def test_insert_debug_output(self, write_ink):
        path = write_ink("main.ink", "Line one\nHello world\n")
        result = apply_file_edits(path, [_edit(str(path), 2, column=11)])

        assert result.ok
        assert result.edits_applied == 1
        out = path.with_name("main.ink.txt")
        assert result.output_path == str(out)
        assert out.read_text(encoding="utf-8") == "Line one\nHello world #loc:main_NEW1"
        assert path.read_text(encoding="utf-8") == "Line one\nHello world\n"

    def test_in_place(self, write_ink):
        path = write_ink("main.ink", "Hello world")
        result = apply_file_edits(path, [_edit(str(path), 1, column=11)], debug_output_suffix=False)
        assert result.ok
        assert path.read_text(encoding="utf-8") == "Hello world #loc:main_NEW1"

    def test_textual_replace_wins_over_planned_insert(self, write_ink):
        path = write_ink("main.ink", "Hello #loc:main_OLD1\n")
        result = apply_file_edits(path, [_edit(str(path), 1, column=5)], debug_output_suffix=False)
        assert result.ok
        assert path.read_text(encoding="utf-8") == "Hello #loc:main_NEW1"

    def test_crlf_source(self, write_ink):
        path = write_ink("main.ink", "")
        path.write_bytes(b"One\r\nTwo\r\n")
        result = apply_file_edits(path, [_edit(str(path), 2, column=3)], debug_output_suffix=False)
        assert result.ok
        assert path.read_bytes() == b"One\nTwo #loc:main_NEW1"

    def test_missing_file(self, temp_dir):
        result = apply_file_edits(temp_dir / "gone.ink", [_edit(line=1, column=1)])
        assert not result.ok
        assert "gone.ink" in result.error

    def test_line_out_of_bounds(self, write_ink):
        path = write_ink("main.ink", "Only line\n")
        result = apply_file_edits(path, [_edit(str(path), 5, column=1)])
        assert not result.ok
        assert not path.with_name("main.ink.txt").exists()

    def test_custom_suffix(self, temp_dir):
        assert output_path_for(temp_dir / "a.ink", True, ".out") == temp_dir / "a.ink.out"
        assert output_path_for(temp_dir / "a.ink", False, ".out") == temp_dir / "a.ink"


class TestApplyPlan:
    def test_stops_at_first_failure(self, write_ink, temp_dir):
        good = write_ink("good.ink", "Hello\n")
        later = write_ink("later.ink", "Later\n")
        plan = plan_patches([
            _edit(str(good), 1, column=5),
            _edit(str(temp_dir / "missing.ink"), 1, column=1),
            _edit(str(later), 1, column=5),
        ])
        results = apply_plan(plan, debug_output_suffix=False)

        assert [r.ok for r in results] == [True, False]
        # no rollback of the file written before the failure
        assert good.read_text(encoding="utf-8") == "Hello #loc:main_NEW1"
        assert later.read_text(encoding="utf-8") == "Later\n"

    def test_resolver_used(self, write_ink, temp_dir):
        path = write_ink("main.ink", "Hello\n")
        plan = plan_patches([_edit("main.ink", 1, column=5)])
        results = apply_plan(plan, resolve=lambda name: temp_dir / name)
        assert results[0].ok
        assert (temp_dir / "main.ink.txt").exists()
