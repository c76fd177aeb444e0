"""
Tests for text run classification
"""

import pytest

from inkloc.classifier import ClassificationConflictError, classify, is_in_code_context
from inkloc.models import NodeKind


class TestEligibility:
    def test_plain_lines(self, parse):
        story = parse("=== intro ===\nHello world\n\nGoodbye\n")
        result = classify(story, set())
        assert [r.text for r in result.runs] == ["Hello world", "Goodbye"]
        assert result.new_file_ids == {"main"}

    def test_run_positions(self, parse):
        story = parse("Line one\nLine two\n")
        second = classify(story, set()).runs[1]
        assert second.file_id == "main"
        assert second.end_line == 2
        assert second.end_column == 8

    def test_whitespace_skipped(self, parse):
        result = classify(parse("Hello\n"), set())
        assert result.skipped["whitespace"] >= 1

    def test_tag_text_not_eligible(self, parse):
        result = classify(parse("Hello #mood: happy #loc:main_X1\n"), set())
        assert [r.text for r in result.runs] == ["Hello"]
        assert result.skipped["tag"] == 2

    def test_code_contexts_not_eligible(self, parse):
        story = parse('VAR name = "Ann"\n~ temp t = "tmp"\nShe said {"hi"}\n')
        result = classify(story, set())
        assert [r.text for r in result.runs] == ["She said"]
        assert result.skipped["code"] == 3

    def test_is_in_code_context(self, parse):
        story = parse('VAR name = "Ann"\nPlain\n')
        texts = [t for t in story.find_all(NodeKind.TEXT) if t.text.strip()]
        assert is_in_code_context(texts[0])
        assert not is_in_code_context(texts[1])

    def test_document_order(self, parse, write_ink):
        write_ink("chapter.ink", "Included first\n")
        story = parse("INCLUDE chapter.ink\nThen main\n")
        runs = classify(story, set()).runs
        assert [(r.file_id, r.text) for r in runs] == [("chapter", "Included first"), ("main", "Then main")]


class TestConflicts:
    def test_two_runs_on_one_line(self, parse, temp_dir):
        story = parse("Intro\nYou have {coins} coins\n")
        with pytest.raises(ClassificationConflictError) as exc:
            classify(story, set())
        assert exc.value.line == 2
        assert exc.value.file_name == str(temp_dir / "main.ink")
        assert "line 2" in str(exc.value)

    def test_choice_with_split_text(self, parse):
        story = parse("* Hello [there] friend\n")
        with pytest.raises(ClassificationConflictError):
            classify(story, set())

    def test_code_text_does_not_count(self, parse):
        story = parse('She said {"hi"}\n')
        assert len(classify(story, set()).runs) == 1

    def test_conflict_in_visited_file_still_raised(self, parse):
        story = parse("A {x} B\n")
        with pytest.raises(ClassificationConflictError):
            classify(story, {"main"})


class TestVisited:
    def test_visited_file_skipped(self, parse):
        story = parse("Hello\nWorld\n")
        result = classify(story, {"main"})
        assert result.runs == []
        assert result.skipped["visited"] == 2
        assert result.new_file_ids == set()

    def test_visited_not_mutated(self, parse):
        visited = set()
        result = classify(parse("Hello\n"), visited)
        assert visited == set()
        assert result.new_file_ids == {"main"}

    def test_shared_include_skipped(self, parse, write_ink):
        write_ink("shared.ink", "Shared line\n")
        story = parse("INCLUDE shared.ink\nOwn line\n")
        result = classify(story, {"shared"})
        assert [r.text for r in result.runs] == ["Own line"]
