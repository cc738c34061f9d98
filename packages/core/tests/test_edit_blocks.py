"""Tests for search-replace block validation and canonicalization."""

import pytest

from revguard_core.patches.blocks import (
    TextPatcher,
    extract_edit_blocks,
    invalid_block_marker,
    optimize_search_replace_blocks,
    validate_block,
)
from revguard_core.patches.models import SearchReplace

VALID = "FILE: src/a.py\n<<<<<<< SEARCH\nx = 1\n=======\nx = 2\n>>>>>>> REPLACE\n"


# ---------------------------------------------------------------------------
# TextPatcher
# ---------------------------------------------------------------------------


class TestTextPatcher:
    def test_applies_edits_against_original_offsets(self):
        patcher = TextPatcher("hello brave new world")
        patcher.replace_at(16, 5, "planet")
        patcher.replace_at(0, 5, "goodbye")
        assert patcher.apply() == "goodbye brave new planet"
        assert patcher.offset == 3

    def test_no_edits(self):
        assert TextPatcher("same").apply() == "same"

    def test_overlapping_edits_raise(self):
        patcher = TextPatcher("abcdef")
        patcher.replace_at(0, 4, "x")
        patcher.replace_at(2, 2, "y")
        with pytest.raises(ValueError):
            patcher.apply()


# ---------------------------------------------------------------------------
# validate_block
# ---------------------------------------------------------------------------


class TestValidateBlock:
    def test_valid_block(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "a.py").write_text("x = 1\n")
        validation = validate_block(VALID, str(tmp_path))
        assert validation.is_valid
        assert validation.warnings == []
        assert validation.block.file_path == "src/a.py"
        assert validation.block.operations == [SearchReplace(search="x = 1", replace="x = 2")]

    def test_missing_file_is_only_a_warning(self, tmp_path):
        validation = validate_block(VALID, str(tmp_path))
        assert validation.is_valid
        assert validation.warnings == ["File does not exist: src/a.py"]

    def test_existence_not_checked_without_repo_root(self):
        assert validate_block(VALID, None).warnings == []

    def test_missing_file_declaration(self):
        validation = validate_block("<<<<<<< SEARCH\na\n=======\nb\n>>>>>>> REPLACE\n", None)
        assert validation.errors == ["Missing FILE declaration"]
        assert validation.block is None

    def test_empty_file_path(self):
        validation = validate_block("FILE:   \n<<<<<<< SEARCH\na\n=======\nb\n>>>>>>> REPLACE\n", None)
        assert validation.errors == ["Empty file path"]

    def test_directory_traversal(self, tmp_path):
        validation = validate_block(VALID.replace("src/a.py", "../outside.py"), str(tmp_path))
        assert "File path contains directory traversal" in validation.errors
        assert validation.warnings == []
        assert not validation.is_valid

    @pytest.mark.parametrize("path", ["/etc/hosts", "\\\\server\\share.py", "C:\\code\\a.py"])
    def test_absolute_paths(self, path):
        validation = validate_block(VALID.replace("src/a.py", path), None)
        assert "File path is absolute" in validation.errors

    def test_unterminated_operation(self):
        validation = validate_block("FILE: a.py\n<<<<<<< SEARCH\nx\n=======\ny", None)
        assert validation.errors == [
            "Unterminated SEARCH/REPLACE operation 1",
            "No valid SEARCH/REPLACE operations found",
        ]

    def test_no_operations(self):
        validation = validate_block("FILE: a.py\njust some text\n", None)
        assert validation.errors == ["No valid SEARCH/REPLACE operations found"]

    def test_empty_search_text(self):
        validation = validate_block("FILE: a.js\n<<<<<<< SEARCH\n=======\nfoo\n>>>>>>> REPLACE\n", None)
        assert validation.errors == ["Empty search text in operation 1"]

    def test_long_texts_are_warnings(self):
        config = {"max_search_chars": 3, "max_replace_chars": 3}
        validation = validate_block(VALID, None, config=config)
        assert validation.is_valid
        assert validation.warnings == [
            "Search text is very long in operation 1 (5 chars)",
            "Replace text is very long in operation 1 (5 chars)",
        ]

    def test_multiple_operations(self):
        content = VALID + "<<<<<<< SEARCH\ny = 1\n=======\ny = 2\n>>>>>>> REPLACE\n"
        validation = validate_block(content, None)
        assert [op.search for op in validation.block.operations] == ["x = 1", "y = 1"]

    def test_first_file_declaration_wins(self):
        content = "FILE: a.py\nFILE: b.py\n<<<<<<< SEARCH\nx\n=======\ny\n>>>>>>> REPLACE\n"
        assert validate_block(content, None).block.file_path == "a.py"


class TestCanonicalForm:
    def test_tolerant_markers_are_canonicalized(self):
        content = "file: a.py\n<<<<<<<<  search\nx\n==========\ny\n>>>>>>> replace\n"
        validation = validate_block(content, None)
        assert validation.is_valid
        assert validation.normalized == "FILE: a.py\n<<<<<<< SEARCH\nx\n=======\ny\n>>>>>>> REPLACE\n"

    def test_canonical_block_is_unchanged(self):
        assert validate_block(VALID, None).normalized == VALID

    def test_blank_runs_outside_payload_collapse(self):
        content = "FILE: a.py\n\n\n<<<<<<< SEARCH\nx\n=======\ny\n>>>>>>> REPLACE\n"
        assert validate_block(content, None).normalized.startswith("FILE: a.py\n\n<<<<<<< SEARCH\n")

    def test_payload_is_untouched(self):
        content = "FILE: a.py\n<<<<<<< SEARCH\n  x\n\n\n\tFILE: b.py\n=======\ny  \n>>>>>>> REPLACE\n"
        validation = validate_block(content, None)
        assert validation.normalized == content
        assert validation.block.operations[0].search == "  x\n\n\n\tFILE: b.py"
        assert validation.block.operations[0].replace == "y  "


# ---------------------------------------------------------------------------
# invalid_block_marker / optimize_search_replace_blocks
# ---------------------------------------------------------------------------


class TestInvalidBlockMarker:
    def test_layout(self):
        marker = invalid_block_marker(["A", "B"], "```x ---- y")
        assert marker == (
            "<!-- INVALID SEARCH-REPLACE BLOCK REMOVED\n"
            "Errors: A; B\n"
            "Preview: '''x - - - - y\n"
            "Original content preserved but not executable.\n"
            "-->"
        )

    def test_empty_content_has_no_trailing_space(self):
        assert "\nPreview:\n" in invalid_block_marker(["A"], "")

    def test_preview_is_truncated(self):
        marker = invalid_block_marker(["A"], "x" * 500, preview_chars=10)
        assert "Preview: xxxxxxxxxx...\n" in marker


class TestOptimizeSearchReplaceBlocks:
    TEXT = (
        "Intro\n"
        "```search-replace\nfile: a.py\n<<<<<<< search\nx\n=======\ny\n>>>>>>> replace\n```\n"
        "Middle\n"
        "```search-replace\nFILE: ../b.py\n<<<<<<< SEARCH\nx\n=======\ny\n>>>>>>> REPLACE\n```\n"
        "End"
    )

    def test_quarantines_invalid_and_canonicalizes_valid(self):
        text, validations = optimize_search_replace_blocks(self.TEXT, None)
        assert [v.is_valid for v in validations] == [True, False]
        assert text.startswith(
            "Intro\n```search-replace\nFILE: a.py\n<<<<<<< SEARCH\nx\n=======\ny\n>>>>>>> REPLACE\n```\nMiddle\n"
        )
        assert "<!-- INVALID SEARCH-REPLACE BLOCK REMOVED\nErrors: File path contains directory traversal\n" in text
        assert text.endswith("Original content preserved but not executable.\n-->\nEnd")
        assert text.count("```search-replace") == 1

    def test_second_pass_changes_nothing(self):
        once, _ = optimize_search_replace_blocks(self.TEXT, None)
        twice, _ = optimize_search_replace_blocks(once, None)
        assert twice == once

    def test_extract_reports_offsets(self):
        validations = extract_edit_blocks(self.TEXT)
        assert self.TEXT[validations[0].start : validations[0].end].startswith("```search-replace\nfile: a.py")
        assert self.TEXT[validations[1].start : validations[1].end].endswith(">>>>>>> REPLACE\n```")

    def test_text_without_blocks_is_unchanged(self):
        assert optimize_search_replace_blocks("nothing here", None) == ("nothing here", [])
