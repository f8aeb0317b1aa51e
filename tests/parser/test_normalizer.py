"""Tests for ANSI stripping, tokenization and soft-wrap reflow."""

from helpscope.parser.normalizer import (
    detect_wrap_width,
    dominant_indent,
    make_line,
    normalize_lines,
    split_lines,
    strip_ansi,
    tokenize_line,
)
from helpscope.parser.types import TokenKind


class TestStripAnsi:
    def test_removes_color_codes(self) -> None:
        assert strip_ansi("\x1b[1;32mbold green\x1b[0m text") == "bold green text"

    def test_removes_osc_hyperlinks(self) -> None:
        assert strip_ansi("\x1b]8;;https://example.com\x07link\x1b]8;;\x07") == "link"

    def test_removes_overstrike_bold_and_underline(self) -> None:
        assert strip_ansi("N\x08NA\x08AM\x08ME\x08E") == "NAME"
        assert strip_ansi("_\x08f_\x08i_\x08l_\x08e") == "file"

    def test_plain_text_unchanged(self) -> None:
        assert strip_ansi("  --help   Show help") == "  --help   Show help"


class TestSplitLines:
    def test_handles_crlf_and_lf(self) -> None:
        assert split_lines("a\r\nb\nc") == ["a", "b", "c"]


class TestTokenizeLine:
    def test_extracts_flags_in_column_order(self) -> None:
        tokens = tokenize_line("  -v, --verbose   Enable verbose output")
        flags = [t.value for t in tokens if t.kind == TokenKind.FLAG]
        assert flags == ["-v", "--verbose"]
        columns = [t.column for t in tokens]
        assert columns == sorted(columns)

    def test_extracts_argument_placeholders(self) -> None:
        tokens = tokenize_line("tool run <file> [options] TARGET")
        args = [t.value for t in tokens if t.kind == TokenKind.ARG]
        assert "<file>" in args
        assert "[options]" in args
        assert "TARGET" in args

    def test_counts_commas(self) -> None:
        tokens = tokenize_line("alpha, beta, gamma")
        assert sum(1 for t in tokens if t.kind == TokenKind.COMMA) == 2

    def test_blank_line_has_no_tokens(self) -> None:
        assert tokenize_line("    ") == ()


class TestMakeLine:
    def test_tabs_expand_before_indent_is_measured(self) -> None:
        line = make_line("\tfoo", 3)
        assert line.indent == 2
        assert line.raw == "\tfoo"
        assert line.index == 3
        assert line.stripped == "foo"


class TestDominantIndent:
    def test_most_frequent_width_wins(self) -> None:
        assert dominant_indent([2, 2, 4]) == 2

    def test_wide_indents_are_halved(self) -> None:
        assert dominant_indent([10, 10, 2]) == 5

    def test_no_indentation(self) -> None:
        assert dominant_indent([]) is None


class TestDetectWrapWidth:
    def test_requires_more_than_three_occurrences(self) -> None:
        assert detect_wrap_width(["x" * 70] * 3) is None
        assert detect_wrap_width(["x" * 70] * 4) == 70

    def test_ignores_lengths_outside_range(self) -> None:
        assert detect_wrap_width(["x" * 40] * 10) is None
        assert detect_wrap_width(["x" * 130] * 10) is None


class TestNormalizeLines:
    def test_drops_pager_artifacts_with_warning(self) -> None:
        doc = normalize_lines(["first", "--More--", "second"])
        assert [l.text for l in doc.lines] == ["first", "second"]
        assert any("pager" in w for w in doc.warnings)

    def test_defaults_indent_unit_to_two(self) -> None:
        doc = normalize_lines(["no", "indent", "here"])
        assert doc.indent_unit == 2

    def test_reflows_soft_wrapped_lines(self) -> None:
        wrapped = "  " + "a" * 68
        raw = []
        for _ in range(4):
            raw.extend([wrapped, "      continued here.", ""])
        doc = normalize_lines(raw[:-1])

        assert doc.wrap_width == 70
        joined = [l for l in doc.lines if l.text.startswith(wrapped)]
        assert len(joined) == 4
        assert joined[0].text == wrapped + " continued here."
        assert any("reflowed 4" in w for w in doc.warnings)

    def test_does_not_join_after_terminal_punctuation(self) -> None:
        ended = "  " + "a" * 67 + "."
        raw = []
        for _ in range(4):
            raw.extend([ended, "      next line", ""])
        doc = normalize_lines(raw[:-1])

        assert doc.wrap_width == 70
        assert sum(1 for l in doc.lines if l.stripped == "next line") == 4
