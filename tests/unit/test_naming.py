# ABOUTME: Unit tests for the file naming pattern resolver.
# ABOUTME: Covers placeholders, optional blocks, sanitizing, extension handling and fallbacks.

from datetime import date

import pytest

from booklore.core.naming import format_series_index, resolve_pattern, sanitize
from booklore.metadata.types import BookMetadata


@pytest.fixture()
def dune() -> BookMetadata:
    return BookMetadata(
        title="Dune",
        authors=["Frank Herbert"],
        series_name="Dune",
        series_number=1,
        published_date=date(1965, 8, 1),
    )


class TestResolvePattern:
    """Tests for resolve_pattern()."""

    def test_series_block_kept_when_series_present(self, dune: BookMetadata) -> None:
        """An optional block whose placeholders all have values is kept."""
        result = resolve_pattern(dune, "{authors}/<{series} - >{title}", "dune.epub")
        assert result == "Frank Herbert/Dune - Dune.epub"

    def test_series_block_dropped_when_series_missing(self, dune: BookMetadata) -> None:
        """An optional block with a blank placeholder disappears entirely."""
        dune.series_name = None
        result = resolve_pattern(dune, "{authors}/<{series} - >{title}", "dune.epub")
        assert result == "Frank Herbert/Dune.epub"

    def test_unknown_placeholder_passes_through(self, dune: BookMetadata) -> None:
        """Placeholders with no known value stay literally in the output."""
        result = resolve_pattern(dune, "{title}-{nonexistent}", "x.pdf")
        assert result == "Dune-{nonexistent}.pdf"

    def test_explicit_extension_not_doubled(self, dune: BookMetadata) -> None:
        """A pattern using {extension} never gets a second extension."""
        result = resolve_pattern(dune, "{title}.{extension}", "dune.epub")
        assert result == "Dune.epub"

    def test_extension_not_appended_when_result_has_one(self, dune: BookMetadata) -> None:
        """A result that already ends in a dotted suffix is left alone."""
        result = resolve_pattern(dune, "{title}.pdf", "dune.epub")
        assert result == "Dune.pdf"

    def test_year_and_series_index(self, dune: BookMetadata) -> None:
        result = resolve_pattern(dune, "<{series}/><{seriesIndex}. >{title} ({year})", "d.epub")
        assert result == "Dune/1. Dune (1965).epub"

    def test_fractional_series_index(self, dune: BookMetadata) -> None:
        dune.series_number = 1.5
        result = resolve_pattern(dune, "<{seriesIndex} - >{title}", "d.epub")
        assert result == "1.5 - Dune.epub"

    def test_blank_pattern_returns_current_filename(self, dune: BookMetadata) -> None:
        assert resolve_pattern(dune, "   ", "original name.epub") == "original name.epub"
        assert resolve_pattern(dune, None, "original name.epub") == "original name.epub"

    def test_blank_result_falls_back_to_current_filename(self) -> None:
        """A pattern that resolves to nothing uses the current file name."""
        result = resolve_pattern(BookMetadata(title="X"), "<{series}>", "keep.cbz")
        assert result == "keep.cbz"

    def test_missing_title_becomes_untitled(self) -> None:
        result = resolve_pattern(BookMetadata(), "{title}", "a.pdf")
        assert result == "Untitled.pdf"

    def test_none_metadata_behaves_as_empty(self) -> None:
        assert resolve_pattern(None, "{authors}<{series}>{title}", "a.pdf") == "Untitled.pdf"

    def test_current_filename_placeholder(self, dune: BookMetadata) -> None:
        result = resolve_pattern(dune, "{authors}/{currentFilename}", "dune.epub")
        assert result == "Frank Herbert/dune.epub"

    def test_values_are_sanitized(self) -> None:
        """Path separators and reserved characters are stripped from values."""
        meta = BookMetadata(title='What? A/B: "Story"', authors=["Ann  Author"])
        result = resolve_pattern(meta, "{authors}/{title}", "x.epub")
        assert result == "Ann Author/What AB Story.epub"

    def test_multiple_authors_joined(self) -> None:
        meta = BookMetadata(title="Good Omens", authors=["Terry Pratchett", "Neil Gaiman"])
        result = resolve_pattern(meta, "{authors} - {title}", "x.epub")
        assert result == "Terry Pratchett, Neil Gaiman - Good Omens.epub"

    def test_file_without_extension_gets_none(self, dune: BookMetadata) -> None:
        assert resolve_pattern(dune, "{title}", "README") == "Dune"


class TestHelpers:
    """Tests for sanitize() and format_series_index()."""

    def test_sanitize_none(self) -> None:
        assert sanitize(None) == ""

    def test_sanitize_control_chars_and_whitespace(self) -> None:
        """Control characters (tabs included) are dropped, space runs collapse."""
        assert sanitize("  a\tb\x00c   d  ") == "abc d"

    @pytest.mark.parametrize(
        ("number", "expected"),
        [(None, ""), (1, "1"), (1.0, "1"), (2.5, "2.5"), (10.25, "10.25")],
    )
    def test_format_series_index(self, number: float | None, expected: str) -> None:
        assert format_series_index(number) == expected
