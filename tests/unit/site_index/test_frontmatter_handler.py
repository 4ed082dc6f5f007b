"""Unit tests for site_index.frontmatter_handler module."""

from datetime import date, datetime, timedelta, timezone, UTC

import pytest

from src.site_index.errors import FrontmatterError
from src.site_index.frontmatter_handler import FrontmatterHandler


class TestFrontmatterHandlerParse:
    """Test cases for FrontmatterHandler.parse()."""

    def test_parse_valid_frontmatter(self):
        """Frontmatter mapping and body are split apart."""
        content = "---\ntitle: Intro\ntags:\n  - a\n  - b\n---\n# Intro\n\nBody.\n"

        frontmatter, body = FrontmatterHandler.parse("intro.md", content)

        assert frontmatter == {"title": "Intro", "tags": ["a", "b"]}
        assert body == "# Intro\n\nBody.\n"

    def test_parse_without_frontmatter(self):
        """Content without delimiters is all body."""
        frontmatter, body = FrontmatterHandler.parse("a.md", "# Title\n")

        assert frontmatter == {}
        assert body == "# Title\n"

    def test_parse_empty_frontmatter(self):
        """An empty block yields an empty mapping."""
        frontmatter, body = FrontmatterHandler.parse("a.md", "---\n---\nText\n")

        assert frontmatter == {}
        assert body == "Text\n"

    def test_parse_crlf_and_bom(self):
        """Windows line endings and a byte order mark are tolerated."""
        content = "\ufeff---\r\ntitle: Win\r\n---\r\nBody\r\n"

        frontmatter, body = FrontmatterHandler.parse("a.md", content)

        assert frontmatter == {"title": "Win"}
        assert body == "Body\r\n"

    def test_parse_invalid_yaml(self):
        """Broken YAML raises FrontmatterError naming the file."""
        with pytest.raises(FrontmatterError) as exc_info:
            FrontmatterHandler.parse("bad.md", "---\ntitle: [unclosed\n---\n")

        assert exc_info.value.file_path == "bad.md"
        assert "Invalid YAML syntax" in str(exc_info.value)

    def test_parse_non_mapping(self):
        """A YAML list is not valid frontmatter."""
        with pytest.raises(FrontmatterError) as exc_info:
            FrontmatterHandler.parse("list.md", "---\n- a\n- b\n---\n")

        assert "got list" in exc_info.value.message

    def test_parse_too_deep(self):
        """Excessively nested YAML is rejected with the real file path."""
        nested = "v"
        for _ in range(12):
            nested = f"[{nested}]"

        with pytest.raises(FrontmatterError) as exc_info:
            FrontmatterHandler.parse("deep.md", f"---\nkey: {nested}\n---\n")

        assert exc_info.value.file_path == "deep.md"
        assert "maximum depth" in exc_info.value.message


class TestFrontmatterHandlerParseDate:
    """Test cases for FrontmatterHandler.parse_date()."""

    def test_date_becomes_midnight_utc(self):
        assert FrontmatterHandler.parse_date(date(2024, 1, 2)) == datetime(2024, 1, 2, tzinfo=UTC)

    def test_naive_datetime_taken_as_utc(self):
        parsed = FrontmatterHandler.parse_date(datetime(2024, 1, 2, 3, 4))

        assert parsed.tzinfo is UTC

    def test_aware_datetime_kept(self):
        tz = timezone(timedelta(hours=2))
        value = datetime(2024, 1, 2, tzinfo=tz)

        assert FrontmatterHandler.parse_date(value) is value

    def test_iso_string(self):
        parsed = FrontmatterHandler.parse_date("2024-05-06T07:08:09+00:00")

        assert parsed == datetime(2024, 5, 6, 7, 8, 9, tzinfo=UTC)

    @pytest.mark.parametrize("value", ["yesterday", "", None, 20240101, ["2024-01-01"]])
    def test_unparsable_values_are_absent(self, value):
        assert FrontmatterHandler.parse_date(value) is None
