"""Unit tests for site_index.rendering module."""

from datetime import datetime, UTC

import pytest

from src.site_index.models import (
    ContentDates,
    ContentNode,
    ExplicitFolderData,
    FolderPage,
    ListingEntry,
    SynthesizedFolderData,
)
from src.site_index.rendering import (
    FilesystemPageWriter,
    HtmlFolderRenderer,
    join_segments,
    path_to_root,
    resolve_relative,
    simplify_slug,
)
from src.workspace.errors import FilesystemError


class TestSlugHelpers:
    """Test cases for slug helper functions."""

    @pytest.mark.parametrize("slug,expected", [
        ("index", "/"),
        ("docs/index", "docs/"),
        ("docs/guide/intro", "docs/guide/intro"),
        ("/about", "about"),
    ])
    def test_simplify_slug(self, slug, expected):
        assert simplify_slug(slug) == expected

    @pytest.mark.parametrize("slug,expected", [
        ("index", "."),
        ("about", "."),
        ("docs/index", ".."),
        ("docs/guide/index", "../.."),
    ])
    def test_path_to_root(self, slug, expected):
        assert path_to_root(slug) == expected

    def test_join_segments_keeps_trailing_slash(self):
        assert join_segments("..", "docs/") == "../docs/"
        assert join_segments(".", "", "a") == "./a"

    def test_resolve_relative(self):
        assert resolve_relative("docs/index", "docs/faq") == "../docs/faq"
        assert resolve_relative("docs/index", "docs/guide/index") == "../docs/guide/"
        assert resolve_relative("about", "index") == "."


class TestHtmlFolderRenderer:
    """Test cases for HtmlFolderRenderer."""

    @pytest.fixture
    def page(self):
        stamp = datetime(2024, 3, 5, tzinfo=UTC)
        return FolderPage(
            folder="docs",
            slug="docs/index",
            data=SynthesizedFolderData(title="Folder: docs", dates=ContentDates.uniform(stamp)),
            entries=[
                ListingEntry("docs/guide", "guide", True),
                ListingEntry(
                    "docs/faq", "FAQ & <Help>", False,
                    dates=ContentDates.uniform(stamp), tags=["news"],
                ),
            ],
        )

    def test_title_and_count(self, page):
        html = HtmlFolderRenderer().render(page)

        assert "<h1>Folder: docs</h1>" in html
        assert "2 items under this folder." in html

    def test_single_item_count(self, page):
        page.entries = page.entries[:1]

        assert "1 item under this folder." in HtmlFolderRenderer().render(page)

    def test_count_hidden(self, page):
        page.show_folder_count = False

        assert "under this folder" not in HtmlFolderRenderer().render(page)

    def test_links_escaped_and_relative(self, page):
        html = HtmlFolderRenderer().render(page)

        assert 'href="../docs/guide/"' in html
        assert 'href="../docs/faq"' in html
        assert "FAQ &amp; &lt;Help&gt;" in html
        assert 'href="../tags/news"' in html

    def test_dates_rendered(self, page):
        html = HtmlFolderRenderer().render(page)

        assert '<time datetime="2024-03-05T00:00:00+00:00">Mar 05, 2024</time>' in html

    def test_explicit_description(self):
        node = ContentNode("docs/index", {"title": "Docs"}, description="Everything")
        page = FolderPage("docs", "docs/index", ExplicitFolderData(node))

        html = HtmlFolderRenderer().render(page)

        assert '<p class="description">Everything</p>' in html
        assert "0 items under this folder." in html


class TestFilesystemPageWriter:
    """Test cases for FilesystemPageWriter."""

    def test_writes_nested_page(self, tmp_path):
        writer = FilesystemPageWriter(str(tmp_path))

        path = writer.write(None, "<html/>", "docs/guide/index", ".html")

        assert (tmp_path / "docs" / "guide" / "index.html").read_text() == "<html/>"
        assert path == str(tmp_path / "docs" / "guide" / "index.html")

    def test_rejects_escaping_slug(self, tmp_path):
        writer = FilesystemPageWriter(str(tmp_path))

        with pytest.raises(FilesystemError):
            writer.write(None, "x", "../outside", ".html")

    def test_write_failure_raises_filesystem_error(self, tmp_path):
        (tmp_path / "docs").write_text("a file, not a directory")
        writer = FilesystemPageWriter(str(tmp_path))

        with pytest.raises(FilesystemError):
            writer.write(None, "x", "docs/index", ".html")
