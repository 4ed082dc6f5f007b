"""Slug helpers, the default folder-listing renderer and the page writer.

The renderer and writer are small replaceable collaborators of
FolderIndexGenerator; a full site renderer can supply its own.
"""

import html
import logging
import os
import posixpath
from typing import Any, List

from src.workspace.errors import FilesystemError

from .models import FolderPage, ListingEntry

logger = logging.getLogger(__name__)

DATE_FORMAT = "%b %d, %Y"


def _strip_slashes(segment: str) -> str:
    return segment.strip("/")


def join_segments(*segments: str) -> str:
    """Join slug segments with '/', keeping a trailing slash on the last one.

    Example:
        >>> join_segments("..", "docs/")
        '../docs/'
    """
    parts = [_strip_slashes(s) for s in segments if s and _strip_slashes(s)]
    joined = "/".join(parts)
    if segments and segments[-1].endswith("/") and joined:
        joined += "/"
    return joined


def simplify_slug(slug: str) -> str:
    """Drop a trailing 'index' segment; the root simplifies to '/'.

    Example:
        >>> simplify_slug("docs/index")
        'docs/'
        >>> simplify_slug("index")
        '/'
    """
    if slug == "index":
        return "/"
    if slug.endswith("/index"):
        slug = slug[:-len("index")]
    slug = slug.lstrip("/")
    return slug or "/"


def path_to_root(slug: str) -> str:
    """Relative path from the page at ``slug`` back to the site root.

    Example:
        >>> path_to_root("docs/guide/index")
        '../..'
    """
    depth = len([s for s in slug.split("/") if s]) - 1
    if depth <= 0:
        return "."
    return "/".join([".."] * depth)


def resolve_relative(current: str, target: str) -> str:
    """Relative link from the page at ``current`` to the page at ``target``."""
    simple = simplify_slug(target)
    if simple == "/":
        simple = ""
    return join_segments(path_to_root(current), simple) or "."


class HtmlFolderRenderer:
    """Renders a folder page as a minimal, self-contained HTML document."""

    def __init__(self, date_type: str = "modified"):
        self.date_type = date_type

    def render(self, page: FolderPage) -> str:
        title = html.escape(page.data.title)
        parts: List[str] = [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '<meta charset="utf-8">',
            f"<title>{title}</title>",
            "</head>",
            "<body>",
            '<article class="folder-page">',
            f"<h1>{title}</h1>",
        ]
        if page.data.description:
            parts.append(f'<p class="description">{html.escape(page.data.description)}</p>')
        if page.show_folder_count:
            parts.append(f"<p>{self.items_under_folder(len(page.entries))}</p>")
        parts.append('<ul class="section-ul">')
        parts.extend(self._render_entry(page, entry) for entry in page.entries)
        parts.extend(["</ul>", "</article>", "</body>", "</html>"])
        return "\n".join(parts) + "\n"

    @staticmethod
    def items_under_folder(count: int) -> str:
        if count == 1:
            return "1 item under this folder."
        return f"{count} items under this folder."

    def _render_entry(self, page: FolderPage, entry: ListingEntry) -> str:
        target = entry.slug
        if entry.is_folder and not (target == "index" or target.endswith("/index")):
            target = f"{target}/index"
        href = html.escape(resolve_relative(page.slug, target), quote=True)
        css = "section-li folder" if entry.is_folder else "section-li"
        date = ""
        if entry.dates is not None:
            stamp = entry.dates.get(self.date_type)
            date = f'<time datetime="{stamp.isoformat()}">{stamp.strftime(DATE_FORMAT)}</time> '
        tags = "".join(
            f'<li><a class="tag-link" href="{html.escape(resolve_relative(page.slug, "tags/" + tag), quote=True)}">'
            f"{html.escape(tag)}</a></li>"
            for tag in entry.tags
        )
        tag_list = f' <ul class="tags">{tags}</ul>' if tags else ""
        return (
            f'<li class="{css}">{date}'
            f'<a href="{href}" class="internal">{html.escape(entry.title)}</a>{tag_list}</li>'
        )


class FilesystemPageWriter:
    """Writes emitted pages under an output directory.

    Example:
        >>> writer = FilesystemPageWriter("public")
        >>> writer.write(None, "<html>...</html>", "docs/index", ".html")
        'public/docs/index.html'
    """

    def __init__(self, output_dir: str):
        self.output_dir = output_dir

    def path_for(self, slug: str, ext: str) -> str:
        relative = posixpath.normpath(slug.strip("/") + ext)
        if relative.startswith(".."):
            raise FilesystemError(relative, "write", "slug escapes the output directory")
        return os.path.join(self.output_dir, *relative.split("/"))

    def write(self, ctx: Any, content: str, slug: str, ext: str) -> str:
        """Write ``content`` to ``<output_dir>/<slug><ext>``.

        Args:
            ctx: Build context (unused by the filesystem writer)
            content: Page content
            slug: Target slug
            ext: Extension including the dot

        Returns:
            Path of the written file

        Raises:
            FilesystemError: If the file cannot be written
        """
        path = self.path_for(slug, ext)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise FilesystemError(path, "write", str(e))
        logger.debug(f"Wrote {path}")
        return path
