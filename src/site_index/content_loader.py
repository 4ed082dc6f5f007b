"""Loads the content directory into a flat collection of ContentNodes.

For each markdown file under the content directory this module:
    - derives the slug from the relative path
    - parses YAML frontmatter (unparsable frontmatter degrades to empty)
    - drops drafts
    - resolves created/modified/published dates from frontmatter, git
      history and the filesystem, in configurable priority order
    - extracts the table of contents and a short description
"""

import logging
import os
import re
import subprocess
from datetime import datetime, UTC
from typing import Dict, Iterable, List, Optional, Sequence

from src.workspace.path_matcher import Matcher, PathMatcher, normalize_path

from .errors import FrontmatterError
from .frontmatter_handler import FrontmatterHandler
from .models import DESCRIPTION_KEY, ContentDates, ContentNode, TocEntry

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSION = ".md"

DEFAULT_IGNORE_PATTERNS = ("private", "templates", ".obsidian")
DEFAULT_DATE_PRIORITY = ("frontmatter", "git", "filesystem")
DEFAULT_TOC_MAX_DEPTH = 6
DESCRIPTION_LENGTH = 150

# Timeout in seconds for git operations
GIT_TIMEOUT = 10

# Frontmatter keys consulted for each date, in order
FRONTMATTER_DATE_KEYS = {
    "created": ("created", "date"),
    "modified": ("modified", "updated", "lastmod", "last-modified"),
    "published": ("published", "publishDate", "date"),
}

HEADING_PATTERN = re.compile(r'^(#{1,6})[ \t]+(.+?)[ \t]*#*[ \t]*$')
FENCE_PATTERN = re.compile(r'^[ \t]*(```|~~~)')
LINK_PATTERN = re.compile(r'!?\[([^\]]*)\]\([^)]*\)')
WIKILINK_PATTERN = re.compile(r'\[\[([^\]|]*)(?:\|([^\]]*))?\]\]')
EMPHASIS_PATTERN = re.compile(r'[*_`~]+')


def slugify_path(relative_path: str) -> str:
    """Turn a content-relative file path into a slug.

    Example:
        >>> slugify_path("docs/Getting Started.md")
        'docs/Getting-Started'
    """
    path = normalize_path(relative_path)
    if path.lower().endswith(MARKDOWN_EXTENSION):
        path = path[:-len(MARKDOWN_EXTENSION)]
    return path.replace(" ", "-")


def slugify_heading(text: str) -> str:
    """Anchor for a heading: lowercase, punctuation dropped, spaces to '-'."""
    anchor = text.strip().lower()
    anchor = re.sub(r'[^\w\- ]', '', anchor)
    return anchor.replace(" ", "-")


def extract_toc(body: str, max_depth: int = DEFAULT_TOC_MAX_DEPTH) -> List[TocEntry]:
    """Collect ATX headings outside fenced code blocks."""
    toc = []
    seen: Dict[str, int] = {}
    fence = None
    for line in body.splitlines():
        fence_match = FENCE_PATTERN.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker == fence:
                fence = None
            continue
        if fence is not None:
            continue

        match = HEADING_PATTERN.match(line)
        if not match:
            continue
        depth = len(match.group(1))
        if depth > max_depth:
            continue
        text = match.group(2)
        anchor = slugify_heading(text)
        count = seen.get(anchor, 0)
        seen[anchor] = count + 1
        if count:
            anchor = f"{anchor}-{count}"
        toc.append(TocEntry(depth=depth, anchor=anchor, text=text))
    return toc


def _plain_text(line: str) -> str:
    line = WIKILINK_PATTERN.sub(lambda m: m.group(2) or m.group(1), line)
    line = LINK_PATTERN.sub(r'\1', line)
    return EMPHASIS_PATTERN.sub('', line).strip()


def extract_description(body: str, length: int = DESCRIPTION_LENGTH) -> Optional[str]:
    """First paragraph of the body as plain text, truncated to ``length``."""
    paragraph: List[str] = []
    fence = False
    for line in body.splitlines():
        if FENCE_PATTERN.match(line):
            fence = not fence
            if paragraph:
                break
            continue
        if fence:
            continue
        stripped = line.strip()
        if not stripped:
            if paragraph:
                break
            continue
        if stripped.startswith("#") or stripped.startswith("<!--"):
            if paragraph:
                break
            continue
        text = _plain_text(stripped.lstrip(">-*+ ").strip())
        if text:
            paragraph.append(text)

    if not paragraph:
        return None
    description = " ".join(paragraph)
    if len(description) <= length:
        return description
    truncated = description[:length].rsplit(" ", 1)[0]
    return f"{truncated}..."


def is_draft(frontmatter: dict) -> bool:
    value = frontmatter.get("draft")
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


class ContentLoader:
    """Builds ContentNodes from markdown files under a content directory.

    Example:
        >>> loader = ContentLoader("content")
        >>> content = loader.load()
        >>> content[0].slug
        'docs/guide/intro'
    """

    def __init__(
        self,
        content_dir: str,
        ignore_patterns: Sequence[str] = DEFAULT_IGNORE_PATTERNS,
        date_priority: Sequence[str] = DEFAULT_DATE_PRIORITY,
        repo_root: Optional[str] = None,
        toc_max_depth: int = DEFAULT_TOC_MAX_DEPTH,
    ):
        """Initialize the loader.

        Args:
            content_dir: Root directory of the content files
            ignore_patterns: Gitignore-style patterns of paths to skip
            date_priority: Order of date sources (frontmatter, git, filesystem)
            repo_root: Git working tree used for history dates
                (defaults to content_dir)
            toc_max_depth: Deepest heading level included in the TOC
        """
        self.content_dir = os.path.abspath(content_dir)
        self.repo_root = os.path.abspath(repo_root) if repo_root else self.content_dir
        self.date_priority = tuple(date_priority)
        self.toc_max_depth = toc_max_depth
        self.matcher: Matcher = PathMatcher.compile((), "\n".join(ignore_patterns))
        self._git_available = "git" in self.date_priority

    def slug_for(self, path: str) -> Optional[str]:
        """Slug of a content file, or None if it lies outside the content dir."""
        relative = self._relative(path)
        if relative is None:
            return None
        return slugify_path(relative)

    def _relative(self, path: str) -> Optional[str]:
        absolute = path if os.path.isabs(path) else os.path.join(self.content_dir, path)
        try:
            relative = os.path.relpath(absolute, self.content_dir)
        except ValueError:
            return None
        if relative.startswith(os.pardir):
            return None
        return normalize_path(relative)

    def is_ignored(self, relative_path: str, is_dir: bool = False) -> bool:
        """Whether a content-relative path matches the ignore patterns."""
        return self.matcher.excludes(relative_path, is_dir=is_dir)

    def iter_files(self) -> Iterable[str]:
        """Yield content-relative paths of all non-ignored markdown files."""
        for dirpath, dirnames, filenames in os.walk(self.content_dir):
            rel_dir = normalize_path(os.path.relpath(dirpath, self.content_dir))
            kept = []
            for name in sorted(dirnames):
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if not self.is_ignored(rel, is_dir=True):
                    kept.append(name)
            dirnames[:] = kept

            for name in sorted(filenames):
                if not name.lower().endswith(MARKDOWN_EXTENSION):
                    continue
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if not self.is_ignored(rel):
                    yield rel

    def load(self) -> List[ContentNode]:
        """Load every content file; drafts are removed."""
        if not os.path.isdir(self.content_dir):
            logger.warning(f"Content directory not found: {self.content_dir}")
            return []

        content = self.load_paths(self.iter_files())
        logger.info(f"Loaded {len(content)} content node(s) from {self.content_dir}")
        return content

    def load_paths(self, paths: Iterable[str]) -> List[ContentNode]:
        """Load only the given files (content-relative or absolute)."""
        nodes = []
        for path in paths:
            node = self.load_file(path)
            if node is not None:
                nodes.append(node)
        nodes.sort(key=lambda node: node.slug)
        return nodes

    def load_file(self, path: str) -> Optional[ContentNode]:
        """Load one file; returns None for ignored, missing or draft files."""
        relative = self._relative(path)
        if relative is None or not relative.lower().endswith(MARKDOWN_EXTENSION):
            return None
        if self.is_ignored(relative):
            return None

        file_path = os.path.join(self.content_dir, relative)
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                text = f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {relative}: {e}")
            return None

        try:
            frontmatter, body = FrontmatterHandler.parse(relative, text)
        except FrontmatterError as e:
            logger.warning(f"{e}; using empty frontmatter")
            frontmatter, body = {}, text

        if is_draft(frontmatter):
            logger.debug(f"Skipping draft: {relative}")
            return None

        description = frontmatter.get(DESCRIPTION_KEY)
        if not isinstance(description, str) or not description.strip():
            description = extract_description(body)

        return ContentNode(
            slug=slugify_path(relative),
            frontmatter=frontmatter,
            dates=self.resolve_dates(file_path, frontmatter),
            toc=extract_toc(body, self.toc_max_depth),
            description=description,
            rendered_body=body,
            file_path=file_path,
        )

    def resolve_dates(self, file_path: str, frontmatter: dict) -> Optional[ContentDates]:
        """Resolve dates per field, taking the first source that has a value."""
        sources = {
            "frontmatter": lambda: self._frontmatter_dates(frontmatter),
            "git": lambda: self._git_dates(file_path),
            "filesystem": lambda: self._filesystem_dates(file_path),
        }
        resolved: Dict[str, Optional[datetime]] = {
            "created": None, "modified": None, "published": None,
        }
        for source in self.date_priority:
            lookup = sources.get(source)
            if lookup is None:
                logger.debug(f"Unknown date source: {source}")
                continue
            if all(resolved.values()):
                break
            found = lookup()
            for key, value in found.items():
                if resolved[key] is None and value is not None:
                    resolved[key] = value

        present = [value for value in resolved.values() if value is not None]
        if not present:
            return None
        fallback = resolved["modified"] or resolved["created"] or present[0]
        created = resolved["created"] or fallback
        return ContentDates(
            created=created,
            modified=resolved["modified"] or fallback,
            published=resolved["published"] or created,
        )

    @staticmethod
    def _frontmatter_dates(frontmatter: dict) -> Dict[str, Optional[datetime]]:
        dates = {}
        for key, names in FRONTMATTER_DATE_KEYS.items():
            dates[key] = None
            for name in names:
                parsed = FrontmatterHandler.parse_date(frontmatter.get(name))
                if parsed is not None:
                    dates[key] = parsed
                    break
        return dates

    def _git_dates(self, file_path: str) -> Dict[str, Optional[datetime]]:
        """First and last commit dates of ``file_path`` from ``git log``."""
        if not self._git_available:
            return {}
        try:
            result = subprocess.run(
                ["git", "log", "--follow", "--format=%cI", "--", file_path],
                cwd=self.repo_root,
                capture_output=True,
                text=True,
                timeout=GIT_TIMEOUT,
            )
        except FileNotFoundError:
            logger.debug("git command not found; skipping history dates")
            self._git_available = False
            return {}
        except subprocess.TimeoutExpired:
            logger.debug(f"git log timed out for {file_path}")
            return {}

        if result.returncode != 0:
            logger.debug(f"git log failed for {file_path}: {result.stderr.strip()}")
            return {}

        stamps = []
        for line in result.stdout.splitlines():
            try:
                stamps.append(datetime.fromisoformat(line.strip()))
            except ValueError:
                continue
        if not stamps:
            return {}
        return {"created": stamps[-1], "modified": stamps[0]}

    @staticmethod
    def _filesystem_dates(file_path: str) -> Dict[str, Optional[datetime]]:
        try:
            stat = os.stat(file_path)
        except OSError:
            return {}
        birth = getattr(stat, "st_birthtime", None) or stat.st_ctime
        return {
            "created": datetime.fromtimestamp(birth, UTC),
            "modified": datetime.fromtimestamp(stat.st_mtime, UTC),
        }
