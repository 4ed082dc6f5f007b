"""Data models for the content index.

This module defines the content records produced by the content pipeline,
the change events consumed by incremental folder emission, and the folder
page records handed to the renderer. All models use dataclasses.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from src.workspace.models import ChangeKind

# Frontmatter keys read by the index
TITLE_KEY = "title"
TAGS_KEY = "tags"
SORT_ORDER_KEY = "sortorder"
DESCRIPTION_KEY = "description"

DATE_TYPES = ("created", "modified", "published")

# Title given to folder pages that have no title of their own
FOLDER_TITLE_PREFIX = "Folder: "


@dataclass(frozen=True)
class TocEntry:
    """One heading of a content node's table of contents.

    Attributes:
        depth: Heading level (1 for '#', 2 for '##', ...)
        anchor: Fragment identifier of the heading
        text: Heading text
    """
    depth: int
    anchor: str
    text: str


@dataclass(frozen=True)
class ContentDates:
    """Created, modified and published dates of a content node.

    Dates are all-or-nothing: a node either carries all three or none.
    All values are timezone-aware.
    """
    created: datetime
    modified: datetime
    published: datetime

    def get(self, date_type: str = "modified") -> datetime:
        if date_type not in DATE_TYPES:
            date_type = "modified"
        return getattr(self, date_type)

    def latest(self, other: "ContentDates") -> "ContentDates":
        """Return the field-wise most recent of ``self`` and ``other``."""
        return ContentDates(
            created=max(self.created, other.created),
            modified=max(self.modified, other.modified),
            published=max(self.published, other.published),
        )

    @classmethod
    def uniform(cls, value: datetime) -> "ContentDates":
        return cls(created=value, modified=value, published=value)


@dataclass(frozen=True)
class ContentNode:
    """One published unit of content.

    Created by the content pipeline per source file; immutable for the
    duration of one build pass.

    Attributes:
        slug: '/'-joined path segments, unique across the collection
        frontmatter: Metadata mapping (may be empty)
        dates: Created/modified/published dates, or None
        toc: Ordered heading entries
        description: Optional short text
        rendered_body: Opaque handle into the render pipeline
        file_path: Source file the node was read from, if any
    """
    slug: str
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    dates: Optional[ContentDates] = None
    toc: List[TocEntry] = field(default_factory=list)
    description: Optional[str] = None
    rendered_body: Any = None
    file_path: Optional[str] = None

    @property
    def segments(self) -> List[str]:
        return [segment for segment in self.slug.split("/") if segment]

    @property
    def title(self) -> Optional[str]:
        value = self.frontmatter.get(TITLE_KEY)
        if isinstance(value, str) and value.strip():
            return value
        return None

    @property
    def tags(self) -> List[str]:
        value = self.frontmatter.get(TAGS_KEY)
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [str(tag) for tag in value if tag is not None]
        return []


@dataclass(frozen=True)
class ChangeEvent:
    """A content-level change, keyed by slug.

    Attributes:
        kind: added, changed or removed
        slug: Slug of the affected content node (None if unknown)
        node: The current node for added/changed events
    """
    kind: ChangeKind
    slug: Optional[str]
    node: Optional[ContentNode] = None


@dataclass
class FolderState:
    """Persisted collapse/expand state of one navigation folder."""
    path: str
    collapsed: bool


@dataclass(frozen=True)
class ExplicitFolderData:
    """Folder backed by an explicit ``<folder>/index`` content node."""
    node: ContentNode

    @property
    def title(self) -> str:
        if self.node.title:
            return self.node.title
        return f"{FOLDER_TITLE_PREFIX}{self.node.slug.rpartition('/')[0]}"

    @property
    def dates(self) -> Optional[ContentDates]:
        return self.node.dates

    @property
    def description(self) -> Optional[str]:
        return self.node.description

    @property
    def frontmatter(self) -> Dict[str, Any]:
        return self.node.frontmatter


@dataclass(frozen=True)
class SynthesizedFolderData:
    """Folder without an index file; title and dates are derived."""
    title: str
    dates: Optional[ContentDates]

    @property
    def description(self) -> Optional[str]:
        return None

    @property
    def frontmatter(self) -> Dict[str, Any]:
        return {TITLE_KEY: self.title, TAGS_KEY: []}


FolderData = Union[ExplicitFolderData, SynthesizedFolderData]


@dataclass
class ListingEntry:
    """One row in a folder listing.

    Shares the attributes the default comparator reads with TrieNode, so
    folder pages and the navigation tree order their children identically.
    """
    slug: str
    title: str
    is_folder: bool
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    dates: Optional[ContentDates] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.title


@dataclass
class FolderPage:
    """Everything the renderer needs for one folder index page.

    Attributes:
        folder: Folder slug (e.g. 'docs/guide')
        slug: Target page slug (e.g. 'docs/guide/index')
        data: Explicit or synthesized folder data
        entries: Sorted direct children of the folder
        show_folder_count: Whether to print the number of entries
    """
    folder: str
    slug: str
    data: FolderData
    entries: List[ListingEntry] = field(default_factory=list)
    show_folder_count: bool = True


@dataclass(frozen=True)
class EmittedPage:
    """A page handed to the page writer."""
    slug: str
    ext: str
    location: Any = None


Comparator = Callable[[Any, Any], int]


@dataclass
class FolderPageOptions:
    """Options for folder index emission.

    Attributes:
        show_folder_count: Print "N items under this folder."
        show_subfolders: List immediate subfolders as rows
        sort: Custom comparator; defaults to the sort-order comparator
        tag_namespace: Reserved folder excluded from folder emission
        date_type: Date used for ordering and display
        ext: Extension of emitted pages
    """
    show_folder_count: bool = True
    show_subfolders: bool = True
    sort: Optional[Comparator] = None
    tag_namespace: str = "tags"
    date_type: str = "modified"
    ext: str = ".html"
