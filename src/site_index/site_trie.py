"""Hierarchical view of the content collection keyed by slug segments.

The trie is rebuilt whenever a consistent view of the whole collection is
needed. A content node whose slug ends in ``index`` is attached to its
containing folder node instead of becoming a leaf of its own, so folder
lookups by path always reach the folder (with or without an index file).
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import InvalidSlugError, PipelineError
from .models import ContentDates, ContentNode, Comparator
from .sorting import sort_key

logger = logging.getLogger(__name__)

INDEX_SEGMENT = "index"

# Default order of trie transformations
DEFAULT_PIPELINE_ORDER = ("filter", "map", "sort")


def split_slug(slug: str) -> List[str]:
    return [segment for segment in slug.split("/") if segment]


class TrieNode:
    """One node of the site trie.

    Folder nodes may carry the data of their ``index`` content node. File
    nodes always carry data.

    Attributes:
        segment: Path segment of this node ('' for the root)
        slug: Full slug ('docs/guide' for a folder, 'docs/guide/intro' for a file)
        is_folder: True for folders (including the root)
        data: Content node attached to this position, if any
        children: Ordered child nodes
    """

    def __init__(
        self,
        segment: str,
        slug: str,
        is_folder: bool,
        data: Optional[ContentNode] = None,
    ):
        self.segment = segment
        self.slug = slug
        self.is_folder = is_folder
        self.data = data
        self.children: List["TrieNode"] = []
        self._display_name: Optional[str] = None

    def __repr__(self) -> str:
        kind = "folder" if self.is_folder else "file"
        return f"TrieNode({kind} '{self.slug}', children={len(self.children)})"

    @property
    def display_name(self) -> str:
        if self._display_name is not None:
            return self._display_name
        if self.data is not None and self.data.title:
            return self.data.title
        return self.segment

    @display_name.setter
    def display_name(self, value: str) -> None:
        self._display_name = value

    @property
    def frontmatter(self):
        return self.data.frontmatter if self.data is not None else {}

    @property
    def dates(self) -> Optional[ContentDates]:
        return self.data.dates if self.data is not None else None

    def child(self, segment: str, folder: Optional[bool] = None) -> Optional["TrieNode"]:
        """Return the direct child named ``segment``.

        Args:
            segment: Segment to look up
            folder: True for folders only, False for files only, None for either
                (files win when both exist)
        """
        match = None
        for node in self.children:
            if node.segment != segment:
                continue
            if folder is None:
                if not node.is_folder:
                    return node
                match = match or node
            elif node.is_folder == folder:
                return node
        return match

    def _folder_child(self, segment: str) -> "TrieNode":
        node = self.child(segment, folder=True)
        if node is None:
            slug = f"{self.slug}/{segment}" if self.slug else segment
            node = TrieNode(segment, slug, is_folder=True)
            self.children.append(node)
        return node

    def insert(self, segments: Sequence[str], data: ContentNode) -> None:
        """Insert ``data`` at the path given by ``segments``."""
        if not segments:
            raise InvalidSlugError(data.slug, "slug has no segments")

        head, rest = segments[0], segments[1:]
        if not rest:
            if head == INDEX_SEGMENT:
                if self.data is not None and self.data is not data:
                    logger.debug(f"Replacing index data of folder '{self.slug}'")
                self.data = data
                return
            existing = self.child(head, folder=False)
            if existing is not None:
                logger.debug(f"Duplicate slug '{data.slug}', keeping the latest")
                existing.data = data
                return
            self.children.append(TrieNode(head, data.slug, is_folder=False, data=data))
            return

        self._folder_child(head).insert(rest, data)

    def find(self, segments: Sequence[str]) -> Optional["TrieNode"]:
        """Look up a node by segments; a trailing 'index' denotes the folder."""
        if not segments or list(segments) == [INDEX_SEGMENT]:
            return self
        head, rest = segments[0], segments[1:]
        if not rest:
            return self.child(head)
        node = self.child(head, folder=True)
        return node.find(rest) if node is not None else None

    def find_folder(self, segments: Sequence[str]) -> Optional["TrieNode"]:
        """Look up a folder node by segments, ignoring same-named files."""
        segments = list(segments)
        if segments and segments[-1] == INDEX_SEGMENT:
            segments = segments[:-1]
        node = self
        for segment in segments:
            node = node.child(segment, folder=True)
            if node is None:
                return None
        return node

    def filter(self, predicate: Callable[["TrieNode"], bool]) -> None:
        """Recursively drop children for which ``predicate`` is false."""
        self.children = [node for node in self.children if predicate(node)]
        for node in self.children:
            node.filter(predicate)

    def map(self, fn: Callable[["TrieNode"], Any]) -> None:
        """Recursively apply ``fn`` to every descendant (in place)."""
        for node in self.children:
            fn(node)
            node.map(fn)

    def sort(self, comparator: Comparator) -> None:
        """Recursively order children with a cmp-style comparator."""
        self.children.sort(key=sort_key(comparator))
        for node in self.children:
            node.sort(comparator)

    def walk(self) -> Iterator["TrieNode"]:
        """Yield every descendant in pre-order."""
        for node in self.children:
            yield node
            yield from node.walk()

    def entries(self) -> List["TrieNode"]:
        return list(self.walk())

    def get_folder_paths(self) -> List[str]:
        """Return the slugs of all folders under this node."""
        return [node.slug for node in self.walk() if node.is_folder]


class SiteTrie(TrieNode):
    """Root of the site trie.

    Example:
        >>> trie = SiteTrie.from_entries([(n.slug, n) for n in content])
        >>> trie.find_node(["docs", "index"]).slug
        'docs'
    """

    def __init__(self):
        super().__init__("", "", is_folder=True)

    @classmethod
    def from_entries(cls, entries: Iterable[Tuple[str, ContentNode]]) -> "SiteTrie":
        """Build a trie from (slug, content node) pairs."""
        trie = cls()
        for slug, node in entries:
            trie.insert(split_slug(slug), node)
        return trie

    @classmethod
    def from_content(cls, content: Iterable[ContentNode]) -> "SiteTrie":
        return cls.from_entries((node.slug, node) for node in content)

    def find_node(self, segments) -> Optional[TrieNode]:
        """Look up a node by segments or a '/'-joined slug."""
        if isinstance(segments, str):
            segments = split_slug(segments)
        return self.find(segments)

    def find_folder_node(self, folder) -> Optional[TrieNode]:
        if isinstance(folder, str):
            folder = split_slug(folder)
        return self.find_folder(folder)

    def apply(self, pipeline: "TriePipeline") -> "SiteTrie":
        pipeline.run(self)
        return self


@dataclass
class TriePipeline:
    """An ordered list of trie transformations.

    Each step is a named closure over the configured function; steps whose
    function is not configured are omitted.

    Example:
        >>> pipeline = TriePipeline.from_order(
        ...     ["sort", "filter"], filter_fn=visible, sort_fn=comparator)
        >>> [name for name, _ in pipeline.steps]
        ['sort', 'filter']
    """
    steps: List[Tuple[str, Callable[[TrieNode], None]]]

    @classmethod
    def from_order(
        cls,
        order: Sequence[str] = DEFAULT_PIPELINE_ORDER,
        filter_fn: Optional[Callable[[TrieNode], bool]] = None,
        map_fn: Optional[Callable[[TrieNode], Any]] = None,
        sort_fn: Optional[Comparator] = None,
    ) -> "TriePipeline":
        """Build a pipeline from operation names.

        Raises:
            PipelineError: If ``order`` names an unknown operation
        """
        steps = []
        for name in order:
            if name == "filter":
                if filter_fn is not None:
                    steps.append((name, lambda trie, fn=filter_fn: trie.filter(fn)))
            elif name == "map":
                if map_fn is not None:
                    steps.append((name, lambda trie, fn=map_fn: trie.map(fn)))
            elif name == "sort":
                if sort_fn is not None:
                    steps.append((name, lambda trie, fn=sort_fn: trie.sort(fn)))
            else:
                raise PipelineError(name)
        return cls(steps=steps)

    def run(self, trie: TrieNode) -> None:
        for name, step in self.steps:
            logger.debug(f"Applying trie step: {name}")
            step(trie)
