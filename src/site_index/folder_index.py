"""Full and incremental emission of per-folder index pages.

Every folder that contains content (directly or transitively) gets an index
page listing its direct children. A folder with an explicit
``<folder>/index`` content node uses that node's data; any other folder gets
synthesized data (title ``Folder: <folder>``, dates aggregated from its
children).

Incremental emission regenerates only the folders on the ancestor paths of
the changed slugs, each recomputed from the full current collection.
"""

import logging
import posixpath
from datetime import datetime, UTC
from typing import Any, Iterable, List, Optional, Protocol, Set

from .models import (
    ChangeEvent,
    ContentDates,
    ContentNode,
    EmittedPage,
    ExplicitFolderData,
    FOLDER_TITLE_PREFIX,
    FolderData,
    FolderPage,
    FolderPageOptions,
    ListingEntry,
    SynthesizedFolderData,
)
from .site_trie import INDEX_SEGMENT, SiteTrie, TrieNode
from .sorting import by_sort_order_and_alphabetical, sort_key

logger = logging.getLogger(__name__)


class FolderPageRenderer(Protocol):
    def render(self, page: FolderPage) -> str:
        ...


class PageWriter(Protocol):
    def write(self, ctx: Any, content: str, slug: str, ext: str) -> Any:
        ...


def ancestor_folders(slug: str, tag_namespace: str = "tags") -> List[str]:
    """Return every ancestor folder of ``slug``, nearest first.

    The root and the tag namespace folder are excluded.

    Example:
        >>> ancestor_folders("docs/guide/intro")
        ['docs/guide', 'docs']
    """
    folders = []
    folder = posixpath.dirname(slug.strip("/"))
    while folder not in ("", "."):
        if folder != tag_namespace:
            folders.append(folder)
        folder = posixpath.dirname(folder)
    return folders


def aggregate_dates(folder: TrieNode) -> Optional[ContentDates]:
    """Field-wise most recent dates among a folder's direct children.

    Child folders without dates of their own contribute their aggregated
    dates. Returns None when nothing underneath carries dates.
    """
    latest = None
    for child in folder.children:
        dates = child.dates
        if dates is None and child.is_folder:
            dates = aggregate_dates(child)
        if dates is None:
            continue
        latest = dates if latest is None else latest.latest(dates)
    return latest


def _now_dates() -> ContentDates:
    return ContentDates.uniform(datetime.now(UTC))


class FolderIndexGenerator:
    """Emits folder index pages through a renderer and a page writer.

    Example:
        >>> generator = FolderIndexGenerator(HtmlFolderRenderer(), writer)
        >>> pages = generator.emit_all(content)
        >>> [page.slug for page in pages]
        ['docs/index', 'docs/guide/index']
    """

    def __init__(
        self,
        renderer: FolderPageRenderer,
        writer: PageWriter,
        options: Optional[FolderPageOptions] = None,
    ):
        self.renderer = renderer
        self.writer = writer
        self.options = options or FolderPageOptions()

    @property
    def comparator(self):
        return self.options.sort or by_sort_order_and_alphabetical(self.options.date_type)

    def folders_for(self, slugs: Iterable[str]) -> Set[str]:
        """Union of the ancestor closures of ``slugs``."""
        folders: Set[str] = set()
        for slug in slugs:
            folders.update(ancestor_folders(slug, self.options.tag_namespace))
        return folders

    def emit_all(self, content: List[ContentNode], ctx: Any = None) -> List[EmittedPage]:
        """Emit a page for every folder in the collection."""
        folders = self.folders_for(node.slug for node in content)
        logger.info(f"Emitting {len(folders)} folder page(s)")
        return self._emit(content, folders, ctx)

    def emit_changed(
        self,
        content: List[ContentNode],
        change_events: Iterable[ChangeEvent],
        ctx: Any = None,
    ) -> List[EmittedPage]:
        """Emit pages only for folders affected by ``change_events``.

        Args:
            content: The full current collection (after the changes)
            change_events: Events since the previous emission
            ctx: Opaque build context passed through to the writer

        Returns:
            Emitted pages; empty when no event names a slug
        """
        slugs = [event.slug for event in change_events if event.slug]
        folders = self.folders_for(slugs)
        if not folders:
            logger.debug("No folders affected by changes")
            return []
        logger.info(f"Re-emitting {len(folders)} affected folder page(s)")
        return self._emit(content, folders, ctx)

    def _emit(self, content: List[ContentNode], folders: Set[str], ctx: Any) -> List[EmittedPage]:
        trie = SiteTrie.from_content(content)
        index_nodes = {node.slug: node for node in content}
        emitted = []
        for folder in sorted(folders):
            page = self.build_page(trie, index_nodes, folder)
            html = self.renderer.render(page)
            location = self.writer.write(ctx, html, page.slug, self.options.ext)
            logger.debug(f"Wrote folder page {page.slug}{self.options.ext}")
            emitted.append(EmittedPage(slug=page.slug, ext=self.options.ext, location=location))
        return emitted

    def build_page(self, trie: SiteTrie, index_nodes, folder: str) -> FolderPage:
        """Resolve folder data and the sorted listing for one folder."""
        node = trie.find_folder_node(folder)
        page_slug = f"{folder}/{INDEX_SEGMENT}"
        explicit = index_nodes.get(page_slug)

        data: FolderData
        if explicit is not None:
            data = ExplicitFolderData(node=explicit)
        else:
            dates = aggregate_dates(node) if node is not None else None
            data = SynthesizedFolderData(
                title=f"{FOLDER_TITLE_PREFIX}{folder}",
                dates=dates or _now_dates(),
            )

        entries = self._listing(node) if node is not None else []
        entries.sort(key=sort_key(self.comparator))
        return FolderPage(
            folder=folder,
            slug=page_slug,
            data=data,
            entries=entries,
            show_folder_count=self.options.show_folder_count,
        )

    def _listing(self, folder: TrieNode) -> List[ListingEntry]:
        entries = []
        for child in folder.children:
            if not child.is_folder:
                entries.append(_entry_from_node(child.data, child.display_name))
            elif self.options.show_subfolders:
                entries.append(self._subfolder_entry(child))
        return entries

    def _subfolder_entry(self, child: TrieNode) -> ListingEntry:
        if child.data is not None:
            entry = _entry_from_node(child.data, child.display_name)
            entry.is_folder = True
            return entry
        return ListingEntry(
            slug=child.slug,
            title=child.display_name,
            is_folder=True,
            frontmatter={"title": child.display_name, "tags": []},
            dates=aggregate_dates(child) or _now_dates(),
        )


def _entry_from_node(node: ContentNode, title: str) -> ListingEntry:
    return ListingEntry(
        slug=node.slug,
        title=title,
        is_folder=False,
        frontmatter=node.frontmatter,
        dates=node.dates,
        description=node.description,
        tags=node.tags,
    )
