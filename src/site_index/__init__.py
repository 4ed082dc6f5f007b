"""Hierarchical content indexing and folder page emission.

This package loads the content collection, builds the site trie over it,
orders and transforms the trie, and emits folder index pages (fully or only
for folders affected by a set of changes).
"""

from .errors import (
    ContentError,
    FrontmatterError,
    InvalidSlugError,
    PipelineError,
)
from .models import (
    ChangeEvent,
    ContentDates,
    ContentNode,
    EmittedPage,
    ExplicitFolderData,
    FolderData,
    FolderPage,
    FolderPageOptions,
    FolderState,
    ListingEntry,
    SynthesizedFolderData,
    TocEntry,
)
from .sorting import by_sort_order_and_alphabetical, coerce_sort_order
from .site_trie import SiteTrie, TrieNode, TriePipeline
from .folder_index import FolderIndexGenerator, ancestor_folders, aggregate_dates
from .frontmatter_handler import FrontmatterHandler
from .content_loader import ContentLoader, slugify_path
from .frontmatter_index import build_frontmatter_index, emit_frontmatter_index
from .navigation import build_navigation, load_saved_states, seed_folder_states
from .rendering import (
    FilesystemPageWriter,
    HtmlFolderRenderer,
    path_to_root,
    resolve_relative,
    simplify_slug,
)

__all__ = [
    'ContentError',
    'FrontmatterError',
    'InvalidSlugError',
    'PipelineError',
    'ChangeEvent',
    'ContentDates',
    'ContentNode',
    'EmittedPage',
    'ExplicitFolderData',
    'FolderData',
    'FolderPage',
    'FolderPageOptions',
    'FolderState',
    'ListingEntry',
    'SynthesizedFolderData',
    'TocEntry',
    'by_sort_order_and_alphabetical',
    'coerce_sort_order',
    'SiteTrie',
    'TrieNode',
    'TriePipeline',
    'FolderIndexGenerator',
    'ancestor_folders',
    'aggregate_dates',
    'FrontmatterHandler',
    'ContentLoader',
    'slugify_path',
    'build_frontmatter_index',
    'emit_frontmatter_index',
    'build_navigation',
    'load_saved_states',
    'seed_folder_states',
    'FilesystemPageWriter',
    'HtmlFolderRenderer',
    'path_to_root',
    'resolve_relative',
    'simplify_slug',
]
