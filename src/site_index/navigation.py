"""Navigation tree construction and folder collapse state.

The navigation tree is the site trie after a caller-ordered pipeline of
filter, map and sort steps. Folder collapse state is persisted by the
client as a JSON list of ``{"path": ..., "collapsed": ...}`` objects or a
``{path: collapsed}`` mapping; malformed state is ignored.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .models import Comparator, ContentNode, FolderState
from .site_trie import DEFAULT_PIPELINE_ORDER, SiteTrie, TriePipeline, TrieNode
from .sorting import by_sort_order_and_alphabetical

logger = logging.getLogger(__name__)


def hide_namespace(namespace: str = "tags") -> Callable[[TrieNode], bool]:
    """Filter that drops the top-level tag namespace folder."""

    def predicate(node: TrieNode) -> bool:
        return not (node.is_folder and node.slug == namespace)

    return predicate


def build_navigation(
    content: List[ContentNode],
    order: Sequence[str] = DEFAULT_PIPELINE_ORDER,
    filter_fn: Optional[Callable[[TrieNode], bool]] = None,
    map_fn: Optional[Callable[[TrieNode], Any]] = None,
    sort_fn: Optional[Comparator] = None,
    date_type: str = "modified",
) -> SiteTrie:
    """Build the navigation trie for ``content``.

    Args:
        content: Full content collection
        order: Order in which filter, map and sort are applied
        filter_fn: Predicate keeping nodes (default hides the tags folder)
        map_fn: In-place transformation of each node
        sort_fn: Comparator (default sorts by sort order, date and name)
        date_type: Date used by the default comparator

    Returns:
        The transformed trie
    """
    trie = SiteTrie.from_content(content)
    pipeline = TriePipeline.from_order(
        order,
        filter_fn=filter_fn or hide_namespace(),
        map_fn=map_fn,
        sort_fn=sort_fn or by_sort_order_and_alphabetical(date_type),
    )
    return trie.apply(pipeline)


def load_saved_states(raw: Optional[str]) -> Dict[str, bool]:
    """Parse persisted folder state; anything malformed yields no state."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        logger.debug("Ignoring malformed folder state")
        return {}

    states: Dict[str, bool] = {}
    if isinstance(data, dict):
        for path, collapsed in data.items():
            if isinstance(collapsed, bool):
                states[str(path)] = collapsed
    elif isinstance(data, list):
        for item in data:
            if isinstance(item, dict) and isinstance(item.get("collapsed"), bool):
                states[str(item.get("path", ""))] = item["collapsed"]
    return states


def seed_folder_states(
    trie: SiteTrie,
    saved: Mapping[str, bool],
    default_collapsed: bool = True,
) -> List[FolderState]:
    """Initial state for every folder in the trie.

    Saved states win; folders without one use ``default_collapsed``. Saved
    entries for folders no longer in the trie are dropped.
    """
    return [
        FolderState(path=path, collapsed=saved.get(path, default_collapsed))
        for path in trie.get_folder_paths()
    ]


def dump_folder_states(states: List[FolderState]) -> str:
    return json.dumps([{"path": s.path, "collapsed": s.collapsed} for s in states])
