"""Emits the slug-to-frontmatter index consumed by the navigation tree."""

import json
import logging
from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Dict, List

from .models import ContentNode

logger = logging.getLogger(__name__)

FRONTMATTER_INDEX_SLUG = "static/frontmatterIndex"
FRONTMATTER_INDEX_EXT = ".json"


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def build_frontmatter_index(content: List[ContentNode]) -> Dict[str, Dict[str, Any]]:
    """Map each slug to its frontmatter plus ``toc``.

    Nodes with neither frontmatter nor headings are left out.
    """
    index = {}
    for node in content:
        if not node.frontmatter and not node.toc:
            continue
        entry = dict(node.frontmatter)
        entry["toc"] = [asdict(heading) for heading in node.toc]
        index[node.slug] = entry
    return index


def emit_frontmatter_index(content: List[ContentNode], writer, ctx: Any = None) -> Any:
    """Serialize the frontmatter index and hand it to ``writer``.

    Returns:
        Whatever the writer returns for the written file
    """
    index = build_frontmatter_index(content)
    payload = json.dumps(index, default=_json_default, ensure_ascii=False)
    logger.info(f"Writing frontmatter index for {len(index)} node(s)")
    return writer.write(ctx, payload, FRONTMATTER_INDEX_SLUG, FRONTMATTER_INDEX_EXT)
