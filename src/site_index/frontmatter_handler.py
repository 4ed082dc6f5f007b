"""YAML frontmatter parsing for markdown content files.

Frontmatter is the YAML block between leading ``---`` delimiters. The index
reads ``title``, ``tags``, ``sortorder``, ``description``, ``draft`` and the
date fields from it; every other key is passed through untouched.
"""

import re
from datetime import date, datetime, time, UTC
from typing import Any, Optional, Tuple

import yaml

from .errors import FrontmatterError


class FrontmatterHandler:
    """Extracts and validates YAML frontmatter.

    Files without frontmatter have an empty mapping. An empty frontmatter
    block (``---`` immediately followed by ``---``) also yields an empty
    mapping.
    """

    # Regex pattern to match YAML frontmatter (between --- delimiters)
    FRONTMATTER_PATTERN = re.compile(
        r'^---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)',
        re.DOTALL | re.MULTILINE
    )

    # Maximum allowed depth for YAML structures to prevent DoS attacks
    MAX_YAML_DEPTH = 10

    @classmethod
    def _validate_yaml_depth(cls, obj, current_depth: int = 0, max_depth: int = MAX_YAML_DEPTH) -> None:
        """Validate that YAML structure depth doesn't exceed maximum.

        Args:
            obj: YAML object (dict, list, or primitive)
            current_depth: Current nesting depth
            max_depth: Maximum allowed depth

        Raises:
            FrontmatterError: If depth exceeds maximum
        """
        if current_depth > max_depth:
            raise FrontmatterError(
                "<yaml>",
                f"YAML structure exceeds maximum depth of {max_depth}"
            )

        if isinstance(obj, dict):
            for value in obj.values():
                cls._validate_yaml_depth(value, current_depth + 1, max_depth)
        elif isinstance(obj, list):
            for item in obj:
                cls._validate_yaml_depth(item, current_depth + 1, max_depth)

    @classmethod
    def parse(cls, file_path: str, content: str) -> Tuple[dict, str]:
        """Split markdown content into its frontmatter and body.

        Args:
            file_path: Path to the file (for error messages)
            content: Full markdown content including frontmatter

        Returns:
            Tuple of (frontmatter_dict, markdown_body).
            Returns ({}, content) if no frontmatter found.

        Raises:
            FrontmatterError: If frontmatter has invalid YAML, is not a
                mapping, or is nested too deeply
        """
        if content.startswith("\ufeff"):
            content = content[1:]

        match = cls.FRONTMATTER_PATTERN.match(content)
        if not match:
            return {}, content

        frontmatter_str = match.group(1)
        body = content[match.end():]

        try:
            frontmatter = yaml.safe_load(frontmatter_str)
        except yaml.YAMLError as e:
            raise FrontmatterError(file_path, f"Invalid YAML syntax: {str(e)}")

        if frontmatter is None:
            return {}, body

        if not isinstance(frontmatter, dict):
            raise FrontmatterError(
                file_path,
                f"Frontmatter must be a YAML dictionary, got {type(frontmatter).__name__}"
            )

        try:
            cls._validate_yaml_depth(frontmatter)
        except FrontmatterError as e:
            # Re-raise with correct file path
            raise FrontmatterError(file_path, e.message)

        return frontmatter, body

    @staticmethod
    def parse_date(value: Any) -> Optional[datetime]:
        """Coerce a frontmatter date value to an aware datetime.

        YAML already turns unquoted ISO dates into ``date``/``datetime``;
        strings are parsed with ``datetime.fromisoformat``. Naive values are
        taken as UTC. Anything unparsable yields None.
        """
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime.combine(value, time.min)
        elif isinstance(value, str) and value.strip():
            try:
                parsed = datetime.fromisoformat(value.strip())
            except ValueError:
                return None
        else:
            return None

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed
