"""Typed exception hierarchy for content indexing errors.

Content-quality problems (a malformed sort order, an unparsable date) never
raise: they degrade to "no value". The errors below cover structural
problems that callers must handle explicitly.
"""

from src.workspace.errors import SiteSyncError


class ContentError(SiteSyncError):
    """Base exception for all content indexing errors."""
    pass


class FrontmatterError(ContentError):
    """Raised when YAML frontmatter parsing or validation fails."""

    def __init__(self, file_path: str, message: str):
        super().__init__(
            f"Frontmatter error in {file_path}: {message}"
        )
        self.file_path = file_path
        self.message = message


class InvalidSlugError(ContentError):
    """Raised when a slug cannot be placed in the site trie."""

    def __init__(self, slug: str, reason: str):
        super().__init__(f"Invalid slug '{slug}': {reason}")
        self.slug = slug
        self.reason = reason


class PipelineError(ContentError):
    """Raised when a trie transformation pipeline names an unknown operation."""

    def __init__(self, operation: str):
        super().__init__(
            f"Unknown trie operation '{operation}' (expected filter, map or sort)"
        )
        self.operation = operation
