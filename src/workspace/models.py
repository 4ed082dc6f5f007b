"""Data models for workspace synchronization.

This module defines the records produced by the mirror, overlay and watcher
components. All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Literal, Tuple


class ChangeKind(str, Enum):
    """Kind of filesystem change observed by the watcher."""
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


class WatcherState(str, Enum):
    """Lifecycle of a watch session.

    Events are only eligible for debouncing while the session is READY.
    Anything observed during INITIALIZING belongs to the initial scan and
    must not trigger a synchronization pass.
    """
    STOPPED = "stopped"
    INITIALIZING = "initializing"
    READY = "ready"


@dataclass(frozen=True)
class FileRecord:
    """One entry observed during a mirror pass.

    Re-derived on every pass and never persisted.

    Attributes:
        relative_path: Path relative to the source root, '/'-separated
        kind: "file", "directory" or "symlink"
        mtime: Source modification time (seconds since epoch)
        mode: Source permission bits
    """
    relative_path: str
    kind: Literal["file", "directory", "symlink"]
    mtime: float
    mode: int


@dataclass
class MirrorResult:
    """Outcome of a full or single-path mirror pass.

    Attributes:
        copied: Records of every file and directory written to the build root
        skipped: Relative paths left out because the matcher excluded them
        failed: Relative paths that could not be copied, with the reason
        history_linked: True if the version-control reference link was created
    """
    copied: List[FileRecord] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    history_linked: bool = False

    @property
    def file_count(self) -> int:
        return sum(1 for record in self.copied if record.kind != "directory")


@dataclass
class OverlayResult:
    """Outcome of applying the customization layer.

    Attributes:
        copied_entries: Top-level customization entries copied into the framework
        override_entries: Override entries merged into the framework internals
    """
    copied_entries: List[str] = field(default_factory=list)
    override_entries: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FileChange:
    """A single qualifying filesystem event, relative to the watched root."""
    kind: ChangeKind
    path: str
    is_directory: bool = False


@dataclass
class ChangeBatch:
    """Coalesced set of changes delivered once per debounce window.

    Each distinct path appears once; when a path changed several times within
    the window the latest kind wins.

    Example:
        >>> batch = ChangeBatch.from_changes([
        ...     FileChange(ChangeKind.ADDED, "content/a.md"),
        ...     FileChange(ChangeKind.CHANGED, "content/a.md"),
        ... ])
        >>> [c.kind for c in batch.changes]
        [<ChangeKind.CHANGED: 'changed'>]
    """
    changes: List[FileChange] = field(default_factory=list)

    @classmethod
    def from_changes(cls, changes: List[FileChange]) -> "ChangeBatch":
        latest: Dict[str, FileChange] = {}
        for change in changes:
            # Re-insert so ordering follows the most recent event per path
            latest.pop(change.path, None)
            latest[change.path] = change
        return cls(changes=list(latest.values()))

    @property
    def paths(self) -> List[str]:
        return [change.path for change in self.changes]

    def touches(self, prefix: str) -> bool:
        """Return True if any changed path lies at or under ``prefix``."""
        prefix = prefix.strip("/")
        if not prefix:
            return bool(self.changes)
        return any(
            change.path == prefix or change.path.startswith(prefix + "/")
            for change in self.changes
        )

    def __len__(self) -> int:
        return len(self.changes)
