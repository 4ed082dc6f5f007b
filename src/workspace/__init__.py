"""Workspace synchronization for isolated site builds.

This package projects a live source workspace into an isolated build root:
exclusion rules, full and single-path mirroring, the customization overlay
onto the framework checkout, and debounced filesystem watching.
"""

from .errors import (
    SiteSyncError,
    ConfigError,
    FilesystemError,
    MirrorError,
    OverlayError,
    WatcherError,
)
from .models import (
    ChangeBatch,
    ChangeKind,
    FileChange,
    FileRecord,
    MirrorResult,
    OverlayResult,
    WatcherState,
)
from .path_matcher import Matcher, PathMatcher, normalize_path
from .mirror import WorkspaceMirror
from .overlay import CustomizationOverlay
from .watcher import ChangeWatcher, Debouncer

__all__ = [
    'SiteSyncError',
    'ConfigError',
    'FilesystemError',
    'MirrorError',
    'OverlayError',
    'WatcherError',
    'ChangeBatch',
    'ChangeKind',
    'FileChange',
    'FileRecord',
    'MirrorResult',
    'OverlayResult',
    'WatcherState',
    'Matcher',
    'PathMatcher',
    'normalize_path',
    'WorkspaceMirror',
    'CustomizationOverlay',
    'ChangeWatcher',
    'Debouncer',
]
