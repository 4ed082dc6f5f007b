"""Typed exception hierarchy for workspace synchronization errors.

This module defines the base exception for the whole tool and the errors
raised while mirroring the workspace, applying customizations and watching
for changes. All exceptions inherit from SiteSyncError so callers can catch
any application-level failure with a single except clause.
"""

from typing import Optional


class SiteSyncError(Exception):
    """Base exception for all site-sync errors.

    Use this to catch any application-level error from the build tool.
    """
    pass


class ConfigError(SiteSyncError):
    """Raised when configuration is missing, malformed or inconsistent."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class FilesystemError(SiteSyncError):
    """Raised when filesystem operations fail (read, write, permissions, etc)."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class MirrorError(SiteSyncError):
    """Raised when the workspace cannot be mirrored into the build root."""

    def __init__(self, build_root: str, message: str):
        super().__init__(f"Mirror into {build_root} failed: {message}")
        self.build_root = build_root
        self.message = message


class OverlayError(SiteSyncError):
    """Raised when customizations cannot be applied to the framework checkout."""

    def __init__(self, customizations_dir: str, message: str):
        super().__init__(
            f"Cannot apply customizations from {customizations_dir}: {message}"
        )
        self.customizations_dir = customizations_dir
        self.message = message


class WatcherError(SiteSyncError):
    """Raised when the filesystem watcher cannot be started."""

    def __init__(self, root: str, reason: str):
        super().__init__(f"Cannot watch {root}: {reason}")
        self.root = root
        self.reason = reason
