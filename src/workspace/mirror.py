"""Workspace mirroring into an isolated build root.

This module provides the WorkspaceMirror class which projects the source
workspace into a build root. Exclusions come from a compiled Matcher.
Version-control metadata is linked by reference rather than copied so any
history-derived timestamps computed later see the real repository history
instead of freshly copied file times.
"""

import logging
import os
import subprocess
import sys

from .errors import ConfigError, MirrorError
from .fs_ops import copy_file, copy_metadata, copy_tree, remove_path
from .models import MirrorResult
from .path_matcher import Matcher, normalize_path

logger = logging.getLogger(__name__)

# Version-control directory linked into the build root
VCS_DIR = ".git"

# Timeout for the junction helper on Windows
LINK_TIMEOUT = 10


class WorkspaceMirror:
    """Mirrors a source workspace into a build root.

    The mirror is idempotent: running it twice from the same source produces
    the same tree, whatever state the build root was in before.

    Example:
        >>> matcher = PathMatcher.from_workspace(".", PathMatcher.static_rules("build"))
        >>> mirror = WorkspaceMirror(".", "build", matcher)
        >>> result = mirror.mirror()
        >>> mirror.mirror_one("content/intro.md")
    """

    def __init__(self, source_root: str, build_root: str, matcher: Matcher):
        """Initialize the mirror.

        Args:
            source_root: Root of the source workspace
            build_root: Destination directory for the mirrored copy
            matcher: Compiled exclusion rules (paths relative to source_root)
        """
        self.source_root = os.path.abspath(source_root)
        self.build_root = os.path.abspath(build_root)
        self.matcher = matcher
        # Relative location of the build root when it nests inside the source
        try:
            build_rel = os.path.relpath(self.build_root, self.source_root)
        except ValueError:
            build_rel = os.pardir
        self._build_rel = (
            normalize_path(build_rel)
            if not build_rel.startswith("..") and not os.path.isabs(build_rel)
            else None
        )

    def _validate_roots(self) -> None:
        """Refuse layouts where clearing the build root would destroy the source.

        Raises:
            ConfigError: If the source directory is missing or the build root
                equals or contains the source root
        """
        if not os.path.isdir(self.source_root):
            raise ConfigError(
                f"Source workspace {self.source_root} does not exist",
                "source_root"
            )
        source = os.path.normcase(self.source_root)
        build = os.path.normcase(self.build_root)
        if source == build or source.startswith(build.rstrip(os.sep) + os.sep):
            raise ConfigError(
                f"Build root {self.build_root} must not contain the source workspace",
                "build_dir"
            )

    def _excludes(self, relative_path: str, is_dir: bool) -> bool:
        if self._build_rel and normalize_path(relative_path) == self._build_rel:
            return True
        return self.matcher.excludes(relative_path, is_dir=is_dir)

    def mirror(self) -> MirrorResult:
        """Clear the build root and copy the whole workspace into it.

        Returns:
            MirrorResult listing copied, skipped and failed entries

        Raises:
            ConfigError: If the roots are misconfigured
            MirrorError: If the build root cannot be cleared or created
        """
        self._validate_roots()
        logger.info(f"Mirroring workspace {self.source_root} to {self.build_root}")

        try:
            remove_path(self.build_root)
            os.makedirs(self.build_root, exist_ok=True)
        except OSError as e:
            raise MirrorError(self.build_root, f"cannot reset build root: {e}")

        result = MirrorResult()
        result.history_linked = self.link_history()

        copied, skipped, failed = copy_tree(
            self.source_root, self.build_root, "", self._excludes
        )
        result.copied.extend(copied)
        result.skipped.extend(skipped)
        result.failed.extend(failed)

        logger.info(
            f"Workspace mirrored: {result.file_count} file(s) copied, "
            f"{len(result.skipped)} excluded, {len(result.failed)} failed"
        )
        return result

    def mirror_one(self, relative_path: str) -> MirrorResult:
        """Copy exactly one path from the workspace into the build root.

        Used by the incremental watch path. Directories are copied
        recursively with the same exclusion rules. A path that no longer
        exists in the source is treated as a removal.

        Args:
            relative_path: Path relative to the source root

        Returns:
            MirrorResult for this single path
        """
        rel = normalize_path(relative_path)
        result = MirrorResult()
        if not rel:
            logger.debug("Ignoring request to mirror the workspace root itself")
            return result

        src = os.path.join(self.source_root, rel)
        dest = os.path.join(self.build_root, rel)
        is_dir = os.path.isdir(src) and not os.path.islink(src)

        if self._is_excluded_with_parents(rel, is_dir):
            logger.debug(f"Skipping excluded path {rel}")
            result.skipped.append(rel)
            return result

        if not os.path.lexists(src):
            self.remove_one(rel)
            return result

        if is_dir:
            copied, skipped, failed = copy_tree(src, dest, rel, self._excludes)
            result.copied.extend(copied)
            result.skipped.extend(skipped)
            result.failed.extend(failed)
            return result

        try:
            result.copied.append(copy_file(src, dest, rel))
            self._sync_parent_metadata(rel)
        except OSError as e:
            logger.warning(f"Warning: Could not copy {src}: {e}")
            result.failed.append((rel, str(e)))
        return result

    def remove_one(self, relative_path: str) -> bool:
        """Remove the mirrored counterpart of a path deleted from the workspace.

        Args:
            relative_path: Path relative to the source root

        Returns:
            True if something was removed from the build root
        """
        rel = normalize_path(relative_path)
        if not rel:
            return False
        dest = os.path.join(self.build_root, rel)
        try:
            removed = remove_path(dest)
        except OSError as e:
            logger.warning(f"Warning: Could not remove {dest}: {e}")
            return False
        if removed:
            logger.info(f"Removed {dest}")
        return removed

    def _is_excluded_with_parents(self, rel: str, is_dir: bool) -> bool:
        """Check a path and each of its ancestor directories against the matcher."""
        parts = rel.split("/")
        for i in range(1, len(parts)):
            if self._excludes("/".join(parts[:i]), True):
                return True
        return self._excludes(rel, is_dir)

    def _sync_parent_metadata(self, rel: str) -> None:
        parent = os.path.dirname(rel)
        while parent:
            copy_metadata(
                os.path.join(self.source_root, parent),
                os.path.join(self.build_root, parent),
            )
            parent = os.path.dirname(parent)

    def link_history(self) -> bool:
        """Link the build root's VCS directory to the workspace's.

        Uses a relative symbolic link on POSIX and a directory junction on
        Windows. This is best-effort: most builds do not depend on history
        metadata, so a failure is logged as a warning and the mirror goes on.

        Returns:
            True if the link was created
        """
        target = os.path.join(self.source_root, VCS_DIR)
        link = os.path.join(self.build_root, VCS_DIR)

        if not os.path.exists(target):
            logger.debug(f"No {VCS_DIR} directory in {self.source_root}, skipping history link")
            return False

        try:
            if os.path.lexists(link):
                remove_path(link)
            if sys.platform == "win32":
                completed = subprocess.run(
                    ["cmd", "/c", "mklink", "/J", link, target],
                    capture_output=True,
                    text=True,
                    timeout=LINK_TIMEOUT,
                )
                if completed.returncode != 0:
                    raise OSError(
                        f"mklink failed with code {completed.returncode}: "
                        f"{completed.stderr.strip()}"
                    )
            else:
                try:
                    link_target = os.path.relpath(target, self.build_root)
                except ValueError:
                    link_target = target
                os.symlink(link_target, link, target_is_directory=True)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Warning: Could not create {VCS_DIR} link: {e}")
            return False

        logger.info(f"Created {VCS_DIR} link for accurate file dates")
        return True

