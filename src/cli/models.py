"""Data models for CLI operations.

This module defines the exit codes, the site configuration and the build
summary used by the CLI module. All models use dataclasses, following the
patterns established in src/workspace/models.py.
"""

import os
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): Unexpected failure
    - CONFIG_ERROR (2): Invalid configuration or workspace layout
    - INTERRUPTED (130): Stopped by SIGINT

    A failing install or render process exits with that process's own
    status instead.

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    CONFIG_ERROR = 2
    INTERRUPTED = 130


@dataclass
class SiteConfig:
    """Build configuration loaded from sitesync.yaml.

    All directories are relative to ``workspace_root`` unless absolute.

    Attributes:
        workspace_root: Root of the source workspace
        build_dir: Isolated build root (mirror target)
        use_build_dir: False builds in place, overlaying directly onto the
            framework checkout in the workspace
        customizations_dir: Site-specific customization subtree
        overrides_name: Subdirectory merged into the framework internals
        framework_dir: Checkout of the site framework
        internal_dir_name: Framework's internal source directory
        framework_link_name: Link to the framework inside customizations_dir
        build_script: Build script excluded from mirroring
        content_dir: Content directory
        output_dir: Directory receiving emitted pages
        ignore_file: Project ignore file
        extra_ignore: Static rules appended after the defaults
        debounce_seconds: Watch debounce window
        content_ignore_patterns: Content paths skipped by the loader
        date_priority: Date sources in priority order
        default_date_type: Date used for ordering (created, modified, published)
        emit_folder_pages: Whether folder pages are emitted after a build
        show_folder_count: Print the item count on folder pages
        show_subfolders: List subfolders on folder pages
        tag_namespace: Reserved folder excluded from folder emission
        install_command: Dependency installer run in the framework checkout
        render_command: Renderer run in the framework checkout
    """
    workspace_root: str = "."
    build_dir: str = "build"
    use_build_dir: bool = True
    customizations_dir: str = "src"
    overrides_name: str = "quartz_overrides"
    framework_dir: str = "quartz_repo"
    internal_dir_name: str = "quartz"
    framework_link_name: str = "quartz"
    build_script: str = "build.js"
    content_dir: str = "content"
    output_dir: str = "public"
    ignore_file: str = ".gitignore"
    extra_ignore: List[str] = field(default_factory=list)
    debounce_seconds: float = 0.5
    content_ignore_patterns: List[str] = field(
        default_factory=lambda: ["private", "templates", ".obsidian"]
    )
    date_priority: List[str] = field(
        default_factory=lambda: ["frontmatter", "git", "filesystem"]
    )
    default_date_type: str = "modified"
    emit_folder_pages: bool = True
    show_folder_count: bool = True
    show_subfolders: bool = True
    tag_namespace: str = "tags"
    install_command: List[str] = field(default_factory=lambda: ["npm", "install"])
    render_command: List[str] = field(
        default_factory=lambda: ["node", "quartz/bootstrap-cli.mjs", "build"]
    )

    def _resolve(self, base: str, path: str) -> str:
        return os.path.normpath(os.path.join(base, path))

    @property
    def workspace_path(self) -> str:
        return os.path.abspath(self.workspace_root)

    @property
    def build_path(self) -> str:
        return self._resolve(self.workspace_path, self.build_dir)

    @property
    def site_root(self) -> str:
        """Directory the framework build runs against."""
        return self.build_path if self.use_build_dir else self.workspace_path

    @property
    def framework_path(self) -> str:
        return self._resolve(self.site_root, self.framework_dir)

    @property
    def customizations_path(self) -> str:
        return self._resolve(self.site_root, self.customizations_dir)

    @property
    def content_path(self) -> str:
        return self._resolve(self.site_root, self.content_dir)

    @property
    def output_path(self) -> str:
        return self._resolve(self.site_root, self.output_dir)

    @property
    def framework_link(self) -> str:
        """Framework link relative to the workspace root (e.g. 'src/quartz')."""
        return f"{self.customizations_dir.strip('/')}/{self.framework_link_name}"


@dataclass
class BuildSummary:
    """Counts reported at the end of a build.

    Attributes:
        mirrored_files: Files copied into the build root
        excluded_paths: Paths left out by the exclusion rules
        failed_paths: Paths that could not be copied
        overlay_entries: Customization entries copied into the framework
        folder_pages: Folder index pages emitted
        content_nodes: Content nodes loaded
    """
    mirrored_files: int = 0
    excluded_paths: int = 0
    failed_paths: int = 0
    overlay_entries: int = 0
    folder_pages: int = 0
    content_nodes: int = 0
