"""Build orchestration: mirror, overlay, folder emission and rendering.

This module provides the BuildRunner class which drives a complete build:

    1. Mirror the workspace into the isolated build root
    2. Overlay the customizations onto the framework checkout
    3. Emit folder index pages and the frontmatter index
    4. Install framework dependencies and run the renderer

In watch or serve mode a ChangeWatcher is started before the renderer, and
each debounced batch is applied in a fixed order: mirror the changed paths,
re-apply the overlay when customizations changed, re-emit affected folder
pages, and (when watching without serving) re-run the renderer.
"""

import logging
import os
import shutil
import signal
import subprocess
import threading
from typing import Iterable, List, Optional, Union

from src.site_index.content_loader import ContentLoader
from src.site_index.folder_index import FolderIndexGenerator
from src.site_index.frontmatter_index import emit_frontmatter_index
from src.site_index.models import ChangeEvent, EmittedPage, FolderPageOptions
from src.site_index.rendering import FilesystemPageWriter, HtmlFolderRenderer
from src.workspace.errors import ConfigError
from src.workspace.mirror import WorkspaceMirror
from src.workspace.models import (
    ChangeBatch,
    ChangeKind,
    FileChange,
    MirrorResult,
    OverlayResult,
)
from src.workspace.overlay import CustomizationOverlay
from src.workspace.path_matcher import Matcher, PathMatcher, normalize_path
from src.workspace.watcher import ChangeWatcher

from .errors import CLIError, ExternalProcessError
from .models import BuildSummary, SiteConfig
from .output import OutputHandler

logger = logging.getLogger(__name__)

# Framework package descriptor that must exist before installing
PACKAGE_DESCRIPTOR = "package.json"

# Exit status reported when a command cannot be found
COMMAND_NOT_FOUND = 127

# Poll interval while idling in watch mode
IDLE_POLL_SECONDS = 0.5


class BuildRunner:
    """Runs full and incremental builds for one workspace.

    Example:
        >>> runner = BuildRunner(ConfigLoader.load(), OutputHandler(verbosity=1))
        >>> summary = runner.run_full_build()
        >>> runner.sync_file("content/docs/intro.md")
    """

    def __init__(self, config: SiteConfig, output: Optional[OutputHandler] = None):
        """Initialize the runner.

        Args:
            config: Site configuration
            output: Terminal output handler
        """
        self.config = config
        self.output = output or OutputHandler()
        self.summary = BuildSummary()
        self.watcher: Optional[ChangeWatcher] = None
        self._matcher: Optional[Matcher] = None
        self._rerender_on_change = False
        self._stop_event = threading.Event()

    @property
    def matcher(self) -> Matcher:
        if self._matcher is None:
            static_rules = PathMatcher.static_rules(
                build_dir=self.config.build_dir,
                framework_link=self.config.framework_link,
                build_script=self.config.build_script,
                extra=self.config.extra_ignore,
            )
            self._matcher = PathMatcher.from_workspace(
                self.config.workspace_path, static_rules, self.config.ignore_file
            )
        return self._matcher

    def workspace_mirror(self) -> WorkspaceMirror:
        return WorkspaceMirror(
            self.config.workspace_path, self.config.build_path, self.matcher
        )

    def run_full_build(self) -> BuildSummary:
        """Mirror, overlay and emit folder pages.

        Returns:
            Counts for the build summary

        Raises:
            ConfigError: If the workspace layout is invalid
            MirrorError: If the build root cannot be reset
            OverlayError: If the customizations directory is missing
        """
        self.summary = BuildSummary()

        if self.config.use_build_dir:
            with self.output.spinner("Mirroring workspace to build directory..."):
                result = self.workspace_mirror().mirror()
            self._record_mirror(result)
            self.output.info(f"Workspace mirrored to {self.config.build_dir}/")
            if not result.history_linked:
                self.output.warning("Could not link version history; file dates may be inaccurate")

        self.apply_overlay()

        if self.config.emit_folder_pages:
            self.emit_folders()

        return self.summary

    def _record_mirror(self, result: MirrorResult) -> None:
        self.summary.mirrored_files += result.file_count
        self.summary.excluded_paths += len(result.skipped)
        self.summary.failed_paths += len(result.failed)
        for path, reason in result.failed:
            self.output.warning(f"Could not copy {path}: {reason}")

    def apply_overlay(self) -> OverlayResult:
        """Copy the customization layer onto the framework checkout.

        Raises:
            OverlayError: If the customizations directory is missing
        """
        overlay = CustomizationOverlay(
            self.config.customizations_path,
            self.config.framework_path,
            overrides_name=self.config.overrides_name,
            internal_dir_name=self.config.internal_dir_name,
            framework_link_name=self.config.framework_link_name,
        )
        self.output.info(
            f"Copying customizations from {self.config.customizations_dir}/ "
            f"to {self.config.framework_dir}/..."
        )
        result = overlay.apply()
        self.summary.overlay_entries = len(result.copied_entries) + len(result.override_entries)
        return result

    def emit_folders(
        self,
        changed_paths: Optional[Iterable[Union[str, FileChange]]] = None,
    ) -> List[EmittedPage]:
        """Emit folder index pages.

        Args:
            changed_paths: Workspace-relative paths (or FileChanges) that
                changed; None re-emits every folder

        Returns:
            Emitted pages
        """
        loader = ContentLoader(
            self.config.content_path,
            ignore_patterns=self.config.content_ignore_patterns,
            date_priority=self.config.date_priority,
            repo_root=self.config.site_root,
        )
        content = loader.load()
        writer = FilesystemPageWriter(self.config.output_path)
        generator = FolderIndexGenerator(
            HtmlFolderRenderer(self.config.default_date_type),
            writer,
            FolderPageOptions(
                show_folder_count=self.config.show_folder_count,
                show_subfolders=self.config.show_subfolders,
                tag_namespace=self.config.tag_namespace,
                date_type=self.config.default_date_type,
            ),
        )

        if changed_paths is None:
            pages = generator.emit_all(content)
        else:
            events = self.change_events(changed_paths, loader, content)
            if not events:
                return []
            pages = generator.emit_changed(content, events)

        emit_frontmatter_index(content, writer)
        self.summary.content_nodes = len(content)
        self.summary.folder_pages = len(pages)
        self.output.info(f"Emitted {len(pages)} folder page(s)")
        return pages

    def change_events(self, changed_paths, loader: ContentLoader, content) -> List[ChangeEvent]:
        """Translate workspace-relative changes into slug-keyed events.

        Paths outside the content directory, and paths the loader ignores,
        are dropped. A directory change
        is keyed by the directory's own index slug, so its ancestors and the
        directory itself are regenerated.
        """
        by_slug = {node.slug: node for node in content}
        content_prefix = normalize_path(self.config.content_dir)
        events = []
        for item in changed_paths:
            if isinstance(item, FileChange):
                change = item
            else:
                change = FileChange(ChangeKind.CHANGED, normalize_path(str(item)))

            path = normalize_path(change.path)
            if path != content_prefix and not path.startswith(content_prefix + "/"):
                continue
            relative = path[len(content_prefix):].lstrip("/")
            if relative and loader.is_ignored(relative, is_dir=change.is_directory):
                logger.debug(f"Ignoring change to ignored content path {relative}")
                continue
            if change.is_directory:
                slug = f"{relative}/index" if relative else "index"
            elif relative.lower().endswith(".md"):
                slug = loader.slug_for(relative)
            else:
                continue
            events.append(ChangeEvent(kind=change.kind, slug=slug, node=by_slug.get(slug)))
        return events

    def _workspace_relative(self, path: str) -> str:
        absolute = os.path.abspath(path)
        try:
            relative = os.path.relpath(absolute, self.config.workspace_path)
        except ValueError:
            relative = os.pardir
        if relative.startswith(os.pardir):
            raise CLIError(f"{path} is outside the workspace {self.config.workspace_path}")
        return normalize_path(relative)

    def sync_file(self, path: str) -> ChangeBatch:
        """Apply a change to a single workspace path.

        Args:
            path: File or directory path (absolute or relative to the
                current directory)

        Returns:
            The one-path batch that was applied

        Raises:
            CLIError: If the path lies outside the workspace
        """
        relative = self._workspace_relative(path)
        source = os.path.join(self.config.workspace_path, relative)
        if os.path.lexists(source):
            change = FileChange(ChangeKind.CHANGED, relative, os.path.isdir(source))
        else:
            change = FileChange(ChangeKind.REMOVED, relative)
        batch = ChangeBatch([change])
        self.handle_batch(batch)
        return batch

    def handle_batch(self, batch: ChangeBatch) -> None:
        """Apply one batch of workspace changes to the build.

        Runs on the watcher's timer thread in watch mode; failures propagate
        to the watcher, which logs them and keeps running.
        """
        self.output.info("Syncing workspace changes to build directory...")

        if self.config.use_build_dir:
            mirror = self.workspace_mirror()
            for change in batch.changes:
                if change.kind == ChangeKind.REMOVED:
                    if mirror.remove_one(change.path):
                        self.output.info(f"Removed {self.config.build_dir}/{change.path}")
                else:
                    result = mirror.mirror_one(change.path)
                    for path, reason in result.failed:
                        self.output.warning(f"Could not copy {path}: {reason}")

        if batch.touches(self.config.customizations_dir):
            self.output.info("Source file changed, updating customizations...")
            self.apply_overlay()

        if self.config.emit_folder_pages:
            self.emit_folders(batch.changes)

        if self._rerender_on_change:
            self.render(serve=False)

    def check_framework(self) -> None:
        """Ensure the framework checkout can be installed.

        Raises:
            ConfigError: If the package descriptor is missing
        """
        descriptor = os.path.join(self.config.framework_path, PACKAGE_DESCRIPTOR)
        if not os.path.isfile(descriptor):
            raise ConfigError(
                f"Framework package descriptor not found at {descriptor}",
                'framework_dir'
            )

    def install(self) -> str:
        """Install framework dependencies.

        Raises:
            ConfigError: If the package descriptor is missing
            ExternalProcessError: If the installer exits non-zero
        """
        self.check_framework()
        self.output.info(f"Installing dependencies in {self.config.framework_path}...")
        return self.run_process(self.config.install_command, self.config.framework_path)

    def render_command(self, serve: bool = False) -> List[str]:
        content_arg = os.path.relpath(self.config.content_path, self.config.framework_path)
        command = list(self.config.render_command)
        if serve:
            command.append("--serve")
        command.extend(["-d", content_arg.replace(os.sep, "/")])
        return command

    def render(self, serve: bool = False) -> str:
        """Run the renderer; in serve mode this blocks until it exits.

        Raises:
            ExternalProcessError: If the renderer exits non-zero
        """
        self.output.info("Running site build...")
        return self.run_process(
            self.render_command(serve), self.config.framework_path, stream=serve
        )

    def run_process(self, command: List[str], cwd: str, stream: bool = False) -> str:
        """Run an external command in ``cwd``.

        Args:
            command: Command line
            cwd: Working directory
            stream: Inherit stdio instead of capturing output

        Returns:
            Captured output ('' when streamed)

        Raises:
            ExternalProcessError: If the command is missing or exits non-zero
        """
        executable = shutil.which(command[0]) or command[0]
        args = [executable] + list(command[1:])
        logger.info(f"Running {' '.join(command)} in {cwd}")
        try:
            if stream:
                completed = subprocess.run(args, cwd=cwd)
                output = ""
            else:
                completed = subprocess.run(args, cwd=cwd, capture_output=True, text=True)
                output = (completed.stdout or "") + (completed.stderr or "")
        except FileNotFoundError:
            raise ExternalProcessError(
                command, COMMAND_NOT_FOUND, f"{command[0]}: command not found"
            )

        if completed.returncode != 0:
            logger.error(f"{command[0]} exited with code {completed.returncode}")
            raise ExternalProcessError(command, completed.returncode, output)

        if output.strip():
            logger.debug(output.rstrip())
            if self.output.verbosity >= 1:
                self.output.print(output.rstrip())
        return output

    def start_watcher(self) -> ChangeWatcher:
        """Start watching the workspace; batches go to handle_batch."""
        self.watcher = ChangeWatcher(
            self.config.workspace_path,
            self.matcher,
            self.handle_batch,
            debounce_seconds=self.config.debounce_seconds,
        )
        self.watcher.start()
        return self.watcher

    def stop(self) -> None:
        """Stop the watcher (if any) and end a watch session."""
        self._stop_event.set()
        if self.watcher is not None:
            self.watcher.stop()
            self.watcher = None

    def _handle_termination(self, signum, frame) -> None:
        logger.info(f"Received signal {signum}, shutting down...")
        self._stop_event.set()
        raise KeyboardInterrupt

    def _install_signal_handlers(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        signal.signal(signal.SIGTERM, self._handle_termination)

    def run(self, serve: bool = False, watch: bool = False) -> BuildSummary:
        """Full build, then install and render.

        In watch or serve mode the watcher is started before the renderer
        and the call returns only when interrupted (or the server exits).

        Args:
            serve: Start the renderer's development server
            watch: Keep mirroring workspace changes

        Returns:
            Counts of the initial build

        Raises:
            KeyboardInterrupt: When interrupted; the watcher is stopped first
        """
        self._stop_event.clear()
        summary = self.run_full_build()

        watching = (watch or serve) and self.config.use_build_dir
        if (watch or serve) and not self.config.use_build_dir:
            self.output.warning("Watching requires the build directory; changes will not be synced")

        try:
            if watching:
                self._install_signal_handlers()
                self.start_watcher()
                self._rerender_on_change = watch and not serve

            self.install()
            self.render(serve=serve)

            if watching and not serve:
                self.output.info("Watching for changes. Press Ctrl+C to stop.")
                while not self._stop_event.wait(IDLE_POLL_SECONDS):
                    pass
        finally:
            if watching:
                self.output.info("Shutting down...")
            self._rerender_on_change = False
            self.stop()

        return summary
