"""Unit tests for cli.build_runner module."""

import subprocess
import threading
from unittest.mock import MagicMock

import pytest

from src.cli.build_runner import COMMAND_NOT_FOUND, BuildRunner
from src.cli.errors import CLIError, ExternalProcessError
from src.cli.models import SiteConfig
from src.site_index.content_loader import ContentLoader
from src.workspace.errors import ConfigError
from src.workspace.models import ChangeBatch, ChangeKind, FileChange


@pytest.fixture
def site(tmp_path):
    """Workspace with content, customizations and a framework checkout."""
    root = tmp_path / "site"
    (root / "content" / "docs" / "guide").mkdir(parents=True)
    (root / "content" / "index.md").write_text("---\ntitle: Home\n---\n")
    (root / "content" / "docs" / "guide" / "intro.md").write_text("---\ntitle: Intro\n---\nHello\n")
    (root / "src" / "quartz_overrides").mkdir(parents=True)
    (root / "src" / "quartz.config.ts").write_text("config")
    (root / "src" / "quartz_overrides" / "path.ts").write_text("override")
    (root / "quartz_repo" / "quartz").mkdir(parents=True)
    (root / "quartz_repo" / "package.json").write_text("{}")
    (root / ".gitignore").write_text("node_modules/\n")
    return root


@pytest.fixture
def config(site):
    return SiteConfig(workspace_root=str(site), date_priority=["frontmatter", "filesystem"])


@pytest.fixture
def output():
    handler = MagicMock()
    handler.verbosity = 0
    return handler


@pytest.fixture
def build_runner(config, output):
    return BuildRunner(config, output)


class TestRunFullBuild:
    """Test cases for BuildRunner.run_full_build()."""

    def test_mirror_overlay_and_emit(self, build_runner, site):
        summary = build_runner.run_full_build()

        build = site / "build"
        assert (build / "content" / "docs" / "guide" / "intro.md").exists()
        assert (build / "quartz_repo" / "quartz.config.ts").read_text() == "config"
        assert (build / "quartz_repo" / "quartz" / "path.ts").read_text() == "override"
        assert (build / "public" / "docs" / "index.html").exists()
        assert (build / "public" / "docs" / "guide" / "index.html").exists()
        assert (build / "public" / "static" / "frontmatterIndex.json").exists()
        assert summary.folder_pages == 2
        assert summary.content_nodes == 2
        assert summary.overlay_entries == 2
        assert summary.mirrored_files > 0

    def test_in_place_build_skips_mirror(self, config, output, site):
        config.use_build_dir = False

        BuildRunner(config, output).run_full_build()

        assert not (site / "build").exists()
        assert (site / "quartz_repo" / "quartz.config.ts").exists()
        assert (site / "public" / "docs" / "index.html").exists()

    def test_folder_pages_can_be_disabled(self, config, output, site):
        config.emit_folder_pages = False

        summary = BuildRunner(config, output).run_full_build()

        assert summary.folder_pages == 0
        assert not (site / "build" / "public").exists()

    def test_history_warning_without_git(self, build_runner, output):
        build_runner.run_full_build()

        output.warning.assert_any_call(
            "Could not link version history; file dates may be inaccurate"
        )


class TestChangeEvents:
    """Test cases for BuildRunner.change_events()."""

    @pytest.fixture
    def loader(self, config):
        return ContentLoader(config.content_path)

    def test_markdown_file_keyed_by_slug(self, build_runner, loader):
        events = build_runner.change_events(["content/docs/Getting Started.md"], loader, [])

        assert [(e.kind, e.slug) for e in events] == [
            (ChangeKind.CHANGED, "docs/Getting-Started")
        ]

    def test_paths_outside_content_dropped(self, build_runner, loader):
        events = build_runner.change_events(
            ["src/quartz.config.ts", "contentx/a.md", "content/image.png"], loader, []
        )

        assert events == []

    def test_ignored_content_paths_dropped(self, build_runner, loader):
        events = build_runner.change_events(
            [
                "content/private/notes.md",
                "content/docs/templates/page.md",
                FileChange(ChangeKind.ADDED, "content/.obsidian", is_directory=True),
            ],
            loader,
            [],
        )

        assert events == []

    def test_ignored_change_emits_no_folder_page(self, build_runner, site):
        (site / "content" / "private").mkdir()
        (site / "content" / "private" / "notes.md").write_text("---\ntitle: Notes\n---\n")
        build_runner.run_full_build()
        full = {page.slug for page in build_runner.emit_folders()}

        pages = build_runner.emit_folders(["content/private/notes.md"])

        assert pages == []
        assert "private/index" not in full
        assert not (site / "build" / "public" / "private").exists()

    def test_directory_keyed_by_index(self, build_runner, loader):
        events = build_runner.change_events(
            [FileChange(ChangeKind.REMOVED, "content/docs/guide", is_directory=True)], loader, []
        )

        assert [(e.kind, e.slug) for e in events] == [(ChangeKind.REMOVED, "docs/guide/index")]


class TestIncrementalSync:
    """Test cases for handle_batch() and sync_file()."""

    def test_changed_file_mirrored_and_folders_reemitted(self, build_runner, site):
        build_runner.run_full_build()
        page = site / "build" / "public" / "docs" / "guide" / "index.html"
        page.unlink()
        (site / "content" / "docs" / "guide" / "setup.md").write_text("---\ntitle: Setup\n---\n")

        build_runner.handle_batch(ChangeBatch([
            FileChange(ChangeKind.ADDED, "content/docs/guide/setup.md"),
        ]))

        assert (site / "build" / "content" / "docs" / "guide" / "setup.md").exists()
        assert "Setup" in page.read_text()

    def test_removed_file_removed_from_build(self, build_runner, site):
        build_runner.run_full_build()
        (site / "content" / "docs" / "guide" / "intro.md").unlink()

        build_runner.handle_batch(ChangeBatch([
            FileChange(ChangeKind.REMOVED, "content/docs/guide/intro.md"),
        ]))

        assert not (site / "build" / "content" / "docs" / "guide" / "intro.md").exists()

    def test_customization_change_reapplies_overlay(self, build_runner, site, mocker):
        build_runner.run_full_build()
        apply = mocker.spy(build_runner, "apply_overlay")

        build_runner.handle_batch(ChangeBatch([
            FileChange(ChangeKind.CHANGED, "src/quartz.config.ts"),
        ]))

        apply.assert_called_once()

    def test_content_change_does_not_reapply_overlay(self, build_runner, mocker):
        build_runner.run_full_build()
        apply = mocker.spy(build_runner, "apply_overlay")

        build_runner.handle_batch(ChangeBatch([
            FileChange(ChangeKind.CHANGED, "content/index.md"),
        ]))

        apply.assert_not_called()

    def test_rerender_when_watching_without_serve(self, build_runner, mocker):
        render = mocker.patch.object(build_runner, "render")
        mocker.patch.object(build_runner, "emit_folders")
        mocker.patch.object(build_runner, "workspace_mirror")
        build_runner._rerender_on_change = True

        build_runner.handle_batch(ChangeBatch([FileChange(ChangeKind.CHANGED, "content/a.md")]))

        render.assert_called_once_with(serve=False)

    def test_sync_file_existing_and_removed(self, build_runner, site, mocker):
        handle = mocker.patch.object(build_runner, "handle_batch")

        existing = build_runner.sync_file(str(site / "content" / "index.md"))
        removed = build_runner.sync_file(str(site / "content" / "gone.md"))

        assert existing.changes[0] == FileChange(ChangeKind.CHANGED, "content/index.md")
        assert removed.changes[0].kind == ChangeKind.REMOVED
        assert handle.call_count == 2

    def test_sync_file_outside_workspace(self, build_runner, tmp_path):
        with pytest.raises(CLIError):
            build_runner.sync_file(str(tmp_path / "elsewhere.md"))


class TestExternalProcesses:
    """Test cases for install(), render() and run_process()."""

    def test_missing_package_descriptor(self, build_runner):
        with pytest.raises(ConfigError) as exc_info:
            build_runner.install()

        assert exc_info.value.config_field == "framework_dir"

    def test_install_runs_in_framework_checkout(self, config, output, site, mocker):
        config.use_build_dir = False
        run = mocker.patch.object(BuildRunner, "run_process", return_value="")

        BuildRunner(config, output).install()

        run.assert_called_once_with(["npm", "install"], str(site / "quartz_repo"))

    def test_render_command(self, build_runner):
        assert build_runner.render_command() == [
            "node", "quartz/bootstrap-cli.mjs", "build", "-d", "../content",
        ]
        assert "--serve" in build_runner.render_command(serve=True)

    def test_run_process_captures_output(self, build_runner, tmp_path, mocker):
        run = mocker.patch("src.cli.build_runner.subprocess.run")
        run.return_value = MagicMock(returncode=0, stdout="built\n", stderr="")

        output = build_runner.run_process(["node", "x"], str(tmp_path))

        assert output == "built\n"
        assert run.call_args.kwargs["capture_output"] is True
        assert run.call_args.kwargs["cwd"] == str(tmp_path)

    def test_run_process_nonzero_exit(self, build_runner, tmp_path, mocker):
        run = mocker.patch("src.cli.build_runner.subprocess.run")
        run.return_value = MagicMock(returncode=2, stdout="", stderr="boom")

        with pytest.raises(ExternalProcessError) as exc_info:
            build_runner.run_process(["node", "x"], str(tmp_path))

        assert exc_info.value.returncode == 2
        assert exc_info.value.output == "boom"

    def test_run_process_command_not_found(self, build_runner, tmp_path, mocker):
        mocker.patch("src.cli.build_runner.subprocess.run", side_effect=FileNotFoundError())

        with pytest.raises(ExternalProcessError) as exc_info:
            build_runner.run_process(["nonexistent-tool"], str(tmp_path))

        assert exc_info.value.returncode == COMMAND_NOT_FOUND

    def test_streamed_process_inherits_stdio(self, build_runner, tmp_path, mocker):
        run = mocker.patch("src.cli.build_runner.subprocess.run")
        run.return_value = subprocess.CompletedProcess(["node"], 0)

        assert build_runner.run_process(["node"], str(tmp_path), stream=True) == ""
        assert "capture_output" not in run.call_args.kwargs


class TestRun:
    """Test cases for BuildRunner.run()."""

    @pytest.fixture
    def stubbed(self, build_runner, mocker):
        mocker.patch.object(build_runner, "run_full_build")
        mocker.patch.object(build_runner, "install")
        mocker.patch.object(build_runner, "render")
        mocker.patch.object(build_runner, "start_watcher")
        mocker.patch.object(build_runner, "_install_signal_handlers")
        return build_runner

    def test_plain_build_does_not_watch(self, stubbed):
        stubbed.run()

        stubbed.start_watcher.assert_not_called()
        stubbed.install.assert_called_once()
        stubbed.render.assert_called_once_with(serve=False)

    def test_serve_starts_watcher_before_render(self, stubbed):
        calls = []
        stubbed.start_watcher.side_effect = lambda: calls.append("watch")
        stubbed.render.side_effect = lambda serve: calls.append("render")

        stubbed.run(serve=True)

        assert calls == ["watch", "render"]
        assert stubbed._rerender_on_change is False

    def test_watch_idles_until_stopped(self, stubbed):
        """Watch mode blocks until stop() is called."""
        timer = threading.Timer(0.1, stubbed.stop)
        timer.start()
        try:
            stubbed.run(watch=True)
        finally:
            timer.cancel()

        stubbed.start_watcher.assert_called_once()

    def test_watch_requires_build_dir(self, stubbed, output):
        stubbed.config.use_build_dir = False

        stubbed.run(watch=True)

        stubbed.start_watcher.assert_not_called()
        output.warning.assert_called_once()

    def test_watcher_stopped_on_interrupt(self, stubbed):
        watcher = MagicMock()

        def start():
            stubbed.watcher = watcher

        stubbed.start_watcher.side_effect = start
        stubbed.render.side_effect = KeyboardInterrupt()

        with pytest.raises(KeyboardInterrupt):
            stubbed.run(serve=True)

        watcher.stop.assert_called_once()
        assert stubbed.watcher is None
