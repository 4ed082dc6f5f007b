"""Main CLI entry point for the site-sync command.

This module provides the Typer application that serves as the entry point
for the site-sync command-line tool. It uses options on the main command
rather than subcommands for a simpler user experience.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from src.cli.build_runner import BuildRunner
from src.cli.config import ConfigLoader
from src.cli.errors import CLIError, ExternalProcessError
from src.cli.models import ExitCode
from src.cli.output import OutputHandler
from src.workspace.errors import ConfigError, FilesystemError, SiteSyncError

VERSION = "0.1.0"

# Create Typer app - no_args_is_help=False runs a full build without args
app = typer.Typer(
    name="site-sync",
    help="""Mirror a documentation workspace into an isolated build and render it.

QUICK START:
  site-sync                       # Full build
  site-sync --serve               # Build, serve and sync changes
  site-sync --watch               # Build and rebuild on changes
  site-sync --no-build-dir        # Build in place (no mirror)
  site-sync content/docs/a.md     # Sync a single file""",
    add_completion=False,
    rich_markup_mode=None,  # Disable Rich markup to avoid compatibility issues
    no_args_is_help=False,
)

# Module logger
logger = logging.getLogger(__name__)


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'src' namespace logger to avoid affecting third-party
    libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    # Configure app-specific logger (not root) to avoid affecting libraries
    app_logger = logging.getLogger("src")
    app_logger.setLevel(level)
    app_logger.handlers.clear()

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        # Timestamped filename in local time
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"site-sync_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _run(
    runner: BuildRunner,
    output: OutputHandler,
    file: Optional[str],
    serve: bool,
    watch: bool,
    overlay_only: bool,
    emit_folders: bool,
    changed: Optional[List[str]],
) -> None:
    """Dispatch to the requested build operation."""
    if file is not None:
        batch = runner.sync_file(file)
        output.success(f"Synced {batch.paths[0]}")
        return

    if overlay_only:
        result = runner.apply_overlay()
        output.success(
            f"Applied {len(result.copied_entries)} customization(s) and "
            f"{len(result.override_entries)} override(s)"
        )
        return

    if emit_folders or changed:
        pages = runner.emit_folders(changed or None)
        output.success(f"Emitted {len(pages)} folder page(s)")
        return

    summary = runner.run(serve=serve, watch=watch)
    if not (serve or watch):
        output.print_summary(summary)


@app.command()
def main_command(
    file: Optional[str] = typer.Argument(
        None,
        help="Optional workspace path to sync into the build (syncs only this path)",
    ),
    serve: bool = typer.Option(
        False,
        "--serve",
        help="Serve the site and sync workspace changes while running",
    ),
    watch: bool = typer.Option(
        False,
        "--watch",
        help="Sync workspace changes and rebuild until interrupted",
    ),
    no_build_dir: bool = typer.Option(
        False,
        "--no-build-dir",
        help="Build in place: overlay customizations onto the framework checkout directly",
    ),
    overlay_only: bool = typer.Option(
        False,
        "--overlay-only",
        help="Only re-apply the customizations onto the framework checkout",
    ),
    emit_folders: bool = typer.Option(
        False,
        "--emit-folders",
        help="Only re-emit folder index pages",
    ),
    changed: Optional[List[str]] = typer.Option(
        None,
        "--changed",
        help="Workspace path that changed; re-emits only affected folders (can be used multiple times)",
        metavar="PATH",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to sitesync.yaml (default: ./sitesync.yaml if present)",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Mirror a documentation workspace into an isolated build and render it.

    \b
    QUICK START:
      site-sync                       # Full build
      site-sync --serve               # Build, serve and sync changes
      site-sync --watch               # Build and rebuild on changes
      site-sync --no-build-dir        # Build in place (no mirror)

    \b
    PARTIAL OPERATIONS:
      site-sync content/docs/a.md                 # Sync a single path
      site-sync --overlay-only                    # Re-apply customizations
      site-sync --emit-folders                    # Re-emit all folder pages
      site-sync --changed content/docs/guide/a.md # Re-emit affected folders
    """
    if version:
        typer.echo(f"site-sync version {VERSION}")
        raise typer.Exit()

    if serve and watch:
        # Serving already syncs changes
        watch = False

    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        config = ConfigLoader.load(config_path)
        if no_build_dir:
            config.use_build_dir = False
        runner = BuildRunner(config, output)
        _run(runner, output, file, serve, watch, overlay_only, emit_folders, changed)

    except ExternalProcessError as e:
        if e.output:
            output.print(e.output.rstrip())
        output.error(f"Build failed: {e}")
        raise typer.Exit(e.returncode)

    except (ConfigError, FilesystemError) as e:
        logger.error(f"Configuration error: {e}")
        output.error(f"Build failed: {e}")
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    except (CLIError, SiteSyncError) as e:
        logger.error(f"Build failed: {e}")
        output.error(f"Build failed: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    except KeyboardInterrupt:
        output.print("\nShutting down...")
        raise typer.Exit(ExitCode.SUCCESS)

    except typer.Exit:
        raise

    except Exception as e:
        logger.exception("Unexpected error during build")
        output.error(f"Unexpected error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m src.cli.main
if __name__ == "__main__":
    main()
