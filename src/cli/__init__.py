"""Command-line interface for isolated site builds.

This package provides the `site-sync` CLI tool that mirrors a documentation
workspace into an isolated build root, overlays the site customizations onto
the framework checkout, emits folder index pages and runs the renderer,
optionally watching the workspace for changes.
"""

from .build_runner import BuildRunner
from .config import ConfigLoader
from .models import BuildSummary, ExitCode, SiteConfig
from .errors import CLIError, ExternalProcessError

__all__ = [
    'BuildRunner',
    'ConfigLoader',
    'BuildSummary',
    'ExitCode',
    'SiteConfig',
    'CLIError',
    'ExternalProcessError',
]
