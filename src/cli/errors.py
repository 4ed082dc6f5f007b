"""Typed exception hierarchy for CLI-related errors.

This module defines the exceptions raised while orchestrating a build.
All exceptions inherit from CLIError and include descriptive messages with
context to help with debugging.
"""

from typing import List, Optional

from src.workspace.errors import SiteSyncError


class CLIError(SiteSyncError):
    """Base exception for all CLI-related errors."""
    pass


class ExternalProcessError(CLIError):
    """Raised when the dependency installer or the renderer fails.

    Attributes:
        command: The command line that was run
        returncode: Exit status of the process
        output: Captured stdout and stderr (empty when streamed)
    """

    def __init__(self, command: List[str], returncode: int, output: Optional[str] = None):
        super().__init__(
            f"Command '{' '.join(command)}' failed with exit code {returncode}"
        )
        self.command = command
        self.returncode = returncode
        self.output = output or ""
