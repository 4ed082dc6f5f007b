"""Exclusion rule compilation for workspace mirroring and watching.

This module compiles project ignore-file rules plus a fixed set of static
rules into a single predicate over normalized relative paths. Matching uses
the git wildmatch grammar from pathspec: the last matching rule wins and a
negated pattern re-includes a path.

Static rules are always appended after the project rules so no user pattern
can re-include them. This keeps the mirror from ever recursing into its own
output directory.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

import pathspec

logger = logging.getLogger(__name__)

# Ignore file read from the workspace root when none is configured
DEFAULT_IGNORE_FILE = ".gitignore"

# Version-control metadata is never mirrored by copy
VCS_RULES = (".git", "**/.git")


def normalize_path(relative_path: str) -> str:
    """Normalize a relative path for matching.

    Converts backslashes to forward slashes and strips leading './' and '/'
    so that paths reported by different platforms and watchers compare equal.

    Args:
        relative_path: Path relative to the workspace root

    Returns:
        Normalized '/'-separated path ('' for the root itself)
    """
    normalized = relative_path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.lstrip("/")
    if normalized == ".":
        return ""
    return normalized.rstrip("/")


@dataclass(frozen=True)
class Matcher:
    """Compiled, immutable exclusion predicate.

    Attributes:
        rules: The ordered rule set the matcher was compiled from
    """
    rules: tuple
    _spec: pathspec.PathSpec = field(repr=False, compare=False)

    def excludes(self, relative_path: str, is_dir: bool = False) -> bool:
        """Return True if ``relative_path`` must be left out.

        Directories are tested with a trailing slash so directory-only
        patterns such as ``secrets/`` match the directory itself, not just
        its descendants.

        Args:
            relative_path: Path relative to the workspace root
            is_dir: Whether the path refers to a directory

        Returns:
            True if the path is excluded
        """
        normalized = normalize_path(relative_path)
        if not normalized:
            return False
        if is_dir:
            normalized += "/"
        return self._spec.match_file(normalized)


class PathMatcher:
    """Builds Matcher instances from static rules and ignore-file contents.

    Example:
        >>> matcher = PathMatcher.compile(["build"], "secrets/\\n*.log\\n")
        >>> matcher.excludes("secrets/key.txt")
        True
        >>> matcher.excludes("docs/intro.md")
        False
    """

    @staticmethod
    def static_rules(
        build_dir: Optional[str] = None,
        framework_link: Optional[str] = None,
        build_script: Optional[str] = None,
        extra: Iterable[str] = (),
    ) -> List[str]:
        """Assemble the always-on rule set.

        Args:
            build_dir: Build output directory relative to the workspace root
            framework_link: Framework checkout link inside the customizations
                directory (e.g. 'src/quartz')
            build_script: The build script itself, if it lives in the workspace
            extra: Additional rules appended after the defaults

        Returns:
            Ordered list of static rules
        """
        # Anchored to the workspace root so same-named nested paths survive
        rules: List[str] = []
        for value in (build_dir, framework_link):
            if value:
                rules.append("/" + normalize_path(value))
        rules.extend(VCS_RULES)
        if build_script:
            rules.append("/" + normalize_path(build_script))
        rules.extend(extra)
        return rules

    @staticmethod
    def compile(static_rules: Sequence[str], ignore_file_contents: str = "") -> Matcher:
        """Compile project rules followed by static rules.

        Args:
            static_rules: Rules that can never be re-included
            ignore_file_contents: Raw contents of the project ignore file

        Returns:
            Compiled Matcher
        """
        project_rules = [
            line for line in ignore_file_contents.splitlines()
            if line.strip() and not line.lstrip().startswith("#")
        ]
        rules = tuple(project_rules) + tuple(static_rules)
        spec = pathspec.GitIgnoreSpec.from_lines(rules)
        logger.debug(
            f"Compiled {len(project_rules)} project rule(s) and "
            f"{len(static_rules)} static rule(s)"
        )
        return Matcher(rules=rules, _spec=spec)

    @classmethod
    def from_workspace(
        cls,
        workspace_root: str,
        static_rules: Sequence[str],
        ignore_file: str = DEFAULT_IGNORE_FILE,
    ) -> Matcher:
        """Compile a matcher using the ignore file found in ``workspace_root``.

        A missing or unreadable ignore file is not fatal: the matcher falls
        back to the static rules only.

        Args:
            workspace_root: Root of the source workspace
            static_rules: Rules that can never be re-included
            ignore_file: Ignore file name relative to the workspace root

        Returns:
            Compiled Matcher
        """
        ignore_path = os.path.join(workspace_root, ignore_file)
        try:
            with open(ignore_path, "r", encoding="utf-8") as f:
                contents = f.read()
        except OSError as e:
            logger.warning(
                f"Could not read {ignore_path} ({e}), using default exclusions"
            )
            contents = ""
        except UnicodeDecodeError as e:
            logger.warning(
                f"Could not decode {ignore_path} ({e}), using default exclusions"
            )
            contents = ""
        return cls.compile(static_rules, contents)
