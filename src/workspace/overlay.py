"""Customization overlay onto the framework checkout.

The customizations directory holds project-specific files (site config,
components, scripts) that must land inside the framework checkout before the
renderer runs. A reserved overrides subdirectory holds files that replace the
framework's own internal files.

Overlay order is fixed: customizations first, then overrides, so an override
always wins on a path collision. Copies are destructive overwrites, which
makes the overlay safe to re-run for every change during a watch session.
"""

import logging
import os

from .errors import OverlayError
from .fs_ops import copy_file, copy_tree
from .models import OverlayResult

logger = logging.getLogger(__name__)

# Reserved subdirectory merged into the framework's internal directory
DEFAULT_OVERRIDES_NAME = "quartz_overrides"

# Internal directory of the framework checkout receiving overrides
DEFAULT_INTERNAL_DIR = "quartz"

# Link from the customizations directory to the framework internals
DEFAULT_FRAMEWORK_LINK = "quartz"


class CustomizationOverlay:
    """Applies a customizations tree on top of a framework checkout.

    Layout:
        src/                       # customizations_dir
          quartz -> ...            # framework link, never copied
          quartz.config.ts         # copied to quartz_repo/quartz.config.ts
          components/...           # copied to quartz_repo/components/...
          quartz_overrides/        # merged into quartz_repo/quartz/
            util/path.ts           # replaces quartz_repo/quartz/util/path.ts

    Example:
        >>> overlay = CustomizationOverlay("build/src", "build/quartz_repo")
        >>> result = overlay.apply()
    """

    def __init__(
        self,
        customizations_dir: str,
        framework_dir: str,
        overrides_name: str = DEFAULT_OVERRIDES_NAME,
        internal_dir_name: str = DEFAULT_INTERNAL_DIR,
        framework_link_name: str = DEFAULT_FRAMEWORK_LINK,
    ):
        """Initialize the overlay.

        Args:
            customizations_dir: Directory holding the customization layer
            framework_dir: Framework checkout receiving the customizations
            overrides_name: Reserved overrides subdirectory name
            internal_dir_name: Framework internal directory receiving overrides
            framework_link_name: Entry in customizations_dir pointing back at
                the framework, skipped during the copy
        """
        self.customizations_dir = customizations_dir
        self.framework_dir = framework_dir
        self.overrides_name = overrides_name
        self.internal_dir_name = internal_dir_name
        self.framework_link_name = framework_link_name

    @property
    def overrides_dir(self) -> str:
        return os.path.join(self.customizations_dir, self.overrides_name)

    @property
    def internal_dir(self) -> str:
        return os.path.join(self.framework_dir, self.internal_dir_name)

    def apply(self) -> OverlayResult:
        """Copy customizations, then overrides, into the framework checkout.

        Returns:
            OverlayResult naming the entries that were copied

        Raises:
            OverlayError: If the customizations directory cannot be read
        """
        logger.info(
            f"Copying customizations from {self.customizations_dir} to {self.framework_dir}"
        )
        result = OverlayResult()

        if not os.path.isdir(self.customizations_dir):
            raise OverlayError(self.customizations_dir, "directory does not exist")

        try:
            entries = sorted(os.scandir(self.customizations_dir), key=lambda e: e.name)
        except OSError as e:
            raise OverlayError(self.customizations_dir, str(e))

        # Phase 1: customizations onto the checkout root
        for entry in entries:
            if entry.name in (self.framework_link_name, self.overrides_name):
                continue
            self._copy_entry(entry.path, os.path.join(self.framework_dir, entry.name), entry.name)
            result.copied_entries.append(entry.name)

        # Phase 2: overrides into the framework internals, always after phase 1
        if os.path.isdir(self.overrides_dir):
            for entry in sorted(os.scandir(self.overrides_dir), key=lambda e: e.name):
                self._copy_entry(entry.path, os.path.join(self.internal_dir, entry.name), entry.name)
                result.override_entries.append(entry.name)
            logger.info(f"Copied {self.overrides_name}/ to {self.internal_dir}")
        else:
            logger.debug(f"No {self.overrides_name}/ directory, skipping overrides")

        return result

    def _copy_entry(self, src: str, dest: str, name: str) -> None:
        """Copy one top-level entry, logging failures instead of aborting."""
        if os.path.isdir(src) and not os.path.islink(src):
            _, _, failed = copy_tree(src, dest, name)
            for rel, reason in failed:
                logger.warning(f"Warning: Could not copy customization {rel}: {reason}")
            return
        try:
            copy_file(src, dest, name)
        except OSError as e:
            logger.warning(f"Warning: Could not copy customization {src}: {e}")
