"""YAML configuration loading and validation.

This module loads the build configuration from ``sitesync.yaml``. Every
field is optional; a missing configuration file yields the defaults.

Configuration file structure:
    build_dir: build
    customizations_dir: src
    framework_dir: quartz_repo
    content_dir: content
    debounce_seconds: 0.5
    content_ignore_patterns: [private, templates, .obsidian]
    folder_pages:
      show_folder_count: true
      show_subfolders: true
"""

import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from src.workspace.errors import ConfigError, FilesystemError
from src.site_index.models import DATE_TYPES

from .models import SiteConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "sitesync.yaml"

VALID_DATE_SOURCES = {"frontmatter", "git", "filesystem"}


class ConfigLoader:
    """Handles configuration file loading and validation."""

    # Fields holding a single path or name
    STRING_FIELDS = (
        'workspace_root', 'build_dir', 'customizations_dir', 'overrides_name',
        'framework_dir', 'internal_dir_name', 'framework_link_name',
        'build_script', 'content_dir', 'output_dir', 'ignore_file',
        'tag_namespace', 'default_date_type',
    )

    # Fields holding a list of strings
    LIST_FIELDS = (
        'extra_ignore', 'content_ignore_patterns', 'date_priority',
        'install_command', 'render_command',
    )

    BOOL_FIELDS = ('use_build_dir', 'emit_folder_pages')

    # Nested folder page options
    FOLDER_PAGE_FIELDS = ('show_folder_count', 'show_subfolders')

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> SiteConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file (defaults to
                sitesync.yaml in the current directory)

        Returns:
            SiteConfig object; defaults when the file does not exist

        Raises:
            FilesystemError: If the file exists but cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        path = config_path or DEFAULT_CONFIG_FILE
        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            if config_path:
                raise FilesystemError(path, 'read', 'Configuration file not found')
            logger.debug(f"No {DEFAULT_CONFIG_FILE} found, using defaults")
            return SiteConfig()
        except PermissionError:
            raise FilesystemError(path, 'read', 'Permission denied')
        except OSError as e:
            raise FilesystemError(path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            config_dict = {}

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        config = cls.parse(config_dict)
        # Relative workspace roots are anchored at the configuration file
        base = os.path.dirname(os.path.abspath(path))
        config.workspace_root = os.path.normpath(os.path.join(base, config.workspace_root))
        logger.info(f"Loaded configuration from {path}")
        return config

    @classmethod
    def parse(cls, config_dict: Dict[str, Any]) -> SiteConfig:
        """Parse and validate a configuration dictionary.

        Args:
            config_dict: Raw configuration dictionary from YAML

        Returns:
            Validated SiteConfig object

        Raises:
            ConfigError: If configuration is invalid
        """
        values: Dict[str, Any] = {}

        for name in cls.STRING_FIELDS:
            if name in config_dict:
                values[name] = cls._string(config_dict[name], name)

        for name in cls.LIST_FIELDS:
            if name in config_dict:
                values[name] = cls._string_list(config_dict[name], name)

        for name in cls.BOOL_FIELDS:
            if name in config_dict:
                values[name] = cls._bool(config_dict[name], name)

        folder_pages = config_dict.get('folder_pages', {}) or {}
        if not isinstance(folder_pages, dict):
            raise ConfigError("Field 'folder_pages' must be a dictionary", 'folder_pages')
        for name in cls.FOLDER_PAGE_FIELDS:
            if name in folder_pages:
                values[name] = cls._bool(folder_pages[name], f'folder_pages.{name}')

        if 'debounce_seconds' in config_dict:
            try:
                debounce = float(config_dict['debounce_seconds'])
            except (ValueError, TypeError):
                raise ConfigError(
                    f"Field 'debounce_seconds' must be a number, got {config_dict['debounce_seconds']!r}",
                    'debounce_seconds'
                )
            if debounce < 0:
                raise ConfigError(
                    f"Field 'debounce_seconds' must not be negative, got {debounce}",
                    'debounce_seconds'
                )
            values['debounce_seconds'] = debounce

        config = SiteConfig(**values)
        cls._validate(config)
        return config

    @classmethod
    def _validate(cls, config: SiteConfig) -> None:
        if config.default_date_type not in DATE_TYPES:
            raise ConfigError(
                f"Field 'default_date_type' must be one of {', '.join(DATE_TYPES)}, "
                f"got '{config.default_date_type}'",
                'default_date_type'
            )

        unknown = set(config.date_priority) - VALID_DATE_SOURCES
        if unknown:
            raise ConfigError(
                f"Unknown date source(s): {', '.join(sorted(unknown))}",
                'date_priority'
            )

        for name in ('install_command', 'render_command'):
            if not getattr(config, name):
                raise ConfigError(f"Field '{name}' cannot be empty", name)

        if config.overrides_name == config.framework_link_name:
            raise ConfigError(
                "Fields 'overrides_name' and 'framework_link_name' must differ",
                'overrides_name'
            )

    @staticmethod
    def _string(value: Any, name: str) -> str:
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ConfigError(f"Field '{name}' must be a string", name)
        value = str(value).strip()
        if not value:
            raise ConfigError(f"Field '{name}' cannot be empty", name)
        return value

    @staticmethod
    def _string_list(value: Any, name: str) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ConfigError(f"Field '{name}' must be a list", name)
        return [str(item) for item in value if item is not None]

    @staticmethod
    def _bool(value: Any, name: str) -> bool:
        if not isinstance(value, bool):
            raise ConfigError(f"Field '{name}' must be true or false", name)
        return value
