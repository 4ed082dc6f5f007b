"""Pytest configuration and fixtures for integration tests.

Provides a realistic on-disk workspace: content tree, customization layer
with overrides, a framework checkout and a project ignore file. External
processes (dependency installer, renderer) are always mocked.
"""

from pathlib import Path

import pytest
import yaml

from src.cli.config import DEFAULT_CONFIG_FILE


@pytest.fixture
def workspace(tmp_path) -> Path:
    """Create a documentation workspace.

    Layout:
        site/
          .gitignore                 # excludes secrets/ and *.log
          sitesync.yaml
          build.js
          content/
            index.md
            docs/index.md            # explicit folder index
            docs/faq.md
            docs/guide/intro.md
            docs/guide/setup.md      # sortorder 1
            tags/python.md
          secrets/key.txt
          src/
            quartz.config.ts
            components/Explorer.tsx
            quartz_overrides/util/path.ts
          quartz_repo/
            package.json
            quartz/util/path.ts
    """
    root = tmp_path / "site"
    files = {
        ".gitignore": "secrets/\n*.log\n",
        "build.js": "// legacy build script\n",
        "debug.log": "noise\n",
        "content/index.md": "---\ntitle: Home\n---\nWelcome.\n",
        "content/docs/index.md": "---\ntitle: Documentation\n---\nAll the docs.\n",
        "content/docs/faq.md": "---\ntitle: FAQ\nmodified: 2024-01-01\n---\n# FAQ\n",
        "content/docs/guide/intro.md": (
            "---\ntitle: Intro\nmodified: 2024-03-01\ntags: [python]\n---\n# Intro\n\nHello.\n"
        ),
        "content/docs/guide/setup.md": "---\ntitle: Setup\nsortorder: 1\n---\n# Setup\n",
        "content/tags/python.md": "---\ntitle: Python\n---\n",
        "secrets/key.txt": "hunter2\n",
        "src/quartz.config.ts": "export default { site: 'custom' }\n",
        "src/components/Explorer.tsx": "export const Explorer = () => null\n",
        "src/quartz_overrides/util/path.ts": "// overridden\n",
        "quartz_repo/package.json": "{\"name\": \"quartz\"}\n",
        "quartz_repo/quartz/util/path.ts": "// upstream\n",
        "quartz_repo/quartz/util/lang.ts": "// upstream lang\n",
    }
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)

    config = {
        "date_priority": ["frontmatter", "filesystem"],
        "debounce_seconds": 0.05,
    }
    (root / DEFAULT_CONFIG_FILE).write_text(yaml.safe_dump(config))
    return root
