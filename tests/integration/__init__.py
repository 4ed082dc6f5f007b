"""Integration tests for the site build and sync pipeline.

These tests run the components together against a real workspace created
in a temporary directory: mirroring into the build root, applying the
customization overlay, emitting folder index pages and the frontmatter
index, and incremental sync driven by a real watchdog observer.

The CLI is exercised through typer's CliRunner. The dependency installer
and the renderer are always mocked, so no Node.js toolchain is needed.
"""
