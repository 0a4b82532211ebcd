"""Bidirectional sync between GitHub Discussions and local Markdown files."""

__version__ = "0.3.0"
