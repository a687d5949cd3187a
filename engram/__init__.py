"""Codebase memory primitives: symbol records and hashes, language detection and file
discovery, scope hierarchy, Markdown sections, chunking, evolution tracking and
annotation staleness cascades."""

__version__ = "0.1.0"

__all__ = [
    "symbols",
    "languages",
    "hierarchy",
    "markdown",
    "chunking",
    "temporal",
    "cascade",
]