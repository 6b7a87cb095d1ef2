"""Character entity discovery and snippet indexing for long-form narrative text."""

__version__ = "0.1.0"
