"""Directory-tree transformation framework with a markdown blog publisher."""

__version__ = "0.3.0"
