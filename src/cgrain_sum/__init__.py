"""C-Grain summarizer: grain inspection CSV / XML exports -> Excel summary."""

__version__ = "0.3.0"
