"""obsvault: typed item store over an Obsidian vault."""

__version__ = "0.1.0"
