"""blogsmith - build a pandoc-rendered static blog."""

__version__ = "0.1.0"
