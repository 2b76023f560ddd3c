"""Weather impact analysis and caching for geographic path segments."""

__version__ = "0.1.0"
