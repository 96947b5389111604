"""Building blocks of a log-structured page cache."""

__version__ = "0.1.0"

__all__ = [
    "config",
    "constants",
    "diskptr",
    "dll",
    "errors",
    "header",
    "intervals",
    "lru",
    "pagetable",
    "settings",
    "stack",
    "vecset",
]