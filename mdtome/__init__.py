"""Book configuration and chapter preprocessing for markdown books."""

__version__ = "0.1.0"

__all__ = [
    "sections",
    "config",
    "preprocessing",
    "cmd_preprocessor",
    "index_preprocessor",
    "link_parsing",
    "links",
]