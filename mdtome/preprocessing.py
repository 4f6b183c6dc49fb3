"""Shared pieces for book preprocessors: the context handed to them and the
interface they implement."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from mdtome.config import Config

MDBOOK_VERSION = "0.1.0"

_REQUIRED_KEYS = ("root", "config", "renderer", "mdbook_version")


@dataclass
class PreprocessorContext:
    """Extra information given to a preprocessor while it processes a book."""

    root: Path
    config: Config
    renderer: str
    mdbook_version: str = MDBOOK_VERSION
    chapter_titles: dict[Path, str] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self.root = Path(self.root)

    def to_dict(self):
        """The context as JSON-ready data; chapter titles are not included."""
        return {
            "root": str(self.root),
            "config": self.config.to_dict(),
            "renderer": self.renderer,
            "mdbook_version": self.mdbook_version,
        }

    @classmethod
    def from_dict(cls, data):
        """Rebuild a context from the data written by :meth:`to_dict`."""
        if not isinstance(data, Mapping):
            raise ValueError(f"expected an object for the context, found {type(data).__name__}")
        missing = [key for key in _REQUIRED_KEYS if key not in data]
        if missing:
            raise ValueError(f"missing field `{missing[0]}`")
        for key in ("root", "renderer", "mdbook_version"):
            if not isinstance(data[key], str):
                raise ValueError(f"expected a string for `{key}`")
        return cls(
            root=Path(data["root"]),
            config=Config.from_dict(data["config"]),
            renderer=data["renderer"],
            mdbook_version=data["mdbook_version"],
        )


class Preprocessor(ABC):
    """An operation run on a book after loading it and before rendering it."""

    name: str

    @abstractmethod
    def run(self, ctx, book):
        """Process ``book`` and return the updated book."""

    def supports_renderer(self, renderer):
        """Whether this preprocessor works with ``renderer``; always true by default."""
        return True