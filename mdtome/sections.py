"""Typed tables of the book configuration: ``[book]``, ``[build]``, ``[rust]``
and the HTML renderer's ``[output.html]`` table."""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any


class SectionError(ValueError):
    """A configuration table holds a value of the wrong shape."""


Parser = Callable[[Any], Any]


def _spec(parse: Parser, *, default: Any = MISSING, factory: Any = MISSING, aliases: tuple[str, ...] = ()):
    return field(
        default=default,
        default_factory=factory,
        metadata={"parse": parse, "aliases": aliases},
    )


def _describe(value: Any) -> str:
    return type(value).__name__


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise SectionError(f"expected a string, found {_describe(value)}")
    return value


def _flag(value: Any) -> bool:
    if not isinstance(value, bool):
        raise SectionError(f"expected a boolean, found {_describe(value)}")
    return value


def _unsigned(bits: int) -> Parser:
    limit = 1 << bits

    def parse(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise SectionError(f"expected an integer, found {_describe(value)}")
        if not 0 <= value < limit:
            raise SectionError(f"integer {value} is out of range for u{bits}")
        return value

    return parse


def _path(value: Any) -> Path:
    return Path(_text(value))


def _optional(parse: Parser) -> Parser:
    def wrapped(value: Any) -> Any:
        return None if value is None else parse(value)

    return wrapped


def _list_of(parse: Parser) -> Parser:
    def wrapped(value: Any) -> list:
        if not isinstance(value, (list, tuple)):
            raise SectionError(f"expected an array, found {_describe(value)}")
        return [parse(item) for item in value]

    return wrapped


def _map_of(parse: Parser) -> Parser:
    def wrapped(value: Any) -> dict:
        if not isinstance(value, Mapping):
            raise SectionError(f"expected a table, found {_describe(value)}")
        return {_text(key): parse(item) for key, item in value.items()}

    return wrapped


def _table(cls: type) -> Parser:
    return lambda value: cls.from_dict(value)


def _dump(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return _section_to_dict(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump(item) for key, item in value.items()}
    return value


def _key(name: str) -> str:
    return name.replace("_", "-")


def _section_from_dict(cls: type, data: Any) -> Any:
    """Build a section from a kebab-case table; unknown keys are ignored."""
    if not isinstance(data, Mapping):
        raise SectionError(f"expected a table for {cls.__name__}, found {_describe(data)}")
    values: dict[str, Any] = {}
    for spec in fields(cls):
        key = _key(spec.name)
        present = [name for name in (key, *spec.metadata["aliases"]) if name in data]
        if len(present) > 1:
            raise SectionError(f"duplicate field `{key}`")
        if not present:
            continue
        try:
            values[spec.name] = spec.metadata["parse"](data[present[0]])
        except SectionError as err:
            raise SectionError(f"invalid value for `{key}`: {err}") from None
    return cls(**values)


def _section_to_dict(section: Any) -> dict:
    """A section as a plain table; unset optional values are left out."""
    return {
        _key(spec.name): _dump(getattr(section, spec.name))
        for spec in fields(section)
        if getattr(section, spec.name) is not None
    }


@dataclass
class BookConfig:
    """Metadata about the book."""

    title: str | None = _spec(_optional(_text), default=None)
    authors: list[str] = _spec(_list_of(_text), factory=list)
    description: str | None = _spec(_optional(_text), default=None)
    src: Path = _spec(_path, factory=lambda: Path("src"))
    multilingual: bool = _spec(_flag, default=False)
    language: str | None = _spec(_optional(_text), default="en")

    @classmethod
    def from_dict(cls, data):
        """Build from a table; missing keys take their defaults."""
        return _section_from_dict(cls, data)

    def to_dict(self):
        """The section as a plain table."""
        return _section_to_dict(self)


@dataclass
class BuildConfig:
    """Settings for the build procedure."""

    build_dir: Path = _spec(_path, factory=lambda: Path("book"))
    create_missing: bool = _spec(_flag, default=True)
    use_default_preprocessors: bool = _spec(_flag, default=True)
    extra_watch_dirs: list[Path] = _spec(_list_of(_path), factory=list)

    @classmethod
    def from_dict(cls, data):
        """Build from a table; missing keys take their defaults."""
        return _section_from_dict(cls, data)

    def to_dict(self):
        """The section as a plain table."""
        return _section_to_dict(self)


class RustEdition(enum.Enum):
    """Language edition used for code snippets."""

    E2021 = "2021"
    E2018 = "2018"
    E2015 = "2015"


def _edition(value: Any) -> RustEdition:
    try:
        return RustEdition(_text(value))
    except ValueError:
        raise SectionError(
            f"unknown variant `{value}`, expected one of `2021`, `2018`, `2015`"
        ) from None


@dataclass
class RustConfig:
    """Settings for code snippets."""

    edition: RustEdition | None = _spec(_optional(_edition), default=None)

    @classmethod
    def from_dict(cls, data):
        """Build from a table; missing keys take their defaults."""
        return _section_from_dict(cls, data)

    def to_dict(self):
        """The section as a plain table."""
        return _section_to_dict(self)


@dataclass
class Print:
    """How the print page is rendered."""

    enable: bool = _spec(_flag, default=True)
    page_break: bool = _spec(_flag, default=True)

    @classmethod
    def from_dict(cls, data):
        """Build from a table; missing keys take their defaults."""
        return _section_from_dict(cls, data)

    def to_dict(self):
        """The section as a plain table."""
        return _section_to_dict(self)


@dataclass
class Fold:
    """How chapters in the sidebar are folded."""

    enable: bool = _spec(_flag, default=False)
    level: int = _spec(_unsigned(8), default=0)

    @classmethod
    def from_dict(cls, data):
        """Build from a table; missing keys take their defaults."""
        return _section_from_dict(cls, data)

    def to_dict(self):
        """The section as a plain table."""
        return _section_to_dict(self)


@dataclass
class Playground:
    """How runnable snippets are presented."""

    editable: bool = _spec(_flag, default=False)
    copyable: bool = _spec(_flag, default=True)
    copy_js: bool = _spec(_flag, default=True)
    line_numbers: bool = _spec(_flag, default=False)
    runnable: bool = _spec(_flag, default=True)

    @classmethod
    def from_dict(cls, data):
        """Build from a table; missing keys take their defaults."""
        return _section_from_dict(cls, data)

    def to_dict(self):
        """The section as a plain table."""
        return _section_to_dict(self)


@dataclass
class Search:
    """Settings of the search feature."""

    enable: bool = _spec(_flag, default=True)
    limit_results: int = _spec(_unsigned(32), default=30)
    teaser_word_count: int = _spec(_unsigned(32), default=30)
    use_boolean_and: bool = _spec(_flag, default=False)
    boost_title: int = _spec(_unsigned(8), default=2)
    boost_hierarchy: int = _spec(_unsigned(8), default=1)
    boost_paragraph: int = _spec(_unsigned(8), default=1)
    expand: bool = _spec(_flag, default=True)
    heading_split_level: int = _spec(_unsigned(8), default=3)
    copy_js: bool = _spec(_flag, default=True)

    @classmethod
    def from_dict(cls, data):
        """Build from a table; missing keys take their defaults."""
        return _section_from_dict(cls, data)

    def to_dict(self):
        """The section as a plain table."""
        return _section_to_dict(self)


@dataclass
class HtmlConfig:
    """Settings of the HTML renderer."""

    theme: Path | None = _spec(_optional(_path), default=None)
    default_theme: str | None = _spec(_optional(_text), default=None)
    preferred_dark_theme: str | None = _spec(_optional(_text), default=None)
    curly_quotes: bool = _spec(_flag, default=False)
    mathjax_support: bool = _spec(_flag, default=False)
    copy_fonts: bool = _spec(_flag, default=True)
    google_analytics: str | None = _spec(_optional(_text), default=None)
    additional_css: list[Path] = _spec(_list_of(_path), factory=list)
    additional_js: list[Path] = _spec(_list_of(_path), factory=list)
    fold: Fold = _spec(_table(Fold), factory=Fold)
    playground: Playground = _spec(_table(Playground), factory=Playground, aliases=("playpen",))
    print: Print = _spec(_table(Print), factory=Print)
    no_section_label: bool = _spec(_flag, default=False)
    search: Search | None = _spec(_optional(_table(Search)), default=None)
    git_repository_url: str | None = _spec(_optional(_text), default=None)
    git_repository_icon: str | None = _spec(_optional(_text), default=None)
    input_404: str | None = _spec(_optional(_text), default=None)
    site_url: str | None = _spec(_optional(_text), default=None)
    cname: str | None = _spec(_optional(_text), default=None)
    edit_url_template: str | None = _spec(_optional(_text), default=None)
    live_reload_endpoint: str | None = _spec(_optional(_text), default=None)
    redirect: dict[str, str] = _spec(_map_of(_text), factory=dict)

    @classmethod
    def from_dict(cls, data):
        """Build from a table; missing keys take their defaults."""
        return _section_from_dict(cls, data)

    def to_dict(self):
        """The section as a plain table."""
        return _section_to_dict(self)

    def theme_dir(self, root) -> Path:
        """The theme directory under ``root``, ``theme`` when none is set."""
        return Path(root) / (self.theme if self.theme is not None else "theme")