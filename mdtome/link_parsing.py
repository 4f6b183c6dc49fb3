"""Finding and parsing ``{{#...}}`` helper links in chapter text."""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

ESCAPE_CHAR = "\\"

_USIZE_LIMIT = 1 << 64
_UNSIGNED = re.compile(r"\+?[0-9]+")

_LINK = re.compile(
    r"""
    \\\{\{\#.*\}\}      # escaped link
    |
    \{\{\s*             # opening braces and whitespace
    \#([a-zA-Z0-9_]+)   # link type
    \s+                 # separating whitespace
    ([^}]+)             # target path and space separated properties
    \}\}                # closing braces
    """,
    re.VERBOSE,
)


class LinkKind(enum.Enum):
    """The kind of helper a link stands for."""

    ESCAPED = "escaped"
    INCLUDE = "include"
    PLAYGROUND = "playground"
    RUSTDOC_INCLUDE = "rustdoc_include"
    TITLE = "title"


@dataclass(frozen=True)
class LineRange:
    """A half-open range of zero-based line numbers; ``None`` means unbounded."""

    start: int | None = None
    end: int | None = None


@dataclass(frozen=True)
class Link:
    """A helper link found in a chapter, with its position in the text."""

    start_index: int
    end_index: int
    kind: LinkKind
    link_text: str
    path: Path | None = None
    range_or_anchor: LineRange | str | None = None
    properties: tuple[str, ...] = ()
    title: str | None = None

    def relative_path(self, base):
        """Directory of the linked file under ``base``, or ``None`` for links without a file."""
        if self.path is None or self.kind in (LinkKind.ESCAPED, LinkKind.TITLE):
            return None
        return (Path(base) / self.path).parent


def _parse_usize(text: str) -> int | None:
    if not _UNSIGNED.fullmatch(text):
        return None
    value = int(text)
    return value if value < _USIZE_LIMIT else None


def parse_range_or_anchor(parts):
    """Parse the part after the path: a one-based line range or an anchor name."""
    pieces = (parts or "").split(":", 2)

    first = pieces[0]
    number = _parse_usize(first)
    if number is not None:
        start = max(number - 1, 0)
    elif first == "":
        start = None
    else:
        return first

    end_text = pieces[1] if len(pieces) > 1 else None
    end = _parse_usize(end_text) if end_text is not None else None

    if start is not None:
        if end_text is None:
            return LineRange(start, start + 1)
        return LineRange(start, end)
    if end is not None:
        return LineRange(None, end)
    return LineRange()


def parse_include_path(path):
    """Split ``file:range-or-anchor`` into the path and its range or anchor."""
    file_part, _, rest = path.partition(":")
    range_or_anchor = parse_range_or_anchor(rest if ":" in path else None)
    return Path(file_part), range_or_anchor


def parse_rustdoc_include_path(path):
    """Split a ``rustdoc_include`` argument the same way as an ``include`` one."""
    return parse_include_path(path)


def _from_match(match: re.Match) -> Link | None:
    whole = match.group(0)
    typ, rest = match.group(1), match.group(2)
    base = {
        "start_index": match.start(),
        "end_index": match.end(),
        "link_text": whole,
    }

    if typ is not None and rest is not None:
        if typ == "title":
            return Link(kind=LinkKind.TITLE, title=rest, **base)
        words = rest.split()
        if not words:
            return None
        file_arg, props = words[0], tuple(words[1:])
        if typ == "include":
            path, range_or_anchor = parse_include_path(file_arg)
            return Link(kind=LinkKind.INCLUDE, path=path, range_or_anchor=range_or_anchor, **base)
        if typ == "rustdoc_include":
            path, range_or_anchor = parse_rustdoc_include_path(file_arg)
            return Link(
                kind=LinkKind.RUSTDOC_INCLUDE, path=path, range_or_anchor=range_or_anchor, **base
            )
        if typ in ("playground", "playpen"):
            if typ == "playpen":
                log.warning(
                    "the {{#playpen}} expression has been renamed to {{#playground}}, "
                    "please update your book to use the new name"
                )
            return Link(kind=LinkKind.PLAYGROUND, path=Path(file_arg), properties=props, **base)
        return None

    if typ is None and rest is None and whole.startswith(ESCAPE_CHAR):
        return Link(kind=LinkKind.ESCAPED, **base)
    return None


def find_links(contents):
    """Yield every recognised helper link in ``contents``, in order."""
    return _iter_links(contents)


def _iter_links(contents: str) -> Iterator[Link]:
    for match in _LINK.finditer(contents):
        link = _from_match(match)
        if link is not None:
            yield link