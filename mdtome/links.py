"""Expansion of ``{{#include}}``, ``{{#rustdoc_include}}``, ``{{#playground}}``
and ``{{#title}}`` helpers in chapter text."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from mdtome.link_parsing import LineRange, Link, LinkKind, find_links
from mdtome.preprocessing import Preprocessor

log = logging.getLogger(__name__)

MAX_LINK_NESTED_DEPTH = 10

_ANCHOR_START = re.compile(r"ANCHOR:\s*(?P<anchor_name>[\w_-]+)")
_ANCHOR_END = re.compile(r"ANCHOR_END:\s*(?P<anchor_name>[\w_-]+)")


def _lines(text: str) -> list[str]:
    """Split into lines on ``\\n``, dropping a trailing ``\\r`` and a final empty line."""
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def _in_range(index: int, line_range: LineRange) -> bool:
    start = line_range.start or 0
    return index >= start and (line_range.end is None or index < line_range.end)


def _take_lines(text: str, line_range: LineRange) -> str:
    start = line_range.start or 0
    return "\n".join(_lines(text)[start:line_range.end])


def _take_anchored_lines(text: str, anchor: str) -> str:
    retained = []
    found = False
    for line in _lines(text):
        if found:
            end = _ANCHOR_END.search(line)
            if end is not None:
                if end["anchor_name"] == anchor:
                    break
            elif not _ANCHOR_START.search(line):
                retained.append(line)
        else:
            start = _ANCHOR_START.search(line)
            if start is not None and start["anchor_name"] == anchor:
                found = True
    return "\n".join(retained)


def _take_rustdoc_include_lines(text: str, line_range: LineRange) -> str:
    return "\n".join(
        line if _in_range(index, line_range) else f"# {line}"
        for index, line in enumerate(_lines(text))
    )


def _take_rustdoc_include_anchored_lines(text: str, anchor: str) -> str:
    output = []
    within = False
    for line in _lines(text):
        if within:
            end = _ANCHOR_END.search(line)
            if end is not None:
                if end["anchor_name"] == anchor:
                    within = False
            elif not _ANCHOR_START.search(line):
                output.append(line)
        else:
            start = _ANCHOR_START.search(line)
            if start is not None:
                if start["anchor_name"] == anchor:
                    within = True
            elif not _ANCHOR_END.search(line):
                output.append(f"# {line}")
    return "\n".join(output)


def _read_target(link: Link, target: Path) -> str:
    try:
        return target.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        raise OSError(f"Could not read file for link {link.link_text} ({target}): {err}") from err


def render_link(link, base, chapter_title):
    """Render ``link`` relative to ``base``.

    Returns the replacement text and the (possibly changed) chapter title.
    Raises ``OSError`` when a linked file cannot be read.
    """
    base = Path(base)
    kind = link.kind
    if kind is LinkKind.ESCAPED:
        return link.link_text[1:], chapter_title
    if kind is LinkKind.TITLE:
        return "", link.title
    target = base / link.path
    contents = _read_target(link, target)
    if kind is LinkKind.INCLUDE:
        if isinstance(link.range_or_anchor, str):
            return _take_anchored_lines(contents, link.range_or_anchor), chapter_title
        return _take_lines(contents, link.range_or_anchor), chapter_title
    if kind is LinkKind.RUSTDOC_INCLUDE:
        if isinstance(link.range_or_anchor, str):
            return _take_rustdoc_include_anchored_lines(contents, link.range_or_anchor), chapter_title
        return _take_rustdoc_include_lines(contents, link.range_or_anchor), chapter_title
    ftype = "rust," if link.properties else "rust"
    if not contents.endswith("\n"):
        contents += "\n"
    return f"```{ftype}{','.join(link.properties)}\n{contents}```\n", chapter_title


def replace_all(s, path, source, depth, chapter_title):
    """Expand every helper link in ``s``, following nested includes.

    Returns the expanded text and the chapter title, which a ``{{#title}}``
    helper may have changed.  Links whose files cannot be read stay as they are.
    """
    path = Path(path)
    previous_end = 0
    replaced = []

    for link in find_links(s):
        replaced.append(s[previous_end:link.start_index])
        try:
            new_content, chapter_title = render_link(link, path, chapter_title)
        except OSError as err:
            log.error('Error updating "%s", %s', link.link_text, err)
            previous_end = link.start_index
            continue

        if depth < MAX_LINK_NESTED_DEPTH:
            rel_path = link.relative_path(path)
            if rel_path is not None:
                nested, chapter_title = replace_all(
                    new_content, rel_path, source, depth + 1, chapter_title
                )
                replaced.append(nested)
            else:
                replaced.append(new_content)
        else:
            log.error("Stack depth exceeded in %s. Check for cyclic includes", source)
        previous_end = link.end_index

    replaced.append(s[previous_end:])
    return "".join(replaced), chapter_title


class LinkPreprocessor(Preprocessor):
    """Expands the helper links in every chapter of a book."""

    name = "links"

    def process_chapter(self, ctx, chapter_path, content, name):
        """Expand the links in one chapter and return its new content.

        A title set by ``{{#title}}`` is recorded in ``ctx.chapter_titles``.
        """
        chapter_path = Path(chapter_path)
        base = ctx.root / ctx.config.book.src / chapter_path.parent
        new_content, title = replace_all(content, base, chapter_path, 0, name)
        if title != name:
            ctx.chapter_titles[chapter_path] = title
        return new_content

    def run(self, ctx, book):
        """Expand links in every chapter of ``book``, including nested ones.

        Chapters carry ``name``, ``path`` and ``content`` attributes and may
        hold nested items in ``sub_items``; chapters without a path are skipped.
        """
        pending = list(book)
        while pending:
            item = pending.pop()
            if getattr(item, "path", None) is not None and hasattr(item, "content"):
                item.content = self.process_chapter(ctx, item.path, item.content, item.name)
            pending.extend(getattr(item, "sub_items", None) or ())
        return book