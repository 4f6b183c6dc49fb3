"""A preprocessor that renames ``README.md`` chapters to ``index.md``."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from mdtome.preprocessing import Preprocessor

log = logging.getLogger(__name__)

_README = re.compile(r"readme", re.IGNORECASE)
_INDEX_NAME = "index.md"


def is_readme_file(path):
    """Whether the file stem of ``path`` is ``readme``, in any letter case."""
    return _README.fullmatch(Path(path).stem) is not None


def _warn_readme_name_conflict(readme_path: Path, index_path: Path) -> None:
    file_name = readme_path.name
    parent_dir = index_path.parent
    log.warning('It seems that there are both "%s" and index.md under "%s".', file_name, parent_dir)
    log.warning('mdbook converts "%s" into index.html by default. It may cause', file_name)
    log.warning("unexpected behavior if putting both files under the same directory.")
    log.warning("To solve the warning, try to rearrange the book structure or disable")
    log.warning('"index" preprocessor to stop the conversion.')


class IndexPreprocessor(Preprocessor):
    """Turns ``README.md`` chapters into ``index.md``, the usual index page."""

    name = "index"

    def rename(self, ctx, path):
        """The new path of a chapter at ``path``; ``None`` stays ``None``."""
        if path is None:
            return None
        path = Path(path)
        if not is_readme_file(path):
            return path
        renamed = path.with_name(_INDEX_NAME)
        index_md = ctx.root / ctx.config.book.src / renamed
        if index_md.exists():
            _warn_readme_name_conflict(path, index_md)
        return renamed

    def run(self, ctx, book):
        """Rename every chapter in ``book``, including nested ones.

        ``book`` is an iterable of items; chapters carry a ``path`` attribute
        and may hold nested items in ``sub_items``.
        """
        pending = list(book)
        while pending:
            item = pending.pop()
            if hasattr(item, "path"):
                item.path = self.rename(ctx, item.path)
            pending.extend(getattr(item, "sub_items", None) or ())
        return book