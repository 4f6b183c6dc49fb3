import logging
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from mdtome.config import Config
from mdtome.index_preprocessor import IndexPreprocessor, is_readme_file
from mdtome.preprocessing import PreprocessorContext


@pytest.mark.parametrize(
    "path",
    [
        "path/to/Readme.md",
        "path/to/README.md",
        "path/to/rEaDmE.md",
        "path/to/README.markdown",
        "path/to/README",
    ],
)
def test_file_stem_matches_readme_case_insensitively(path):
    assert is_readme_file(path) is True


def test_other_stems_are_not_readme():
    assert is_readme_file("path/to/README-README.md") is False
    assert is_readme_file("path/to/intro.md") is False


@dataclass
class Chapter:
    path: Path | None
    sub_items: list = field(default_factory=list)


def _ctx(root):
    return PreprocessorContext(root, Config(), "html")


def test_rename_readme(tmp_path):
    pre = IndexPreprocessor()
    assert pre.rename(_ctx(tmp_path), Path("first/README.md")) == Path("first/index.md")


def test_rename_keeps_other_paths(tmp_path):
    pre = IndexPreprocessor()
    assert pre.rename(_ctx(tmp_path), Path("first/nested.md")) == Path("first/nested.md")
    assert pre.rename(_ctx(tmp_path), None) is None


def test_rename_warns_on_conflict(tmp_path, caplog):
    (tmp_path / "src" / "first").mkdir(parents=True)
    (tmp_path / "src" / "first" / "index.md").write_text("# Index\n")
    with caplog.at_level(logging.WARNING, logger="mdtome.index_preprocessor"):
        got = IndexPreprocessor().rename(_ctx(tmp_path), Path("first/README.md"))
    assert got == Path("first/index.md")
    assert any("index.md" in record.getMessage() for record in caplog.records)


def test_no_warning_without_conflict(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="mdtome.index_preprocessor"):
        IndexPreprocessor().rename(_ctx(tmp_path), Path("README.md"))
    assert caplog.records == []


def test_run_renames_nested_chapters(tmp_path):
    nested = Chapter(Path("second/Readme.md"))
    book = [Chapter(Path("README.md")), Chapter(Path("first/intro.md"), [nested]), Chapter(None)]
    result = IndexPreprocessor().run(_ctx(tmp_path), book)
    assert [item.path for item in result] == [Path("index.md"), Path("first/intro.md"), None]
    assert nested.path == Path("second/index.md")


def test_name_is_index():
    assert IndexPreprocessor().name == "index"
    assert IndexPreprocessor().supports_renderer("html") is True