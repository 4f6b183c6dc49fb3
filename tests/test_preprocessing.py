from pathlib import Path

import pytest

from mdtome.config import Config, ConfigError
from mdtome.preprocessing import MDBOOK_VERSION, Preprocessor, PreprocessorContext


def _config():
    return Config.from_str(
        '[book]\ntitle = "Some Book"\n\n[output.html.playground]\neditable = true\n'
    )


def test_context_round_trip():
    ctx = PreprocessorContext(Path("/books/demo"), _config(), "html")
    again = PreprocessorContext.from_dict(ctx.to_dict())
    assert again == ctx
    assert again.config.book.title == "Some Book"


def test_default_version_is_package_version():
    ctx = PreprocessorContext("/books/demo", Config(), "html")
    assert ctx.mdbook_version == MDBOOK_VERSION
    assert ctx.root == Path("/books/demo")


def test_to_dict_fields():
    ctx = PreprocessorContext(Path("/books/demo"), Config(), "epub")
    ctx.chapter_titles[Path("a.md")] = "A"
    data = ctx.to_dict()
    assert set(data) == {"root", "config", "renderer", "mdbook_version"}
    assert data["root"] == str(Path("/books/demo"))
    assert data["renderer"] == "epub"
    assert data["config"]["book"]["src"] == "src"


def test_from_dict_missing_field():
    data = PreprocessorContext(Path("/x"), Config(), "html").to_dict()
    del data["renderer"]
    with pytest.raises(ValueError, match="renderer"):
        PreprocessorContext.from_dict(data)


def test_from_dict_rejects_non_object():
    with pytest.raises(ValueError):
        PreprocessorContext.from_dict([1, 2])


def test_from_dict_bad_config():
    data = PreprocessorContext(Path("/x"), Config(), "html").to_dict()
    data["config"] = {"book": {"title": 20}}
    with pytest.raises(ConfigError):
        PreprocessorContext.from_dict(data)


class _Upper(Preprocessor):
    name = "upper"

    def run(self, ctx, book):
        return [item.upper() for item in book]


def test_default_supports_every_renderer():
    pre = _Upper()
    assert pre.supports_renderer("html") is True
    assert pre.supports_renderer("anything") is True
    ctx = PreprocessorContext(Path("."), Config(), "html")
    assert pre.run(ctx, ["a", "b"]) == ["A", "B"]


def test_preprocessor_is_abstract():
    with pytest.raises(TypeError):
        Preprocessor()