import io
import shlex
import sys
from pathlib import Path

import pytest

from mdtome.cmd_preprocessor import CmdPreprocessor, PreprocessorCommandError
from mdtome.config import Config
from mdtome.preprocessing import PreprocessorContext

BOOK = {"sections": [{"name": "Intro", "content": "# Intro\n"}]}


def _ctx():
    config = Config.from_str('[book]\ntitle = "Guide"\n\n[preprocessor.first]\n')
    return PreprocessorContext(Path("/guide"), config, "some-renderer")


def _script(tmp_path, body):
    script = tmp_path / "pre.py"
    script.write_text(body)
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"


ECHO = """
import json, sys
if len(sys.argv) > 1 and sys.argv[1] == "supports":
    sys.exit(1 if sys.argv[2] == "not-supported" else 0)
ctx, book = json.load(sys.stdin)
book["renderer"] = ctx["renderer"]
print(json.dumps(book))
"""


def test_round_trip_write_and_parse_input():
    cmd = CmdPreprocessor("test", "test")
    ctx = _ctx()
    buffer = io.StringIO()
    cmd.write_input(buffer, BOOK, ctx)
    buffer.seek(0)
    got_ctx, got_book = CmdPreprocessor.parse_input(buffer)
    assert got_book == BOOK
    assert got_ctx == ctx


def test_parse_input_rejects_garbage():
    with pytest.raises(PreprocessorCommandError, match="Unable to parse the input"):
        CmdPreprocessor.parse_input(io.StringIO("not json"))


def test_parse_input_rejects_wrong_shape():
    with pytest.raises(PreprocessorCommandError):
        CmdPreprocessor.parse_input(io.StringIO('{"a": 1}'))


def test_command_splits_words():
    cmd = CmdPreprocessor("x", "foo 'bar baz' qux")
    assert cmd.command() == ["foo", "bar baz", "qux"]


def test_empty_command_is_an_error():
    with pytest.raises(PreprocessorCommandError, match="Command string was empty"):
        CmdPreprocessor("x", "   ").command()


def test_run_returns_processed_book(tmp_path):
    cmd = CmdPreprocessor("echo", _script(tmp_path, ECHO))
    got = cmd.run(_ctx(), BOOK)
    assert got == {**BOOK, "renderer": "some-renderer"}


def test_run_failing_command(tmp_path):
    cmd = CmdPreprocessor("failing", _script(tmp_path, "import sys\nsys.stdin.read()\nsys.exit(1)\n"))
    with pytest.raises(PreprocessorCommandError, match="exited unsuccessfully"):
        cmd.run(_ctx(), BOOK)


def test_run_bad_output(tmp_path):
    cmd = CmdPreprocessor("bad", _script(tmp_path, "import sys\nsys.stdin.read()\nprint('nope')\n"))
    with pytest.raises(PreprocessorCommandError, match="Unable to parse the preprocessed book"):
        cmd.run(_ctx(), BOOK)


def test_run_missing_program():
    cmd = CmdPreprocessor("missing", "trduyvbhijnorgevfuhn")
    with pytest.raises(PreprocessorCommandError, match="Is it installed"):
        cmd.run(_ctx(), BOOK)


def test_example_supports_whatever(tmp_path):
    cmd = CmdPreprocessor("nop-preprocessor", _script(tmp_path, ECHO))
    assert cmd.supports_renderer("whatever") is True


def test_example_doesnt_support_not_supported(tmp_path):
    cmd = CmdPreprocessor("nop-preprocessor", _script(tmp_path, ECHO))
    assert cmd.supports_renderer("not-supported") is False


def test_missing_program_supports_nothing():
    assert CmdPreprocessor("missing", "trduyvbhijnorgevfuhn").supports_renderer("html") is False


def test_empty_command_supports_nothing():
    assert CmdPreprocessor("empty", "").supports_renderer("html") is False