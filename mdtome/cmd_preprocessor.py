"""A preprocessor that hands the book to an external program.

The program receives ``[context, book]`` as JSON on stdin and prints the
processed book as JSON on stdout.  Asked ``<cmd> supports <renderer>``, it
exits with status 0 when it supports that renderer.
"""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
from dataclasses import dataclass

from mdtome.preprocessing import Preprocessor, PreprocessorContext

log = logging.getLogger(__name__)


class PreprocessorCommandError(RuntimeError):
    """An external preprocessor could not be run or gave bad output."""


def _book_data(book):
    return book.to_dict() if hasattr(book, "to_dict") else book


@dataclass
class CmdPreprocessor(Preprocessor):
    """A preprocessor that runs a third-party command."""

    name: str
    cmd: str

    @staticmethod
    def parse_input(reader):
        """Read the ``(context, book)`` pair a preprocessor gets on stdin."""
        try:
            data = json.load(reader)
            if not isinstance(data, list) or len(data) != 2:
                raise ValueError("expected a two-element array")
            ctx = PreprocessorContext.from_dict(data[0])
        except ValueError as err:
            raise PreprocessorCommandError(f"Unable to parse the input: {err}") from err
        return ctx, data[1]

    def write_input(self, writer, book, ctx):
        """Write ``[context, book]`` as JSON to ``writer``."""
        json.dump([ctx.to_dict(), _book_data(book)], writer)

    def command(self):
        """The command split into program and arguments."""
        try:
            words = shlex.split(self.cmd)
        except ValueError as err:
            raise PreprocessorCommandError(f"Invalid command string: {err}") from err
        if not words:
            raise PreprocessorCommandError("Command string was empty")
        return words

    def run(self, ctx, book):
        """Run the command on ``book`` and return the book it prints."""
        args = self.command()
        try:
            proc = subprocess.Popen(
                args,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                text=True,
            )
        except OSError as err:
            raise PreprocessorCommandError(
                f'Unable to start the "{self.name}" preprocessor. Is it installed?'
            ) from err

        payload = json.dumps([ctx.to_dict(), _book_data(book)])
        try:
            output, _ = proc.communicate(payload)
        except OSError as err:
            log.warning("Error writing the RenderContext to the backend, %s", err)
            output = proc.stdout.read() if proc.stdout else ""
            proc.wait()

        log.debug("%s exited with output: %r", self.cmd, output)
        if proc.returncode != 0:
            raise PreprocessorCommandError(
                f'The "{self.name}" preprocessor exited unsuccessfully '
                f"with exit status: {proc.returncode} status"
            )
        try:
            return json.loads(output)
        except ValueError as err:
            raise PreprocessorCommandError(
                f'Unable to parse the preprocessed book from "{self.name}" processor'
            ) from err

    def supports_renderer(self, renderer):
        """Ask the command whether it supports ``renderer``."""
        log.debug('Checking if the "%s" preprocessor supports "%s"', self.name, renderer)
        try:
            args = self.command()
        except PreprocessorCommandError as err:
            log.warning(
                'Unable to create the command for the "%s" preprocessor, %s', self.name, err
            )
            return False
        try:
            status = subprocess.run(
                [*args, "supports", renderer], stdin=subprocess.DEVNULL
            ).returncode
        except FileNotFoundError:
            log.warning('The command wasn\'t found, is the "%s" preprocessor installed?', self.name)
            log.warning("\tCommand: %s", self.cmd)
            return False
        except OSError:
            return False
        return status == 0