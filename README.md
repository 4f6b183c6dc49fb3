# mdtome

`mdtome` loads the configuration of a markdown book and runs the
preprocessors that prepare its chapters before rendering.

## Installation

```
pip install mdtome
```

## Configuration

A book is described by a `book.toml` file. `mdtome.config.Config` reads it.
It gives typed access to the `[book]`, `[build]` and `[rust]` tables and
dotted-key access to everything else.

```python
from mdtome.config import Config

cfg = Config.from_str('''
[book]
title = "My Book"
authors = ["Jane Doe"]

[other-table.foo]
bar = 123
''')

assert cfg.book.title == "My Book"
assert cfg.get("other-table.foo.bar") == 123

cfg.set("output.html.theme", "./themes")
html = cfg.html_config()          # an HtmlConfig, or None
assert str(html.theme) == "themes"
```

- `Config.from_str(text)` and `Config.from_disk(path)` load TOML. They raise
  `ConfigError` on bad input, and that includes a typed table holding a value
  of the wrong type.
- `Config.from_dict(data)` and `Config.to_dict()` convert to and from plain
  data. `Config.to_toml()` writes TOML with its keys sorted. The `[build]` and
  `[rust]` tables are written only when they differ from their defaults.
- `Config.set(key, value)` sets a value by dotted key. Keys under `book.` and
  `build.` update the typed sections. If the new value is not valid for such
  a section, the section is left unchanged.
- `Config.get_renderer(name)` and `Config.get_preprocessor(name)` return the
  `[output.<name>]` and `[preprocessor.<name>]` tables.
- Files in the older format still load, with a warning. In that format
  `title`, `authors`, `source` and `description` sit at the top level and
  `[output.html] destination` is also accepted.

`Config.update_from_env(environ=None)` applies overrides from `MDBOOK_*`
variables. It reads `os.environ` unless a mapping is given. A double
underscore separates nested keys and a single underscore becomes a dash, so
`MDBOOK_BOOK__TITLE` sets `book.title`. Each value is read as JSON first and
taken as a plain string if that fails. `parse_env(name)` does the name
conversion on its own.

The typed sections are in `mdtome.sections`: `BookConfig`, `BuildConfig`,
`RustConfig` (with `RustEdition`), `HtmlConfig`, `Playground`, `Print`,
`Fold` and `Search`. Each one has `from_dict` and `to_dict`, uses kebab-case
keys, and raises `SectionError` on malformed values.
`HtmlConfig.theme_dir(root)` gives the theme directory, which is `theme`
under `root` when none is set.

## Preprocessors

All preprocessors subclass `mdtome.preprocessing.Preprocessor`. A
preprocessor has a `name`, implements `run(ctx, book)`, and may override
`supports_renderer(renderer)`, which returns `True` by default. `ctx` is a
`PreprocessorContext` holding `root`, `config`, `renderer`,
`mdbook_version` and `chapter_titles`.

- `LinkPreprocessor` (`mdtome.links`) expands these helpers:
  `{{#include file}}`, `{{#rustdoc_include file}}`, `{{#playground file}}`
  and `{{#title ...}}`. It accepts line ranges (`file.rs:10:20`, `:10:`,
  `::20`) and anchors (`file.rs:anchor`). A leading backslash leaves a helper
  unexpanded. Includes nested more than ten levels deep are cut off. A link
  whose file cannot be read is left as written. `replace_all` and
  `render_link` do the same work on a string. The link parser itself is in
  `mdtome.link_parsing`, through `find_links` and `parse_include_path`.
- `IndexPreprocessor` (`mdtome.index_preprocessor`) renames chapters called
  `README.md`, matched in any letter case, to `index.md`. It warns when an
  `index.md` already exists beside them.
- `CmdPreprocessor` (`mdtome.cmd_preprocessor`) runs an external program. It
  sends `[context, book]` to the program as JSON on stdin and returns the JSON
  the program prints on stdout. `<cmd> supports <renderer>` is run to ask
  whether a renderer is supported, and exit status 0 means yes.
  `CmdPreprocessor.parse_input(reader)` lets such a program read its input.
  Failures raise `PreprocessorCommandError`.

`LinkPreprocessor.run` and `IndexPreprocessor.run` take any iterable of
chapter-like objects. A chapter has a `path` attribute, and for links also a
`name` and `content`. Nested items go in `sub_items`.

## What it does not do

`mdtome` has no command-line tool. It does not parse `SUMMARY.md`, load a
book's chapters from disk, or render output. You supply the book structure
yourself, and renderers are outside the package.