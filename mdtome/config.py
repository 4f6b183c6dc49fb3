"""The book configuration: typed ``[book]``, ``[build]`` and ``[rust]`` tables
plus arbitrary extra data for renderers and preprocessors."""

from __future__ import annotations

import copy
import datetime
import enum
import json
import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from mdtome.sections import (
    BookConfig,
    BuildConfig,
    HtmlConfig,
    RustConfig,
    SectionError,
)

log = logging.getLogger(__name__)

_ENV_PREFIX = "MDBOOK_"
_LEGACY_ITEMS = ("title", "authors", "source", "description", "output.html.destination")
_SCALARS = (bool, int, float, str, datetime.datetime, datetime.date, datetime.time)


class ConfigError(ValueError):
    """The configuration could not be loaded or updated."""


def parse_env(key):
    """Turn an ``MDBOOK_*`` variable name into a dotted config key, else ``None``."""
    if not key.startswith(_ENV_PREFIX):
        return None
    return key[len(_ENV_PREFIX):].lower().replace("__", ".").replace("_", "-")


def _read(table: Any, key: str) -> Any:
    node = table
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def _insert(table: dict, key: str, value: Any) -> None:
    head, dot, tail = key.partition(".")
    if not dot:
        table[key] = value
        return
    child = table.get(head)
    if not isinstance(child, dict):
        child = table[head] = {}
    _insert(child, tail, value)


def _delete(table: dict, key: str) -> Any:
    parent_key, dot, last = key.rpartition(".")
    parent = _read(table, parent_key) if dot else table
    if isinstance(parent, dict):
        return parent.pop(last, None)
    return None


def _to_value(value: Any) -> Any:
    """Convert ``value`` to plain TOML data, rejecting what TOML cannot hold."""
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, enum.Enum):
        return _to_value(value.value)
    if hasattr(value, "to_dict"):
        return _to_value(value.to_dict())
    if isinstance(value, Mapping):
        return {str(key): _to_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_value(item) for item in value]
    raise ConfigError(f"Unable to represent the item as a TOML value: {value!r}")


def _sorted(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _sorted(value[key]) for key in sorted(value)}
    if isinstance(value, list):
        return [_sorted(item) for item in value]
    return value


def _update_section(section: Any, key: str, value: Any) -> Any:
    """Return ``section`` with ``key`` replaced, or unchanged if that is invalid."""
    raw = section.to_dict()
    _insert(raw, key, value)
    try:
        return type(section).from_dict(raw)
    except SectionError:
        return section


def _is_legacy_format(table: Any) -> bool:
    return any(_read(table, item) is not None for item in _LEGACY_ITEMS)


def _take_str(table: dict, key: str) -> str | None:
    value = table.pop(key, None)
    return value if isinstance(value, str) else None


@dataclass
class Config:
    """In-memory representation of ``book.toml``."""

    book: BookConfig = field(default_factory=BookConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    rust: RustConfig = field(default_factory=RustConfig)
    rest: dict = field(default_factory=dict)

    @classmethod
    def from_str(cls, src):
        """Load a configuration from TOML text."""
        try:
            data = tomllib.loads(src)
            return cls.from_dict(data)
        except (tomllib.TOMLDecodeError, ConfigError) as err:
            raise ConfigError(f"Invalid configuration file: {err}") from err

    @classmethod
    def from_disk(cls, config_file):
        """Load a configuration from a TOML file."""
        try:
            with open(config_file, "rb") as handle:
                raw = handle.read()
        except OSError as err:
            raise ConfigError(f"Unable to open the configuration file: {err}") from err
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as err:
            raise ConfigError(f"Couldn't read the file: {err}") from err
        return cls.from_str(text)

    @classmethod
    def from_dict(cls, data):
        """Build a configuration from parsed TOML data."""
        if not isinstance(data, Mapping):
            raise ConfigError("A config file should always be a toml table")
        table = copy.deepcopy(dict(data))

        if _is_legacy_format(table):
            log.warning("It looks like you are using the legacy book.toml format.")
            log.warning("Move top level entries like `title`, `authors` and `description` "
                        "under a `[book]` table, and `[output.html] destination` to "
                        "`build-dir` under a `[build]` table.")
            return cls._from_legacy(table)

        try:
            book = BookConfig.from_dict(table.pop("book")) if "book" in table else BookConfig()
            build = BuildConfig.from_dict(table.pop("build")) if "build" in table else BuildConfig()
            rust = RustConfig.from_dict(table.pop("rust")) if "rust" in table else RustConfig()
        except SectionError as err:
            raise ConfigError(str(err)) from err
        return cls(book=book, build=build, rust=rust, rest=table)

    @classmethod
    def _from_legacy(cls, table: dict) -> Config:
        cfg = cls()
        title = _take_str(table, "title")
        if title is not None:
            cfg.book.title = title
        authors = table.pop("authors", None)
        if isinstance(authors, list) and all(isinstance(a, str) for a in authors):
            cfg.book.authors = list(authors)
        source = _take_str(table, "source")
        if source is not None:
            cfg.book.src = Path(source)
        description = _take_str(table, "description")
        if description is not None:
            cfg.book.description = description
        destination = _delete(table, "output.html.destination")
        if isinstance(destination, str):
            cfg.build.build_dir = Path(destination)
        cfg.rest = table
        return cfg

    def to_dict(self):
        """The whole configuration as plain TOML data."""
        table = copy.deepcopy(self.rest)
        table["book"] = self.book.to_dict()
        if self.build != BuildConfig():
            table["build"] = self.build.to_dict()
        if self.rust != RustConfig():
            table["rust"] = self.rust.to_dict()
        return table

    def to_toml(self):
        """The configuration as TOML text, keys sorted."""
        return tomli_w.dumps(_sorted(self.to_dict()))

    def update_from_env(self, environ=None):
        """Apply overrides from ``MDBOOK_*`` variables.

        Values are parsed as JSON, falling back to plain strings.
        """
        log.debug("Updating the config from environment variables")
        env = os.environ if environ is None else environ
        for name, raw in env.items():
            key = parse_env(name)
            if key is None:
                continue
            log.debug("%s => %s", key, raw)
            try:
                parsed = json.loads(raw)
            except ValueError:
                parsed = raw

            if key in ("book", "build") and isinstance(parsed, dict):
                for sub_key, sub_value in parsed.items():
                    self.set(f"{key}.{sub_key}", sub_value)
                return

            self.set(key, parsed)

    def get(self, key):
        """Fetch an item from the extra data by dotted key, or ``None``."""
        return _read(self.rest, key)

    def set(self, index, value):
        """Set an item by dotted key, clobbering whatever is in the way."""
        value = _to_value(value)
        if index.startswith("book."):
            self.book = _update_section(self.book, index[len("book."):], value)
        elif index.startswith("build."):
            self.build = _update_section(self.build, index[len("build."):], value)
        else:
            _insert(self.rest, index, value)

    def get_renderer(self, index):
        """The ``[output.<index>]`` table, if there is one."""
        found = self.get(f"output.{index}")
        return found if isinstance(found, dict) else None

    def get_preprocessor(self, index):
        """The ``[preprocessor.<index>]`` table, if there is one."""
        found = self.get(f"preprocessor.{index}")
        return found if isinstance(found, dict) else None

    def html_config(self):
        """The HTML renderer's settings, or ``None`` if absent or invalid."""
        raw = self.get("output.html")
        if raw is None:
            return None
        try:
            return HtmlConfig.from_dict(raw)
        except SectionError as err:
            log.error("Parsing configuration [output.html]: %s", err)
            return None