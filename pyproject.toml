[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mdtome"
version = "0.1.0"
description = "Book configuration and chapter preprocessing for markdown books"
requires-python = ">=3.11"
keywords = ["markdown", "book", "documentation", "preprocessor", "toml"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Processing :: Markup :: Markdown",
    "Topic :: Documentation",
]
dependencies = [
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["mdtome"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
