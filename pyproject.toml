[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "goshort"
version = "0.5.0"
description = "URL shortener core: validation, SQLite storage, link previews, Safe Browsing checks and an MCP-style tool layer."
requires-python = ">=3.10"
dependencies = []
keywords = ["url-shortener", "short-url", "sqlite", "mcp", "link-preview", "safe-browsing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["goshort"]

[tool.hatch.build.targets.sdist]
include = ["goshort", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
