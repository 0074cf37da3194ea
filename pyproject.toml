[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "otstunnel"
version = "1.0.0"
description = "Building blocks for consuming Tablestore tunnels: plain-buffer row codec, tunnel and record models, configuration and checkpointing channel processors."
requires-python = ">=3.10"
dependencies = []
keywords = ["tablestore", "tunnel", "stream", "change-data-capture", "plainbuffer", "checkpoint"]
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
    "Topic :: Database :: Front-Ends",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["otstunnel"]

[tool.hatch.build.targets.sdist]
include = ["otstunnel", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
