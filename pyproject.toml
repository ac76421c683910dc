[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "deckbuddy"
version = "1.9.0"
description = "Host-side helper for streaming games to a handheld: client pairing, settings, heartbeat, stream state and environment sharing."
requires-python = ">=3.10"
dependencies = []
keywords = ["streaming", "steam", "sunshine", "pairing", "heartbeat"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX :: Linux",
    "Operating System :: Microsoft :: Windows",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
deckbuddy-stream = "deckbuddy.stream:main"

[tool.hatch.build.targets.wheel]
packages = ["deckbuddy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 120
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
