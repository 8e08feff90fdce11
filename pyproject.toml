[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "overlapio"
version = "0.1.0"
description = "Overlapped, event-signalled scatter/gather socket I/O with Winsock-style results on POSIX sockets"
requires-python = ">=3.10"
dependencies = []
keywords = ["sockets", "overlapped", "non-blocking", "scatter-gather", "events", "winsock"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
overlapio-demo = "overlapio.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["overlapio"]

[tool.pytest.ini_options]
addopts = "-ra"
