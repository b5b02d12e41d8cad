[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "logrelay"
version = "0.1.0"
description = "Building blocks for a log and metrics relay agent and a syslog drain binder"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "logging",
    "metrics",
    "statsd",
    "syslog",
    "aggregation",
    "leader-election",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Logging",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["logrelay"]

[tool.hatch.build.targets.sdist]
include = ["logrelay", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
