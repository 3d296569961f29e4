[build-system]
requires = ["setuptools>=68", "wheel"]
build-backend = "setuptools.build_meta"

[project]
name = "solidq"
version = "0.0.2"
description = "A small persistent work queue with named channels, payload helpers, and an HTTP client with a polling work loop."
requires-python = ">=3.10"
keywords = ["queue", "work queue", "job queue", "worker", "channels", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "requests>=2.28",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "responses>=0.23",
]

[tool.setuptools.packages.find]
include = ["solidq*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
