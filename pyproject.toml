[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sparkwire"
version = "0.1.0"
description = "A Spark Connect client core: connection strings, plan and column building, result streams, retries and error conversion."
requires-python = ">=3.10"
dependencies = [
    "grpcio",
]
keywords = ["spark", "spark-connect", "grpc", "dataframe", "sql", "client"]
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
    "Topic :: Database :: Front-Ends",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sparkwire"]

[tool.hatch.build.targets.sdist]
include = [
    "sparkwire",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
